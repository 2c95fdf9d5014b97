"""Observability surfaces for curve services."""

from .curve_metrics import CurveMetrics

__all__ = ["CurveMetrics"]
