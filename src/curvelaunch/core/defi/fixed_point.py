"""
Integer fixed-point helpers used by curve pricing and fee extraction.

All curve arithmetic is done on Python integers. Rounding direction is
always explicit: round down when paying users, round up when charging them.
"""

from __future__ import annotations

from typing import Tuple

from ..constants import PERCENT_BASE


def mul_div(a: int, b: int, denominator: int, round_up: bool = False) -> int:
    """
    Calculate (a * b) / denominator with full precision and controlled rounding.

    Args:
        a: First multiplicand
        b: Second multiplicand
        denominator: Divisor
        round_up: If True, round up (for charging users)
                  If False, round down (for paying users)

    Returns:
        Result of (a * b) / denominator

    Raises:
        ZeroDivisionError: If denominator is zero
        ValueError: If any operand is negative
    """
    if denominator == 0:
        raise ZeroDivisionError("mul_div denominator is zero")
    if a < 0 or b < 0 or denominator < 0:
        raise ValueError("mul_div operands must be non-negative")

    result = a * b
    if round_up:
        return (result + denominator - 1) // denominator
    return result // denominator


def split_percent_fee(gross: int, fee_percent: int) -> Tuple[int, int]:
    """
    Split ``gross`` into ``(fee, net)`` for a whole-percent fee.

    The fee is truncated toward zero and ``fee + net == gross`` always holds.
    """
    if gross < 0:
        raise ValueError("gross amount cannot be negative")
    fee = mul_div(gross, fee_percent, PERCENT_BASE)
    return fee, gross - fee
