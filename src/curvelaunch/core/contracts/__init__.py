"""
curvelaunch contract standards.

- AssetLedger: fungible balance ledger for curve-issued assets
"""

from .asset_ledger import AssetLedger

__all__ = ["AssetLedger"]
