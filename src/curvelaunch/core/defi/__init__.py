"""
curvelaunch DeFi Protocols.

This module provides:
- Bonding Curve: oracle-priced linear curve with one-shot liquidity graduation
- Price Oracle: interval-cached reference price feed adapter
- Liquidity Sink: graduation deposit manager and venue
- Token Factory: one-call token launches
- Access Control: capability-based administration
"""

from .access_control import AccessControl, AdminCapability, Role
from .bonding_curve import BondingCurve, CurveState, PurchaseReceipt, SaleReceipt
from .curve_config import CurveConfig, RaiseAccounting
from .fixed_point import mul_div, split_percent_fee
from .liquidity_sink import (
    DeployResult,
    DexLiquidityManager,
    LiquidityPosition,
    LiquiditySink,
    LiquidityVenue,
)
from .price_oracle import CachedPriceOracle, MockPriceFeed, PriceCache, PriceFeed
from .token_factory import LaunchedToken, TokenFactory

__all__ = [
    "AccessControl",
    "AdminCapability",
    "Role",
    "BondingCurve",
    "CurveState",
    "PurchaseReceipt",
    "SaleReceipt",
    "CurveConfig",
    "RaiseAccounting",
    "mul_div",
    "split_percent_fee",
    "DeployResult",
    "DexLiquidityManager",
    "LiquidityPosition",
    "LiquiditySink",
    "LiquidityVenue",
    "CachedPriceOracle",
    "MockPriceFeed",
    "PriceCache",
    "PriceFeed",
    "LaunchedToken",
    "TokenFactory",
]
