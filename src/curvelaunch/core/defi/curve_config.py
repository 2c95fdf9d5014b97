"""
Immutable per-curve configuration.

A CurveConfig is injected into every BondingCurve at construction and never
mutated afterwards. Defaults reproduce the standard launch: 1,000,000,000
units, graduation at 800,000,000 sold and $18,000 raised, price running from
7 to 75 micro-USD at a $3000 reference price, 1% fee, and a 200,000,000 unit
+ 5 BERA liquidity deposit with a 1 BERA graduation fee.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..constants import (
    DEFAULT_DEPLOY_FEE_SETTLEMENT,
    DEFAULT_DEPLOY_SETTLEMENT,
    DEFAULT_DEPLOY_UNITS,
    DEFAULT_FEE_PERCENT,
    DEFAULT_FINAL_MULTIPLIER,
    DEFAULT_INITIAL_MULTIPLIER,
    DEFAULT_PRICE_NORMALIZER,
    DEFAULT_PRICE_UPDATE_INTERVAL,
    DEFAULT_RAISE_TARGET_USD,
    DEFAULT_SALE_THRESHOLD,
    DEFAULT_TOTAL_SUPPLY,
    MAX_FEE_PERCENT,
)
from ..curve_exceptions import ConfigurationError


class RaiseAccounting(Enum):
    """Which settlement value counts toward the raise target."""
    GROSS = "gross"
    NET = "net"


@dataclass(frozen=True)
class CurveConfig:
    """Curve parameters; validated on creation."""

    total_supply: int = DEFAULT_TOTAL_SUPPLY
    sale_threshold: int = DEFAULT_SALE_THRESHOLD
    raise_target_usd: int = DEFAULT_RAISE_TARGET_USD
    initial_multiplier: int = DEFAULT_INITIAL_MULTIPLIER
    final_multiplier: int = DEFAULT_FINAL_MULTIPLIER
    price_normalizer: int = DEFAULT_PRICE_NORMALIZER
    fee_percent: int = DEFAULT_FEE_PERCENT
    deploy_units: int = DEFAULT_DEPLOY_UNITS
    deploy_settlement: int = DEFAULT_DEPLOY_SETTLEMENT
    deploy_fee_settlement: int = DEFAULT_DEPLOY_FEE_SETTLEMENT
    price_update_interval: int = DEFAULT_PRICE_UPDATE_INTERVAL
    clamp_price_fraction: bool = False
    raise_accounting: RaiseAccounting = RaiseAccounting.GROSS
    max_feed_age: Optional[int] = None

    def __post_init__(self) -> None:
        if isinstance(self.raise_accounting, str):
            object.__setattr__(self, "raise_accounting", RaiseAccounting(self.raise_accounting.lower()))
        self.validate()

    def validate(self) -> None:
        """Validate curve configuration"""
        if self.total_supply <= 0:
            raise ConfigurationError(f"Invalid total_supply: {self.total_supply}. Must be > 0")
        if not (0 < self.sale_threshold <= self.total_supply):
            raise ConfigurationError(
                f"Invalid sale_threshold: {self.sale_threshold}. Must be in (0, total_supply]"
            )
        if self.raise_target_usd < 0:
            raise ConfigurationError(f"Invalid raise_target_usd: {self.raise_target_usd}. Must be >= 0")
        if self.initial_multiplier <= 0:
            raise ConfigurationError(
                f"Invalid initial_multiplier: {self.initial_multiplier}. Must be > 0"
            )
        if self.final_multiplier < self.initial_multiplier:
            raise ConfigurationError(
                f"Invalid final_multiplier: {self.final_multiplier}. Must be >= initial_multiplier"
            )
        if self.price_normalizer <= 0:
            raise ConfigurationError(f"Invalid price_normalizer: {self.price_normalizer}. Must be > 0")
        if not (0 <= self.fee_percent <= MAX_FEE_PERCENT):
            raise ConfigurationError(
                f"Invalid fee_percent: {self.fee_percent}. Must be between 0-{MAX_FEE_PERCENT}"
            )
        if self.deploy_units < 0 or self.deploy_units > self.total_supply - self.sale_threshold:
            raise ConfigurationError(
                f"Invalid deploy_units: {self.deploy_units}. "
                "Must fit in the supply left after the sale threshold"
            )
        if self.deploy_settlement < 0 or self.deploy_fee_settlement < 0:
            raise ConfigurationError("Deployment settlement amounts must be >= 0")
        if self.price_update_interval < 0:
            raise ConfigurationError(
                f"Invalid price_update_interval: {self.price_update_interval}. Must be >= 0"
            )
        if self.max_feed_age is not None and self.max_feed_age <= 0:
            raise ConfigurationError(f"Invalid max_feed_age: {self.max_feed_age}. Must be > 0")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["raise_accounting"] = self.raise_accounting.value
        return data
