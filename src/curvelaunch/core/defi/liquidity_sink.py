"""
Liquidity sinks for curve graduation.

When a curve crosses its adoption threshold it hands a fixed slice of
inventory and settlement value to a liquidity sink exactly once. This module
provides:
- DeployResult: explicit Ok/Err outcome of a deployment call
- LiquiditySink: the interface the curve depends on
- DexLiquidityManager: owner-gated adapter that accepts one deposit per asset
  and forwards it to a venue
- LiquidityVenue: in-memory exchange that records pool deposits, with a
  switch to make every deposit fail
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from ..curve_exceptions import (
    AlreadyDeployedError,
    InvalidAmountError,
    RevertError,
    TransferError,
    get_error_context,
)
from ..execution import ExecutionContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeployResult:
    """Outcome of a liquidity deployment."""

    ok: bool
    reason: str = ""

    @classmethod
    def success(cls) -> "DeployResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str) -> "DeployResult":
        return cls(ok=False, reason=reason)


class LiquiditySink(Protocol):
    """Interface a curve uses to deploy graduation liquidity."""

    address: str

    def deploy(
        self,
        caller: str,
        asset: str,
        units_amount: int,
        collector: str,
        value: int,
    ) -> DeployResult:
        """
        Accept ``units_amount`` of ``asset`` (pulled via allowance from
        ``caller``) plus ``value`` settlement already sent to this sink.
        """
        ...


@dataclass
class LiquidityPosition:
    """Liquidity a venue holds for one asset."""

    asset: str
    units: int
    settlement: int
    collector: str
    block_number: int


@dataclass
class LiquidityVenue:
    """In-memory exchange that receives graduation deposits."""

    ctx: ExecutionContext = field(repr=False)
    address: str = ""
    accepting: bool = True
    pools: Dict[str, LiquidityPosition] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.address:
            self.address = self.ctx.create_address("venue")
        self.address = self.address.lower()
        self.ctx.register(self.address, self)

    def add_liquidity(
        self,
        caller: str,
        asset: str,
        units_amount: int,
        settlement_amount: int,
        collector: str,
    ) -> LiquidityPosition:
        """Record a deposit whose units and value were already transferred in."""
        if not self.accepting:
            raise RevertError("Venue is not accepting liquidity", reason="venue rejected deposit")
        if units_amount <= 0 or settlement_amount <= 0:
            raise RevertError("Zero liquidity deposit", reason="zero deposit")

        asset = asset.lower()
        position = self.pools.get(asset)
        if position is None:
            position = LiquidityPosition(
                asset=asset,
                units=0,
                settlement=0,
                collector=collector.lower(),
                block_number=self.ctx.block_number,
            )
            self.pools[asset] = position
        position.units += units_amount
        position.settlement += settlement_amount

        self.ctx.emit(
            self.address,
            "PoolFunded",
            provider=caller.lower(),
            asset=asset,
            units=units_amount,
            settlement=settlement_amount,
        )
        return position

    def get_liquidity(self, asset: str) -> Optional[LiquidityPosition]:
        return self.pools.get(asset.lower())

    def snapshot(self) -> Dict[str, Any]:
        return {
            "accepting": self.accepting,
            "pools": {
                k: LiquidityPosition(p.asset, p.units, p.settlement, p.collector, p.block_number)
                for k, p in self.pools.items()
            },
        }

    def restore(self, state: Dict[str, Any]) -> None:
        self.accepting = state["accepting"]
        self.pools = dict(state["pools"])


class DexLiquidityManager:
    """
    One-shot liquidity adapter owned by a curve.

    The factory creates the manager and hands ownership to the curve it
    serves, so only that curve can deploy through it. Failures never leave
    partial state: the manager undoes its own work and reports
    ``DeployResult.failure``.
    """

    def __init__(
        self,
        ctx: ExecutionContext,
        venue: LiquidityVenue,
        owner: str,
        address: str = "",
    ) -> None:
        self.ctx = ctx
        self.venue = venue
        self.owner = owner.lower()
        self.address = (address or ctx.create_address("liquidity_manager")).lower()
        self.deployed: Dict[str, int] = {}
        ctx.register(self.address, self)

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        if caller.lower() != self.owner:
            raise RevertError("Caller is not owner", reason="not owner")
        if not new_owner:
            raise InvalidAmountError("New owner cannot be empty")
        previous, self.owner = self.owner, new_owner.lower()
        self.ctx.emit(self.address, "OwnershipTransferred", previous=previous, new_owner=self.owner)

    def deploy(
        self,
        caller: str,
        asset: str,
        units_amount: int,
        collector: str,
        value: int,
    ) -> DeployResult:
        """
        Deploy ``units_amount`` of ``asset`` and ``value`` settlement to the venue.

        Returns:
            DeployResult.success() or DeployResult.failure(reason)
        """
        asset = asset.lower()
        try:
            with self.ctx.atomic():
                if caller.lower() != self.owner:
                    raise RevertError("Caller is not owner", reason="not owner")
                if asset in self.deployed:
                    raise AlreadyDeployedError(
                        f"Liquidity already deployed for {asset[:10]}",
                        details={"asset": asset},
                    )
                if self.ctx.balance_of(self.address) < value:
                    raise RevertError("Deployment value was not received", reason="missing value")

                ledger = self.ctx.get_contract(asset)
                ledger.transfer_from(self.address, caller, self.address, units_amount)
                ledger.transfer(self.address, self.venue.address, units_amount)
                self.ctx.transfer_value(self.address, self.venue.address, value)
                self.venue.add_liquidity(self.address, asset, units_amount, value, collector)
                self.deployed[asset] = self.ctx.block_number

                self.ctx.emit(
                    self.address,
                    "LiquidityAdded",
                    asset=asset,
                    units=units_amount,
                    settlement=value,
                    collector=collector.lower(),
                )
        except (RevertError, TransferError, AlreadyDeployedError) as exc:
            logger.warning(
                "Liquidity deployment failed",
                extra={"event": "liquidity.deploy_failed", "asset": asset[:10], **get_error_context(exc)},
            )
            return DeployResult.failure(getattr(exc, "reason", None) or exc.message)

        logger.info(
            "Liquidity deployed",
            extra={
                "event": "liquidity.deployed",
                "asset": asset[:10],
                "units": units_amount,
                "settlement": value,
            },
        )
        return DeployResult.success()

    def is_deployed(self, asset: str) -> bool:
        return asset.lower() in self.deployed

    def snapshot(self) -> Dict[str, Any]:
        return {"owner": self.owner, "deployed": dict(self.deployed)}

    def restore(self, state: Dict[str, Any]) -> None:
        self.owner = state["owner"]
        self.deployed = dict(state["deployed"])
