"""
Oracle-Priced Linear Bonding Curve.

Sells a fixed supply of an asset for native settlement value at a unit price
that rises linearly with units sold. Prices are denominated in the reference
currency (USD) and converted through an oracle price for the settlement
asset, so the curve is insulated from settlement-asset volatility.

Lifecycle:
- Active: buys and sells against the curve, 1% fee to the fee sink
- Deployed: once both the sale threshold and the raise target are met, a
  fixed slice of units and settlement is handed to a liquidity sink in the
  same unit of work as the triggering buy. The latch never resets.

Security features:
- Reentrancy protection (busy flag released on every exit path)
- All-or-nothing operations via the execution context
- Slippage bounds on buys and sells
- Capability-checked administration
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from ..constants import PRICE_DECIMALS, WAD, ZERO_ADDRESS
from ..contracts.asset_ledger import AssetLedger
from ..curve_exceptions import (
    AccessDeniedError,
    ConfigurationError,
    CurveError,
    DustAmountError,
    EmptyInputError,
    FeeTransferFailedError,
    InsufficientInventoryError,
    InsufficientReserveError,
    InsufficientReserveForDeploymentError,
    InvalidAmountError,
    InvalidPriceError,
    LedgerTransferFailedError,
    LiquidityDeploymentError,
    NoInventorySoldError,
    ReentrancyRejectedError,
    RevertError,
    SellExceedsSoldError,
    SettlementTransferFailedError,
    SlippageExceededError,
    SupplyExhaustedError,
    ValueTransferError,
    ZeroInputError,
    get_error_context,
)
from ..execution import ExecutionContext
from .access_control import AccessControl, AdminCapability, Role
from .curve_config import CurveConfig, RaiseAccounting
from .fixed_point import mul_div, split_percent_fee
from .liquidity_sink import LiquiditySink
from .price_oracle import CachedPriceOracle

if TYPE_CHECKING:
    from ..api.curve_metrics import CurveMetrics

logger = logging.getLogger(__name__)


@dataclass
class CurveState:
    """Mutable accounting owned exclusively by one BondingCurve."""

    unsold_inventory: int
    cumulative_raised_usd: int = 0
    liquidity_deployed: bool = False
    deployed_units: int = 0


@dataclass(frozen=True)
class PurchaseReceipt:
    buyer: str
    payer: str
    units_out: int
    settlement_in: int
    fee: int
    unit_price: int
    liquidity_deployed: bool


@dataclass(frozen=True)
class SaleReceipt:
    seller: str
    units_in: int
    settlement_out: int
    fee: int
    net_out: int
    unit_price: int


class BondingCurve:
    """
    Linear bonding curve with one-shot liquidity graduation.

    The curve must already hold the full supply on ``ledger`` when it is
    constructed. Units are whole asset units; settlement and USD values are
    18-decimal integers; unit prices are micro-USD.

    Args:
        ctx: Execution substrate (value balances, clock, events, atomicity)
        ledger: Ledger of the asset this curve sells
        oracle: Cached reference price for the settlement asset
        liquidity_sink: Venue adapter that receives graduation liquidity
        fee_sink: Address receiving trading and graduation fees
        collector: Address recorded as the liquidity collector
        admin: Address the admin capability is issued to
        config: Curve parameters (defaults to the standard launch)
        address: Curve address; derived from the context when empty
        metrics: Optional Prometheus metrics sink
    """

    def __init__(
        self,
        ctx: ExecutionContext,
        ledger: AssetLedger,
        oracle: CachedPriceOracle,
        liquidity_sink: LiquiditySink,
        fee_sink: str,
        collector: str,
        admin: str,
        config: Optional[CurveConfig] = None,
        address: str = "",
        metrics: Optional["CurveMetrics"] = None,
    ) -> None:
        self.ctx = ctx
        self.config = config or CurveConfig()
        self.ledger = ledger
        self.oracle = oracle
        self.liquidity_sink = liquidity_sink
        self.fee_sink = self._require_address(fee_sink, "fee_sink")
        self.collector = self._require_address(collector, "collector")
        self.address = (address or ctx.create_address("curve")).lower()
        self.metrics = metrics

        held = ledger.balance_of(self.address)
        if held != self.config.total_supply:
            raise ConfigurationError(
                f"Curve must hold the full supply ({held} != {self.config.total_supply})",
                details={"held": held, "total_supply": self.config.total_supply},
            )

        self.state = CurveState(unsold_inventory=self.config.total_supply)
        self.access = AccessControl()
        self._admin_capability: Optional[AdminCapability] = self.access.issue(admin, Role.ADMIN)
        self._locked = False

        ctx.register(self.address, self)
        self._refresh_price()

        logger.info(
            "Bonding curve created",
            extra={
                "event": "curve.created",
                "curve": self.address[:10],
                "asset": ledger.address[:10],
                "total_supply": self.config.total_supply,
                "initial_price": self.current_price(),
            }
        )

    # ==================== Pricing ====================

    @property
    def units_sold(self) -> int:
        """Units sold through the curve and still outstanding."""
        return self.config.total_supply - self.state.unsold_inventory - self.state.deployed_units

    def price_bounds(self, reference_price: Optional[int] = None) -> Tuple[int, int]:
        """Return ``(initial_price, final_price)`` in micro-USD."""
        if reference_price is None:
            reference_price = self.oracle.current_price(self.ctx.now())
        cfg = self.config
        return (
            mul_div(cfg.initial_multiplier, reference_price, cfg.price_normalizer),
            mul_div(cfg.final_multiplier, reference_price, cfg.price_normalizer),
        )

    def current_price(self) -> int:
        """Unit price in micro-USD at the current sold level."""
        return self._unit_price(self.oracle.current_price(self.ctx.now()))

    def get_reference_price(self) -> int:
        """Settlement asset price in USD, 18 decimals."""
        return self.oracle.current_price(self.ctx.now())

    def market_cap_usd(self) -> int:
        """Units outside the curve valued at the current unit price, in 18-decimal USD."""
        return self._market_cap(self._unit_price(self.get_reference_price()))

    @property
    def target_reached(self) -> bool:
        return self.state.cumulative_raised_usd >= self.config.raise_target_usd

    def quote_buy(self, settlement_in: int) -> int:
        """
        Units bought by ``settlement_in`` wei at the current price.

        Raises:
            ZeroInputError: Zero settlement
            InsufficientInventoryError: Quote exceeds unsold inventory
        """
        self._validate_amount(settlement_in)
        if settlement_in == 0:
            raise ZeroInputError("Zero BERA amount")
        units_out = self._quote_buy(settlement_in, self.oracle.current_price(self.ctx.now()))
        self._require_inventory(units_out)
        return units_out

    def quote_sell(self, units_in: int) -> int:
        """
        Gross settlement wei paid for ``units_in`` at the current price.

        Raises:
            EmptyInputError: Zero units
            NoInventorySoldError: Nothing has been sold yet
        """
        self._validate_amount(units_in)
        if units_in == 0:
            raise EmptyInputError("Zero token amount")
        if self.units_sold == 0:
            raise NoInventorySoldError("No tokens sold yet")
        return self._quote_sell(units_in, self.oracle.current_price(self.ctx.now()))

    def quote_settlement_for(self, units_out: int) -> int:
        """Smallest settlement (wei) that buys at least ``units_out`` at the current price."""
        self._validate_amount(units_out)
        if units_out == 0:
            raise EmptyInputError("Zero token amount")
        self._require_inventory(units_out)
        reference_price = self.oracle.current_price(self.ctx.now())
        unit_price = self._require_unit_price(reference_price)
        value_usd = mul_div(units_out, unit_price * WAD, PRICE_DECIMALS, round_up=True)
        return mul_div(value_usd, WAD, reference_price, round_up=True)

    def get_sell_price(self, units_in: int) -> int:
        """Net settlement a seller receives for ``units_in`` after the fee."""
        _, net = self.fee_for(self.quote_sell(units_in))
        return net

    def fee_for(self, gross: int) -> Tuple[int, int]:
        """Return ``(fee, net)`` for a gross settlement amount."""
        return split_percent_fee(gross, self.config.fee_percent)

    # ==================== Transactions ====================

    def buy(
        self,
        caller: str,
        settlement_in: int,
        beneficiary: Optional[str] = None,
        min_units_out: int = 0,
    ) -> PurchaseReceipt:
        """
        Buy units with ``settlement_in`` wei attached by ``caller``.

        Args:
            caller: Account paying the settlement
            settlement_in: Attached settlement value (wei)
            beneficiary: Account receiving the units (defaults to caller)
            min_units_out: Revert if fewer units would be bought

        Returns:
            PurchaseReceipt
        """
        self._require_not_locked()
        try:
            self._locked = True
            with self.ctx.atomic():
                receipt = self._execute_buy(caller, settlement_in, beneficiary, min_units_out)
        except CurveError as exc:
            self._record_failure("buy", exc)
            raise
        finally:
            self._locked = False

        self._record_trade("buy", receipt.units_out, receipt.settlement_in, receipt.fee)
        return receipt

    def sell(self, seller: str, units_in: int, min_settlement_out: int = 0) -> SaleReceipt:
        """
        Sell ``units_in`` back to the curve.

        The seller must have approved the curve for ``units_in`` on the ledger.

        Args:
            seller: Account selling units and receiving settlement
            units_in: Units to sell
            min_settlement_out: Revert if the net payout would be lower

        Returns:
            SaleReceipt
        """
        self._require_not_locked()
        try:
            self._locked = True
            with self.ctx.atomic():
                receipt = self._execute_sell(seller, units_in, min_settlement_out)
        except CurveError as exc:
            self._record_failure("sell", exc)
            raise
        finally:
            self._locked = False

        self._record_trade("sell", receipt.units_in, receipt.settlement_out, receipt.fee)
        return receipt

    def update_price(self, caller: str) -> int:
        """Refresh the cached reference price if stale; return the cached price."""
        self._require_not_locked()
        try:
            self._locked = True
            with self.ctx.atomic():
                price = self._refresh_price()
        except CurveError as exc:
            self._record_failure("update_price", exc)
            raise
        finally:
            self._locked = False

        logger.debug(
            "Price update requested",
            extra={"event": "curve.update_price", "curve": self.address[:10], "caller": caller[:10]},
        )
        return price

    def _execute_buy(
        self,
        caller: str,
        settlement_in: int,
        beneficiary: Optional[str],
        min_units_out: int,
    ) -> PurchaseReceipt:
        self._validate_amount(settlement_in)
        if settlement_in == 0:
            raise ZeroInputError("Zero BERA amount")
        if self.state.unsold_inventory == 0:
            raise SupplyExhaustedError("All tokens sold", details={"curve": self.address})
        payer = caller.lower()
        buyer = self._require_address(beneficiary or caller, "beneficiary")

        reference_price = self._refresh_price()
        unit_price = self._unit_price(reference_price)
        units_out = self._quote_buy(settlement_in, reference_price)
        self._require_inventory(units_out)
        if units_out == 0:
            raise DustAmountError(
                "Settlement too small to buy a single unit",
                details={"settlement_in": settlement_in, "unit_price": unit_price},
            )
        if units_out < min_units_out:
            raise SlippageExceededError(
                f"Slippage: {units_out} units < minimum {min_units_out}",
                details={"units_out": units_out, "min_units_out": min_units_out},
            )

        try:
            self.ctx.transfer_value(payer, self.address, settlement_in)
        except ValueTransferError as exc:
            raise SettlementTransferFailedError(
                "Could not collect settlement from buyer", details={"payer": payer}
            ) from exc

        fee, net = self.fee_for(settlement_in)
        self._send_fee(fee)

        try:
            self.ledger.transfer(self.address, buyer, units_out)
        except RevertError as exc:
            raise LedgerTransferFailedError(
                "Token transfer failed", details={"to": buyer, "units": units_out}
            ) from exc

        counted = settlement_in if self.config.raise_accounting is RaiseAccounting.GROSS else net
        self.state.unsold_inventory -= units_out
        self.state.cumulative_raised_usd += mul_div(counted, reference_price, WAD)

        if self._deployment_due():
            self._deploy_liquidity()

        self.ctx.emit(
            self.address,
            "PurchaseExecuted",
            buyer=buyer,
            units=units_out,
            settlement_in=settlement_in,
        )

        logger.info(
            "Purchase executed",
            extra={
                "event": "curve.buy",
                "curve": self.address[:10],
                "buyer": buyer[:10],
                "units": units_out,
                "settlement_in": settlement_in,
                "fee": fee,
                "unit_price": unit_price,
            }
        )

        return PurchaseReceipt(
            buyer=buyer,
            payer=payer,
            units_out=units_out,
            settlement_in=settlement_in,
            fee=fee,
            unit_price=unit_price,
            liquidity_deployed=self.state.liquidity_deployed,
        )

    def _execute_sell(self, seller: str, units_in: int, min_settlement_out: int) -> SaleReceipt:
        self._validate_amount(units_in)
        if units_in == 0:
            raise ZeroInputError("Zero token amount")
        sold = self.units_sold
        if sold == 0:
            raise NoInventorySoldError("No tokens sold yet")
        if units_in > sold:
            raise SellExceedsSoldError(
                f"Cannot sell {units_in} units, only {sold} sold",
                details={"units_in": units_in, "units_sold": sold},
            )
        seller = self._require_address(seller, "seller")

        reference_price = self._refresh_price()
        unit_price = self._unit_price(reference_price)
        settlement_out = self._quote_sell(units_in, reference_price)
        if settlement_out == 0:
            raise DustAmountError("Sale too small to pay out", details={"units_in": units_in})

        reserve = self.ctx.balance_of(self.address)
        if reserve < settlement_out:
            raise InsufficientReserveError(
                f"Insufficient BERA in contract ({reserve} < {settlement_out})",
                details={"reserve": reserve, "settlement_out": settlement_out},
            )

        fee, net = self.fee_for(settlement_out)
        if net < min_settlement_out:
            raise SlippageExceededError(
                f"Slippage: {net} wei < minimum {min_settlement_out}",
                details={"net_out": net, "min_settlement_out": min_settlement_out},
            )

        try:
            self.ledger.transfer_from(self.address, seller, self.address, units_in)
        except RevertError as exc:
            raise LedgerTransferFailedError(
                "Token transfer failed", details={"from": seller, "units": units_in}
            ) from exc

        self.state.unsold_inventory += units_in

        self._send_fee(fee)
        try:
            self.ctx.transfer_value(self.address, seller, net)
        except ValueTransferError as exc:
            raise SettlementTransferFailedError(
                "BERA transfer failed", details={"to": seller, "amount": net}
            ) from exc

        self.ctx.emit(
            self.address,
            "SaleExecuted",
            seller=seller,
            units=units_in,
            settlement_out=settlement_out,
        )

        logger.info(
            "Sale executed",
            extra={
                "event": "curve.sell",
                "curve": self.address[:10],
                "seller": seller[:10],
                "units": units_in,
                "settlement_out": settlement_out,
                "fee": fee,
                "unit_price": unit_price,
            }
        )

        return SaleReceipt(
            seller=seller,
            units_in=units_in,
            settlement_out=settlement_out,
            fee=fee,
            net_out=net,
            unit_price=unit_price,
        )

    # ==================== Liquidity Deployment ====================

    def _deployment_due(self) -> bool:
        return (
            not self.state.liquidity_deployed
            and self.target_reached
            and self.units_sold >= self.config.sale_threshold
        )

    def _deploy_liquidity(self) -> None:
        cfg = self.config
        required = cfg.deploy_settlement + cfg.deploy_fee_settlement
        reserve = self.ctx.balance_of(self.address)
        if reserve < required:
            raise InsufficientReserveForDeploymentError(
                f"Insufficient BERA for liquidity ({reserve} < {required})",
                details={"reserve": reserve, "required": required},
            )
        if self.state.unsold_inventory < cfg.deploy_units:
            raise InsufficientInventoryError(
                f"Insufficient tokens for liquidity ({self.state.unsold_inventory} < {cfg.deploy_units})",
                details={"unsold": self.state.unsold_inventory, "required": cfg.deploy_units},
            )

        sink = self.liquidity_sink
        try:
            self.ledger.approve(self.address, sink.address, cfg.deploy_units)
        except RevertError as exc:
            raise LedgerTransferFailedError("Token approval for liquidity failed") from exc
        try:
            self.ctx.transfer_value(self.address, sink.address, cfg.deploy_settlement)
        except ValueTransferError as exc:
            raise LiquidityDeploymentError(
                "Liquidity sink rejected settlement", reason="value transfer rejected"
            ) from exc

        result = sink.deploy(
            self.address, self.ledger.address, cfg.deploy_units, self.collector, cfg.deploy_settlement
        )
        if not result.ok:
            raise LiquidityDeploymentError(
                f"Liquidity deployment failed: {result.reason}",
                reason=result.reason,
                details={"sink": sink.address},
            )

        self._send_fee(cfg.deploy_fee_settlement)

        self.state.unsold_inventory -= cfg.deploy_units
        self.state.deployed_units = cfg.deploy_units
        self.state.liquidity_deployed = True

        self.ctx.emit(
            self.address,
            "LiquidityDeployed",
            settlement_amount=cfg.deploy_settlement,
            units_amount=cfg.deploy_units,
        )
        if self.metrics is not None:
            self.metrics.liquidity_deployments.inc()

        logger.info(
            "Liquidity deployed",
            extra={
                "event": "curve.liquidity_deployed",
                "curve": self.address[:10],
                "sink": sink.address[:10],
                "settlement": cfg.deploy_settlement,
                "units": cfg.deploy_units,
            }
        )

    # ==================== Administration ====================

    def claim_admin_capability(self) -> AdminCapability:
        """Hand the admin capability to its holder; it can be claimed once."""
        if self._admin_capability is None:
            raise AccessDeniedError("Admin capability already claimed")
        capability, self._admin_capability = self._admin_capability, None
        return capability

    def set_fee_sink(self, capability: AdminCapability, fee_sink: str) -> None:
        self._admin_update(capability, "set_fee_sink", "fee_sink", self._require_address(fee_sink, "fee_sink"))

    def set_collector(self, capability: AdminCapability, collector: str) -> None:
        self._admin_update(
            capability, "set_collector", "collector", self._require_address(collector, "collector")
        )

    def set_price_update_interval(self, capability: AdminCapability, seconds: int) -> None:
        if seconds < 0:
            raise InvalidAmountError(f"Invalid update interval: {seconds}. Must be >= 0")
        self._require_not_locked()
        try:
            self._locked = True
            with self.ctx.atomic():
                self.access.require(capability, Role.ADMIN, "set_price_update_interval", self.ctx.now())
                previous, self.oracle.update_interval = self.oracle.update_interval, seconds
                self.ctx.emit(self.address, "UpdateIntervalUpdated", previous=previous, current=seconds)
        finally:
            self._locked = False

    def _admin_update(self, capability: AdminCapability, operation: str, attr: str, value: str) -> None:
        self._require_not_locked()
        try:
            self._locked = True
            with self.ctx.atomic():
                self.access.require(capability, Role.ADMIN, operation, self.ctx.now())
                previous = getattr(self, attr)
                setattr(self, attr, value)
                event_name = "FeeSinkUpdated" if attr == "fee_sink" else "CollectorUpdated"
                self.ctx.emit(self.address, event_name, previous=previous, current=value)
        finally:
            self._locked = False

        logger.info(
            "Curve setting updated",
            extra={"event": f"curve.{operation}", "curve": self.address[:10], "value": value[:10]},
        )

    # ==================== Views ====================

    def get_curve_state(self) -> Dict[str, Any]:
        """Get current curve state."""
        reference_price = self.get_reference_price()
        initial_price, final_price = self.price_bounds(reference_price)
        unit_price = self._unit_price(reference_price)
        return {
            "address": self.address,
            "asset": self.ledger.address,
            "symbol": self.ledger.symbol,
            "unsold_inventory": self.state.unsold_inventory,
            "units_sold": self.units_sold,
            "cumulative_raised_usd": self.state.cumulative_raised_usd,
            "target_reached": self.target_reached,
            "liquidity_deployed": self.state.liquidity_deployed,
            "reference_price": reference_price,
            "unit_price": unit_price,
            "market_cap_usd": self._market_cap(unit_price),
            "initial_price": initial_price,
            "final_price": final_price,
            "settlement_reserve": self.ctx.balance_of(self.address),
            "fee_sink": self.fee_sink,
            "collector": self.collector,
            "config": self.config.to_dict(),
        }

    # ==================== Rollback ====================

    def snapshot(self) -> Dict[str, Any]:
        return {
            "state": CurveState(
                unsold_inventory=self.state.unsold_inventory,
                cumulative_raised_usd=self.state.cumulative_raised_usd,
                liquidity_deployed=self.state.liquidity_deployed,
                deployed_units=self.state.deployed_units,
            ),
            "fee_sink": self.fee_sink,
            "collector": self.collector,
            "oracle": self.oracle.snapshot(),
        }

    def restore(self, state: Dict[str, Any]) -> None:
        saved: CurveState = state["state"]
        self.state = CurveState(
            unsold_inventory=saved.unsold_inventory,
            cumulative_raised_usd=saved.cumulative_raised_usd,
            liquidity_deployed=saved.liquidity_deployed,
            deployed_units=saved.deployed_units,
        )
        self.fee_sink = state["fee_sink"]
        self.collector = state["collector"]
        self.oracle.restore(state["oracle"])

    # ==================== Helpers ====================

    def _unit_price(self, reference_price: int) -> int:
        initial_price, final_price = self.price_bounds(reference_price)
        sold = self.units_sold
        if sold == 0:
            return initial_price
        if self.config.clamp_price_fraction:
            sold = min(sold, self.config.sale_threshold)
        return initial_price + mul_div(final_price - initial_price, sold, self.config.sale_threshold)

    def _market_cap(self, unit_price: int) -> int:
        circulating = self.config.total_supply - self.state.unsold_inventory
        return mul_div(circulating, unit_price * WAD, PRICE_DECIMALS)

    def _require_unit_price(self, reference_price: int) -> int:
        unit_price = self._unit_price(reference_price)
        if unit_price <= 0:
            raise InvalidPriceError(
                "Unit price rounds to zero at the current reference price",
                details={"reference_price": reference_price},
            )
        return unit_price

    def _quote_buy(self, settlement_in: int, reference_price: int) -> int:
        unit_price = self._require_unit_price(reference_price)
        value_usd = mul_div(settlement_in, reference_price, WAD)
        return mul_div(value_usd, PRICE_DECIMALS, unit_price * WAD)

    def _quote_sell(self, units_in: int, reference_price: int) -> int:
        unit_price = self._require_unit_price(reference_price)
        value_usd = mul_div(units_in, unit_price * WAD, PRICE_DECIMALS)
        return mul_div(value_usd, WAD, reference_price)

    def _refresh_price(self) -> int:
        now = self.ctx.now()
        if not self.oracle.needs_refresh(now):
            return self.oracle.cache.reference_price
        price, as_of = self.oracle.refresh(now)
        self.ctx.emit(self.address, "PriceRefreshed", new_price=price, at=as_of)
        if self.metrics is not None:
            self.metrics.oracle_refreshes.labels(curve=self.address[:10]).inc()
        return price

    def _send_fee(self, amount: int) -> None:
        if amount == 0:
            return
        try:
            self.ctx.transfer_value(self.address, self.fee_sink, amount)
        except ValueTransferError as exc:
            raise FeeTransferFailedError(
                "Fee transfer failed", details={"fee_sink": self.fee_sink, "amount": amount}
            ) from exc

    def _require_inventory(self, units: int) -> None:
        if units > self.state.unsold_inventory:
            raise InsufficientInventoryError(
                f"Not enough tokens available ({units} > {self.state.unsold_inventory})",
                details={"requested": units, "unsold": self.state.unsold_inventory},
            )

    def _require_not_locked(self) -> None:
        if self._locked:
            raise ReentrancyRejectedError(
                "ReentrancyGuard: reentrant call", details={"curve": self.address}
            )

    @staticmethod
    def _validate_amount(amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise InvalidAmountError(f"Invalid amount: {amount!r}", details={"amount": amount})

    @staticmethod
    def _require_address(address: Optional[str], field_name: str) -> str:
        if not address or address.lower() == ZERO_ADDRESS:
            raise InvalidAmountError(f"{field_name} cannot be the zero address")
        return address.lower()

    def _record_trade(self, side: str, units: int, settlement: int, fee: int) -> None:
        if self.metrics is None:
            return
        curve = self.address[:10]
        self.metrics.record_trade(curve, side, units, settlement, fee)
        self.metrics.update_state(
            curve,
            self.current_price(),
            self.state.unsold_inventory,
            self.state.cumulative_raised_usd,
        )

    def _record_failure(self, operation: str, exc: CurveError) -> None:
        logger.warning(
            "Curve operation rejected",
            extra={
                "event": f"curve.{operation}_failed",
                "curve": self.address[:10],
                **get_error_context(exc),
            }
        )
        if self.metrics is not None:
            self.metrics.record_failure(self.address[:10], operation, type(exc).__name__)
