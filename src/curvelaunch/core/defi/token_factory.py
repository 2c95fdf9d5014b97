"""
Token launch factory.

Creates a new asset ledger, its bonding curve and the liquidity manager the
curve graduates through, in one unit of work. Creation is paid with a flat
creation fee forwarded to the factory's fee collector; any value sent above
the fee is spent as an initial purchase for the creator. Graduation liquidity
is recorded against a separate liquidity collector.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..constants import DEFAULT_CREATION_FEE, MAX_NAME_LENGTH, MAX_SYMBOL_LENGTH, ZERO_ADDRESS
from ..contracts.asset_ledger import AssetLedger
from ..curve_exceptions import (
    AccessDeniedError,
    EmptyInputError,
    FeeTransferFailedError,
    InputValidationError,
    InsufficientCreationFeeError,
    InvalidAmountError,
    SettlementTransferFailedError,
    ValueTransferError,
)
from ..execution import ExecutionContext
from .access_control import AccessControl, AdminCapability, Role
from .bonding_curve import BondingCurve, PurchaseReceipt
from .curve_config import CurveConfig
from .liquidity_sink import DexLiquidityManager, LiquidityVenue
from .price_oracle import CachedPriceOracle, PriceFeed

if TYPE_CHECKING:
    from ..api.curve_metrics import CurveMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LaunchedToken:
    """Everything created for one launch."""

    ledger: AssetLedger
    curve: BondingCurve
    liquidity_manager: DexLiquidityManager
    creator: str
    admin_capability: AdminCapability
    initial_purchase: Optional[PurchaseReceipt] = None


class TokenFactory:
    """
    Factory for launching curve-priced tokens.

    Usage:
        factory = TokenFactory(ctx, venue, fee_collector, owner, feed, liquidity_collector=lp)
        launch = factory.create_token(creator, "Moon", "MOON", value=WAD)
        launch.curve.buy(buyer, WAD)
    """

    def __init__(
        self,
        ctx: ExecutionContext,
        venue: LiquidityVenue,
        fee_collector: str,
        owner: str,
        price_feed: PriceFeed,
        liquidity_collector: str = "",
        curve_config: Optional[CurveConfig] = None,
        creation_fee: int = DEFAULT_CREATION_FEE,
        address: str = "",
        metrics: Optional["CurveMetrics"] = None,
    ) -> None:
        if creation_fee < 0:
            raise InvalidAmountError(f"Invalid creation fee: {creation_fee}")
        self.ctx = ctx
        self.venue = venue
        self.fee_collector = self._require_address(fee_collector, "fee_collector")
        self.liquidity_collector = self._require_address(
            liquidity_collector or fee_collector, "liquidity_collector"
        )
        self.price_feed = price_feed
        self.curve_config = curve_config or CurveConfig()
        self.creation_fee = creation_fee
        self.metrics = metrics
        self.address = (address or ctx.create_address("factory")).lower()
        self.tokens: Dict[str, LaunchedToken] = {}
        self.token_list: List[str] = []

        self.access = AccessControl()
        self._owner_capability: Optional[AdminCapability] = self.access.issue(owner, Role.ADMIN)
        ctx.register(self.address, self)

    # ==================== Creation ====================

    def create_token(
        self,
        caller: str,
        name: str,
        symbol: str,
        value: int,
        price_feed: Optional[PriceFeed] = None,
    ) -> LaunchedToken:
        """
        Launch a new token.

        Args:
            caller: Creator paying ``value``; receives the curve admin capability
            name: Token name
            symbol: Token symbol
            value: Settlement attached (creation fee plus optional initial buy)
            price_feed: Feed for this curve (defaults to the factory's feed)

        Returns:
            LaunchedToken

        Raises:
            EmptyInputError: Blank name or symbol
            InsufficientCreationFeeError: ``value`` below the creation fee
        """
        name = (name or "").strip()
        symbol = (symbol or "").strip()
        if not name:
            raise EmptyInputError("Token name cannot be empty")
        if not symbol:
            raise EmptyInputError("Token symbol cannot be empty")
        if len(name) > MAX_NAME_LENGTH or len(symbol) > MAX_SYMBOL_LENGTH:
            raise InputValidationError(
                "Token name or symbol too long",
                details={"name_length": len(name), "symbol_length": len(symbol)},
            )
        if value < self.creation_fee:
            raise InsufficientCreationFeeError(
                f"Insufficient creation fee ({value} < {self.creation_fee})",
                details={"value": value, "creation_fee": self.creation_fee},
            )

        creator = caller.lower()
        cfg = self.curve_config
        with self.ctx.atomic():
            try:
                self.ctx.transfer_value(creator, self.address, value)
            except ValueTransferError as exc:
                raise SettlementTransferFailedError(
                    "Could not collect creation payment", details={"creator": creator}
                ) from exc
            try:
                self.ctx.transfer_value(self.address, self.fee_collector, self.creation_fee)
            except ValueTransferError as exc:
                raise FeeTransferFailedError("Creation fee transfer failed") from exc

            curve_address = self.ctx.create_address(f"curve:{symbol}")
            ledger = AssetLedger(self.ctx, name=name, symbol=symbol, minter=curve_address)
            ledger.mint(curve_address, curve_address, cfg.total_supply)

            manager = DexLiquidityManager(self.ctx, self.venue, owner=self.address)
            oracle = CachedPriceOracle(
                price_feed or self.price_feed,
                update_interval=cfg.price_update_interval,
                max_feed_age=cfg.max_feed_age,
            )
            curve = BondingCurve(
                self.ctx,
                ledger=ledger,
                oracle=oracle,
                liquidity_sink=manager,
                fee_sink=self.fee_collector,
                collector=self.liquidity_collector,
                admin=creator,
                config=cfg,
                address=curve_address,
                metrics=self.metrics,
            )
            manager.transfer_ownership(self.address, curve.address)

            initial_purchase = None
            excess = value - self.creation_fee
            if excess > 0:
                initial_purchase = curve.buy(self.address, excess, beneficiary=creator)

            launch = LaunchedToken(
                ledger=ledger,
                curve=curve,
                liquidity_manager=manager,
                creator=creator,
                admin_capability=curve.claim_admin_capability(),
                initial_purchase=initial_purchase,
            )
            self.tokens[ledger.address] = launch
            self.token_list.append(ledger.address)

            self.ctx.emit(
                self.address,
                "TokenCreated",
                token=ledger.address,
                curve=curve.address,
                name=name,
                symbol=symbol,
                creator=creator,
            )

        logger.info(
            "Token launched",
            extra={
                "event": "factory.token_created",
                "token": ledger.address[:10],
                "curve": curve.address[:10],
                "symbol": symbol,
                "creator": creator[:10],
                "initial_units": initial_purchase.units_out if initial_purchase else 0,
            }
        )
        return launch

    def get_token(self, token: str) -> Optional[LaunchedToken]:
        return self.tokens.get(token.lower())

    def get_all_tokens(self) -> List[str]:
        return list(self.token_list)

    # ==================== Administration ====================

    def claim_owner_capability(self) -> AdminCapability:
        if self._owner_capability is None:
            raise AccessDeniedError("Owner capability already claimed")
        capability, self._owner_capability = self._owner_capability, None
        return capability

    def set_creation_fee(self, capability: AdminCapability, creation_fee: int) -> None:
        if creation_fee < 0:
            raise InvalidAmountError(f"Invalid creation fee: {creation_fee}")
        self.access.require(capability, Role.ADMIN, "set_creation_fee", self.ctx.now())
        previous, self.creation_fee = self.creation_fee, creation_fee
        self.ctx.emit(self.address, "CreationFeeUpdated", previous=previous, current=creation_fee)

    def set_fee_collector(self, capability: AdminCapability, fee_collector: str) -> None:
        fee_collector = self._require_address(fee_collector, "fee_collector")
        self.access.require(capability, Role.ADMIN, "set_fee_collector", self.ctx.now())
        previous, self.fee_collector = self.fee_collector, fee_collector
        self.ctx.emit(self.address, "FeeCollectorUpdated", previous=previous, current=fee_collector)

    def set_liquidity_collector(self, capability: AdminCapability, liquidity_collector: str) -> None:
        liquidity_collector = self._require_address(liquidity_collector, "liquidity_collector")
        self.access.require(capability, Role.ADMIN, "set_liquidity_collector", self.ctx.now())
        previous, self.liquidity_collector = self.liquidity_collector, liquidity_collector
        self.ctx.emit(
            self.address, "LiquidityCollectorUpdated", previous=previous, current=liquidity_collector
        )

    def set_liquidity_venue(self, capability: AdminCapability, venue: LiquidityVenue) -> None:
        self.access.require(capability, Role.ADMIN, "set_liquidity_venue", self.ctx.now())
        previous, self.venue = self.venue, venue
        self.ctx.emit(self.address, "LiquidityVenueUpdated", previous=previous.address, current=venue.address)

    # ==================== Rollback ====================

    def snapshot(self) -> Dict[str, Any]:
        return {
            "tokens": dict(self.tokens),
            "token_list": list(self.token_list),
            "creation_fee": self.creation_fee,
            "fee_collector": self.fee_collector,
            "liquidity_collector": self.liquidity_collector,
            "venue": self.venue,
        }

    def restore(self, state: Dict[str, Any]) -> None:
        self.tokens = dict(state["tokens"])
        self.token_list = list(state["token_list"])
        self.creation_fee = state["creation_fee"]
        self.fee_collector = state["fee_collector"]
        self.liquidity_collector = state["liquidity_collector"]
        self.venue = state["venue"]

    @staticmethod
    def _require_address(address: str, field_name: str) -> str:
        if not address or address.lower() == ZERO_ADDRESS:
            raise InvalidAmountError(f"{field_name} cannot be the zero address")
        return address.lower()
