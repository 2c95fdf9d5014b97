"""
Tests for the token launch factory.
"""

import pytest

from curvelaunch.core.constants import DEFAULT_CREATION_FEE, WAD
from curvelaunch.core.curve_exceptions import (
    AccessDeniedError,
    DustAmountError,
    EmptyInputError,
    FeeTransferFailedError,
    InputValidationError,
    InsufficientCreationFeeError,
    SettlementTransferFailedError,
)
from curvelaunch.core.defi.access_control import AdminCapability, Role
from curvelaunch.core.defi.liquidity_sink import LiquidityVenue
from curvelaunch.core.defi.price_oracle import MockPriceFeed
from curvelaunch.core.defi.token_factory import TokenFactory
from curvelaunch.core.execution import ExecutionContext


class Launchpad:
    def __init__(self):
        self.ctx = ExecutionContext()
        self.feed = MockPriceFeed(updated_at=self.ctx.now())
        self.venue = LiquidityVenue(self.ctx)
        self.treasury = self.ctx.create_address("treasury")
        self.lp_collector = self.ctx.create_address("liquidity_collector")
        self.owner = self.ctx.create_address("owner")
        self.creator = self.ctx.create_address("creator")
        self.trader = self.ctx.create_address("trader")
        self.factory = TokenFactory(
            self.ctx,
            venue=self.venue,
            fee_collector=self.treasury,
            owner=self.owner,
            price_feed=self.feed,
            liquidity_collector=self.lp_collector,
        )
        self.ctx.credit(self.creator, 10 * WAD)
        self.ctx.credit(self.trader, 20 * WAD)


@pytest.fixture
def pad():
    return Launchpad()


class TestCreateToken:
    def test_launch_wires_everything(self, pad):
        launch = pad.factory.create_token(pad.creator, "Moon", "MOON", value=DEFAULT_CREATION_FEE)

        assert launch.ledger.total_supply == 1_000_000_000
        assert launch.ledger.balance_of(launch.curve.address) == 1_000_000_000
        assert launch.ledger.minter == launch.curve.address
        assert launch.liquidity_manager.owner == launch.curve.address
        assert launch.curve.fee_sink == pad.treasury
        assert launch.curve.collector == pad.lp_collector
        assert launch.initial_purchase is None
        assert launch.creator == pad.creator

        assert pad.ctx.balance_of(pad.treasury) == DEFAULT_CREATION_FEE
        assert pad.ctx.balance_of(pad.creator) == 10 * WAD - DEFAULT_CREATION_FEE
        assert pad.factory.get_token(launch.ledger.address) is launch
        assert pad.factory.get_all_tokens() == [launch.ledger.address]

        event = pad.ctx.events.filter(name="TokenCreated")[0]
        assert event.args["symbol"] == "MOON"
        assert event.args["curve"] == launch.curve.address

    def test_creator_holds_admin_capability(self, pad):
        launch = pad.factory.create_token(pad.creator, "Moon", "MOON", value=DEFAULT_CREATION_FEE)
        launch.curve.set_fee_sink(launch.admin_capability, pad.trader)
        assert launch.curve.fee_sink == pad.trader
        with pytest.raises(AccessDeniedError):
            launch.curve.claim_admin_capability()

    def test_excess_value_buys_for_creator(self, pad):
        launch = pad.factory.create_token(
            pad.creator, "Moon", "MOON", value=DEFAULT_CREATION_FEE + WAD
        )
        purchase = launch.initial_purchase
        assert purchase.units_out == 428_571_428
        assert purchase.buyer == pad.creator
        assert purchase.payer == pad.factory.address
        assert launch.ledger.balance_of(pad.creator) == 428_571_428
        assert pad.ctx.balance_of(pad.factory.address) == 0
        assert pad.ctx.balance_of(pad.treasury) == DEFAULT_CREATION_FEE + WAD // 100

    def test_launched_curve_graduates(self, pad):
        launch = pad.factory.create_token(pad.creator, "Moon", "MOON", value=DEFAULT_CREATION_FEE)
        curve = launch.curve
        for _ in range(7):
            curve.buy(pad.trader, WAD)
        curve.buy(pad.trader, curve.quote_settlement_for(curve.config.sale_threshold - curve.units_sold))

        assert curve.state.liquidity_deployed
        assert launch.liquidity_manager.is_deployed(launch.ledger.address)
        position = pad.venue.get_liquidity(launch.ledger.address)
        assert position.settlement == 5 * WAD
        assert position.collector == pad.lp_collector
        assert pad.ctx.balance_of(pad.lp_collector) == 0

    def test_tokens_are_independent(self, pad):
        first = pad.factory.create_token(pad.creator, "Moon", "MOON", value=DEFAULT_CREATION_FEE)
        second = pad.factory.create_token(pad.creator, "Moon", "MOON", value=DEFAULT_CREATION_FEE)
        assert first.ledger.address != second.ledger.address
        first.curve.buy(pad.trader, WAD)
        assert second.curve.units_sold == 0
        assert len(pad.factory.get_all_tokens()) == 2


class TestCreateTokenValidation:
    def test_insufficient_fee(self, pad):
        with pytest.raises(InsufficientCreationFeeError):
            pad.factory.create_token(pad.creator, "Moon", "MOON", value=DEFAULT_CREATION_FEE - 1)

    @pytest.mark.parametrize("name,symbol", [("", "MOON"), ("Moon", "  ")])
    def test_blank_name_or_symbol(self, pad, name, symbol):
        with pytest.raises(EmptyInputError):
            pad.factory.create_token(pad.creator, name, symbol, value=DEFAULT_CREATION_FEE)

    def test_symbol_too_long(self, pad):
        with pytest.raises(InputValidationError):
            pad.factory.create_token(pad.creator, "Moon", "M" * 17, value=DEFAULT_CREATION_FEE)

    def test_unfunded_creator_leaves_no_trace(self, pad):
        pauper = pad.ctx.create_address("pauper")
        events_before = len(pad.ctx.events)
        with pytest.raises(SettlementTransferFailedError):
            pad.factory.create_token(pauper, "Moon", "MOON", value=DEFAULT_CREATION_FEE)
        assert pad.factory.get_all_tokens() == []
        assert len(pad.ctx.events) == events_before

    def test_rejecting_collector_rolls_back(self, pad):
        pad.ctx.set_rejects_value(pad.treasury)
        with pytest.raises(FeeTransferFailedError):
            pad.factory.create_token(pad.creator, "Moon", "MOON", value=DEFAULT_CREATION_FEE)
        assert pad.ctx.balance_of(pad.creator) == 10 * WAD
        assert pad.factory.get_all_tokens() == []

    def test_failed_initial_purchase_rolls_back_launch(self, pad):
        with pytest.raises(DustAmountError):
            pad.factory.create_token(pad.creator, "Moon", "MOON", value=DEFAULT_CREATION_FEE + 1)
        assert pad.factory.get_all_tokens() == []
        assert pad.ctx.balance_of(pad.creator) == 10 * WAD
        assert pad.ctx.balance_of(pad.treasury) == 0


class TestFactoryAdministration:
    def test_set_creation_fee(self, pad):
        cap = pad.factory.claim_owner_capability()
        pad.factory.set_creation_fee(cap, WAD)
        assert pad.factory.creation_fee == WAD
        with pytest.raises(InsufficientCreationFeeError):
            pad.factory.create_token(pad.creator, "Moon", "MOON", value=DEFAULT_CREATION_FEE)

    def test_owner_capability_claimed_once(self, pad):
        pad.factory.claim_owner_capability()
        with pytest.raises(AccessDeniedError):
            pad.factory.claim_owner_capability()

    def test_forged_capability(self, pad):
        forged = AdminCapability(holder=pad.owner, role=Role.ADMIN, secret="cd" * 32)
        with pytest.raises(AccessDeniedError):
            pad.factory.set_fee_collector(forged, pad.trader)
        assert pad.factory.fee_collector == pad.treasury

    def test_set_fee_collector(self, pad):
        cap = pad.factory.claim_owner_capability()
        pad.factory.set_fee_collector(cap, pad.trader)
        pad.factory.create_token(pad.creator, "Moon", "MOON", value=DEFAULT_CREATION_FEE)
        assert pad.ctx.balance_of(pad.trader) == 20 * WAD + DEFAULT_CREATION_FEE

    def test_set_liquidity_venue(self, pad):
        cap = pad.factory.claim_owner_capability()
        venue = LiquidityVenue(pad.ctx)
        pad.factory.set_liquidity_venue(cap, venue)
        launch = pad.factory.create_token(pad.creator, "Moon", "MOON", value=DEFAULT_CREATION_FEE)
        assert launch.liquidity_manager.venue is venue

    def test_set_liquidity_collector(self, pad):
        cap = pad.factory.claim_owner_capability()
        pad.factory.set_liquidity_collector(cap, pad.trader)
        launch = pad.factory.create_token(pad.creator, "Moon", "MOON", value=DEFAULT_CREATION_FEE)
        assert launch.curve.collector == pad.trader
        assert launch.curve.fee_sink == pad.treasury
        event = pad.ctx.events.filter(name="LiquidityCollectorUpdated")[0]
        assert event.args == {"previous": pad.lp_collector, "current": pad.trader}

    def test_liquidity_collector_defaults_to_fee_collector(self):
        ctx = ExecutionContext()
        treasury = ctx.create_address("treasury")
        factory = TokenFactory(
            ctx,
            venue=LiquidityVenue(ctx),
            fee_collector=treasury,
            owner=ctx.create_address("owner"),
            price_feed=MockPriceFeed(updated_at=ctx.now()),
        )
        assert factory.liquidity_collector == treasury

    def test_set_liquidity_collector_requires_owner(self, pad):
        forged = AdminCapability(holder=pad.owner, role=Role.ADMIN, secret="ef" * 32)
        with pytest.raises(AccessDeniedError):
            pad.factory.set_liquidity_collector(forged, pad.trader)
        assert pad.factory.liquidity_collector == pad.lp_collector
