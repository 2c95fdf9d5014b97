"""
Unit tests for buying and selling against the bonding curve.
"""

import logging

import pytest
from prometheus_client import CollectorRegistry

from curvelaunch.core.api.curve_metrics import CurveMetrics
from curvelaunch.core.constants import WAD
from curvelaunch.core.curve_exceptions import (
    DustAmountError,
    FeeTransferFailedError,
    InsufficientReserveError,
    InvalidAmountError,
    LedgerTransferFailedError,
    NoInventorySoldError,
    OracleUnavailableError,
    SellExceedsSoldError,
    SettlementTransferFailedError,
    SlippageExceededError,
    SupplyExhaustedError,
    ZeroInputError,
)

from market_utils import build_market, small_config

FIRST_BUY_UNITS = 428_571_428


class UnreachableFeed:
    decimals = 8

    def latest_price(self):
        raise ConnectionError("aggregator RPC unreachable")


class TestBuy:
    """Purchases move value, fees and units exactly once."""

    def test_first_purchase(self, market):
        curve = market.curve
        receipt = curve.buy(market.alice, WAD)

        assert receipt.units_out == FIRST_BUY_UNITS
        assert receipt.fee == WAD // 100
        assert receipt.unit_price == 7
        assert receipt.liquidity_deployed is False

        assert market.ledger.balance_of(market.alice) == FIRST_BUY_UNITS
        assert market.ctx.balance_of(market.alice) == 99 * WAD
        assert market.ctx.balance_of(market.fee_sink) == WAD // 100
        assert market.ctx.balance_of(curve.address) == WAD - WAD // 100
        assert curve.state.unsold_inventory == 1_000_000_000 - FIRST_BUY_UNITS
        assert curve.state.cumulative_raised_usd == 3000 * WAD

    def test_purchase_event(self, market):
        market.curve.buy(market.alice, WAD)
        events = market.ctx.events.filter(name="PurchaseExecuted", contract=market.curve.address)
        assert len(events) == 1
        assert events[0].args == {
            "buyer": market.alice,
            "units": FIRST_BUY_UNITS,
            "settlement_in": WAD,
        }

    def test_buy_for_beneficiary(self, market):
        receipt = market.curve.buy(market.alice, WAD, beneficiary=market.bob)
        assert receipt.buyer == market.bob
        assert receipt.payer == market.alice
        assert market.ledger.balance_of(market.bob) == FIRST_BUY_UNITS
        assert market.ledger.balance_of(market.alice) == 0
        assert market.ctx.balance_of(market.bob) == 100 * WAD

    def test_price_rises_between_purchases(self, market):
        first = market.curve.buy(market.alice, WAD)
        second = market.curve.buy(market.bob, WAD)
        assert second.unit_price == 43
        assert second.units_out == 69_767_441
        assert second.units_out < first.units_out

    def test_zero_buy_rejected(self, market):
        before = market.fingerprint()
        with pytest.raises(ZeroInputError, match="Zero BERA amount"):
            market.curve.buy(market.alice, 0)
        assert market.fingerprint() == before

    def test_negative_buy_rejected(self, market):
        with pytest.raises(InvalidAmountError):
            market.curve.buy(market.alice, -WAD)

    def test_dust_buy_rejected(self, market):
        before = market.fingerprint()
        with pytest.raises(DustAmountError):
            market.curve.buy(market.alice, 1)
        assert market.fingerprint() == before

    def test_buy_slippage(self, market):
        before = market.fingerprint()
        with pytest.raises(SlippageExceededError):
            market.curve.buy(market.alice, WAD, min_units_out=FIRST_BUY_UNITS + 1)
        assert market.fingerprint() == before

        receipt = market.curve.buy(market.alice, WAD, min_units_out=FIRST_BUY_UNITS)
        assert receipt.units_out == FIRST_BUY_UNITS

    def test_unfunded_buyer(self, market):
        pauper = market.ctx.create_address("pauper")
        before = market.fingerprint()
        with pytest.raises(SettlementTransferFailedError):
            market.curve.buy(pauper, WAD)
        assert market.fingerprint() == before

    def test_fee_sink_rejection_rolls_back(self, market):
        market.ctx.set_rejects_value(market.fee_sink)
        before = market.fingerprint()
        with pytest.raises(FeeTransferFailedError):
            market.curve.buy(market.alice, WAD)
        assert market.fingerprint() == before

    def test_supply_exhausted(self):
        market = build_market(small_config(raise_target_usd=10**40))
        curve = market.curve
        curve.buy(market.alice, curve.quote_settlement_for(1_000))
        assert curve.state.unsold_inventory == 0
        with pytest.raises(SupplyExhaustedError):
            curve.buy(market.bob, WAD)

    def test_raise_accumulates_gross_by_default(self, market):
        market.curve.buy(market.alice, WAD)
        market.curve.buy(market.bob, WAD)
        assert market.curve.state.cumulative_raised_usd == 6000 * WAD

    def test_net_raise_accounting(self):
        market = build_market(small_config(raise_accounting="net", raise_target_usd=10**40))
        market.curve.buy(market.alice, WAD)
        assert market.curve.state.cumulative_raised_usd == 2970 * WAD


class TestSell:
    """Sales pull units back and pay out net of fee."""

    def _bought(self, market):
        market.curve.buy(market.alice, WAD)
        market.ledger.approve(market.alice, market.curve.address, FIRST_BUY_UNITS)
        return market

    def test_sell_pays_net(self, market):
        self._bought(market)
        fee_before = market.ctx.balance_of(market.fee_sink)
        receipt = market.curve.sell(market.alice, 10_000_000)

        assert receipt.settlement_out == 143_333_333_333_333_333
        assert receipt.fee == 1_433_333_333_333_333
        assert receipt.net_out == 141_900_000_000_000_000
        assert receipt.unit_price == 43

        assert market.ctx.balance_of(market.alice) == 99 * WAD + receipt.net_out
        assert market.ctx.balance_of(market.fee_sink) == fee_before + receipt.fee
        assert market.ledger.balance_of(market.alice) == FIRST_BUY_UNITS - 10_000_000
        assert market.curve.state.unsold_inventory == 1_000_000_000 - FIRST_BUY_UNITS + 10_000_000

    def test_sell_lowers_price(self, market):
        self._bought(market)
        market.curve.sell(market.alice, 10_000_000)
        assert market.curve.current_price() == 42

    def test_sale_event(self, market):
        self._bought(market)
        market.curve.sell(market.alice, 10_000_000)
        events = market.ctx.events.filter(name="SaleExecuted")
        assert len(events) == 1
        assert events[0].args["units"] == 10_000_000
        assert events[0].args["settlement_out"] == 143_333_333_333_333_333

    def test_raise_is_not_reduced_by_sales(self, market):
        self._bought(market)
        market.curve.sell(market.alice, 10_000_000)
        assert market.curve.state.cumulative_raised_usd == 3000 * WAD

    def test_sell_before_any_purchase(self, market):
        with pytest.raises(NoInventorySoldError):
            market.curve.sell(market.alice, 1_000)

    def test_zero_sell(self, market):
        self._bought(market)
        with pytest.raises(ZeroInputError, match="Zero token amount"):
            market.curve.sell(market.alice, 0)

    def test_sell_exceeding_sold(self, market):
        self._bought(market)
        with pytest.raises(SellExceedsSoldError):
            market.curve.sell(market.alice, 500_000_000)

    def test_sell_exceeding_reserve(self, market):
        self._bought(market)
        before = market.fingerprint()
        with pytest.raises(InsufficientReserveError):
            market.curve.sell(market.alice, 100_000_000)
        assert market.fingerprint() == before

    def test_sell_without_allowance(self, market):
        market.curve.buy(market.alice, WAD)
        before = market.fingerprint()
        with pytest.raises(LedgerTransferFailedError):
            market.curve.sell(market.alice, 10_000_000)
        assert market.fingerprint() == before

    def test_sell_slippage(self, market):
        self._bought(market)
        with pytest.raises(SlippageExceededError):
            market.curve.sell(market.alice, 10_000_000, min_settlement_out=141_900_000_000_000_001)
        receipt = market.curve.sell(
            market.alice, 10_000_000, min_settlement_out=141_900_000_000_000_000
        )
        assert receipt.net_out == 141_900_000_000_000_000

    def test_rejected_payout_rolls_back(self, market):
        self._bought(market)
        market.ctx.set_rejects_value(market.alice)
        before = market.fingerprint()
        with pytest.raises(SettlementTransferFailedError):
            market.curve.sell(market.alice, 10_000_000)
        assert market.fingerprint() == before


class TestPriceRefresh:
    """Trades refresh a stale reference price before quoting."""

    def test_buy_uses_refreshed_price(self, market):
        market.feed.set_price(6000 * 10**8)
        market.ctx.advance_time(300)
        receipt = market.curve.buy(market.alice, WAD)
        assert receipt.unit_price == 14
        assert receipt.units_out == 6000 * 10**6 // 14
        refreshed = market.ctx.events.filter(name="PriceRefreshed")
        assert refreshed[-1].args["new_price"] == 6000 * WAD

    def test_fresh_cache_skips_feed(self, market):
        reads = market.feed.reads
        market.feed.set_price(6000 * 10**8)
        market.ctx.advance_time(299)
        receipt = market.curve.buy(market.alice, WAD)
        assert receipt.unit_price == 7
        assert market.feed.reads == reads

    def test_unavailable_feed_with_stale_cache(self, market):
        market.feed.available = False
        market.ctx.advance_time(300)
        before = market.fingerprint()
        with pytest.raises(OracleUnavailableError):
            market.curve.buy(market.alice, WAD)
        assert market.fingerprint() == before

    def test_unavailable_feed_with_fresh_cache(self, market):
        market.feed.available = False
        receipt = market.curve.buy(market.alice, WAD)
        assert receipt.units_out == FIRST_BUY_UNITS

    def test_update_price(self, market):
        assert market.curve.update_price(market.bob) == 3000 * WAD
        market.feed.set_price(3500 * 10**8)
        market.ctx.advance_time(300)
        assert market.curve.update_price(market.bob) == 3500 * WAD
        assert market.curve.oracle.cache.last_refresh_time == market.ctx.now()

    def test_unreachable_feed_is_typed(self, market, caplog):
        market.curve.oracle.feed = UnreachableFeed()
        market.ctx.advance_time(301)
        before = market.fingerprint()
        with caplog.at_level(logging.WARNING, logger="curvelaunch"):
            with pytest.raises(OracleUnavailableError) as exc_info:
                market.curve.buy(market.alice, WAD)
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert market.fingerprint() == before
        assert any(
            getattr(record, "event", None) == "curve.buy_failed" for record in caplog.records
        )

    def test_unreachable_feed_counts_as_failure(self):
        registry = CollectorRegistry()
        market = build_market(metrics=CurveMetrics(registry=registry))
        market.curve.oracle.feed = UnreachableFeed()
        market.ctx.advance_time(301)
        for operation in (
            lambda: market.curve.update_price(market.bob),
            lambda: market.curve.buy(market.alice, WAD),
        ):
            with pytest.raises(OracleUnavailableError):
                operation()

        for name in ("update_price", "buy"):
            assert registry.get_sample_value(
                "curvelaunch_operation_failures_total",
                {
                    "curve": market.curve.address[:10],
                    "operation": name,
                    "error_type": "OracleUnavailableError",
                },
            ) == 1.0
