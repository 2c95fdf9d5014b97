"""
Tests for the asset ledger (balances, allowances, minting).
"""

import pytest

from curvelaunch.core.constants import ZERO_ADDRESS
from curvelaunch.core.contracts.asset_ledger import AssetLedger
from curvelaunch.core.curve_exceptions import RevertError
from curvelaunch.core.execution import ExecutionContext


@pytest.fixture
def setup():
    ctx = ExecutionContext()
    minter = ctx.create_address("minter")
    alice = ctx.create_address("alice")
    bob = ctx.create_address("bob")
    ledger = AssetLedger(ctx, name="Test Token", symbol="TEST", minter=minter)
    ledger.mint(minter, alice, 1_000)
    return ctx, ledger, minter, alice, bob


class TestMinting:
    def test_mint(self, setup):
        ctx, ledger, minter, alice, _ = setup
        assert ledger.total_supply == 1_000
        assert ledger.balance_of(alice) == 1_000
        transfer = ctx.events.filter(name="Transfer")[0]
        assert transfer.args["sender"] == ZERO_ADDRESS

    def test_only_minter_mints(self, setup):
        _, ledger, _, alice, _ = setup
        with pytest.raises(RevertError) as exc_info:
            ledger.mint(alice, alice, 1)
        assert exc_info.value.reason == "not minter"

    def test_burn(self, setup):
        _, ledger, minter, alice, _ = setup
        ledger.burn(minter, alice, 400)
        assert ledger.total_supply == 600
        assert ledger.balance_of(alice) == 600

    def test_registered_in_context(self, setup):
        ctx, ledger, *_ = setup
        assert ctx.get_contract(ledger.address) is ledger


class TestTransfers:
    def test_transfer(self, setup):
        _, ledger, _, alice, bob = setup
        assert ledger.transfer(alice, bob, 250)
        assert ledger.balance_of(alice) == 750
        assert ledger.balance_of(bob) == 250

    def test_transfer_exceeds_balance(self, setup):
        _, ledger, _, alice, bob = setup
        with pytest.raises(RevertError) as exc_info:
            ledger.transfer(bob, alice, 1)
        assert exc_info.value.reason == "insufficient balance"

    def test_transfer_to_zero_address(self, setup):
        _, ledger, _, alice, _ = setup
        with pytest.raises(RevertError):
            ledger.transfer(alice, ZERO_ADDRESS, 1)

    def test_negative_amount(self, setup):
        _, ledger, _, alice, bob = setup
        with pytest.raises(RevertError):
            ledger.transfer(alice, bob, -1)

    def test_addresses_are_case_insensitive(self, setup):
        _, ledger, _, alice, bob = setup
        ledger.transfer(alice.upper().replace("0X", "0x"), bob, 1)
        assert ledger.balance_of(alice) == 999


class TestAllowances:
    def test_transfer_from(self, setup):
        _, ledger, _, alice, bob = setup
        ledger.approve(alice, bob, 300)
        ledger.transfer_from(bob, alice, bob, 200)
        assert ledger.allowance(alice, bob) == 100
        assert ledger.balance_of(bob) == 200

    def test_insufficient_allowance(self, setup):
        _, ledger, _, alice, bob = setup
        ledger.approve(alice, bob, 10)
        with pytest.raises(RevertError) as exc_info:
            ledger.transfer_from(bob, alice, bob, 11)
        assert exc_info.value.reason == "insufficient allowance"

    def test_allowance_above_balance(self, setup):
        _, ledger, _, alice, bob = setup
        ledger.approve(alice, bob, 5_000)
        with pytest.raises(RevertError) as exc_info:
            ledger.transfer_from(bob, alice, bob, 2_000)
        assert exc_info.value.reason == "insufficient balance"
        assert ledger.allowance(alice, bob) == 5_000

    def test_approval_event(self, setup):
        ctx, ledger, _, alice, bob = setup
        ledger.approve(alice, bob, 7)
        approval = ctx.events.filter(name="Approval")[-1]
        assert approval.args == {"owner": alice, "spender": bob, "value": 7}


class TestRollback:
    def test_atomic_failure_restores_ledger(self, setup):
        ctx, ledger, _, alice, bob = setup
        ledger.approve(alice, bob, 100)
        with pytest.raises(RevertError):
            with ctx.atomic():
                ledger.transfer_from(bob, alice, bob, 100)
                ledger.transfer(bob, alice, 1_000)
        assert ledger.balance_of(alice) == 1_000
        assert ledger.allowance(alice, bob) == 100

    def test_to_dict(self, setup):
        _, ledger, _, alice, bob = setup
        ledger.transfer(alice, bob, 1)
        data = ledger.to_dict()
        assert data["symbol"] == "TEST"
        assert data["holders"] == 2
