"""
Asset ledger for curve-issued tokens.

An ERC20-style balance sheet for the asset a bonding curve sells:
- Basic token operations (transfer, approve, transfer_from)
- Minting and burning restricted to the ledger's minter (the curve)
- Transfer/Approval events in the shared audit log

Amounts are whole asset units. Every rejected call raises RevertError with
an ``ERC20:`` prefixed reason and leaves the ledger untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict

from ..constants import ZERO_ADDRESS
from ..curve_exceptions import RevertError
from ..execution import ExecutionContext

logger = logging.getLogger(__name__)


@dataclass
class AssetLedger:
    """
    Balance and allowance ledger for one issued asset.

    The full supply is normally minted once, to the curve, when the ledger
    is created by the token factory. The curve then moves units with
    ``transfer`` on buys and pulls them back with ``transfer_from`` on sells.
    """

    ctx: ExecutionContext = field(repr=False)
    name: str
    symbol: str
    minter: str
    address: str = ""
    total_supply: int = 0

    balances: Dict[str, int] = field(default_factory=dict)
    allowances: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.address:
            self.address = self.ctx.create_address(f"ledger:{self.symbol}")
        self.address = self._normalize(self.address)
        self.minter = self._normalize(self.minter)
        self.ctx.register(self.address, self)

    # ==================== View Functions ====================

    def balance_of(self, account: str) -> int:
        return self.balances.get(self._normalize(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        owner_norm = self._normalize(owner)
        spender_norm = self._normalize(spender)
        return self.allowances.get(owner_norm, {}).get(spender_norm, 0)

    # ==================== State-Changing Functions ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer units from sender to recipient.

        Args:
            sender: Address sending units (the caller)
            recipient: Address receiving units
            amount: Units to transfer

        Returns:
            True if successful

        Raises:
            RevertError: If the transfer is rejected
        """
        sender_norm = self._normalize(sender)
        recipient_norm = self._normalize(recipient)

        self._validate_address(recipient_norm, "recipient")
        self._validate_amount(amount)

        sender_balance = self.balances.get(sender_norm, 0)
        if sender_balance < amount:
            raise RevertError(
                f"ERC20: transfer amount exceeds balance ({amount} > {sender_balance})",
                reason="insufficient balance",
            )

        self.balances[sender_norm] = sender_balance - amount
        self.balances[recipient_norm] = self.balances.get(recipient_norm, 0) + amount
        self._emit_transfer(sender_norm, recipient_norm, amount)

        logger.debug(
            "Asset transfer",
            extra={
                "event": "ledger.transfer",
                "token": self.symbol,
                "from": sender_norm[:10],
                "to": recipient_norm[:10],
                "amount": amount,
            }
        )
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set ``spender``'s allowance over ``owner``'s units."""
        owner_norm = self._normalize(owner)
        spender_norm = self._normalize(spender)

        self._validate_address(spender_norm, "spender")
        self._validate_amount(amount)

        self.allowances.setdefault(owner_norm, {})[spender_norm] = amount
        self.ctx.emit(
            self.address, "Approval", owner=owner_norm, spender=spender_norm, value=amount
        )
        return True

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        """
        Transfer units using an allowance.

        Args:
            spender: Address executing the transfer (the caller)
            from_addr: Unit owner
            to_addr: Recipient
            amount: Units to transfer

        Returns:
            True if successful

        Raises:
            RevertError: If allowance or balance is insufficient
        """
        spender_norm = self._normalize(spender)
        from_norm = self._normalize(from_addr)
        to_norm = self._normalize(to_addr)

        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)

        current_allowance = self.allowance(from_norm, spender_norm)
        if current_allowance < amount:
            raise RevertError(
                f"ERC20: insufficient allowance ({current_allowance} < {amount})",
                reason="insufficient allowance",
            )

        from_balance = self.balances.get(from_norm, 0)
        if from_balance < amount:
            raise RevertError(
                f"ERC20: transfer amount exceeds balance ({amount} > {from_balance})",
                reason="insufficient balance",
            )

        self.allowances[from_norm][spender_norm] = current_allowance - amount
        self.balances[from_norm] = from_balance - amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self._emit_transfer(from_norm, to_norm, amount)
        return True

    # ==================== Minting & Burning ====================

    def mint(self, caller: str, to: str, amount: int) -> bool:
        """Create new units (minter only)."""
        self._require_minter(caller)

        to_norm = self._normalize(to)
        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)

        self.total_supply += amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self._emit_transfer(ZERO_ADDRESS, to_norm, amount)

        logger.info(
            "Asset mint",
            extra={
                "event": "ledger.mint",
                "token": self.symbol,
                "to": to_norm[:10],
                "amount": amount,
                "new_supply": self.total_supply,
            }
        )
        return True

    def burn(self, caller: str, from_addr: str, amount: int) -> bool:
        """Destroy units held by ``from_addr`` (minter only)."""
        self._require_minter(caller)
        from_norm = self._normalize(from_addr)
        self._validate_amount(amount)

        balance = self.balances.get(from_norm, 0)
        if balance < amount:
            raise RevertError(
                f"ERC20: burn amount exceeds balance ({amount} > {balance})",
                reason="insufficient balance",
            )

        self.balances[from_norm] = balance - amount
        self.total_supply -= amount
        self._emit_transfer(from_norm, ZERO_ADDRESS, amount)

        logger.info(
            "Asset burn",
            extra={
                "event": "ledger.burn",
                "token": self.symbol,
                "from": from_norm[:10],
                "amount": amount,
                "new_supply": self.total_supply,
            }
        )
        return True

    # ==================== Rollback ====================

    def snapshot(self) -> Dict[str, Any]:
        return {
            "total_supply": self.total_supply,
            "minter": self.minter,
            "balances": dict(self.balances),
            "allowances": {k: dict(v) for k, v in self.allowances.items()},
        }

    def restore(self, state: Dict[str, Any]) -> None:
        self.total_supply = state["total_supply"]
        self.minter = state["minter"]
        self.balances = dict(state["balances"])
        self.allowances = {k: dict(v) for k, v in state["allowances"].items()}

    # ==================== Helpers ====================

    def _normalize(self, address: str) -> str:
        return address.lower()

    def _validate_address(self, address: str, field_name: str) -> None:
        if not address or address == ZERO_ADDRESS:
            raise RevertError(f"ERC20: {field_name} is zero address", reason="zero address")

    def _validate_amount(self, amount: int) -> None:
        if amount < 0:
            raise RevertError("ERC20: amount cannot be negative", reason="negative amount")

    def _require_minter(self, caller: str) -> None:
        if self._normalize(caller) != self.minter:
            raise RevertError("ERC20: caller is not the minter", reason="not minter")

    def _emit_transfer(self, from_addr: str, to_addr: str, amount: int) -> None:
        self.ctx.emit(self.address, "Transfer", sender=from_addr, recipient=to_addr, value=amount)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize ledger state to a dictionary."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "address": self.address,
            "minter": self.minter,
            "total_supply": self.total_supply,
            "holders": len([b for b in self.balances.values() if b > 0]),
        }
