"""
Execution substrate for curve contracts.

Holds the pieces a chain normally provides to a contract call:
- Native settlement balances and value transfers
- Clock and block number
- Contract registry and address derivation
- Append-only audit event log
- All-or-nothing units of work via ``atomic()``

Every contract registered here must expose ``snapshot()`` and
``restore(state)``. ``atomic()`` captures all of them before the block runs
and puts every one back if the block raises, so a failed operation leaves
no trace in balances, contract state or events.
"""

from __future__ import annotations

import hashlib
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Protocol, Set

from .constants import ZERO_ADDRESS
from .curve_exceptions import CurveError, InvalidAmountError, RevertError, ValueTransferError

logger = logging.getLogger(__name__)

ReceiveHook = Callable[[str, int], None]


class Participant(Protocol):
    """Contract state that takes part in rollback."""

    def snapshot(self) -> Any:
        ...

    def restore(self, state: Any) -> None:
        ...


@dataclass(frozen=True)
class AuditEvent:
    """A single append-only audit record."""

    sequence: int
    block_number: int
    timestamp: int
    contract: str
    name: str
    args: Dict[str, Any] = field(default_factory=dict)


class EventLog:
    """Append-only event log with monotonically increasing sequence numbers."""

    def __init__(self) -> None:
        self._events: List[AuditEvent] = []

    def append(
        self,
        contract: str,
        name: str,
        args: Dict[str, Any],
        block_number: int,
        timestamp: int,
    ) -> AuditEvent:
        event = AuditEvent(
            sequence=len(self._events),
            block_number=block_number,
            timestamp=timestamp,
            contract=contract,
            name=name,
            args=dict(args),
        )
        self._events.append(event)
        return event

    def filter(self, name: Optional[str] = None, contract: Optional[str] = None) -> List[AuditEvent]:
        """Return events matching the given name and/or emitting contract."""
        return [
            e for e in self._events
            if (name is None or e.name == name)
            and (contract is None or e.contract == contract)
        ]

    def _truncate(self, length: int) -> None:
        # Only rollback may shorten the log
        del self._events[length:]

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[AuditEvent]:
        return iter(list(self._events))


@dataclass
class _ContextSnapshot:
    balances: Dict[str, int]
    nonce: int
    event_count: int
    contracts: Dict[str, Participant]
    states: Dict[str, Any]


class ExecutionContext:
    """
    In-memory chain substrate shared by ledgers, curves and liquidity sinks.

    Usage:
        ctx = ExecutionContext()
        ctx.credit(alice, 10 * WAD)
        with ctx.atomic():
            ctx.transfer_value(alice, curve.address, WAD)
            ...  # any exception here restores everything
    """

    def __init__(self, start_time: int = 1_700_000_000, block_number: int = 1) -> None:
        self.timestamp = start_time
        self.block_number = block_number
        self.balances: Dict[str, int] = {}
        self.events = EventLog()
        self._contracts: Dict[str, Participant] = {}
        self._receive_hooks: Dict[str, ReceiveHook] = {}
        self._rejecting: Set[str] = set()
        self._nonce = 0
        self._depth = 0

    # ==================== Clock ====================

    def now(self) -> int:
        return self.timestamp

    def advance_time(self, seconds: int, blocks: int = 1) -> int:
        """Move the clock forward and mine ``blocks`` blocks."""
        if seconds < 0 or blocks < 0:
            raise InvalidAmountError("Time and block height only move forward")
        self.timestamp += seconds
        self.block_number += blocks
        return self.timestamp

    # ==================== Addresses & Registry ====================

    def create_address(self, label: str) -> str:
        """Derive a fresh, deterministic address."""
        self._nonce += 1
        digest = hashlib.sha3_256(f"{label}:{self._nonce}".encode()).digest()
        return f"0x{digest[-20:].hex()}"

    def register(self, address: str, contract: Participant) -> None:
        address = address.lower()
        if address in self._contracts:
            raise RevertError(f"Address already registered: {address}", reason="duplicate contract")
        self._contracts[address] = contract

    def get_contract(self, address: str) -> Any:
        contract = self._contracts.get(address.lower())
        if contract is None:
            raise RevertError(f"No contract at {address}", reason="unknown contract")
        return contract

    def is_contract(self, address: str) -> bool:
        return address.lower() in self._contracts

    # ==================== Native Value ====================

    def balance_of(self, address: str) -> int:
        return self.balances.get(address.lower(), 0)

    def credit(self, address: str, amount: int) -> None:
        """Fund an account out of thin air (genesis allocation, faucets)."""
        if amount < 0:
            raise InvalidAmountError("Credit amount cannot be negative", details={"amount": amount})
        address = address.lower()
        self.balances[address] = self.balances.get(address, 0) + amount

    def transfer_value(self, sender: str, recipient: str, amount: int) -> None:
        """
        Move native settlement value between accounts.

        Runs the recipient's receive hook, if any, after the balances move.
        Any failure, including one raised by the hook, surfaces as
        ValueTransferError.
        """
        sender = sender.lower()
        recipient = recipient.lower()
        if amount < 0:
            raise ValueTransferError("Transfer amount cannot be negative", details={"amount": amount})
        if not recipient or recipient == ZERO_ADDRESS:
            raise ValueTransferError("Transfer to zero address")
        if recipient in self._rejecting:
            raise ValueTransferError(
                f"Recipient {recipient[:10]} rejects value",
                details={"recipient": recipient, "amount": amount},
            )

        balance = self.balances.get(sender, 0)
        if balance < amount:
            raise ValueTransferError(
                f"Insufficient balance ({balance} < {amount})",
                details={"sender": sender, "balance": balance, "amount": amount},
            )

        self.balances[sender] = balance - amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount

        hook = self._receive_hooks.get(recipient)
        if hook is not None:
            try:
                hook(sender, amount)
            except CurveError as exc:
                raise ValueTransferError(
                    f"Recipient {recipient[:10]} reverted on receive: {exc}",
                    details={"recipient": recipient, "amount": amount},
                ) from exc

    def set_receive_hook(self, address: str, hook: Optional[ReceiveHook]) -> None:
        """Install (or clear, with None) code that runs when ``address`` receives value."""
        address = address.lower()
        if hook is None:
            self._receive_hooks.pop(address, None)
        else:
            self._receive_hooks[address] = hook

    def set_rejects_value(self, address: str, rejects: bool = True) -> None:
        """Make ``address`` refuse incoming value transfers."""
        address = address.lower()
        if rejects:
            self._rejecting.add(address)
        else:
            self._rejecting.discard(address)

    # ==================== Events ====================

    def emit(self, contract: str, name: str, /, **args: Any) -> AuditEvent:
        return self.events.append(
            contract=contract,
            name=name,
            args=args,
            block_number=self.block_number,
            timestamp=self.timestamp,
        )

    # ==================== Atomicity ====================

    @property
    def depth(self) -> int:
        """Number of currently open units of work."""
        return self._depth

    @contextmanager
    def atomic(self) -> Iterator["ExecutionContext"]:
        """
        Run a block as a single unit of work.

        Nested blocks roll back only their own work when they fail and the
        exception is handled by an enclosing block.
        """
        snapshot = self._snapshot()
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._restore(snapshot)
            logger.debug(
                "Unit of work rolled back",
                extra={"event": "execution.rollback", "depth": self._depth},
            )
            raise
        finally:
            self._depth -= 1

    def _snapshot(self) -> _ContextSnapshot:
        return _ContextSnapshot(
            balances=dict(self.balances),
            nonce=self._nonce,
            event_count=len(self.events),
            contracts=dict(self._contracts),
            states={addr: c.snapshot() for addr, c in self._contracts.items()},
        )

    def _restore(self, snapshot: _ContextSnapshot) -> None:
        self.balances = dict(snapshot.balances)
        self._nonce = snapshot.nonce
        self.events._truncate(snapshot.event_count)
        self._contracts = dict(snapshot.contracts)
        for addr, state in snapshot.states.items():
            snapshot.contracts[addr].restore(state)
