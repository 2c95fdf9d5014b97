"""
Curve-specific exception hierarchy for curvelaunch.

Provides typed exceptions for bonding-curve operations so callers can tell
input validation, insufficient state, oracle faults, downstream transfer
failures, reentrancy and deployment failures apart without parsing messages.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class CurveError(Exception):
    """Base exception for all curve-related errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


# ==================== Input Validation Errors ====================


class InputValidationError(CurveError):
    """Raised when a request is rejected before any state is touched."""
    pass


class ZeroInputError(InputValidationError):
    """Raised when a buy or sell is attempted with a zero amount."""
    pass


class EmptyInputError(InputValidationError):
    """Raised when a quote or creation request carries no input."""
    pass


class InvalidAmountError(InputValidationError):
    """Raised when an amount is negative or otherwise malformed."""
    pass


class DustAmountError(InputValidationError):
    """Raised when a settlement amount is too small to buy a single unit."""
    pass


class SlippageExceededError(InputValidationError):
    """Raised when the executed amount is worse than the caller's bound."""
    pass


class InsufficientCreationFeeError(InputValidationError):
    """Raised when token creation is paid below the creation fee."""
    pass


# ==================== Insufficient State Errors ====================


class InsufficientStateError(CurveError):
    """Raised when curve inventory or reserve cannot cover a request."""
    pass


class SupplyExhaustedError(InsufficientStateError):
    """Raised when the curve holds no unsold inventory."""
    pass


class InsufficientInventoryError(InsufficientStateError):
    """Raised when a quote exceeds the unsold inventory."""
    pass


class NoInventorySoldError(InsufficientStateError):
    """Raised when selling back before any unit has been sold."""
    pass


class SellExceedsSoldError(InsufficientStateError):
    """Raised when selling back more units than the curve has sold."""
    pass


class InsufficientReserveError(InsufficientStateError):
    """Raised when the curve's settlement balance cannot pay a sale."""
    pass


# ==================== Oracle Errors ====================


class OracleError(CurveError):
    """Raised when the reference price cannot be obtained."""
    pass


class InvalidPriceError(OracleError):
    """Raised when the feed reports a non-positive price."""
    pass


class OracleUnavailableError(OracleError):
    """Raised when the feed cannot be read or its answer is too old."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


# ==================== Transfer Errors ====================


class TransferError(CurveError):
    """Raised when a collaborator rejects a value or asset movement."""
    pass


class ValueTransferError(TransferError):
    """Raised by the execution context when a native value transfer fails."""
    pass


class LedgerTransferFailedError(TransferError):
    """Raised when the asset ledger rejects a transfer."""
    pass


class FeeTransferFailedError(TransferError):
    """Raised when forwarding a fee to the fee sink fails."""
    pass


class SettlementTransferFailedError(TransferError):
    """Raised when paying settlement out to a seller fails."""
    pass


# ==================== Reentrancy ====================


class ReentrancyRejectedError(CurveError):
    """Raised when a mutating operation is entered while another is running."""
    pass


# ==================== Deployment Errors ====================


class DeploymentError(CurveError):
    """Raised when the liquidity-deployment transition cannot complete."""
    pass


class InsufficientReserveForDeploymentError(DeploymentError):
    """Raised when the curve cannot fund the fixed deployment amounts."""
    pass


class LiquidityDeploymentError(DeploymentError):
    """Raised when the liquidity sink reports a failed deployment."""

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.reason = reason


class AlreadyDeployedError(DeploymentError):
    """Raised when liquidity for an asset has already been deployed."""
    pass


# ==================== Access, Configuration & Collaborator Errors ====================


class AccessDeniedError(CurveError):
    """Raised when an administrative capability check fails."""
    pass


class ConfigurationError(CurveError):
    """Raised when curve configuration is invalid."""
    recoverable = False


class RevertError(CurveError):
    """Raised when a collaborator contract rejects a call."""

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.reason = reason


# ==================== Utility Functions ====================


def is_recoverable_error(exc: Exception) -> bool:
    """Check if an exception represents a recoverable error.

    Args:
        exc: The exception to check

    Returns:
        True if the error is recoverable and the operation can be retried
    """
    if isinstance(exc, CurveError):
        return exc.recoverable

    recoverable_types = (
        ConnectionError,
        TimeoutError,
    )
    return isinstance(exc, recoverable_types)


def get_error_context(exc: Exception) -> Dict[str, Any]:
    """Extract error context from an exception for logging.

    Args:
        exc: The exception to extract context from

    Returns:
        Dictionary containing error type, message, and any additional details
    """
    context: Dict[str, Any] = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    if isinstance(exc, CurveError):
        context["recoverable"] = exc.recoverable
        if exc.details:
            context["details"] = exc.details

    if isinstance(exc, (RevertError, LiquidityDeploymentError)) and exc.reason:
        context["revert_reason"] = exc.reason

    if exc.__cause__ is not None:
        context["cause"] = type(exc.__cause__).__name__

    return context
