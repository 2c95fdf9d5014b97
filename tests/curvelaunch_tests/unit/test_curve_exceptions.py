"""
Tests for the curve exception hierarchy and its logging helpers.
"""

from curvelaunch.core.curve_exceptions import (
    CurveError,
    DustAmountError,
    FeeTransferFailedError,
    InputValidationError,
    InsufficientReserveError,
    InsufficientStateError,
    LiquidityDeploymentError,
    OracleError,
    OracleUnavailableError,
    RevertError,
    SupplyExhaustedError,
    TransferError,
    ValueTransferError,
    ZeroInputError,
    get_error_context,
    is_recoverable_error,
)


class TestHierarchy:
    def test_input_errors(self):
        assert issubclass(ZeroInputError, InputValidationError)
        assert issubclass(DustAmountError, InputValidationError)
        assert issubclass(InputValidationError, CurveError)

    def test_state_errors(self):
        assert issubclass(SupplyExhaustedError, InsufficientStateError)
        assert issubclass(InsufficientReserveError, InsufficientStateError)

    def test_transfer_errors(self):
        assert issubclass(FeeTransferFailedError, TransferError)
        assert issubclass(ValueTransferError, TransferError)

    def test_message_and_details(self):
        exc = ZeroInputError("Zero BERA amount", details={"amount": 0})
        assert str(exc) == "Zero BERA amount"
        assert exc.message == "Zero BERA amount"
        assert exc.details == {"amount": 0}
        assert exc.recoverable is False


class TestRecoverability:
    def test_oracle_unavailable_is_recoverable(self):
        exc = OracleUnavailableError("feed down")
        assert isinstance(exc, OracleError)
        assert is_recoverable_error(exc)

    def test_curve_errors_default_unrecoverable(self):
        assert not is_recoverable_error(SupplyExhaustedError("sold out"))

    def test_builtin_network_errors(self):
        assert is_recoverable_error(TimeoutError())
        assert is_recoverable_error(ConnectionError())
        assert not is_recoverable_error(ValueError())


class TestErrorContext:
    def test_basic_context(self):
        context = get_error_context(InsufficientReserveError("low", details={"reserve": 1}))
        assert context["error_type"] == "InsufficientReserveError"
        assert context["error_message"] == "low"
        assert context["recoverable"] is False
        assert context["details"] == {"reserve": 1}

    def test_revert_reason(self):
        context = get_error_context(RevertError("ERC20: nope", reason="insufficient balance"))
        assert context["revert_reason"] == "insufficient balance"

    def test_deployment_reason(self):
        context = get_error_context(LiquidityDeploymentError("failed", reason="venue rejected deposit"))
        assert context["revert_reason"] == "venue rejected deposit"

    def test_cause_is_reported(self):
        try:
            try:
                raise ValueTransferError("rejected")
            except ValueTransferError as inner:
                raise FeeTransferFailedError("Fee transfer failed") from inner
        except FeeTransferFailedError as exc:
            context = get_error_context(exc)
        assert context["cause"] == "ValueTransferError"

    def test_plain_exception(self):
        context = get_error_context(KeyError("x"))
        assert context["error_type"] == "KeyError"
        assert "recoverable" not in context
