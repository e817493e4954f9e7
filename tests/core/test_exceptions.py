"""Unit tests for domain exceptions."""

from decimal import Decimal

import pytest

from facturacr.core.exceptions import (
    AssemblyError,
    CalculationError,
    CompanyNotFoundError,
    CurrencyError,
    DatabaseError,
    DuplicateConsecutiveError,
    FacturaError,
    InvalidExchangeRateError,
    InvalidKeyComponentsError,
    InvalidLineItemError,
    InvalidStateError,
    KeyGenerationError,
    MissingRequiredFieldError,
    RecordNotFoundError,
    SequenceExhaustedError,
    SessionNotFoundError,
    SigningError,
    SigningUnavailableError,
    StorageError,
    SubmissionError,
    SubmissionRejectedError,
    SubmissionTransportError,
    UnsupportedCurrencyError,
    ValidationError,
)


class TestFacturaError:
    """Tests for base FacturaError exception."""

    def test_basic_initialization(self):
        error = FacturaError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.code == "FacturaError"
        assert error.details == {}

    def test_with_custom_code(self):
        error = FacturaError("Error message", code="CUSTOM_ERROR")
        assert error.code == "CUSTOM_ERROR"

    def test_to_dict(self):
        error = FacturaError("Test error", code="TEST_CODE", details={"extra": "info"})
        assert error.to_dict() == {
            "error": "TEST_CODE",
            "message": "Test error",
            "details": {"extra": "info"},
        }

    def test_can_be_raised_and_caught(self):
        with pytest.raises(FacturaError) as exc_info:
            raise FacturaError("Test")
        assert exc_info.value.message == "Test"


class TestCalculationErrors:
    def test_invalid_line_item(self):
        error = InvalidLineItemError("quantity must be greater than 0", 2, Decimal("0"))
        assert isinstance(error, CalculationError)
        assert error.code == "INVALID_LINE_ITEM"
        assert "Line 2" in error.message
        assert error.details["value"] == "0"

    def test_invalid_line_item_without_number(self):
        error = InvalidLineItemError("bad")
        assert error.message.startswith("Line item is invalid")


class TestCurrencyErrors:
    def test_invalid_exchange_rate(self):
        error = InvalidExchangeRateError("USD", Decimal("0"), "rate must be positive")
        assert isinstance(error, CurrencyError)
        assert error.code == "INVALID_EXCHANGE_RATE"
        assert error.details["rate"] == "0"
        assert "rate must be positive" in error.message

    def test_unsupported_currency(self):
        error = UnsupportedCurrencyError("JPY", ["CRC", "USD", "EUR"])
        assert error.code == "UNSUPPORTED_CURRENCY"
        assert "JPY" in error.message
        assert error.details["supported"] == ["CRC", "USD", "EUR"]


class TestKeyGenerationErrors:
    def test_hierarchy(self):
        assert issubclass(InvalidKeyComponentsError, KeyGenerationError)
        assert issubclass(SequenceExhaustedError, KeyGenerationError)
        assert issubclass(DuplicateConsecutiveError, KeyGenerationError)

    def test_sequence_exhausted(self):
        error = SequenceExhaustedError("cmp/01/001/00001/sandbox", 9999999999)
        assert error.code == "SEQUENCE_EXHAUSTED"
        assert error.details["last_value"] == 9999999999

    def test_duplicate_consecutive(self):
        error = DuplicateConsecutiveError("scope", 7)
        assert error.code == "DUPLICATE_CONSECUTIVE"
        assert "7" in error.message


class TestAssemblyErrors:
    def test_missing_required_field_path(self):
        error = MissingRequiredFieldError("receiver.identification.number", "01")
        assert isinstance(error, AssemblyError)
        assert error.code == "MISSING_REQUIRED_FIELD"
        assert error.details["path"] == "receiver.identification.number"


class TestSigningErrors:
    def test_signing_error(self):
        error = SigningError("certificate expired", clave="5" * 50)
        assert error.code == "SIGNING_ERROR"
        assert error.details["clave"] == "5" * 50

    def test_signing_unavailable_is_signing_error(self):
        error = SigningUnavailableError("not configured")
        assert isinstance(error, SigningError)
        assert error.code == "SIGNING_UNAVAILABLE"
        assert error.message == "Signing service unavailable: not configured"


class TestSubmissionErrors:
    def test_transport_error(self):
        error = SubmissionTransportError("timeout", status_code=503)
        assert isinstance(error, SubmissionError)
        assert error.details["status_code"] == 503

    def test_rejected_keeps_reason_code(self):
        error = SubmissionRejectedError("400", "duplicate clave")
        assert error.reason_code == "400"
        assert error.code == "SUBMISSION_REJECTED"


class TestStorageErrors:
    @pytest.mark.parametrize(
        "error, code",
        [
            (RecordNotFoundError("F-1"), "RECORD_NOT_FOUND"),
            (SessionNotFoundError("abc"), "SESSION_NOT_FOUND"),
            (CompanyNotFoundError("cmp"), "COMPANY_NOT_FOUND"),
            (DatabaseError("insert", "locked"), "DATABASE_ERROR"),
        ],
    )
    def test_codes(self, error, code):
        assert isinstance(error, StorageError)
        assert error.code == code


class TestValidationErrors:
    def test_validation_error_truncates_value(self):
        error = ValidationError("company_id", "mismatch", "x" * 300)
        assert len(error.details["value"]) == 100

    def test_invalid_state(self):
        error = InvalidStateError("F-1", "completed", "resubmit")
        assert error.code == "INVALID_STATE"
        assert error.message == "Cannot resubmit record F-1 in state completed"
