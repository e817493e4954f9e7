"""
Domain exceptions for the e-invoicing application.

Provides specific exception types for different error scenarios.
"""

from decimal import Decimal
from typing import Any


class FacturaError(Exception):
    """Base exception for all e-invoicing errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Calculation Exceptions
class CalculationError(FacturaError):
    """Base exception for tax and total calculations."""

    pass


class InvalidLineItemError(CalculationError):
    """Line item cannot be priced (bad quantity, price or discount)."""

    def __init__(self, reason: str, line_number: int | None = None, value: Any = None):
        where = f"Line {line_number}" if line_number is not None else "Line item"
        super().__init__(
            f"{where} is invalid: {reason}",
            code="INVALID_LINE_ITEM",
            details={
                "line_number": line_number,
                "reason": reason,
                "value": str(value) if value is not None else None,
            },
        )


# Currency Exceptions
class CurrencyError(FacturaError):
    """Base exception for currency conversion."""

    pass


class InvalidExchangeRateError(CurrencyError):
    """Exchange rate is missing or not positive for a foreign currency."""

    def __init__(self, currency: str, rate: Decimal | float | None = None, reason: str | None = None):
        message = f"Invalid exchange rate for {currency}: {rate}"
        if reason:
            message += f" - {reason}"
        super().__init__(
            message,
            code="INVALID_EXCHANGE_RATE",
            details={
                "currency": currency,
                "rate": str(rate) if rate is not None else None,
                "reason": reason,
            },
        )


class UnsupportedCurrencyError(CurrencyError):
    """Currency is not one of the supported document currencies."""

    def __init__(self, currency: str, supported: list[str]):
        super().__init__(
            f"Unsupported currency '{currency}'. Supported: {', '.join(supported)}",
            code="UNSUPPORTED_CURRENCY",
            details={"currency": currency, "supported": supported},
        )


# Key / Sequence Exceptions
class KeyGenerationError(FacturaError):
    """Base exception for consecutive and document key generation."""

    pass


class InvalidKeyComponentsError(KeyGenerationError):
    """A clave or consecutive component does not fit its fixed width."""

    def __init__(self, component: str, value: Any, expected: str):
        super().__init__(
            f"Invalid key component '{component}': {value!r} ({expected})",
            code="INVALID_KEY_COMPONENTS",
            details={"component": component, "value": str(value), "expected": expected},
        )


class SequenceExhaustedError(KeyGenerationError):
    """The 10-digit sequence of a scope has no numbers left."""

    def __init__(self, scope: str, last_value: int):
        super().__init__(
            f"Consecutive sequence exhausted for scope {scope} (last issued {last_value})",
            code="SEQUENCE_EXHAUSTED",
            details={"scope": scope, "last_value": last_value},
        )


class DuplicateConsecutiveError(KeyGenerationError):
    """A consecutive value was already issued for the scope."""

    def __init__(self, scope: str, value: int):
        super().__init__(
            f"Consecutive {value} was already issued for scope {scope}",
            code="DUPLICATE_CONSECUTIVE",
            details={"scope": scope, "value": value},
        )


# Assembly Exceptions
class AssemblyError(FacturaError):
    """Base exception for canonical document assembly."""

    pass


class MissingRequiredFieldError(AssemblyError):
    """A required nested field of the document is empty."""

    def __init__(self, path: str, document_type: str | None = None):
        super().__init__(
            f"Missing required field: {path}",
            code="MISSING_REQUIRED_FIELD",
            details={"path": path, "document_type": document_type},
        )


# Signing Exceptions
class SigningError(FacturaError):
    """The signer refused or failed to sign the document."""

    def __init__(self, reason: str, clave: str | None = None):
        super().__init__(
            f"Document signing failed: {reason}",
            code="SIGNING_ERROR",
            details={"reason": reason, "clave": clave},
        )


class SigningUnavailableError(SigningError):
    """Signing service is not configured or cannot be reached."""

    def __init__(self, reason: str):
        FacturaError.__init__(
            self,
            f"Signing service unavailable: {reason}",
            code="SIGNING_UNAVAILABLE",
            details={"reason": reason},
        )


# Submission Exceptions
class SubmissionError(FacturaError):
    """Base exception for tax authority submission."""

    pass


class SubmissionTransportError(SubmissionError):
    """The tax authority could not be reached."""

    def __init__(self, reason: str, clave: str | None = None, status_code: int | None = None):
        super().__init__(
            f"Could not reach the tax authority: {reason}",
            code="SUBMISSION_TRANSPORT_ERROR",
            details={"reason": reason, "clave": clave, "status_code": status_code},
        )


class SubmissionRejectedError(SubmissionError):
    """The tax authority rejected the document."""

    def __init__(self, reason_code: str, reason: str, clave: str | None = None):
        super().__init__(
            f"Document rejected by the tax authority ({reason_code}): {reason}",
            code="SUBMISSION_REJECTED",
            details={"reason_code": reason_code, "reason": reason, "clave": clave},
        )
        self.reason_code = reason_code
        self.reason = reason


class AuthenticationError(SubmissionError):
    """The tax authority did not issue an access token."""

    def __init__(self, reason: str):
        super().__init__(
            f"Tax authority authentication failed: {reason}",
            code="AUTHENTICATION_ERROR",
            details={"reason": reason},
        )


class CabysCodeNotFoundError(FacturaError):
    """Code not present in the CABYS catalog."""

    def __init__(self, code: str):
        super().__init__(
            f"CABYS code not found: {code}",
            code="CABYS_CODE_NOT_FOUND",
            details={"cabys_code": code},
        )


# Storage Exceptions
class StorageError(FacturaError):
    """Base exception for storage operations."""

    pass


class RecordNotFoundError(StorageError):
    """Stored invoice record not found."""

    def __init__(self, record_id: str):
        super().__init__(
            f"Invoice record not found: {record_id}",
            code="RECORD_NOT_FOUND",
            details={"record_id": record_id},
        )


class SessionNotFoundError(StorageError):
    """Document editing session not found."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Session not found: {session_id}",
            code="SESSION_NOT_FOUND",
            details={"session_id": session_id},
        )


class CompanyNotFoundError(StorageError):
    """Issuing company not registered."""

    def __init__(self, company_id: str):
        super().__init__(
            f"Company not found: {company_id}",
            code="COMPANY_NOT_FOUND",
            details={"company_id": company_id},
        )


class RecordConflictError(StorageError):
    """A record write would overwrite another document or a settled record."""

    def __init__(self, record_id: str, reason: str):
        super().__init__(
            f"Record {record_id} not written: {reason}",
            code="RECORD_CONFLICT",
            details={"record_id": record_id, "reason": reason},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


# Validation Exceptions
class ValidationError(FacturaError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value else None,
            },
        )


class InvalidStateError(FacturaError):
    """Operation not allowed in the record's current state."""

    def __init__(self, record_id: str, state: str, operation: str):
        super().__init__(
            f"Cannot {operation} record {record_id} in state {state}",
            code="INVALID_STATE",
            details={"record_id": record_id, "state": state, "operation": operation},
        )


class ConfigurationError(FacturaError):
    """Configuration error."""

    pass
