"""
Error handling middleware.

Standardizes all API error responses to include:
- error_code: machine-readable identifier
- message: human-readable description
- hint: suggested recovery action
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from facturacr.application.dto.responses import ErrorResponse
from facturacr.config import get_logger
from facturacr.core.exceptions import (
    AssemblyError,
    CabysCodeNotFoundError,
    CalculationError,
    CompanyNotFoundError,
    ConfigurationError,
    CurrencyError,
    DatabaseError,
    DuplicateConsecutiveError,
    FacturaError,
    InvalidKeyComponentsError,
    InvalidStateError,
    RecordConflictError,
    RecordNotFoundError,
    SequenceExhaustedError,
    SessionNotFoundError,
    SigningError,
    SigningUnavailableError,
    StorageError,
    SubmissionError,
    SubmissionRejectedError,
    ValidationError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes; subclasses before their bases
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    CalculationError: 422,
    CurrencyError: 422,
    InvalidKeyComponentsError: 422,
    SequenceExhaustedError: status.HTTP_409_CONFLICT,
    DuplicateConsecutiveError: status.HTTP_409_CONFLICT,
    AssemblyError: 422,
    SigningUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    SigningError: status.HTTP_502_BAD_GATEWAY,
    SubmissionRejectedError: 422,
    SubmissionError: status.HTTP_502_BAD_GATEWAY,
    RecordNotFoundError: status.HTTP_404_NOT_FOUND,
    SessionNotFoundError: status.HTTP_404_NOT_FOUND,
    CompanyNotFoundError: status.HTTP_404_NOT_FOUND,
    CabysCodeNotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidStateError: status.HTTP_409_CONFLICT,
    RecordConflictError: status.HTTP_409_CONFLICT,
    DatabaseError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ValueError: status.HTTP_400_BAD_REQUEST,
    KeyError: status.HTTP_404_NOT_FOUND,
}

# Hint messages per error code / exception type
HINT_MAP: dict[str, str] = {
    "INVALID_LINE_ITEM": "Quantity must be positive, price non-negative and discount at most the line amount.",
    "INVALID_EXCHANGE_RATE": "Send a positive exchange_rate or retry once the rate service is reachable.",
    "UNSUPPORTED_CURRENCY": "Use CRC, USD or EUR.",
    "INVALID_KEY_COMPONENTS": "Check the issuer identification, branch (3 digits) and terminal (5 digits).",
    "SEQUENCE_EXHAUSTED": "The 10-digit sequence is used up. Open documents on another terminal or branch.",
    "DUPLICATE_CONSECUTIVE": "Another process issued this number. Check that only one server uses the database.",
    "MISSING_REQUIRED_FIELD": "Fill in the field named in the message and submit again.",
    "SIGNING_UNAVAILABLE": "The signing service is unreachable. Check SIGNING_SERVICE_URL and the certificate.",
    "SIGNING_ERROR": "The signing service refused the document. Check the certificate and PIN.",
    "SUBMISSION_TRANSPORT_ERROR": "The tax authority could not be reached. Resubmit the pending record later.",
    "SUBMISSION_REJECTED": "The tax authority rejected the document. Review the reason code.",
    "AUTHENTICATION_ERROR": "Check HACIENDA_USERNAME and HACIENDA_PASSWORD.",
    "RECORD_NOT_FOUND": "Check the record ID and try GET /api/history to list records.",
    "RECORD_CONFLICT": "A document with this clave is already stored for the company and environment.",
    "CABYS_CODE_NOT_FOUND": "Search the catalog by description with GET /api/cabys?q=...",
    "SESSION_NOT_FOUND": "The session expired or was discarded. Open a new one with POST /api/documents/sessions.",
    "COMPANY_NOT_FOUND": "The company has not issued any document yet.",
    "INVALID_STATE": "Only pending records can be resubmitted and only completed ones e-mailed.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
    "ConfigurationError": "Check the environment variables of the failing component.",
    "ValueError": "A parameter value is invalid. Check the request.",
    "KeyError": "The requested key was not found.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The request conflicts with the current state of the resource.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
    502: "An upstream service failed. Retry later.",
    503: "The service is temporarily unavailable. Retry later.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def _get_status(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert exception to standardized JSON response."""
    status_code = _get_status(exc)

    # Prefer FacturaError.code, fall back to class name
    if isinstance(exc, FacturaError):
        error_code = exc.code
        message = exc.message
        detail = str(exc.details) if exc.details else None
    else:
        error_code = exc.__class__.__name__
        message = str(exc)
        detail = None

    request_id = getattr(request.state, "request_id", None)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=request_id,
        path=request.url.path,
        error_type=error_code,
        error=message,
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error_code=error_code,
            message=message,
            hint=_get_hint(error_code, status_code),
            detail=detail,
            path=request.url.path,
        ).model_dump(mode="json"),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Converts exceptions to standardized JSON error responses.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Handle request with error catching."""
        try:
            return await call_next(request)

        except Exception as e:
            return error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(FacturaError)
    async def factura_exception_handler(request: Request, exc: FacturaError) -> JSONResponse:
        """Handle domain errors raised by use cases."""
        return error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                hint="Check the request body fields and types.",
                detail="; ".join(errors),
                path=request.url.path,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions with standardized format."""
        error_code = _infer_error_code(exc.status_code, str(exc.detail or ""))
        hint = _get_hint(error_code, exc.status_code)

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                message=str(exc.detail or "An error occurred"),
                hint=hint,
                path=request.url.path,
            ).model_dump(mode="json"),
        )


def _infer_error_code(status_code: int, detail: str) -> str:
    """Infer a machine-readable error code from HTTPException detail."""
    detail_lower = detail.lower()

    if status_code == 404:
        if "record" in detail_lower:
            return "RECORD_NOT_FOUND"
        if "session" in detail_lower:
            return "SESSION_NOT_FOUND"
        return "NOT_FOUND"

    if status_code == 400:
        return "BAD_REQUEST"

    if status_code == 422:
        return "UNPROCESSABLE_ENTITY"

    return "HTTP_ERROR"
