"""API middleware."""

from facturacr.api.middleware.error_handler import ErrorHandlerMiddleware
from facturacr.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware", "ErrorHandlerMiddleware"]
