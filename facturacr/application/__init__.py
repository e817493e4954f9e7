"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection

Use cases are the only entry point for API handlers.
"""

from facturacr.application.dto.requests import (
    DocumentRequest,
    HistoryQuery,
    LineItemRequest,
    OpenSessionRequest,
    ResendEmailRequest,
    SequenceScopeRequest,
    SwitchEnvironmentRequest,
)
from facturacr.application.dto.responses import (
    ErrorResponse,
    HealthResponse,
    PreviewResponse,
    RecordResponse,
    SessionResponse,
    SubmissionResponse,
)
from facturacr.application.services import (
    get_exchange_rate_service,
    get_key_service,
    get_sequence_generator,
    get_session_registry,
    reset_services,
)
from facturacr.application.session_registry import DocumentSessionRegistry
from facturacr.application.use_cases import (
    GetExchangeRateUseCase,
    GetHistorySummaryUseCase,
    GetRecordUseCase,
    ListHistoryUseCase,
    LookupContributorUseCase,
    ManageSequencesUseCase,
    ManageSessionsUseCase,
    PreviewDocumentUseCase,
    ResendEmailUseCase,
    ResubmitDocumentUseCase,
    SubmitDocumentUseCase,
)

__all__ = [
    # Request DTOs
    "DocumentRequest",
    "LineItemRequest",
    "OpenSessionRequest",
    "SequenceScopeRequest",
    "SwitchEnvironmentRequest",
    "ResendEmailRequest",
    "HistoryQuery",
    # Response DTOs
    "SessionResponse",
    "PreviewResponse",
    "SubmissionResponse",
    "RecordResponse",
    "HealthResponse",
    "ErrorResponse",
    # Use Cases
    "ManageSessionsUseCase",
    "PreviewDocumentUseCase",
    "SubmitDocumentUseCase",
    "ResubmitDocumentUseCase",
    "ResendEmailUseCase",
    "ListHistoryUseCase",
    "GetRecordUseCase",
    "GetHistorySummaryUseCase",
    "ManageSequencesUseCase",
    "GetExchangeRateUseCase",
    "LookupContributorUseCase",
    # Services
    "DocumentSessionRegistry",
    "get_session_registry",
    "get_sequence_generator",
    "get_key_service",
    "get_exchange_rate_service",
    "reset_services",
]
