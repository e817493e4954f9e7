"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
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
    ContributorActivityResponse,
    ContributorResponse,
    EmailDeliveryResponse,
    ErrorResponse,
    ExchangeRateResponse,
    HealthResponse,
    HistorySummaryResponse,
    LineItemResponse,
    PaginatedResponse,
    PreviewResponse,
    ProviderHealthResponse,
    RecordDetailResponse,
    RecordListResponse,
    RecordResponse,
    SequenceResponse,
    SessionResponse,
    SubmissionResponse,
    SummaryResponse,
    SwitchEnvironmentResponse,
)

__all__ = [
    # Requests
    "LineItemRequest",
    "DocumentRequest",
    "OpenSessionRequest",
    "SequenceScopeRequest",
    "SwitchEnvironmentRequest",
    "ResendEmailRequest",
    "HistoryQuery",
    # Responses
    "LineItemResponse",
    "SummaryResponse",
    "SessionResponse",
    "PreviewResponse",
    "SubmissionResponse",
    "EmailDeliveryResponse",
    "RecordResponse",
    "RecordDetailResponse",
    "RecordListResponse",
    "PaginatedResponse",
    "HistorySummaryResponse",
    "SequenceResponse",
    "SwitchEnvironmentResponse",
    "ExchangeRateResponse",
    "ContributorResponse",
    "ContributorActivityResponse",
    "HealthResponse",
    "ProviderHealthResponse",
    "ErrorResponse",
]
