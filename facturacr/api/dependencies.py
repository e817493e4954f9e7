"""
Dependency injection container for FastAPI.

Provides use case instances to route handlers. Tests replace these with
app.dependency_overrides.
"""

from facturacr.application.services import get_session_registry
from facturacr.application.session_registry import DocumentSessionRegistry
from facturacr.application.use_cases import (
    GetExchangeRateUseCase,
    GetHistorySummaryUseCase,
    GetRecordUseCase,
    ListHistoryUseCase,
    LookupCabysUseCase,
    LookupContributorUseCase,
    ManageSequencesUseCase,
    ManageSessionsUseCase,
    PreviewDocumentUseCase,
    ResendEmailUseCase,
    ResubmitDocumentUseCase,
    SubmitDocumentUseCase,
)


def get_registry() -> DocumentSessionRegistry:
    """Get the process-wide document session registry."""
    return get_session_registry()


# Use case dependencies
def get_sessions_use_case() -> ManageSessionsUseCase:
    """Get session management use case."""
    return ManageSessionsUseCase(registry=get_registry())


def get_preview_use_case() -> PreviewDocumentUseCase:
    """Get document preview use case."""
    return PreviewDocumentUseCase()


def get_submit_use_case() -> SubmitDocumentUseCase:
    """Get document submission use case."""
    return SubmitDocumentUseCase()


def get_resubmit_use_case() -> ResubmitDocumentUseCase:
    """Get pending record resubmission use case."""
    return ResubmitDocumentUseCase()


def get_resend_email_use_case() -> ResendEmailUseCase:
    return ResendEmailUseCase()


def get_list_history_use_case() -> ListHistoryUseCase:
    return ListHistoryUseCase()


def get_record_use_case() -> GetRecordUseCase:
    return GetRecordUseCase()


def get_history_summary_use_case() -> GetHistorySummaryUseCase:
    return GetHistorySummaryUseCase()


def get_sequences_use_case() -> ManageSequencesUseCase:
    return ManageSequencesUseCase()


def get_exchange_rate_use_case() -> GetExchangeRateUseCase:
    return GetExchangeRateUseCase()


def get_contributor_use_case() -> LookupContributorUseCase:
    return LookupContributorUseCase()


def get_cabys_use_case() -> LookupCabysUseCase:
    return LookupCabysUseCase()
