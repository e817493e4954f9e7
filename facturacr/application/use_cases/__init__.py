"""Application use cases."""

from facturacr.application.use_cases.history import (
    GetHistorySummaryUseCase,
    GetRecordUseCase,
    ListHistoryResult,
    ListHistoryUseCase,
)
from facturacr.application.use_cases.lookups import (
    GetExchangeRateUseCase,
    LookupCabysUseCase,
    LookupContributorUseCase,
)
from facturacr.application.use_cases.manage_sequences import (
    ManageSequencesUseCase,
    SequenceState,
)
from facturacr.application.use_cases.manage_sessions import ManageSessionsUseCase, SessionResult
from facturacr.application.use_cases.preview_document import (
    PreviewDocumentResult,
    PreviewDocumentUseCase,
)
from facturacr.application.use_cases.resend_email import ResendEmailResult, ResendEmailUseCase
from facturacr.application.use_cases.resubmit_document import (
    ResubmitDocumentResult,
    ResubmitDocumentUseCase,
)
from facturacr.application.use_cases.submit_document import (
    SubmitDocumentResult,
    SubmitDocumentUseCase,
)

__all__ = [
    "ManageSessionsUseCase",
    "SessionResult",
    "PreviewDocumentUseCase",
    "PreviewDocumentResult",
    "SubmitDocumentUseCase",
    "SubmitDocumentResult",
    "ResubmitDocumentUseCase",
    "ResubmitDocumentResult",
    "ResendEmailUseCase",
    "ResendEmailResult",
    "ListHistoryUseCase",
    "ListHistoryResult",
    "GetRecordUseCase",
    "GetHistorySummaryUseCase",
    "ManageSequencesUseCase",
    "SequenceState",
    "GetExchangeRateUseCase",
    "LookupContributorUseCase",
    "LookupCabysUseCase",
]
