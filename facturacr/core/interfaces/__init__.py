"""Core interfaces (ports) for dependency injection."""

from facturacr.core.interfaces.company_store import ICompanyStore
from facturacr.core.interfaces.gateways import (
    ICabysCatalog,
    IDocumentRenderer,
    IEmailSender,
    IExchangeRateSource,
    ISigner,
    ITaxAuthority,
)
from facturacr.core.interfaces.record_store import IRecordStore
from facturacr.core.interfaces.sequence_store import ISequenceStore

__all__ = [
    # Storage
    "ISequenceStore",
    "IRecordStore",
    "ICompanyStore",
    # External collaborators
    "IDocumentRenderer",
    "ISigner",
    "ITaxAuthority",
    "IEmailSender",
    "IExchangeRateSource",
    "ICabysCatalog",
]
