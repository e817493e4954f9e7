"""Core domain entities."""

from facturacr.core.entities.cabys import CabysItem, CabysSearchResult
from facturacr.core.entities.company import Company
from facturacr.core.entities.document import (
    BASE_CURRENCY,
    FINAL_CONSUMER_ID,
    FINAL_CONSUMER_NAME,
    SUPPORTED_CURRENCIES,
    DocumentForm,
    DocumentSummary,
    ElectronicDocument,
    Identification,
    IdentificationType,
    Issuer,
    Location,
    Party,
    PaymentMethod,
    Phone,
    SaleCondition,
    final_consumer,
)
from facturacr.core.entities.document_type import DocumentType
from facturacr.core.entities.line_item import (
    OTHER_CHARGE_DESCRIPTIONS,
    SERVICE_UNITS,
    Exemption,
    LineItem,
    OtherCharge,
    OtherChargeType,
    PharmaInfo,
    TaxCode,
)
from facturacr.core.entities.record import (
    EmailDelivery,
    EmailStatus,
    HistorySummary,
    InvoiceStatus,
    StoredInvoiceRecord,
    new_record_id,
)
from facturacr.core.entities.sequence import (
    MAX_SEQUENCE,
    ClaveComponents,
    ConsecutiveParts,
    DocumentKey,
    Environment,
    SequenceRecord,
    SequenceScope,
    SituationCode,
)
from facturacr.core.entities.session import DocumentSession
from facturacr.core.entities.submission import (
    Attachment,
    ContributorActivity,
    ContributorInfo,
    EmailResult,
    KeyMaterial,
    SubmissionResult,
    SubmissionStage,
)

__all__ = [
    # CABYS catalog
    "CabysItem",
    "CabysSearchResult",
    # Line items
    "LineItem",
    "Exemption",
    "PharmaInfo",
    "OtherCharge",
    "OtherChargeType",
    "OTHER_CHARGE_DESCRIPTIONS",
    "SERVICE_UNITS",
    "TaxCode",
    # Documents
    "DocumentType",
    "DocumentForm",
    "DocumentSummary",
    "ElectronicDocument",
    "Identification",
    "IdentificationType",
    "Issuer",
    "Location",
    "Party",
    "PaymentMethod",
    "Phone",
    "SaleCondition",
    "final_consumer",
    "BASE_CURRENCY",
    "SUPPORTED_CURRENCIES",
    "FINAL_CONSUMER_ID",
    "FINAL_CONSUMER_NAME",
    # Sequence
    "SequenceScope",
    "SequenceRecord",
    "DocumentKey",
    "ClaveComponents",
    "ConsecutiveParts",
    "Environment",
    "SituationCode",
    "MAX_SEQUENCE",
    # Session
    "DocumentSession",
    # Records
    "StoredInvoiceRecord",
    "new_record_id",
    "InvoiceStatus",
    "EmailDelivery",
    "EmailStatus",
    "HistorySummary",
    # Company
    "Company",
    # Submission
    "SubmissionStage",
    "SubmissionResult",
    "KeyMaterial",
    "Attachment",
    "EmailResult",
    "ContributorInfo",
    "ContributorActivity",
]
