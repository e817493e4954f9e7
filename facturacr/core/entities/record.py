"""
Stored invoice record entities.

A record is the audit projection of a submitted document. It is updated on
status and e-mail changes but is never the source of truth for the clave.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from facturacr.core.entities.document_type import DocumentType
from facturacr.core.entities.sequence import Environment


class InvoiceStatus(str, Enum):
    """Outcome of a submission."""

    COMPLETED = "completed"
    PENDING = "pending"
    REJECTED = "rejected"


class EmailStatus(str, Enum):
    """Delivery state of the customer e-mail."""

    SENT = "sent"
    FAILED = "failed"
    PENDING = "pending"


class EmailDelivery(BaseModel):
    """E-mail delivery sub-record."""

    recipient: str | None = None
    requested: bool = True  # customer opted in when the document was issued
    status: EmailStatus = EmailStatus.PENDING
    attempts: int = 0
    last_error: str | None = None
    last_attempt_at: datetime | None = None


def new_record_id(document_type: DocumentType) -> str:
    """
    Mint a record id.

    Consecutives restart per company and per environment, so the id carries
    no part of the key. The prefix only keeps listings readable.
    """
    return f"{document_type.record_prefix}-{uuid4().hex}"


class StoredInvoiceRecord(BaseModel):
    """Historical record of a submitted invoice or ticket."""

    id: str  # F-{uuid} or T-{uuid}, see new_record_id
    company_id: str
    document_type: DocumentType
    environment: Environment
    clave: str
    consecutive: str
    status: InvoiceStatus = InvoiceStatus.PENDING

    # Display data
    issued_at: datetime
    receiver_name: str = ""
    receiver_email: str | None = None
    currency: str = "CRC"
    exchange_rate: Decimal = Decimal("1")
    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total: Decimal = Decimal("0")

    # Submission data
    xml_content: str = ""
    signed: bool = False
    reference_id: str | None = None
    rejection_code: str | None = None
    error_message: str | None = None

    email: EmailDelivery = Field(default_factory=EmailDelivery)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def can_resubmit(self) -> bool:
        return self.status == InvoiceStatus.PENDING


class HistorySummary(BaseModel):
    """Dashboard counts for a company's records."""

    company_id: str
    total_documents: int = 0
    completed: int = 0
    pending: int = 0
    rejected: int = 0
    invoices: int = 0
    tickets: int = 0
    completed_totals: dict[str, Decimal] = Field(default_factory=dict)  # per currency
    emails_failed: int = 0
