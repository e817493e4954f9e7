"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases: the form arrives
here in one normalized shape and is never re-interpreted downstream.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from facturacr.core.entities.document import (
    BASE_CURRENCY,
    Issuer,
    Party,
    PaymentMethod,
    SaleCondition,
)
from facturacr.core.entities.document_type import DocumentType
from facturacr.core.entities.line_item import (
    DEFAULT_UNIT,
    Exemption,
    OtherCharge,
    PharmaInfo,
    TaxCode,
)
from facturacr.core.entities.sequence import Environment, SituationCode


class LineItemRequest(BaseModel):
    """One line of the document form."""

    cabys_code: str = Field(
        ...,
        pattern=r"^[0-9]{13}$",
        description="13-digit CABYS product/service code",
        examples=["4399000000000"],
    )
    commercial_code: str | None = Field(default=None, description="Internal product code")
    description: str = Field(..., min_length=1, description="Line description")
    unit_of_measure: str = Field(default=DEFAULT_UNIT, description="Unit of measure code")
    quantity: Decimal = Field(..., gt=0, description="Quantity")
    unit_price: Decimal = Field(..., ge=0, description="Unit price in document currency")
    base_unit_price: Decimal | None = Field(
        default=None,
        description="Unit price in CRC; taken from unit_price when absent",
    )
    discount: Decimal = Field(default=Decimal("0"), ge=0, description="Discount amount")
    discount_reason: str | None = Field(default=None, description="Discount reason")
    tax_code: TaxCode = Field(default=TaxCode.IVA, description="Tax type code")
    tax_rate: Decimal = Field(default=Decimal("13"), ge=0, le=100, description="Tax rate %")
    exemption: Exemption | None = Field(default=None, description="Tax exemption (invoices only)")
    pharma: PharmaInfo | None = Field(default=None, description="Medicine registration data")
    serial_numbers: list[str] = Field(default_factory=list, description="Serial numbers")


class DocumentRequest(BaseModel):
    """Normalized invoice/ticket form."""

    company_id: str = Field(..., description="Issuing company ID", examples=["cmp_001"])
    document_type: DocumentType = Field(
        default=DocumentType.INVOICE,
        description="01 = factura, 04 = tiquete",
    )
    issuer: Issuer = Field(..., description="Issuer data")
    receiver: Party | None = Field(
        default=None,
        description="Receiver; required for invoices, replaced by final consumer on tickets",
    )
    receiver_activity: str | None = Field(default=None, description="Receiver economic activity")
    sale_condition: SaleCondition = Field(default=SaleCondition.CASH)
    credit_term_days: int | None = Field(default=None, ge=1, description="Required for credit sales")
    payment_methods: list[PaymentMethod] = Field(default_factory=list)
    currency: str = Field(default=BASE_CURRENCY, examples=["CRC", "USD", "EUR"])
    exchange_rate: Decimal | None = Field(
        default=None,
        description="Rate in colones; looked up when absent for foreign currencies",
    )
    lines: list[LineItemRequest] = Field(..., min_length=1)
    other_charges: list[OtherCharge] = Field(default_factory=list)
    notes: str | None = Field(default=None, max_length=1000)
    situation: SituationCode = Field(default=SituationCode.NORMAL)
    send_email: bool = Field(default=True, description="E-mail the XML to the receiver")


class OpenSessionRequest(BaseModel):
    """Request to start editing a new document."""

    company_id: str = Field(..., description="Issuing company ID")
    document_type: DocumentType = Field(default=DocumentType.INVOICE)
    branch: str | None = Field(default=None, description="Branch (3 digits), settings default when absent")
    terminal: str | None = Field(
        default=None, description="Terminal (5 digits), settings default when absent"
    )


class SequenceScopeRequest(BaseModel):
    """Identifies a consecutive counter, without environment."""

    company_id: str
    document_type: DocumentType = DocumentType.INVOICE
    branch: str | None = None
    terminal: str | None = None


class SwitchEnvironmentRequest(SequenceScopeRequest):
    """Request to move a scope to another tax authority environment."""

    environment: Environment = Field(..., description="Target environment")


class ResendEmailRequest(BaseModel):
    """Request to re-attempt e-mail delivery of a record."""

    recipient: str | None = Field(
        default=None,
        description="Override recipient; the stored receiver e-mail otherwise",
    )


class HistoryQuery(BaseModel):
    """Filters for the invoice history listing."""

    company_id: str
    status: str | None = Field(default=None, examples=["completed", "pending", "rejected"])
    limit: int = Field(default=50, ge=1, le=500)
    offset: int = Field(default=0, ge=0)
