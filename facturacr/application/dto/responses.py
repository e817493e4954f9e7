"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class LineItemResponse(BaseModel):
    """Computed line in preview and submission responses."""

    line_number: int
    cabys_code: str
    description: str
    quantity: Decimal
    unit_of_measure: str
    unit_price: Decimal = Field(..., description="Unit price in document currency")
    base_unit_price: Decimal | None = Field(default=None, description="Unit price in CRC")
    discount: Decimal
    subtotal: Decimal
    tax_rate: Decimal
    tax_rate_code: str | None = None
    tax_amount: Decimal
    exempted_amount: Decimal = Decimal("0")
    line_total: Decimal


class SummaryResponse(BaseModel):
    """Document totals."""

    currency: str
    exchange_rate: Decimal
    total_taxed: Decimal
    total_exempt: Decimal
    total_exonerated: Decimal
    gross_sales: Decimal
    discounts: Decimal
    net_sales: Decimal
    tax: Decimal
    other_charges: Decimal
    grand_total: Decimal


class SessionResponse(BaseModel):
    """Document editing session."""

    id: str
    company_id: str
    document_type: str
    branch: str
    terminal: str
    clave: str | None = Field(default=None, description="Set after the first submit")
    consecutive: str | None = None
    record_id: str | None = None
    created_at: datetime


class PreviewResponse(BaseModel):
    """Preview of a document; no consecutive is consumed."""

    document_type: str
    schema_version: str
    lines: list[LineItemResponse]
    summary: SummaryResponse
    xml: str


class SubmissionResponse(BaseModel):
    """Outcome of a document submission."""

    record_id: str
    session_id: str | None = None
    clave: str
    consecutive: str
    status: str = Field(..., description="completed, pending or rejected")
    signed: bool
    simulated: bool = False
    reference_id: str | None = None
    rejection_code: str | None = None
    error: str | None = None
    email_scheduled: bool = False
    lines: list[LineItemResponse] = Field(default_factory=list)
    summary: SummaryResponse | None = None


class EmailDeliveryResponse(BaseModel):
    """E-mail delivery state of a record."""

    recipient: str | None = None
    requested: bool = True
    status: str
    attempts: int
    last_error: str | None = None
    last_attempt_at: datetime | None = None


class RecordResponse(BaseModel):
    """Stored invoice record."""

    id: str
    company_id: str
    document_type: str
    environment: str
    clave: str
    consecutive: str
    status: str
    issued_at: datetime
    receiver_name: str
    receiver_email: str | None = None
    currency: str
    exchange_rate: Decimal
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    signed: bool
    reference_id: str | None = None
    rejection_code: str | None = None
    error_message: str | None = None
    can_resubmit: bool
    email: EmailDeliveryResponse
    created_at: datetime
    updated_at: datetime


class RecordDetailResponse(RecordResponse):
    """Stored invoice record including its XML."""

    xml_content: str


class PaginatedResponse(BaseModel):
    """Base for paginated responses."""

    total: int
    limit: int
    offset: int
    has_more: bool


class RecordListResponse(PaginatedResponse):
    """Page of invoice history."""

    items: list[RecordResponse]


class HistorySummaryResponse(BaseModel):
    """Dashboard counts of a company's documents."""

    company_id: str
    total_documents: int
    completed: int
    pending: int
    rejected: int
    invoices: int
    tickets: int
    completed_totals: dict[str, Decimal]
    emails_failed: int


class SequenceResponse(BaseModel):
    """Current state of a consecutive counter."""

    company_id: str
    document_type: str
    branch: str
    terminal: str
    environment: str
    current_value: int
    next_consecutive: str


class SwitchEnvironmentResponse(SequenceResponse):
    """Result of an environment switch."""

    changed: bool
    previous_environment: str


class ExchangeRateResponse(BaseModel):
    """Exchange rate of a currency in colones."""

    currency: str
    rate: Decimal
    base_currency: str = "CRC"


class ContributorActivityResponse(BaseModel):
    code: str
    description: str
    status: str


class ContributorResponse(BaseModel):
    """Taxpayer registry lookup."""

    identification: str
    name: str
    identification_type: str
    status: str
    is_valid: bool
    activities: list[ContributorActivityResponse]


class CabysItemResponse(BaseModel):
    """CABYS code with the VAT rate to put on the line."""

    code: str
    description: str
    categories: list[str]
    tax_rate: Decimal | None = None


class CabysSearchResponse(BaseModel):
    query: str
    total: int
    items: list[CabysItemResponse]


class ProviderHealthResponse(BaseModel):
    """Health status of a dependency."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    hacienda_environment: str
    simulate: bool
    signing_configured: bool
    email_configured: bool
    database: ProviderHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. RECORD_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
