"""
Canonical electronic document entities.

The canonical document is built once per submission by the document
assembler and is frozen afterwards; clave and consecutive never change.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from facturacr.core.entities.document_type import DocumentType
from facturacr.core.entities.line_item import LineItem, OtherCharge
from facturacr.core.entities.sequence import DocumentKey, SituationCode

BASE_CURRENCY = "CRC"
SUPPORTED_CURRENCIES = ("CRC", "USD", "EUR")

FINAL_CONSUMER_NAME = "Consumidor Final"
FINAL_CONSUMER_ID = "000000000"


class IdentificationType(str, Enum):
    """Identification type codes."""

    PHYSICAL = "01"
    JURIDICAL = "02"
    DIMEX = "03"
    NITE = "04"

    @property
    def allowed_lengths(self) -> tuple[int, ...]:
        return _ID_LENGTHS[self]


_ID_LENGTHS = {
    IdentificationType.PHYSICAL: (9,),
    IdentificationType.JURIDICAL: (10,),
    IdentificationType.DIMEX: (11, 12),
    IdentificationType.NITE: (10,),
}


class SaleCondition(str, Enum):
    """Condición de venta."""

    CASH = "01"
    CREDIT = "02"
    CONSIGNMENT = "03"
    LAYAWAY = "04"
    LEASE_WITH_OPTION = "05"
    FINANCIAL_LEASE = "06"
    OTHER = "99"


class PaymentMethod(str, Enum):
    """Medio de pago."""

    CASH = "01"
    CARD = "02"
    CHECK = "03"
    TRANSFER = "04"
    THIRD_PARTY = "05"
    SINPE_MOVIL = "06"
    OTHER = "99"


class Identification(BaseModel):
    type: IdentificationType
    number: str = ""


class Location(BaseModel):
    province: str = ""
    canton: str = ""
    district: str = ""
    neighborhood: str | None = None
    other_signs: str | None = None


class Phone(BaseModel):
    country_code: str = "506"
    number: str


class Party(BaseModel):
    """Issuer or receiver of a document."""

    name: str = ""
    identification: Identification | None = None
    commercial_name: str | None = None
    location: Location | None = None
    phone: Phone | None = None
    email: str | None = None


class Issuer(Party):
    economic_activity: str = ""


def final_consumer(email: str | None = None) -> Party:
    """Generic receiver used on every ticket."""
    return Party(
        name=FINAL_CONSUMER_NAME,
        identification=Identification(type=IdentificationType.PHYSICAL, number=FINAL_CONSUMER_ID),
        email=email,
    )


class DocumentSummary(BaseModel):
    """Document-level totals (ResumenFactura)."""

    currency: str = BASE_CURRENCY
    exchange_rate: Decimal = Decimal("1.00000")

    total_taxed_services: Decimal = Decimal("0")
    total_exempt_services: Decimal = Decimal("0")
    total_exonerated_services: Decimal = Decimal("0")
    total_taxed_goods: Decimal = Decimal("0")
    total_exempt_goods: Decimal = Decimal("0")
    total_exonerated_goods: Decimal = Decimal("0")
    total_taxed: Decimal = Decimal("0")
    total_exempt: Decimal = Decimal("0")
    total_exonerated: Decimal = Decimal("0")

    gross_sales: Decimal = Decimal("0")
    discounts: Decimal = Decimal("0")
    net_sales: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    other_charges: Decimal = Decimal("0")
    grand_total: Decimal = Decimal("0")


class DocumentForm(BaseModel):
    """Normalized form data for one document, as received at the API boundary."""

    company_id: str
    document_type: DocumentType
    issuer: Issuer
    receiver: Party | None = None
    receiver_activity: str | None = None
    sale_condition: SaleCondition = SaleCondition.CASH
    credit_term_days: int | None = None
    payment_methods: list[PaymentMethod] = Field(default_factory=list)
    currency: str = BASE_CURRENCY
    exchange_rate: Decimal | None = None
    other_charges: list[OtherCharge] = Field(default_factory=list)
    notes: str | None = None
    situation: SituationCode = SituationCode.NORMAL


class ElectronicDocument(BaseModel):
    """Canonical invoice or ticket, immutable once assembled."""

    model_config = ConfigDict(frozen=True)

    document_type: DocumentType
    key: DocumentKey
    issued_at: datetime
    issuer: Issuer
    receiver: Party
    receiver_activity: str | None = None
    sale_condition: SaleCondition
    credit_term_days: int | None = None
    payment_methods: list[PaymentMethod]
    lines: list[LineItem]
    other_charges: list[OtherCharge] = Field(default_factory=list)
    summary: DocumentSummary
    notes: str | None = None
    systems_provider_id: str | None = None

    @property
    def clave(self) -> str:
        return self.key.clave

    @property
    def consecutive(self) -> str:
        return self.key.consecutive

    @property
    def schema_version(self) -> str:
        return self.document_type.schema_version
