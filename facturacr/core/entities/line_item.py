"""
Line item and other-charge entities.

Amounts are Decimal with five decimal places, the precision accepted by the
national XML schema. The computed fields are filled in by the tax calculator.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

# Units of measure that denote services rather than merchandise
SERVICE_UNITS = frozenset({"Sp", "Spe", "St", "h", "d", "Al", "Alc", "Cm", "I", "Os"})

CABYS_CODE_LENGTH = 13
DEFAULT_UNIT = "Unid"
DEFAULT_DISCOUNT_REASON = "Descuento comercial"


class TaxCode(str, Enum):
    """Tax type codes."""

    IVA = "01"
    SELECTIVE_CONSUMPTION = "02"
    FUEL = "03"
    OTHER = "99"


class OtherChargeType(str, Enum):
    """Other-charge type codes."""

    PARAFISCAL = "01"
    RED_CROSS_STAMP = "02"
    FIREFIGHTERS_STAMP = "03"
    THIRD_PARTY_COLLECTION = "04"
    EXPORT_COSTS = "05"
    SERVICE_TAX = "06"
    PROFESSIONAL_STAMP = "07"
    GUARANTEE_DEPOSIT = "08"
    FINES = "09"
    LATE_INTEREST = "10"
    OTHER = "99"


OTHER_CHARGE_DESCRIPTIONS: dict[OtherChargeType, str] = {
    OtherChargeType.PARAFISCAL: "Contribución parafiscal",
    OtherChargeType.RED_CROSS_STAMP: "Timbre de la Cruz Roja",
    OtherChargeType.FIREFIGHTERS_STAMP: "Timbre de Benemérito Cuerpo de Bomberos de Costa Rica",
    OtherChargeType.THIRD_PARTY_COLLECTION: "Cobro de un tercero",
    OtherChargeType.EXPORT_COSTS: "Costos de Exportación",
    OtherChargeType.SERVICE_TAX: "Impuesto de servicio 10%",
    OtherChargeType.PROFESSIONAL_STAMP: "Timbre de Colegios Profesionales",
    OtherChargeType.GUARANTEE_DEPOSIT: "Depósitos de Garantía",
    OtherChargeType.FINES: "Multas o penalizaciones",
    OtherChargeType.LATE_INTEREST: "Intereses Moratorios",
    OtherChargeType.OTHER: "Otros Cargos",
}


class Exemption(BaseModel):
    """Tax exemption (exoneración) granted on a line."""

    document_type: str = "04"
    document_number: str
    institution: str
    issued_at: datetime
    percentage: Decimal = Field(default=Decimal("100"), ge=0, le=100)

    @property
    def is_full(self) -> bool:
        return self.percentage >= 100


class PharmaInfo(BaseModel):
    """Sanitary registration data for medicine lines."""

    registration_number: str
    pharmaceutical_form: str


class LineItem(BaseModel):
    """A single priced line of an electronic document."""

    line_number: int | None = None

    # Identification
    cabys_code: str
    commercial_code: str | None = None
    description: str
    unit_of_measure: str = DEFAULT_UNIT

    # Pricing inputs
    quantity: Decimal
    unit_price: Decimal  # in document currency
    base_unit_price: Decimal | None = None  # in CRC, never overwritten once set
    discount: Decimal = Decimal("0")
    discount_reason: str | None = None

    # Tax inputs
    tax_code: TaxCode = TaxCode.IVA
    tax_rate: Decimal = Decimal("13")
    exemption: Exemption | None = None

    # Optional attributes
    pharma: PharmaInfo | None = None
    serial_numbers: list[str] = Field(default_factory=list)

    # Computed
    tax_rate_code: str | None = None
    gross_amount: Decimal = Decimal("0")
    subtotal: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    exempted_amount: Decimal = Decimal("0")
    line_total: Decimal = Decimal("0")

    @field_validator("quantity", "unit_price", "discount", "tax_rate", mode="before")
    @classmethod
    def ensure_decimal(cls, v):
        if v is None:
            return Decimal("0")
        if isinstance(v, float):
            return Decimal(str(v))
        return v

    @model_validator(mode="after")
    def fill_discount_reason(self) -> "LineItem":
        if self.discount > 0 and not self.discount_reason:
            self.discount_reason = DEFAULT_DISCOUNT_REASON
        return self

    @property
    def is_service(self) -> bool:
        return self.unit_of_measure in SERVICE_UNITS

    @property
    def gross_tax(self) -> Decimal:
        """Tax before the exemption is applied."""
        return self.tax_amount + self.exempted_amount


class OtherCharge(BaseModel):
    """A document-level charge outside the line items (stamps, service tax...)."""

    type_code: OtherChargeType = OtherChargeType.OTHER
    description: str | None = None
    amount: Decimal = Field(ge=0)
    percentage: Decimal | None = None

    # Only for third-party collections (type 04)
    third_party_id_type: str | None = None
    third_party_id: str | None = None
    third_party_name: str | None = None

    @model_validator(mode="after")
    def fill_description(self) -> "OtherCharge":
        if not self.description:
            self.description = OTHER_CHARGE_DESCRIPTIONS[self.type_code]
        return self
