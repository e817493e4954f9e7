"""
Tax calculator service.

Pure computation of line and document totals.
NO infrastructure imports - depends only on core entities and exceptions.
"""

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from facturacr.config import get_logger
from facturacr.core.entities.document import BASE_CURRENCY, DocumentSummary
from facturacr.core.entities.line_item import LineItem, OtherCharge
from facturacr.core.exceptions import InvalidLineItemError

logger = get_logger(__name__)

AMOUNT_QUANTUM = Decimal("0.00001")
RATE_QUANTUM = Decimal("0.00001")
HUNDRED = Decimal("100")
ZERO = Decimal("0")

# IVA rate percentage -> CodigoTarifa
TAX_RATE_CODES: dict[Decimal, str] = {
    Decimal("1"): "01",
    Decimal("2"): "02",
    Decimal("4"): "03",
    Decimal("8"): "04",
    Decimal("13"): "08",
}
DEFAULT_TAX_RATE_CODE = "08"


def quantize_amount(value: Decimal) -> Decimal:
    """Round a monetary amount to the schema's five decimals."""
    return Decimal(value).quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_rate(value: Decimal) -> Decimal:
    return Decimal(value).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)


def tax_rate_code(rate: Decimal) -> str:
    """Map a tax percentage to its rate code, defaulting to the 13% code."""
    code = TAX_RATE_CODES.get(Decimal(rate))
    if code is None:
        logger.warning("unknown_tax_rate", rate=str(rate), fallback_code=DEFAULT_TAX_RATE_CODE)
        return DEFAULT_TAX_RATE_CODE
    return code


class TaxCalculator:
    """
    Computes per-line and document-level totals.

    For every computed line:
        subtotal   = quantity * unit_price - discount
        tax_amount = subtotal * tax_rate / 100, reduced by any exemption
        line_total = subtotal + tax_amount
    """

    def compute_line(self, item: LineItem, line_number: int | None = None) -> LineItem:
        """
        Compute the amounts of one line.

        Args:
            item: Line with quantity, unit price, discount and tax inputs
            line_number: Position used in error messages and the XML

        Returns:
            Copy of the line with computed fields filled in

        Raises:
            InvalidLineItemError: quantity <= 0, negative price, rate or
                discount, or discount above the line gross
        """
        number = line_number if line_number is not None else item.line_number

        if item.quantity <= 0:
            raise InvalidLineItemError("quantity must be greater than 0", number, item.quantity)
        if item.unit_price < 0:
            raise InvalidLineItemError("unit price cannot be negative", number, item.unit_price)
        if item.discount < 0:
            raise InvalidLineItemError("discount cannot be negative", number, item.discount)
        if item.tax_rate < 0:
            raise InvalidLineItemError("tax rate cannot be negative", number, item.tax_rate)

        gross = quantize_amount(item.quantity * item.unit_price)
        discount = quantize_amount(item.discount)
        if discount > gross:
            raise InvalidLineItemError(
                f"discount {discount} exceeds line gross {gross}", number, item.discount
            )

        subtotal = gross - discount
        gross_tax = quantize_amount(subtotal * item.tax_rate / HUNDRED)

        exempted = ZERO
        if item.exemption is not None:
            if item.exemption.is_full:
                exempted = gross_tax
            else:
                exempted = quantize_amount(gross_tax * item.exemption.percentage / HUNDRED)
        tax = gross_tax - exempted

        return item.model_copy(
            update={
                "line_number": number,
                "tax_rate_code": tax_rate_code(item.tax_rate),
                "gross_amount": gross,
                "discount": discount,
                "subtotal": subtotal,
                "tax_amount": tax,
                "exempted_amount": exempted,
                "line_total": subtotal + tax,
            }
        )

    def compute_lines(self, items: Sequence[LineItem]) -> list[LineItem]:
        """Compute every line, numbering them from 1."""
        return [self.compute_line(item, index) for index, item in enumerate(items, start=1)]

    def compute_summary(
        self,
        lines: Iterable[LineItem],
        other_charges: Iterable[OtherCharge] = (),
        currency: str = BASE_CURRENCY,
        exchange_rate: Decimal | None = None,
    ) -> DocumentSummary:
        """
        Aggregate computed lines and other charges into a DocumentSummary.

        grand_total = net_sales + tax + other_charges
        """
        totals = {
            "taxed_services": ZERO,
            "exempt_services": ZERO,
            "exonerated_services": ZERO,
            "taxed_goods": ZERO,
            "exempt_goods": ZERO,
            "exonerated_goods": ZERO,
        }
        gross_sales = ZERO
        discounts = ZERO
        tax = ZERO

        for line in lines:
            kind = "services" if line.is_service else "goods"
            gross = line.gross_amount

            if line.tax_rate == 0:
                totals[f"exempt_{kind}"] += gross
            elif line.exemption is not None:
                exonerated = quantize_amount(gross * line.exemption.percentage / HUNDRED)
                totals[f"exonerated_{kind}"] += exonerated
                totals[f"taxed_{kind}"] += gross - exonerated
            else:
                totals[f"taxed_{kind}"] += gross

            gross_sales += gross
            discounts += line.discount
            tax += line.tax_amount

        other = sum((quantize_amount(c.amount) for c in other_charges), ZERO)
        net_sales = gross_sales - discounts

        if currency == BASE_CURRENCY or exchange_rate is None:
            rate = Decimal("1.00000")
        else:
            rate = quantize_rate(exchange_rate)

        return DocumentSummary(
            currency=currency,
            exchange_rate=rate,
            total_taxed_services=totals["taxed_services"],
            total_exempt_services=totals["exempt_services"],
            total_exonerated_services=totals["exonerated_services"],
            total_taxed_goods=totals["taxed_goods"],
            total_exempt_goods=totals["exempt_goods"],
            total_exonerated_goods=totals["exonerated_goods"],
            total_taxed=totals["taxed_services"] + totals["taxed_goods"],
            total_exempt=totals["exempt_services"] + totals["exempt_goods"],
            total_exonerated=totals["exonerated_services"] + totals["exonerated_goods"],
            gross_sales=gross_sales,
            discounts=discounts,
            net_sales=net_sales,
            tax=tax,
            other_charges=other,
            grand_total=net_sales + tax + other,
        )

    def compute_document(
        self,
        items: Sequence[LineItem],
        other_charges: Sequence[OtherCharge] = (),
        currency: str = BASE_CURRENCY,
        exchange_rate: Decimal | None = None,
    ) -> tuple[list[LineItem], DocumentSummary]:
        """Compute all lines and the summary in one call."""
        lines = self.compute_lines(items)
        summary = self.compute_summary(lines, other_charges, currency, exchange_rate)
        return lines, summary
