"""Preview Document Use Case - totals and XML without consuming a number."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from facturacr.application.dto.requests import DocumentRequest
from facturacr.application.dto.responses import PreviewResponse
from facturacr.application.mappers import (
    form_from_request,
    line_response,
    lines_from_request,
    summary_response,
)
from facturacr.config import get_logger, get_settings
from facturacr.core.entities.document import BASE_CURRENCY, ElectronicDocument
from facturacr.core.entities.sequence import DocumentKey, SequenceScope
from facturacr.core.interfaces import IDocumentRenderer
from facturacr.core.services import (
    CurrencyNormalizer,
    DocumentAssembler,
    ExchangeRateService,
    TaxCalculator,
)

logger = get_logger(__name__)

PLACEHOLDER_CLAVE = "0" * 50
PLACEHOLDER_CONSECUTIVE = "0" * 20


async def resolve_rate(
    request: DocumentRequest, exchange_rates: ExchangeRateService
) -> Decimal | None:
    """Rate from the form, or looked up for a foreign currency without one."""
    if request.currency == BASE_CURRENCY:
        return None
    if request.exchange_rate is not None:
        return request.exchange_rate
    return await exchange_rates.get_rate(request.currency)


@dataclass
class PreviewDocumentResult:
    document: ElectronicDocument
    xml: str


class PreviewDocumentUseCase:
    """Build the document with a placeholder key."""

    def __init__(
        self,
        exchange_rates: ExchangeRateService | None = None,
        normalizer: CurrencyNormalizer | None = None,
        calculator: TaxCalculator | None = None,
        assembler: DocumentAssembler | None = None,
        renderer: IDocumentRenderer | None = None,
    ):
        from facturacr.application import services

        self._exchange_rates = exchange_rates or services.get_exchange_rate_service()
        self._normalizer = normalizer or services.get_currency_normalizer()
        self._calculator = calculator or services.get_tax_calculator()
        self._assembler = assembler or services.get_document_assembler()
        self._renderer = renderer or services.get_document_renderer()

    async def execute(self, request: DocumentRequest) -> PreviewDocumentResult:
        form = form_from_request(request)
        rate = await resolve_rate(request, self._exchange_rates)

        lines = self._normalizer.normalize(lines_from_request(request), request.currency, rate)
        lines, summary = self._calculator.compute_document(
            lines, form.other_charges, request.currency, rate
        )

        settings = get_settings()
        now = datetime.now(ZoneInfo(settings.timezone))
        key = DocumentKey(
            clave=PLACEHOLDER_CLAVE,
            consecutive=PLACEHOLDER_CONSECUTIVE,
            sequence=0,
            scope=SequenceScope(company_id=request.company_id, document_type=request.document_type),
            situation=request.situation,
            issued_at=now,
        )
        document = self._assembler.assemble(form, lines, summary, key, now)
        xml = self._renderer.render(document)

        logger.info(
            "document_previewed",
            company_id=request.company_id,
            document_type=request.document_type.value,
            lines=len(document.lines),
            total=str(document.summary.grand_total),
        )
        return PreviewDocumentResult(document=document, xml=xml)

    def to_response(self, result: PreviewDocumentResult) -> PreviewResponse:
        document = result.document
        return PreviewResponse(
            document_type=document.document_type.value,
            schema_version=document.schema_version,
            lines=[line_response(line) for line in document.lines],
            summary=summary_response(document.summary),
            xml=result.xml,
        )
