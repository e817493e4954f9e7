"""
Submit Document Use Case - the submission state machine.

    Assembling -> Signing -> Submitting -> Recorded
                     |           |
                     +-----------+-> Failed(stage)

The key is minted once per session, after the form is validated and before
signing; every retry of the session reuses it. Signing and transport
failures leave the record Pending for manual resubmission, a rejection
leaves it Rejected. E-mail is sent in the background after acceptance.
"""

from dataclasses import dataclass

from facturacr.application.dto.requests import DocumentRequest
from facturacr.application.dto.responses import SubmissionResponse
from facturacr.application.email_delivery import schedule_record_email
from facturacr.application.mappers import (
    form_from_request,
    line_response,
    lines_from_request,
    summary_response,
)
from facturacr.application.submission_gateway import SubmissionGateway, SubmissionOutcome
from facturacr.application.use_cases.preview_document import resolve_rate
from facturacr.config import get_logger, get_settings
from facturacr.config.settings import Settings
from facturacr.core.entities.company import Company
from facturacr.core.entities.document import DocumentForm, ElectronicDocument
from facturacr.core.entities.record import (
    EmailDelivery,
    EmailStatus,
    InvoiceStatus,
    StoredInvoiceRecord,
    new_record_id,
)
from facturacr.core.entities.session import DocumentSession
from facturacr.core.entities.submission import SubmissionStage
from facturacr.core.exceptions import ValidationError
from facturacr.core.interfaces import (
    ICompanyStore,
    IDocumentRenderer,
    IEmailSender,
    IRecordStore,
    ISigner,
    ITaxAuthority,
)
from facturacr.core.services import (
    CurrencyNormalizer,
    DocumentAssembler,
    DocumentKeyService,
    ExchangeRateService,
    TaxCalculator,
)

logger = get_logger(__name__)


@dataclass
class SubmitDocumentResult:
    """Result of one submission attempt."""

    record: StoredInvoiceRecord
    document: ElectronicDocument
    session_id: str
    stage: SubmissionStage
    signed: bool
    simulated: bool = False
    email_scheduled: bool = False
    error: str | None = None

    @property
    def finished(self) -> bool:
        """True when the session's document reached a final status."""
        return self.record.status != InvoiceStatus.PENDING


class SubmitDocumentUseCase:
    """Drive one document through signing, submission and recording."""

    def __init__(
        self,
        key_service: DocumentKeyService | None = None,
        record_store: IRecordStore | None = None,
        company_store: ICompanyStore | None = None,
        signer: ISigner | None = None,
        tax_authority: ITaxAuthority | None = None,
        email_sender: IEmailSender | None = None,
        exchange_rates: ExchangeRateService | None = None,
        normalizer: CurrencyNormalizer | None = None,
        calculator: TaxCalculator | None = None,
        assembler: DocumentAssembler | None = None,
        renderer: IDocumentRenderer | None = None,
        settings: Settings | None = None,
    ):
        from facturacr.application import services

        self._key_service = key_service
        self._record_store = record_store
        self._company_store = company_store
        self._settings = settings or get_settings()
        self._gateway = SubmissionGateway(
            signer=signer or services.get_signer(),
            tax_authority=tax_authority or services.get_tax_authority(),
            settings=self._settings,
        )
        self._email_sender = email_sender or services.get_email_sender()
        self._exchange_rates = exchange_rates or services.get_exchange_rate_service()
        self._normalizer = normalizer or services.get_currency_normalizer()
        self._calculator = calculator or services.get_tax_calculator()
        self._assembler = assembler or services.get_document_assembler()
        self._renderer = renderer or services.get_document_renderer()

    async def _get_key_service(self) -> DocumentKeyService:
        if self._key_service is None:
            from facturacr.application.services import get_key_service

            self._key_service = await get_key_service()
        return self._key_service

    async def _get_record_store(self) -> IRecordStore:
        if self._record_store is None:
            from facturacr.infrastructure.storage.sqlite import get_record_store

            self._record_store = await get_record_store()
        return self._record_store

    async def _get_company_store(self) -> ICompanyStore:
        if self._company_store is None:
            from facturacr.infrastructure.storage.sqlite import get_company_store

            self._company_store = await get_company_store()
        return self._company_store

    async def execute(
        self, session: DocumentSession, request: DocumentRequest
    ) -> SubmitDocumentResult:
        """
        Submit the session's document.

        Raises:
            ValidationError: request does not belong to the session
            CalculationError, CurrencyError, AssemblyError: bad form data
            KeyGenerationError: numbering failed (fatal, nothing recorded)
        """
        if request.company_id != session.company_id:
            raise ValidationError("company_id", "does not match the session", request.company_id)
        if request.document_type != session.document_type:
            raise ValidationError(
                "document_type", "does not match the session", request.document_type.value
            )

        logger.info(
            "submission_started",
            session_id=session.id,
            company_id=session.company_id,
            document_type=session.document_type.value,
            retry=session.has_key,
        )

        # Assembling
        form = form_from_request(request)
        rate = await resolve_rate(request, self._exchange_rates)
        lines = self._normalizer.normalize(lines_from_request(request), request.currency, rate)
        lines, summary = self._calculator.compute_document(
            lines, form.other_charges, request.currency, rate
        )
        self._assembler.validate(form, lines)

        await self._ensure_company(form)
        identification = form.issuer.identification
        key_service = await self._get_key_service()
        key = await key_service.ensure_key(
            session, identification.type, identification.number, form.situation
        )
        document = self._assembler.assemble(form, lines, summary, key)
        xml = self._renderer.render(document)

        # Signing
        signing = await self._gateway.sign(xml, document.clave)

        # Submitting
        if signing.error is None:
            outcome = await self._gateway.submit(signing.xml, document.clave, document.issuer)
        else:
            outcome = SubmissionOutcome(InvoiceStatus.PENDING, error=signing.error)

        if outcome.result is None:
            stage = SubmissionStage.FAILED
        else:
            stage = SubmissionStage.RECORDED

        record = self._build_record(
            session.record_id or new_record_id(document.document_type),
            document,
            signing.xml,
            signing.signed,
            outcome,
            request.send_email,
        )
        record_store = await self._get_record_store()
        await record_store.put_record(record)
        session.record_id = record.id

        email_scheduled = False
        if (
            record.status == InvoiceStatus.COMPLETED
            and request.send_email
            and self._email_sender is not None
        ):
            schedule_record_email(record, self._email_sender, record_store)
            email_scheduled = True

        logger.info(
            "submission_complete",
            record_id=record.id,
            clave=record.clave,
            status=record.status.value,
            stage=stage.value,
            signed=signing.signed,
            simulated=outcome.simulated,
        )

        return SubmitDocumentResult(
            record=record,
            document=document,
            session_id=session.id,
            stage=stage,
            signed=signing.signed,
            simulated=outcome.simulated,
            email_scheduled=email_scheduled,
            error=outcome.error,
        )

    async def _ensure_company(self, form: DocumentForm) -> None:
        """Register the issuing company on its first document."""
        companies = await self._get_company_store()
        if await companies.get_company(form.company_id) is not None:
            return
        issuer = form.issuer
        await companies.save_company(
            Company(
                id=form.company_id,
                name=issuer.name,
                identification_type=issuer.identification.type.value,
                identification_number=issuer.identification.number,
                email=issuer.email,
            )
        )

    @staticmethod
    def _build_record(
        record_id: str,
        document: ElectronicDocument,
        xml: str,
        signed: bool,
        outcome: SubmissionOutcome,
        send_email: bool,
    ) -> StoredInvoiceRecord:
        receiver = document.receiver
        summary = document.summary
        result = outcome.result
        return StoredInvoiceRecord(
            id=record_id,
            company_id=document.key.scope.company_id,
            document_type=document.document_type,
            environment=document.key.scope.environment,
            clave=document.clave,
            consecutive=document.consecutive,
            status=outcome.status,
            issued_at=document.issued_at,
            receiver_name=receiver.name,
            receiver_email=receiver.email,
            currency=summary.currency,
            exchange_rate=summary.exchange_rate,
            subtotal=summary.net_sales,
            tax=summary.tax,
            total=summary.grand_total,
            xml_content=xml,
            signed=signed,
            reference_id=result.reference_id if result else None,
            rejection_code=result.reason_code if result and not result.accepted else None,
            error_message=outcome.error,
            email=EmailDelivery(
                recipient=receiver.email, requested=send_email, status=EmailStatus.PENDING
            ),
        )

    def to_response(self, result: SubmitDocumentResult) -> SubmissionResponse:
        record = result.record
        return SubmissionResponse(
            record_id=record.id,
            session_id=result.session_id,
            clave=record.clave,
            consecutive=record.consecutive,
            status=record.status.value,
            signed=result.signed,
            simulated=result.simulated,
            reference_id=record.reference_id,
            rejection_code=record.rejection_code,
            error=result.error,
            email_scheduled=result.email_scheduled,
            lines=[line_response(line) for line in result.document.lines],
            summary=summary_response(result.document.summary),
        )
