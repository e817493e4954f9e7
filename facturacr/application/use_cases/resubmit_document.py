"""Resubmit Document Use Case - retry a Pending record with its original clave."""

from dataclasses import dataclass

from facturacr.application.dto.responses import RecordResponse
from facturacr.application.email_delivery import schedule_record_email
from facturacr.application.mappers import record_response
from facturacr.application.submission_gateway import SubmissionGateway
from facturacr.config import get_logger, get_settings
from facturacr.config.settings import Settings
from facturacr.core.entities.document import Identification, IdentificationType, Issuer
from facturacr.core.entities.record import InvoiceStatus, StoredInvoiceRecord
from facturacr.core.exceptions import (
    CompanyNotFoundError,
    InvalidStateError,
    RecordNotFoundError,
)
from facturacr.core.interfaces import (
    ICompanyStore,
    IEmailSender,
    IRecordStore,
    ISigner,
    ITaxAuthority,
)

logger = get_logger(__name__)


@dataclass
class ResubmitDocumentResult:
    record: StoredInvoiceRecord
    simulated: bool = False
    email_scheduled: bool = False


class ResubmitDocumentUseCase:
    """
    Send a Pending record's stored XML again.

    The record keeps its clave and consecutive; nothing is minted. An
    unsigned XML is signed first when the signer is reachable now.
    """

    def __init__(
        self,
        record_store: IRecordStore | None = None,
        company_store: ICompanyStore | None = None,
        signer: ISigner | None = None,
        tax_authority: ITaxAuthority | None = None,
        email_sender: IEmailSender | None = None,
        settings: Settings | None = None,
    ):
        from facturacr.application import services

        self._record_store = record_store
        self._company_store = company_store
        self._settings = settings or get_settings()
        self._gateway = SubmissionGateway(
            signer=signer or services.get_signer(),
            tax_authority=tax_authority or services.get_tax_authority(),
            settings=self._settings,
        )
        self._email_sender = email_sender or services.get_email_sender()

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

    async def execute(self, record_id: str) -> ResubmitDocumentResult:
        """
        Raises:
            RecordNotFoundError: unknown record
            InvalidStateError: record is not Pending
            CompanyNotFoundError: issuing company is missing
        """
        records = await self._get_record_store()
        record = await records.get_record(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        if not record.can_resubmit:
            raise InvalidStateError(record_id, record.status.value, "resubmit")

        company = await (await self._get_company_store()).get_company(record.company_id)
        if company is None:
            raise CompanyNotFoundError(record.company_id)
        issuer = Issuer(
            name=company.name,
            identification=Identification(
                type=IdentificationType(company.identification_type),
                number=company.identification_number,
            ),
            email=company.email,
        )

        logger.info("resubmission_started", record_id=record_id, clave=record.clave)

        xml = record.xml_content
        signed = record.signed
        error = None
        if not signed:
            signing = await self._gateway.sign(xml, record.clave)
            xml, signed, error = signing.xml, signing.signed, signing.error

        simulated = False
        if error is None:
            outcome = await self._gateway.submit(xml, record.clave, issuer)
            simulated = outcome.simulated
            result = outcome.result
            record = record.model_copy(
                update={
                    "status": outcome.status,
                    "reference_id": result.reference_id if result else record.reference_id,
                    "rejection_code": (
                        result.reason_code if result and not result.accepted else None
                    ),
                    "error_message": outcome.error,
                }
            )
        else:
            record = record.model_copy(update={"error_message": error})

        record = record.model_copy(update={"xml_content": xml, "signed": signed})
        await records.put_record(record)

        email_scheduled = False
        if (
            record.status == InvoiceStatus.COMPLETED
            and record.email.requested
            and self._email_sender is not None
        ):
            schedule_record_email(record, self._email_sender, records)
            email_scheduled = True

        logger.info(
            "resubmission_complete",
            record_id=record_id,
            status=record.status.value,
            simulated=simulated,
        )
        return ResubmitDocumentResult(
            record=record, simulated=simulated, email_scheduled=email_scheduled
        )

    def to_response(self, result: ResubmitDocumentResult) -> RecordResponse:
        return record_response(result.record)
