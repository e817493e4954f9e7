"""Resend Email Use Case."""

from dataclasses import dataclass

from facturacr.application.dto.requests import ResendEmailRequest
from facturacr.application.dto.responses import EmailDeliveryResponse
from facturacr.application.email_delivery import deliver_record_email
from facturacr.core.entities.record import EmailDelivery, InvoiceStatus
from facturacr.core.exceptions import (
    ConfigurationError,
    InvalidStateError,
    RecordNotFoundError,
)
from facturacr.core.interfaces import IEmailSender, IRecordStore


@dataclass
class ResendEmailResult:
    record_id: str
    delivery: EmailDelivery


class ResendEmailUseCase:
    """Re-attempt e-mail delivery of a completed record, awaiting the outcome."""

    def __init__(
        self,
        record_store: IRecordStore | None = None,
        email_sender: IEmailSender | None = None,
    ):
        self._record_store = record_store
        self._email_sender = email_sender

    async def _get_record_store(self) -> IRecordStore:
        if self._record_store is None:
            from facturacr.infrastructure.storage.sqlite import get_record_store

            self._record_store = await get_record_store()
        return self._record_store

    def _get_email_sender(self) -> IEmailSender:
        if self._email_sender is None:
            from facturacr.application.services import get_email_sender

            self._email_sender = get_email_sender()
        if self._email_sender is None:
            raise ConfigurationError("e-mail dispatch is disabled (EMAIL_ENABLED=false)")
        return self._email_sender

    async def execute(self, record_id: str, request: ResendEmailRequest) -> ResendEmailResult:
        """
        Raises:
            RecordNotFoundError: unknown record
            InvalidStateError: record was not accepted
            ConfigurationError: e-mail dispatch disabled
        """
        records = await self._get_record_store()
        record = await records.get_record(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        if record.status != InvoiceStatus.COMPLETED:
            raise InvalidStateError(record_id, record.status.value, "resend e-mail")

        delivery = await deliver_record_email(
            record, self._get_email_sender(), records, recipient=request.recipient
        )
        return ResendEmailResult(record_id=record_id, delivery=delivery)

    def to_response(self, result: ResendEmailResult) -> EmailDeliveryResponse:
        delivery = result.delivery
        return EmailDeliveryResponse(
            recipient=delivery.recipient,
            status=delivery.status.value,
            attempts=delivery.attempts,
            last_error=delivery.last_error,
            last_attempt_at=delivery.last_attempt_at,
        )
