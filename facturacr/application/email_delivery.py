"""
Customer e-mail delivery of stored documents.

Delivery is best-effort: the outcome is written to the record's e-mail
sub-record and never changes the document status.
"""

import asyncio
from datetime import datetime

from facturacr.config import get_logger
from facturacr.core.entities.record import EmailDelivery, EmailStatus, StoredInvoiceRecord
from facturacr.core.entities.submission import Attachment
from facturacr.core.interfaces import IEmailSender, IRecordStore

logger = get_logger(__name__)

# Strong references to in-flight deliveries
_pending_deliveries: set[asyncio.Task] = set()


def build_attachments(record: StoredInvoiceRecord) -> list[Attachment]:
    return [
        Attachment(
            filename=f"{record.clave}.xml",
            content=record.xml_content.encode("utf-8"),
            content_type="application/xml",
        )
    ]


async def deliver_record_email(
    record: StoredInvoiceRecord,
    sender: IEmailSender,
    record_store: IRecordStore,
    recipient: str | None = None,
) -> EmailDelivery:
    """Send a record's XML to its receiver and persist the attempt."""
    target = recipient or record.email.recipient or record.receiver_email
    delivery = record.email.model_copy(
        update={
            "recipient": target,
            "attempts": record.email.attempts + 1,
            "last_attempt_at": datetime.utcnow(),
        }
    )

    if not target:
        delivery.status = EmailStatus.FAILED
        delivery.last_error = "no recipient address"
    else:
        subject = f"{record.document_type.label} {record.consecutive}"
        body = (
            f"Adjunto el comprobante electrónico {record.consecutive}, "
            f"clave {record.clave}."
        )
        try:
            result = await sender.send(target, subject, build_attachments(record), body)
        except Exception as e:
            logger.exception("email_delivery_crashed", record_id=record.id)
            delivery.status = EmailStatus.FAILED
            delivery.last_error = str(e)
        else:
            delivery.status = EmailStatus.SENT if result.delivered else EmailStatus.FAILED
            delivery.last_error = None if result.delivered else result.error

    await record_store.update_email(record.id, delivery)
    logger.info(
        "email_delivery_recorded",
        record_id=record.id,
        status=delivery.status.value,
        attempts=delivery.attempts,
    )
    return delivery


def schedule_record_email(
    record: StoredInvoiceRecord,
    sender: IEmailSender,
    record_store: IRecordStore,
) -> asyncio.Task:
    """Run deliver_record_email in the background."""
    task = asyncio.create_task(deliver_record_email(record, sender, record_store))
    _pending_deliveries.add(task)
    task.add_done_callback(_pending_deliveries.discard)
    return task


async def wait_for_pending_deliveries() -> None:
    """Await deliveries still in flight, used on shutdown."""
    if _pending_deliveries:
        await asyncio.gather(*list(_pending_deliveries), return_exceptions=True)
