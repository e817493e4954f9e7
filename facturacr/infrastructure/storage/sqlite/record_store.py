"""SQLite implementation of invoice history storage."""

from datetime import datetime
from decimal import Decimal

import aiosqlite

from facturacr.config import get_logger
from facturacr.core.entities.document_type import DocumentType
from facturacr.core.entities.record import (
    EmailDelivery,
    EmailStatus,
    InvoiceStatus,
    StoredInvoiceRecord,
)
from facturacr.core.entities.sequence import Environment
from facturacr.core.exceptions import DatabaseError, RecordConflictError
from facturacr.core.interfaces.record_store import IRecordStore
from facturacr.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


class SQLiteRecordStore(IRecordStore):
    """SQLite implementation of StoredInvoiceRecord storage."""

    async def get_record(self, record_id: str) -> StoredInvoiceRecord | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM invoice_records WHERE id = ?",
                (record_id,),
            )
            row = await cursor.fetchone()
            return self._row_to_record(row) if row else None

    async def put_record(self, record: StoredInvoiceRecord) -> StoredInvoiceRecord:
        """
        Insert a record, or update the Pending record with the same id.

        Only the outcome columns of an existing record change, and only while
        it is Pending and holds the same clave. Anything else raises
        RecordConflictError instead of overwriting.
        """
        record.updated_at = datetime.utcnow()
        try:
            async with get_transaction(immediate=True) as conn:
                cursor = await conn.execute(
                    """
                    INSERT INTO invoice_records (
                        id, company_id, document_type, environment, clave, consecutive,
                        status, issued_at, receiver_name, receiver_email,
                        currency, exchange_rate, subtotal, tax, total,
                        xml_content, signed, reference_id, rejection_code, error_message,
                        email_recipient, email_requested, email_status, email_attempts,
                        email_last_error, email_last_attempt_at,
                        created_at, updated_at
                    ) VALUES (
                        ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?,
                        ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?
                    )
                    ON CONFLICT (id) DO UPDATE SET
                        status = excluded.status,
                        xml_content = excluded.xml_content,
                        signed = excluded.signed,
                        reference_id = excluded.reference_id,
                        rejection_code = excluded.rejection_code,
                        error_message = excluded.error_message,
                        email_recipient = excluded.email_recipient,
                        email_requested = excluded.email_requested,
                        email_status = excluded.email_status,
                        email_attempts = excluded.email_attempts,
                        email_last_error = excluded.email_last_error,
                        email_last_attempt_at = excluded.email_last_attempt_at,
                        updated_at = excluded.updated_at
                    WHERE invoice_records.status = 'pending'
                        AND invoice_records.company_id = excluded.company_id
                        AND invoice_records.clave = excluded.clave
                    """,
                    (
                        record.id,
                        record.company_id,
                        record.document_type.value,
                        record.environment.value,
                        record.clave,
                        record.consecutive,
                        record.status.value,
                        record.issued_at.isoformat(),
                        record.receiver_name,
                        record.receiver_email,
                        record.currency,
                        str(record.exchange_rate),
                        str(record.subtotal),
                        str(record.tax),
                        str(record.total),
                        record.xml_content,
                        int(record.signed),
                        record.reference_id,
                        record.rejection_code,
                        record.error_message,
                        *self._email_values(record.email),
                        record.created_at.isoformat(),
                        record.updated_at.isoformat(),
                    ),
                )
                if cursor.rowcount == 0:
                    raise RecordConflictError(record.id, "stored record is not pending")
        except aiosqlite.IntegrityError as e:
            # UNIQUE (company_id, environment, clave)
            raise RecordConflictError(record.id, str(e)) from e
        except aiosqlite.Error as e:
            raise DatabaseError("put_record", str(e)) from e

        logger.info(
            "invoice_record_saved",
            record_id=record.id,
            status=record.status.value,
            total=str(record.total),
        )
        return record

    async def list_records(
        self,
        company_id: str,
        status: InvoiceStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StoredInvoiceRecord]:
        query = "SELECT * FROM invoice_records WHERE company_id = ?"
        params: list = [company_id]
        if status is not None:
            query += " AND status = ?"
            params.append(status.value)
        query += " ORDER BY issued_at DESC, id DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        async with get_connection() as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return [self._row_to_record(row) for row in rows]

    async def count_records(
        self, company_id: str, status: InvoiceStatus | None = None
    ) -> int:
        query = "SELECT COUNT(*) FROM invoice_records WHERE company_id = ?"
        params: list = [company_id]
        if status is not None:
            query += " AND status = ?"
            params.append(status.value)

        async with get_connection() as conn:
            cursor = await conn.execute(query, params)
            row = await cursor.fetchone()
            return row[0] if row else 0

    async def update_status(
        self,
        record_id: str,
        status: InvoiceStatus,
        reference_id: str | None = None,
        rejection_code: str | None = None,
        error_message: str | None = None,
    ) -> StoredInvoiceRecord | None:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE invoice_records
                SET status = ?, reference_id = COALESCE(?, reference_id),
                    rejection_code = ?, error_message = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    status.value,
                    reference_id,
                    rejection_code,
                    error_message,
                    datetime.utcnow().isoformat(),
                    record_id,
                ),
            )
            if cursor.rowcount == 0:
                return None

        logger.info("invoice_record_status_updated", record_id=record_id, status=status.value)
        return await self.get_record(record_id)

    async def update_email(
        self, record_id: str, email: EmailDelivery
    ) -> StoredInvoiceRecord | None:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE invoice_records
                SET email_recipient = ?, email_requested = ?, email_status = ?,
                    email_attempts = ?,
                    email_last_error = ?, email_last_attempt_at = ?, updated_at = ?
                WHERE id = ?
                """,
                (*self._email_values(email), datetime.utcnow().isoformat(), record_id),
            )
            if cursor.rowcount == 0:
                return None

        return await self.get_record(record_id)

    @staticmethod
    def _email_values(email: EmailDelivery) -> tuple:
        return (
            email.recipient,
            int(email.requested),
            email.status.value,
            email.attempts,
            email.last_error,
            email.last_attempt_at.isoformat() if email.last_attempt_at else None,
        )

    @staticmethod
    def _row_to_record(row: aiosqlite.Row) -> StoredInvoiceRecord:
        last_attempt = row["email_last_attempt_at"]
        return StoredInvoiceRecord(
            id=row["id"],
            company_id=row["company_id"],
            document_type=DocumentType(row["document_type"]),
            environment=Environment(row["environment"]),
            clave=row["clave"],
            consecutive=row["consecutive"],
            status=InvoiceStatus(row["status"]),
            issued_at=datetime.fromisoformat(row["issued_at"]),
            receiver_name=row["receiver_name"],
            receiver_email=row["receiver_email"],
            currency=row["currency"],
            exchange_rate=Decimal(row["exchange_rate"]),
            subtotal=Decimal(row["subtotal"]),
            tax=Decimal(row["tax"]),
            total=Decimal(row["total"]),
            xml_content=row["xml_content"],
            signed=bool(row["signed"]),
            reference_id=row["reference_id"],
            rejection_code=row["rejection_code"],
            error_message=row["error_message"],
            email=EmailDelivery(
                recipient=row["email_recipient"],
                requested=bool(row["email_requested"]),
                status=EmailStatus(row["email_status"]),
                attempts=row["email_attempts"],
                last_error=row["email_last_error"],
                last_attempt_at=datetime.fromisoformat(last_attempt) if last_attempt else None,
            ),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
