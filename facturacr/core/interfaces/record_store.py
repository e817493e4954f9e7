"""Abstract interface for invoice history storage."""

from abc import ABC, abstractmethod

from facturacr.core.entities.record import EmailDelivery, InvoiceStatus, StoredInvoiceRecord


class IRecordStore(ABC):
    """Interface for StoredInvoiceRecord persistence."""

    @abstractmethod
    async def get_record(self, record_id: str) -> StoredInvoiceRecord | None:
        """Get a record by ID."""
        pass

    @abstractmethod
    async def put_record(self, record: StoredInvoiceRecord) -> StoredInvoiceRecord:
        """Insert or replace a record."""
        pass

    @abstractmethod
    async def list_records(
        self,
        company_id: str,
        status: InvoiceStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StoredInvoiceRecord]:
        """List a company's records, newest first."""
        pass

    @abstractmethod
    async def update_status(
        self,
        record_id: str,
        status: InvoiceStatus,
        reference_id: str | None = None,
        rejection_code: str | None = None,
        error_message: str | None = None,
    ) -> StoredInvoiceRecord | None:
        """Update the submission outcome of a record."""
        pass

    @abstractmethod
    async def update_email(
        self, record_id: str, email: EmailDelivery
    ) -> StoredInvoiceRecord | None:
        """Replace the e-mail delivery sub-record."""
        pass

    @abstractmethod
    async def count_records(
        self, company_id: str, status: InvoiceStatus | None = None
    ) -> int:
        """Count a company's records."""
        pass
