"""Invoice history: listing, detail and dashboard summary."""

from dataclasses import dataclass
from decimal import Decimal

from facturacr.application.dto.requests import HistoryQuery
from facturacr.application.dto.responses import (
    HistorySummaryResponse,
    RecordDetailResponse,
    RecordListResponse,
)
from facturacr.application.mappers import record_response
from facturacr.config import get_logger
from facturacr.core.entities.document_type import DocumentType
from facturacr.core.entities.record import (
    EmailStatus,
    HistorySummary,
    InvoiceStatus,
    StoredInvoiceRecord,
)
from facturacr.core.exceptions import RecordNotFoundError, ValidationError
from facturacr.core.interfaces import IRecordStore

logger = get_logger(__name__)

SUMMARY_PAGE_SIZE = 500


class _HistoryBase:
    def __init__(self, record_store: IRecordStore | None = None):
        self._record_store = record_store

    async def _get_record_store(self) -> IRecordStore:
        if self._record_store is None:
            from facturacr.infrastructure.storage.sqlite import get_record_store

            self._record_store = await get_record_store()
        return self._record_store


@dataclass
class ListHistoryResult:
    records: list[StoredInvoiceRecord]
    total: int
    limit: int
    offset: int


class ListHistoryUseCase(_HistoryBase):
    """Page through a company's records, newest first."""

    async def execute(self, query: HistoryQuery) -> ListHistoryResult:
        status = None
        if query.status:
            try:
                status = InvoiceStatus(query.status)
            except ValueError as e:
                raise ValidationError("status", "unknown status", query.status) from e

        store = await self._get_record_store()
        records = await store.list_records(
            query.company_id, status=status, limit=query.limit, offset=query.offset
        )
        total = await store.count_records(query.company_id, status=status)
        return ListHistoryResult(
            records=records, total=total, limit=query.limit, offset=query.offset
        )

    def to_response(self, result: ListHistoryResult) -> RecordListResponse:
        return RecordListResponse(
            items=[record_response(record) for record in result.records],
            total=result.total,
            limit=result.limit,
            offset=result.offset,
            has_more=result.offset + len(result.records) < result.total,
        )


class GetRecordUseCase(_HistoryBase):
    """Fetch one record with its XML."""

    async def execute(self, record_id: str) -> StoredInvoiceRecord:
        record = await (await self._get_record_store()).get_record(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        return record

    def to_response(self, record: StoredInvoiceRecord) -> RecordDetailResponse:
        return record_response(record, include_xml=True)


class GetHistorySummaryUseCase(_HistoryBase):
    """Dashboard counts per status and type, and completed totals per currency."""

    async def execute(self, company_id: str) -> HistorySummary:
        store = await self._get_record_store()
        summary = HistorySummary(company_id=company_id)
        totals: dict[str, Decimal] = {}

        offset = 0
        while True:
            page = await store.list_records(company_id, limit=SUMMARY_PAGE_SIZE, offset=offset)
            for record in page:
                summary.total_documents += 1
                if record.status == InvoiceStatus.COMPLETED:
                    summary.completed += 1
                    totals[record.currency] = totals.get(record.currency, Decimal("0")) + record.total
                elif record.status == InvoiceStatus.PENDING:
                    summary.pending += 1
                else:
                    summary.rejected += 1

                if record.document_type == DocumentType.INVOICE:
                    summary.invoices += 1
                else:
                    summary.tickets += 1
                if record.email.status == EmailStatus.FAILED:
                    summary.emails_failed += 1

            if len(page) < SUMMARY_PAGE_SIZE:
                break
            offset += SUMMARY_PAGE_SIZE

        summary.completed_totals = totals
        logger.debug("history_summary_built", company_id=company_id, documents=summary.total_documents)
        return summary

    def to_response(self, summary: HistorySummary) -> HistorySummaryResponse:
        return HistorySummaryResponse(**summary.model_dump())
