"""Tests for the history use cases."""

from decimal import Decimal

import pytest

from facturacr.application.dto.requests import HistoryQuery
from facturacr.application.use_cases import (
    GetHistorySummaryUseCase,
    GetRecordUseCase,
    ListHistoryUseCase,
)
from facturacr.core.entities import DocumentType, EmailDelivery, EmailStatus, InvoiceStatus
from facturacr.core.exceptions import RecordNotFoundError, ValidationError


@pytest.fixture
async def populated_store(record_store, make_record):
    """5 records: 3 completed (one USD), 1 pending, 1 rejected ticket."""
    records = [
        make_record(1),
        make_record(2),
        make_record(3, currency="USD", total=Decimal("10.00000")),
        make_record(4, status=InvoiceStatus.PENDING),
        make_record(
            5,
            id="T-00100001040000000005",
            document_type=DocumentType.TICKET,
            status=InvoiceStatus.REJECTED,
            email=EmailDelivery(status=EmailStatus.FAILED),
        ),
        make_record(6, company_id="cmp_other"),
    ]
    for record in records:
        await record_store.put_record(record)
    return record_store


class TestListHistoryUseCase:
    @pytest.mark.asyncio
    async def test_newest_first(self, populated_store):
        uc = ListHistoryUseCase(record_store=populated_store)

        result = await uc.execute(HistoryQuery(company_id="cmp_001"))

        assert result.total == 5
        assert [r.issued_at for r in result.records] == sorted(
            (r.issued_at for r in result.records), reverse=True
        )

    @pytest.mark.asyncio
    async def test_status_filter(self, populated_store):
        uc = ListHistoryUseCase(record_store=populated_store)

        result = await uc.execute(HistoryQuery(company_id="cmp_001", status="pending"))

        assert result.total == 1
        assert result.records[0].status == InvoiceStatus.PENDING

    @pytest.mark.asyncio
    async def test_pagination(self, populated_store):
        uc = ListHistoryUseCase(record_store=populated_store)

        result = await uc.execute(HistoryQuery(company_id="cmp_001", limit=2, offset=0))
        response = uc.to_response(result)

        assert len(response.items) == 2
        assert response.total == 5
        assert response.has_more is True

        last = uc.to_response(
            await uc.execute(HistoryQuery(company_id="cmp_001", limit=2, offset=4))
        )
        assert len(last.items) == 1
        assert last.has_more is False

    @pytest.mark.asyncio
    async def test_unknown_status(self, record_store):
        uc = ListHistoryUseCase(record_store=record_store)
        with pytest.raises(ValidationError):
            await uc.execute(HistoryQuery(company_id="cmp_001", status="archived"))


class TestGetRecordUseCase:
    @pytest.mark.asyncio
    async def test_detail_includes_xml(self, populated_store):
        uc = GetRecordUseCase(record_store=populated_store)

        response = uc.to_response(await uc.execute("F-00100001010000000001"))

        assert response.xml_content == "<FacturaElectronica/>"
        assert response.status == "completed"

    @pytest.mark.asyncio
    async def test_not_found(self, record_store):
        with pytest.raises(RecordNotFoundError):
            await GetRecordUseCase(record_store=record_store).execute("F-missing")


class TestGetHistorySummaryUseCase:
    @pytest.mark.asyncio
    async def test_counts_and_totals(self, populated_store):
        uc = GetHistorySummaryUseCase(record_store=populated_store)

        summary = await uc.execute("cmp_001")

        assert summary.total_documents == 5
        assert summary.completed == 3
        assert summary.pending == 1
        assert summary.rejected == 1
        assert summary.invoices == 4
        assert summary.tickets == 1
        assert summary.emails_failed == 1
        assert summary.completed_totals == {
            "CRC": Decimal("4520.00000"),
            "USD": Decimal("10.00000"),
        }

    @pytest.mark.asyncio
    async def test_empty_company(self, record_store):
        uc = GetHistorySummaryUseCase(record_store=record_store)

        response = uc.to_response(await uc.execute("cmp_none"))

        assert response.total_documents == 0
        assert response.completed_totals == {}
