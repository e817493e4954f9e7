"""Tests for SQLiteRecordStore."""

from datetime import datetime
from decimal import Decimal

import pytest

from facturacr.core.entities import (
    DocumentType,
    EmailDelivery,
    EmailStatus,
    Environment,
    InvoiceStatus,
)
from facturacr.core.exceptions import RecordConflictError
from facturacr.infrastructure.storage.sqlite.record_store import SQLiteRecordStore


class TestPutAndGet:
    @pytest.mark.asyncio
    async def test_round_trip_keeps_all_fields(self, sqlite_pool, make_record):
        store = SQLiteRecordStore()
        record = make_record(
            currency="USD",
            exchange_rate=Decimal("506.50000"),
            reference_id="ref-001",
            email=EmailDelivery(
                recipient="maria@example.com",
                status=EmailStatus.FAILED,
                attempts=2,
                last_error="HTTP 500: down",
                last_attempt_at=datetime(2024, 3, 5, 10, 5),
            ),
        )

        await store.put_record(record)
        loaded = await store.get_record(record.id)

        assert loaded.clave == record.clave
        assert loaded.consecutive == record.consecutive
        assert loaded.document_type == DocumentType.INVOICE
        assert loaded.environment == Environment.SANDBOX
        assert loaded.status == InvoiceStatus.COMPLETED
        assert loaded.issued_at == record.issued_at
        assert loaded.xml_content == "<FacturaElectronica/>"
        assert loaded.signed is True
        assert loaded.reference_id == "ref-001"
        assert loaded.email.status == EmailStatus.FAILED
        assert loaded.email.attempts == 2
        assert loaded.email.last_attempt_at == datetime(2024, 3, 5, 10, 5)

    @pytest.mark.asyncio
    async def test_money_keeps_exact_decimals(self, sqlite_pool, make_record):
        store = SQLiteRecordStore()
        record = make_record(
            subtotal=Decimal("1769.91150"),
            tax=Decimal("230.08850"),
            total=Decimal("2000.00000"),
        )

        await store.put_record(record)
        loaded = await store.get_record(record.id)

        assert loaded.subtotal == Decimal("1769.91150")
        assert str(loaded.tax) == "230.08850"
        assert loaded.total == Decimal("2000.00000")

    @pytest.mark.asyncio
    async def test_pending_record_is_updated_in_place(self, sqlite_pool, make_record):
        store = SQLiteRecordStore()
        pending = make_record(status=InvoiceStatus.PENDING, error_message="timeout")
        await store.put_record(pending)

        await store.put_record(
            pending.model_copy(
                update={"status": InvoiceStatus.COMPLETED, "error_message": None}
            )
        )

        loaded = await store.get_record(pending.id)
        assert loaded.status == InvoiceStatus.COMPLETED
        assert loaded.error_message is None
        assert loaded.created_at == pending.created_at
        assert await store.count_records("cmp_001") == 1

    @pytest.mark.asyncio
    async def test_settled_record_is_not_overwritten(self, sqlite_pool, make_record):
        store = SQLiteRecordStore()
        await store.put_record(make_record(reference_id="ref-001"))

        with pytest.raises(RecordConflictError):
            await store.put_record(
                make_record(status=InvoiceStatus.PENDING, reference_id=None)
            )

        loaded = await store.get_record("F-00100001010000000001")
        assert loaded.status == InvoiceStatus.COMPLETED
        assert loaded.reference_id == "ref-001"

    @pytest.mark.asyncio
    async def test_same_consecutive_in_two_companies(self, sqlite_pool, make_record):
        store = SQLiteRecordStore()
        first = make_record(id="F-cmp001")
        second = make_record(id="F-cmp002", company_id="cmp_002")

        await store.put_record(first)
        await store.put_record(second)

        assert (await store.get_record("F-cmp001")).company_id == "cmp_001"
        assert (await store.get_record("F-cmp002")).company_id == "cmp_002"
        assert second.clave == first.clave

    @pytest.mark.asyncio
    async def test_same_clave_after_environment_switch(self, sqlite_pool, make_record):
        store = SQLiteRecordStore()
        await store.put_record(make_record(id="F-sandbox"))

        await store.put_record(make_record(id="F-prod", environment=Environment.PRODUCTION))

        records = await store.list_records("cmp_001")
        assert {r.environment for r in records} == {Environment.SANDBOX, Environment.PRODUCTION}

    @pytest.mark.asyncio
    async def test_duplicate_clave_in_scope_conflicts(self, sqlite_pool, make_record):
        store = SQLiteRecordStore()
        await store.put_record(make_record(id="F-first"))

        with pytest.raises(RecordConflictError):
            await store.put_record(make_record(id="F-second"))

        assert await store.get_record("F-second") is None
        assert await store.count_records("cmp_001") == 1

    @pytest.mark.asyncio
    async def test_email_opt_out_is_kept(self, sqlite_pool, make_record):
        store = SQLiteRecordStore()
        record = make_record(email=EmailDelivery(recipient="maria@example.com", requested=False))

        await store.put_record(record)

        assert (await store.get_record(record.id)).email.requested is False

    @pytest.mark.asyncio
    async def test_unknown_id(self, sqlite_pool):
        assert await SQLiteRecordStore().get_record("F-missing") is None


class TestListing:
    @pytest.fixture
    async def store(self, sqlite_pool, make_record) -> SQLiteRecordStore:
        store = SQLiteRecordStore()
        for sequence in (1, 2, 3):
            await store.put_record(make_record(sequence))
        await store.put_record(make_record(4, status=InvoiceStatus.PENDING))
        await store.put_record(make_record(5, company_id="cmp_other"))
        return store

    @pytest.mark.asyncio
    async def test_newest_first(self, store):
        records = await store.list_records("cmp_001")

        assert [r.consecutive[-1] for r in records] == ["4", "3", "2", "1"]

    @pytest.mark.asyncio
    async def test_status_filter_and_count(self, store):
        pending = await store.list_records("cmp_001", status=InvoiceStatus.PENDING)

        assert len(pending) == 1
        assert await store.count_records("cmp_001", InvoiceStatus.PENDING) == 1
        assert await store.count_records("cmp_001", InvoiceStatus.COMPLETED) == 3
        assert await store.count_records("cmp_001") == 4

    @pytest.mark.asyncio
    async def test_limit_and_offset(self, store):
        page = await store.list_records("cmp_001", limit=2, offset=1)

        assert [r.consecutive[-1] for r in page] == ["3", "2"]

    @pytest.mark.asyncio
    async def test_company_isolation(self, store):
        records = await store.list_records("cmp_other")

        assert len(records) == 1
        assert records[0].company_id == "cmp_other"


class TestUpdates:
    @pytest.mark.asyncio
    async def test_update_status_keeps_reference_when_omitted(
        self, sqlite_pool, make_record
    ):
        store = SQLiteRecordStore()
        await store.put_record(
            make_record(status=InvoiceStatus.PENDING, reference_id="ref-001")
        )

        updated = await store.update_status(
            "F-00100001010000000001",
            InvoiceStatus.REJECTED,
            rejection_code="400",
            error_message="estructura invalida",
        )

        assert updated.status == InvoiceStatus.REJECTED
        assert updated.reference_id == "ref-001"
        assert updated.rejection_code == "400"
        assert updated.error_message == "estructura invalida"

    @pytest.mark.asyncio
    async def test_update_status_clears_error(self, sqlite_pool, make_record):
        store = SQLiteRecordStore()
        await store.put_record(
            make_record(status=InvoiceStatus.PENDING, error_message="timeout")
        )

        updated = await store.update_status(
            "F-00100001010000000001", InvoiceStatus.COMPLETED, reference_id="ref-002"
        )

        assert updated.reference_id == "ref-002"
        assert updated.error_message is None

    @pytest.mark.asyncio
    async def test_update_email(self, sqlite_pool, make_record):
        store = SQLiteRecordStore()
        await store.put_record(make_record())

        updated = await store.update_email(
            "F-00100001010000000001",
            EmailDelivery(recipient="conta@example.com", status=EmailStatus.SENT, attempts=1),
        )

        assert updated.email.recipient == "conta@example.com"
        assert updated.email.status == EmailStatus.SENT
        assert updated.email.last_attempt_at is None

    @pytest.mark.asyncio
    async def test_updates_on_unknown_id(self, sqlite_pool):
        store = SQLiteRecordStore()

        assert await store.update_status("F-missing", InvoiceStatus.COMPLETED) is None
        assert await store.update_email("F-missing", EmailDelivery()) is None
