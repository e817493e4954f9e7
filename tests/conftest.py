"""Pytest configuration and fixtures."""

import asyncio
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest

from facturacr.application.dto.requests import DocumentRequest, LineItemRequest
from facturacr.config.settings import HaciendaSettings, Settings, StorageSettings
from facturacr.core.entities import (
    Company,
    EmailDelivery,
    Environment,
    Identification,
    IdentificationType,
    InvoiceStatus,
    Issuer,
    Location,
    Party,
    SequenceScope,
    StoredInvoiceRecord,
)
from facturacr.core.exceptions import (
    DatabaseError,
    DuplicateConsecutiveError,
    RecordConflictError,
)
from facturacr.core.interfaces import ICompanyStore, IRecordStore, ISequenceStore
from facturacr.core.services import DocumentKeyService, SequenceGenerator


# =============================================================================
# In-memory ports
# =============================================================================


def _base_key(scope: SequenceScope) -> tuple[str, str, str, str]:
    return (scope.company_id, scope.document_type.value, scope.branch, scope.terminal)


class InMemorySequenceStore(ISequenceStore):
    """Counter store that yields to the loop on every call, like a real one."""

    def __init__(self) -> None:
        self.counters: dict[SequenceScope, int] = {}
        self.active: dict[tuple[str, str, str, str], Environment] = {}
        self.fail_next_write = False
        self.writes = 0

    async def get_counter(self, scope: SequenceScope) -> int:
        await asyncio.sleep(0)
        return self.counters.get(scope, 0)

    async def set_counter(self, scope: SequenceScope, value: int) -> None:
        await asyncio.sleep(0)
        if self.fail_next_write:
            self.fail_next_write = False
            raise DatabaseError("set_counter", "disk I/O error")
        if value <= self.counters.get(scope, 0):
            raise DuplicateConsecutiveError(scope.label, value)
        self.counters[scope] = value
        self.writes += 1

    async def reset_counter(self, scope: SequenceScope) -> None:
        self.counters[scope] = 0

    async def get_active_environment(self, scope: SequenceScope) -> Environment | None:
        return self.active.get(_base_key(scope))

    async def set_active_environment(self, scope: SequenceScope) -> None:
        self.active[_base_key(scope)] = scope.environment


class InMemoryCompanyStore(ICompanyStore):
    def __init__(self) -> None:
        self.companies: dict[str, Company] = {}
        self.codes: dict[str, str] = {}

    async def get_company(self, company_id: str) -> Company | None:
        company = self.companies.get(company_id)
        if company is None:
            return None
        return company.model_copy(update={"security_code": self.codes.get(company_id)})

    async def save_company(self, company: Company) -> Company:
        self.companies[company.id] = company
        if company.security_code and company.id not in self.codes:
            self.codes[company.id] = company.security_code
        return company

    async def get_security_code(self, company_id: str) -> str | None:
        return self.codes.get(company_id)

    async def set_security_code(self, company_id: str, code: str) -> None:
        self.codes.setdefault(company_id, code)


class InMemoryRecordStore(IRecordStore):
    def __init__(self) -> None:
        self.records: dict[str, StoredInvoiceRecord] = {}

    async def get_record(self, record_id: str) -> StoredInvoiceRecord | None:
        record = self.records.get(record_id)
        return record.model_copy(deep=True) if record else None

    async def put_record(self, record: StoredInvoiceRecord) -> StoredInvoiceRecord:
        existing = self.records.get(record.id)
        if existing is not None:
            if (
                existing.status != InvoiceStatus.PENDING
                or existing.company_id != record.company_id
                or existing.clave != record.clave
            ):
                raise RecordConflictError(record.id, "stored record is not pending")
            record = record.model_copy(update={"created_at": existing.created_at})
        elif any(
            (r.company_id, r.environment, r.clave)
            == (record.company_id, record.environment, record.clave)
            for r in self.records.values()
        ):
            raise RecordConflictError(record.id, "clave already stored")
        self.records[record.id] = record.model_copy(deep=True)
        return record

    async def list_records(
        self,
        company_id: str,
        status: InvoiceStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StoredInvoiceRecord]:
        matches = [
            r
            for r in self.records.values()
            if r.company_id == company_id and (status is None or r.status == status)
        ]
        matches.sort(key=lambda r: (r.issued_at, r.id), reverse=True)
        return [r.model_copy(deep=True) for r in matches[offset : offset + limit]]

    async def count_records(self, company_id: str, status: InvoiceStatus | None = None) -> int:
        return len(
            [
                r
                for r in self.records.values()
                if r.company_id == company_id and (status is None or r.status == status)
            ]
        )

    async def update_status(
        self,
        record_id: str,
        status: InvoiceStatus,
        reference_id: str | None = None,
        rejection_code: str | None = None,
        error_message: str | None = None,
    ) -> StoredInvoiceRecord | None:
        record = self.records.get(record_id)
        if record is None:
            return None
        self.records[record_id] = record.model_copy(
            update={
                "status": status,
                "reference_id": reference_id or record.reference_id,
                "rejection_code": rejection_code,
                "error_message": error_message,
            }
        )
        return await self.get_record(record_id)

    async def update_email(
        self, record_id: str, email: EmailDelivery
    ) -> StoredInvoiceRecord | None:
        record = self.records.get(record_id)
        if record is None:
            return None
        self.records[record_id] = record.model_copy(update={"email": email})
        return await self.get_record(record_id)


@pytest.fixture
def sequence_store() -> InMemorySequenceStore:
    return InMemorySequenceStore()


@pytest.fixture
def company_store() -> InMemoryCompanyStore:
    return InMemoryCompanyStore()


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def sequence_generator(sequence_store) -> SequenceGenerator:
    return SequenceGenerator(store=sequence_store)


@pytest.fixture
def key_service(sequence_generator, company_store) -> DocumentKeyService:
    return DocumentKeyService(sequence_generator=sequence_generator, company_store=company_store)


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Sandbox settings that talk to the (mocked) tax authority."""
    return Settings(
        hacienda=HaciendaSettings(environment="sandbox", simulate=False, simulate_delay=0),
        storage=StorageSettings(data_dir=tmp_path),
    )


@pytest.fixture
def production_settings(tmp_path: Path) -> Settings:
    return Settings(
        hacienda=HaciendaSettings(environment="production", simulate=False),
        storage=StorageSettings(data_dir=tmp_path),
    )


# =============================================================================
# Document data
# =============================================================================


@pytest.fixture
def issuer() -> Issuer:
    return Issuer(
        name="Comercial La Sabana S.A.",
        identification=Identification(type=IdentificationType.JURIDICAL, number="3101123456"),
        location=Location(province="1", canton="01", district="08"),
        economic_activity="523101",
        email="facturas@lasabana.cr",
    )


@pytest.fixture
def receiver() -> Party:
    return Party(
        name="María Rodríguez",
        identification=Identification(type=IdentificationType.PHYSICAL, number="112340567"),
        email="maria@example.com",
    )


@pytest.fixture
def line_request() -> LineItemRequest:
    """Line {qty 2, price 1000, rate 13}: subtotal 2000, tax 260, total 2260."""
    return LineItemRequest(
        cabys_code="4399000000000",
        description="Cable UTP Cat6",
        quantity=Decimal("2"),
        unit_price=Decimal("1000"),
        tax_rate=Decimal("13"),
    )


@pytest.fixture
def make_request(issuer, receiver, line_request):
    """Factory for DocumentRequest with sensible defaults."""

    def _make(**overrides) -> DocumentRequest:
        data = {
            "company_id": "cmp_001",
            "issuer": issuer,
            "receiver": receiver,
            "lines": [line_request],
            "send_email": False,
        }
        data.update(overrides)
        return DocumentRequest(**data)

    return _make


@pytest.fixture
def document_payload() -> dict:
    """JSON body of a complete invoice form."""
    return {
        "company_id": "cmp_001",
        "document_type": "01",
        "issuer": {
            "name": "Comercial La Sabana S.A.",
            "identification": {"type": "02", "number": "3101123456"},
            "location": {"province": "1", "canton": "01", "district": "08"},
            "economic_activity": "523101",
            "email": "facturas@lasabana.cr",
        },
        "receiver": {
            "name": "María Rodríguez",
            "identification": {"type": "01", "number": "112340567"},
            "email": "maria@example.com",
        },
        "lines": [
            {
                "cabys_code": "4399000000000",
                "description": "Cable UTP Cat6",
                "quantity": "2",
                "unit_price": "1000",
                "tax_rate": "13",
            }
        ],
        "send_email": False,
    }


@pytest.fixture
def make_record():
    """Factory for StoredInvoiceRecord."""

    def _make(sequence: int = 1, **overrides) -> StoredInvoiceRecord:
        consecutive = f"0010000101{sequence:010d}"
        data = {
            "id": f"F-{consecutive}",
            "company_id": "cmp_001",
            "document_type": "01",
            "environment": Environment.SANDBOX,
            "clave": f"506050324003101123456{consecutive}1" + "12345678",
            "consecutive": consecutive,
            "status": InvoiceStatus.COMPLETED,
            "issued_at": datetime(2024, 3, 5, 10, 0, sequence % 60),
            "receiver_name": "María Rodríguez",
            "receiver_email": "maria@example.com",
            "subtotal": Decimal("2000.00000"),
            "tax": Decimal("260.00000"),
            "total": Decimal("2260.00000"),
            "xml_content": "<FacturaElectronica/>",
            "signed": True,
            "email": EmailDelivery(recipient="maria@example.com"),
        }
        data.update(overrides)
        return StoredInvoiceRecord(**data)

    return _make
