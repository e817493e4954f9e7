"""API test client wired to in-memory stores and mocked outside services."""

from collections.abc import AsyncIterator
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from facturacr.api import dependencies as deps
from facturacr.api.main import app
from facturacr.application.session_registry import DocumentSessionRegistry
from facturacr.application.use_cases import (
    GetExchangeRateUseCase,
    GetHistorySummaryUseCase,
    GetRecordUseCase,
    ListHistoryUseCase,
    LookupCabysUseCase,
    LookupContributorUseCase,
    ManageSequencesUseCase,
    ManageSessionsUseCase,
    PreviewDocumentUseCase,
    ResendEmailUseCase,
    ResubmitDocumentUseCase,
    SubmitDocumentUseCase,
)
from facturacr.core.entities import EmailResult, SubmissionResult
from facturacr.core.services import (
    CurrencyNormalizer,
    DocumentAssembler,
    ExchangeRateService,
    TaxCalculator,
)
from facturacr.infrastructure.xml import DocumentXmlRenderer


@pytest.fixture
def api_mocks() -> dict[str, AsyncMock]:
    """Outside services: signer, tax authority, e-mail, exchange rates and CABYS."""
    signer = AsyncMock()
    signer.sign.side_effect = lambda xml, key_material: xml
    tax_authority = AsyncMock()
    tax_authority.submit.return_value = SubmissionResult(accepted=True, reference_id="ref-001")
    email_sender = AsyncMock()
    email_sender.send.return_value = EmailResult(delivered=True)
    rate_source = AsyncMock()
    rate_source.get_rate.return_value = Decimal("506.5")
    cabys_catalog = AsyncMock()
    return {
        "signer": signer,
        "tax_authority": tax_authority,
        "email_sender": email_sender,
        "rate_source": rate_source,
        "cabys_catalog": cabys_catalog,
    }


@pytest.fixture
def api_registry() -> DocumentSessionRegistry:
    return DocumentSessionRegistry()


@pytest.fixture
async def api_client(
    api_mocks,
    api_registry,
    key_service,
    sequence_generator,
    record_store,
    company_store,
    test_settings,
) -> AsyncIterator[AsyncClient]:
    """Async client with every use case dependency overridden."""
    calculator = TaxCalculator()
    assembler = DocumentAssembler(calculator, systems_provider_id="3102928079")
    exchange_rates = ExchangeRateService(api_mocks["rate_source"])

    def submit_use_case() -> SubmitDocumentUseCase:
        return SubmitDocumentUseCase(
            key_service=key_service,
            record_store=record_store,
            company_store=company_store,
            signer=api_mocks["signer"],
            tax_authority=api_mocks["tax_authority"],
            email_sender=api_mocks["email_sender"],
            exchange_rates=exchange_rates,
            normalizer=CurrencyNormalizer(),
            calculator=calculator,
            assembler=assembler,
            renderer=DocumentXmlRenderer(),
            settings=test_settings,
        )

    overrides = {
        deps.get_registry: lambda: api_registry,
        deps.get_sessions_use_case: lambda: ManageSessionsUseCase(registry=api_registry),
        deps.get_preview_use_case: lambda: PreviewDocumentUseCase(
            exchange_rates=exchange_rates,
            normalizer=CurrencyNormalizer(),
            calculator=calculator,
            assembler=assembler,
            renderer=DocumentXmlRenderer(),
        ),
        deps.get_submit_use_case: submit_use_case,
        deps.get_resubmit_use_case: lambda: ResubmitDocumentUseCase(
            record_store=record_store,
            company_store=company_store,
            signer=api_mocks["signer"],
            tax_authority=api_mocks["tax_authority"],
            email_sender=api_mocks["email_sender"],
            settings=test_settings,
        ),
        deps.get_resend_email_use_case: lambda: ResendEmailUseCase(
            record_store=record_store, email_sender=api_mocks["email_sender"]
        ),
        deps.get_list_history_use_case: lambda: ListHistoryUseCase(record_store=record_store),
        deps.get_record_use_case: lambda: GetRecordUseCase(record_store=record_store),
        deps.get_history_summary_use_case: lambda: GetHistorySummaryUseCase(
            record_store=record_store
        ),
        deps.get_sequences_use_case: lambda: ManageSequencesUseCase(sequence_generator),
        deps.get_exchange_rate_use_case: lambda: GetExchangeRateUseCase(exchange_rates),
        deps.get_contributor_use_case: lambda: LookupContributorUseCase(
            api_mocks["tax_authority"]
        ),
        deps.get_cabys_use_case: lambda: LookupCabysUseCase(api_mocks["cabys_catalog"]),
    }
    app.dependency_overrides.update(overrides)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    for dependency in overrides:
        app.dependency_overrides.pop(dependency, None)
