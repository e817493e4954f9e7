"""Fixtures for use case tests: mocked collaborators around real core services."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from facturacr.application.session_registry import DocumentSessionRegistry
from facturacr.application.use_cases import SubmitDocumentUseCase
from facturacr.core.entities import EmailResult, SubmissionResult
from facturacr.core.services import (
    CurrencyNormalizer,
    DocumentAssembler,
    ExchangeRateService,
    TaxCalculator,
)
from facturacr.infrastructure.xml import DocumentXmlRenderer


@pytest.fixture
def signer() -> AsyncMock:
    """Signer that appends a marker comment to the XML."""
    mock = AsyncMock()
    mock.sign.side_effect = lambda xml, key_material: xml + "<!-- signed -->"
    return mock


@pytest.fixture
def tax_authority() -> AsyncMock:
    mock = AsyncMock()
    mock.submit.return_value = SubmissionResult(accepted=True, reference_id="ref-001")
    return mock


@pytest.fixture
def email_sender() -> AsyncMock:
    mock = AsyncMock()
    mock.send.return_value = EmailResult(delivered=True)
    return mock


@pytest.fixture
def rate_source() -> AsyncMock:
    mock = AsyncMock()
    mock.get_rate.return_value = Decimal("506.5")
    return mock


@pytest.fixture
def registry() -> DocumentSessionRegistry:
    return DocumentSessionRegistry()


@pytest.fixture
def make_submit_use_case(
    key_service,
    record_store,
    company_store,
    signer,
    tax_authority,
    email_sender,
    rate_source,
    test_settings,
):
    """Build SubmitDocumentUseCase over in-memory stores; settings overridable."""

    def _make(settings=None) -> SubmitDocumentUseCase:
        calculator = TaxCalculator()
        return SubmitDocumentUseCase(
            key_service=key_service,
            record_store=record_store,
            company_store=company_store,
            signer=signer,
            tax_authority=tax_authority,
            email_sender=email_sender,
            exchange_rates=ExchangeRateService(rate_source),
            normalizer=CurrencyNormalizer(),
            calculator=calculator,
            assembler=DocumentAssembler(calculator, systems_provider_id="3102928079"),
            renderer=DocumentXmlRenderer(),
            settings=settings or test_settings,
        )

    return _make
