"""
Service factory functions for dependency injection.

This module provides factory functions that wire infrastructure
implementations to core services. Use cases should import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from decimal import Decimal
from typing import TYPE_CHECKING

from facturacr.application.session_registry import DocumentSessionRegistry
from facturacr.config import get_settings
from facturacr.core.entities.sequence import Environment
from facturacr.core.services import (
    CurrencyNormalizer,
    DocumentAssembler,
    DocumentKeyService,
    ExchangeRateService,
    SequenceGenerator,
    TaxCalculator,
)

if TYPE_CHECKING:
    from facturacr.core.interfaces import (
        ICabysCatalog,
        ICompanyStore,
        IDocumentRenderer,
        IEmailSender,
        IExchangeRateSource,
        ISequenceStore,
        ISigner,
        ITaxAuthority,
    )


# Singleton service instances
_session_registry: DocumentSessionRegistry | None = None
_sequence_generator: SequenceGenerator | None = None
_key_service: DocumentKeyService | None = None
_exchange_rate_service: ExchangeRateService | None = None
_tax_authority: "ITaxAuthority | None" = None


def get_session_registry() -> DocumentSessionRegistry:
    """Get the process-wide session registry."""
    global _session_registry
    if _session_registry is None:
        _session_registry = DocumentSessionRegistry()
    return _session_registry


def get_tax_calculator() -> TaxCalculator:
    return TaxCalculator()


def get_currency_normalizer() -> CurrencyNormalizer:
    return CurrencyNormalizer()


def get_document_assembler() -> DocumentAssembler:
    settings = get_settings()
    return DocumentAssembler(
        calculator=get_tax_calculator(),
        systems_provider_id=settings.hacienda.systems_provider_id or None,
    )


def get_document_renderer() -> "IDocumentRenderer":
    from facturacr.infrastructure.xml import DocumentXmlRenderer

    return DocumentXmlRenderer()


async def get_sequence_generator(
    sequence_store: "ISequenceStore | None" = None,
) -> SequenceGenerator:
    """
    Get or create the SequenceGenerator.

    There must be exactly one generator per process: its per-scope locks
    are what serialise consecutive issuance.

    Args:
        sequence_store: Optional store override (not cached)

    Returns:
        Configured SequenceGenerator
    """
    global _sequence_generator

    if _sequence_generator is not None and sequence_store is None:
        return _sequence_generator

    # Lazy import infrastructure to avoid circular imports
    from facturacr.infrastructure.storage.sqlite import get_sequence_store

    settings = get_settings()
    store = sequence_store or await get_sequence_store()
    generator = SequenceGenerator(
        store=store,
        default_environment=Environment(settings.hacienda.environment),
    )

    if sequence_store is None:
        _sequence_generator = generator

    return generator


async def get_key_service(
    sequence_generator: SequenceGenerator | None = None,
    company_store: "ICompanyStore | None" = None,
) -> DocumentKeyService:
    """
    Get or create the DocumentKeyService.

    Args:
        sequence_generator: Optional generator override
        company_store: Optional company store override

    Returns:
        Configured DocumentKeyService
    """
    global _key_service

    overridden = sequence_generator is not None or company_store is not None
    if _key_service is not None and not overridden:
        return _key_service

    from facturacr.infrastructure.storage.sqlite import get_company_store

    settings = get_settings()
    service = DocumentKeyService(
        sequence_generator=sequence_generator or await get_sequence_generator(),
        company_store=company_store or await get_company_store(),
        country_code=settings.sequence.country_code,
        security_code_policy=settings.sequence.security_code_policy,
        timezone=settings.timezone,
    )

    if not overridden:
        _key_service = service

    return service


def get_exchange_rate_service(
    source: "IExchangeRateSource | None" = None,
) -> ExchangeRateService:
    """
    Get or create the ExchangeRateService.

    The service keeps the last good rate per currency, so the singleton
    is what makes the fallback useful.
    """
    global _exchange_rate_service

    if _exchange_rate_service is not None and source is None:
        return _exchange_rate_service

    from facturacr.infrastructure.hacienda import HaciendaExchangeRateSource

    settings = get_settings()
    exchange = settings.exchange
    rate_source = source or HaciendaExchangeRateSource(
        api_url=exchange.api_url,
        timeout=exchange.timeout,
        max_retries=exchange.max_retries,
        retry_delay=exchange.retry_delay,
    )
    fallback: dict[str, Decimal] = {}
    if exchange.use_fallback:
        fallback = {"USD": exchange.fallback_usd, "EUR": exchange.fallback_eur}

    service = ExchangeRateService(source=rate_source, fallback_rates=fallback)

    if source is None:
        _exchange_rate_service = service

    return service


def get_tax_authority() -> "ITaxAuthority":
    """Get the reception API client; cached so the access token is reused."""
    global _tax_authority

    if _tax_authority is not None:
        return _tax_authority

    from facturacr.infrastructure.hacienda import (
        HaciendaReceptionClient,
        HaciendaTokenProvider,
    )

    settings = get_settings()
    hacienda = settings.hacienda
    tokens = HaciendaTokenProvider(
        token_url=hacienda.token_url,
        client_id=hacienda.client_id,
        username=hacienda.username,
        password=hacienda.password,
        timeout=hacienda.timeout,
        max_retries=hacienda.token_retries,
    )
    _tax_authority = HaciendaReceptionClient(
        reception_url=hacienda.reception_url,
        token_provider=tokens,
        public_api_url=hacienda.public_api_url,
        timeout=hacienda.timeout,
        timezone=settings.timezone,
    )
    return _tax_authority


def get_cabys_catalog() -> "ICabysCatalog":
    from facturacr.infrastructure.hacienda import HaciendaCabysCatalog

    hacienda = get_settings().hacienda
    return HaciendaCabysCatalog(public_api_url=hacienda.public_api_url)


def get_signer() -> "ISigner":
    from facturacr.infrastructure.signing import RemoteSigner

    signing = get_settings().signing
    return RemoteSigner(service_url=signing.service_url, timeout=signing.timeout)


def get_email_sender() -> "IEmailSender | None":
    """E-mail sender, or None when dispatch is disabled."""
    from facturacr.infrastructure.email import EmailJsSender

    email = get_settings().email
    if not email.enabled:
        return None
    return EmailJsSender(
        api_url=email.api_url,
        service_id=email.service_id,
        template_id=email.template_id,
        user_id=email.user_id,
        access_token=email.access_token,
        sender_name=email.sender_name,
        sender_email=email.sender_email,
        timeout=email.timeout,
    )


def reset_services() -> None:
    """
    Reset all singleton service instances.

    Useful for testing or when configuration changes.
    """
    global _session_registry
    global _sequence_generator
    global _key_service
    global _exchange_rate_service
    global _tax_authority

    _session_registry = None
    _sequence_generator = None
    _key_service = None
    _exchange_rate_service = None
    _tax_authority = None


__all__ = [
    # Factory functions
    "get_session_registry",
    "get_tax_calculator",
    "get_currency_normalizer",
    "get_document_assembler",
    "get_document_renderer",
    "get_sequence_generator",
    "get_key_service",
    "get_exchange_rate_service",
    "get_tax_authority",
    "get_cabys_catalog",
    "get_signer",
    "get_email_sender",
    # Reset
    "reset_services",
]
