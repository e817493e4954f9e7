"""
Core business logic services.

Layer-pure services that depend only on:
- facturacr/core/entities/*
- facturacr/core/interfaces/*
- facturacr/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from facturacr.core.services.clave import (
    build_clave,
    decode_clave,
    decode_consecutive,
    format_consecutive,
    generate_security_code,
    normalize_issuer_id,
)
from facturacr.core.services.currency import CurrencyNormalizer, ExchangeRateService
from facturacr.core.services.document_assembler import DocumentAssembler
from facturacr.core.services.sequence_generator import DocumentKeyService, SequenceGenerator
from facturacr.core.services.tax_calculator import (
    TaxCalculator,
    quantize_amount,
    tax_rate_code,
)

__all__ = [
    # Tax
    "TaxCalculator",
    "quantize_amount",
    "tax_rate_code",
    # Sequence / key
    "SequenceGenerator",
    "DocumentKeyService",
    "build_clave",
    "decode_clave",
    "decode_consecutive",
    "format_consecutive",
    "generate_security_code",
    "normalize_issuer_id",
    # Currency
    "CurrencyNormalizer",
    "ExchangeRateService",
    # Assembly
    "DocumentAssembler",
]
