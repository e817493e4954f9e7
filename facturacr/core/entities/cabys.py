"""CABYS catalog entries (Catálogo de Bienes y Servicios)."""

from decimal import Decimal

from pydantic import BaseModel, Field


class CabysItem(BaseModel):
    """A product or service code and the VAT rate that applies to it."""

    code: str
    description: str = ""
    categories: list[str] = Field(default_factory=list)
    tax_rate: Decimal | None = None  # unknown when the catalog omits it
    uri: str | None = None


class CabysSearchResult(BaseModel):
    """One page of a description search."""

    total: int = 0
    items: list[CabysItem] = Field(default_factory=list)
