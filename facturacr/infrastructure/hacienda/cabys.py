"""
Public CABYS catalog (GET /fe/cabys).

Searches answer {"total", "cantidad", "cabys": [...]}, code lookups answer
a bare list. Both are idempotent and retried on transport errors.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from facturacr.config import get_logger
from facturacr.core.entities.cabys import CabysItem, CabysSearchResult
from facturacr.core.exceptions import SubmissionTransportError
from facturacr.core.interfaces import ICabysCatalog
from facturacr.infrastructure.hacienda.base import BaseHaciendaClient

logger = get_logger(__name__)


def _parse_rate(raw: Any) -> Decimal | None:
    if raw is None:
        return None
    try:
        return Decimal(str(raw))
    except (InvalidOperation, ValueError):
        logger.warning("cabys_rate_unreadable", value=str(raw))
        return None


def _parse_item(data: dict[str, Any]) -> CabysItem:
    return CabysItem(
        code=str(data.get("codigo", "")),
        description=data.get("descripcion", ""),
        categories=[str(c) for c in data.get("categorias") or []],
        tax_rate=_parse_rate(data.get("impuesto")),
        uri=data.get("uri"),
    )


class HaciendaCabysCatalog(BaseHaciendaClient, ICabysCatalog):
    """httpx client for the CABYS catalog."""

    def __init__(
        self,
        public_api_url: str = "https://api.hacienda.go.cr",
        timeout: float = 10,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(
            timeout=timeout,
            max_retries=max_retries,
            retry_delay=retry_delay,
            transport=transport,
        )
        self.api_url = f"{public_api_url.rstrip('/')}/fe/cabys"

    async def search(self, query: str, limit: int = 10) -> CabysSearchResult:
        data = await self._get({"q": query, "top": limit})
        items = [_parse_item(item) for item in (data or {}).get("cabys") or []]
        total = (data or {}).get("total")
        logger.info("cabys_searched", query=query, results=len(items))
        return CabysSearchResult(total=total if total is not None else len(items), items=items)

    async def get_by_code(self, code: str) -> list[CabysItem]:
        data = await self._get({"codigo": code})
        if isinstance(data, dict):
            data = data.get("cabys") or []
        return [_parse_item(item) for item in data or []]

    async def _get(self, params: dict[str, Any]) -> Any:
        try:
            return await self._with_retry(self._fetch, params)
        except httpx.TransportError as e:
            logger.error("cabys_transport_error", error=str(e))
            raise SubmissionTransportError(f"CABYS catalog: {e}") from e

    async def _fetch(self, params: dict[str, Any]) -> Any:
        async with self._client() as client:
            response = await client.get(self.api_url, params=params)

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise SubmissionTransportError(
                f"CABYS lookup HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response.json()
