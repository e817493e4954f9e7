"""
Tax authority reception API client.

Submits signed documents (POST /recepcion) and looks up taxpayers in the
public registry (GET /fe/ae). Submissions are sent once: transport
failures surface as SubmissionTransportError and are never retried here,
a 4xx answer surfaces as SubmissionRejectedError.
"""

import base64
from datetime import datetime
from zoneinfo import ZoneInfo

import httpx

from facturacr.config import get_logger
from facturacr.core.entities.document import Issuer
from facturacr.core.entities.submission import (
    ContributorActivity,
    ContributorInfo,
    SubmissionResult,
)
from facturacr.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    SubmissionRejectedError,
    SubmissionTransportError,
    ValidationError,
)
from facturacr.core.interfaces import ITaxAuthority
from facturacr.infrastructure.hacienda.auth import HaciendaTokenProvider
from facturacr.infrastructure.hacienda.base import BaseHaciendaClient

logger = get_logger(__name__)

INVALID_REGISTRY_STATES = frozenset({"No inscrito", "Desinscrito", "Desinscrito oficio"})


class HaciendaReceptionClient(BaseHaciendaClient, ITaxAuthority):
    """httpx client for the reception API and the public taxpayer registry."""

    def __init__(
        self,
        reception_url: str,
        token_provider: HaciendaTokenProvider,
        public_api_url: str = "https://api.hacienda.go.cr",
        timeout: float = 30,
        max_retries: int = 3,
        timezone: str = "America/Costa_Rica",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(timeout=timeout, max_retries=max_retries, transport=transport)
        self.reception_url = reception_url.rstrip("/")
        self.public_api_url = public_api_url.rstrip("/")
        self._tokens = token_provider
        self._tz = ZoneInfo(timezone)

    async def submit(self, signed_xml: str, clave: str, issuer: Issuer) -> SubmissionResult:
        if issuer.identification is None:
            raise ValidationError("issuer.identification", "required for submission")

        try:
            token = await self._tokens.get_token()
        except (AuthenticationError, ConfigurationError) as e:
            raise SubmissionTransportError(e.message, clave) from e
        except httpx.TransportError as e:
            raise SubmissionTransportError(f"identity provider: {e}", clave) from e

        payload = {
            "clave": clave,
            "fecha": datetime.now(self._tz).isoformat(timespec="seconds"),
            "emisor": {
                "tipoIdentificacion": issuer.identification.type.value,
                "numeroIdentificacion": issuer.identification.number,
            },
            "comprobanteXml": base64.b64encode(signed_xml.encode("utf-8")).decode("ascii"),
        }

        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.reception_url}/recepcion",
                    json=payload,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.TransportError as e:
            logger.error("hacienda_submit_transport_error", clave=clave, error=str(e))
            raise SubmissionTransportError(str(e), clave) from e

        if response.status_code in (200, 201, 202):
            logger.info("hacienda_document_received", clave=clave, status=response.status_code)
            return SubmissionResult(
                accepted=True,
                reference_id=response.headers.get("Location") or clave,
            )

        if response.status_code in (401, 403):
            self._tokens.invalidate()
            raise SubmissionTransportError(
                "access token rejected", clave, status_code=response.status_code
            )

        if response.status_code >= 500:
            raise SubmissionTransportError(
                f"HTTP {response.status_code}", clave, status_code=response.status_code
            )

        cause = response.headers.get("X-Error-Cause") or response.text[:500]
        logger.warning(
            "hacienda_document_rejected",
            clave=clave,
            status=response.status_code,
            cause=cause,
        )
        raise SubmissionRejectedError(str(response.status_code), cause, clave)

    async def lookup_contributor(self, identification: str) -> ContributorInfo:
        return await self._with_retry(self._lookup, identification)

    async def _lookup(self, identification: str) -> ContributorInfo:
        async with self._client() as client:
            response = await client.get(
                f"{self.public_api_url}/fe/ae",
                params={"identificacion": identification},
            )

        if response.status_code == 404:
            return ContributorInfo(identification=identification, status="No inscrito")
        if response.status_code != 200:
            raise SubmissionTransportError(
                f"registry lookup HTTP {response.status_code}",
                status_code=response.status_code,
            )

        data = response.json()
        status = (data.get("situacion") or {}).get("estado", "")
        return ContributorInfo(
            identification=identification,
            name=data.get("nombre", ""),
            identification_type=data.get("tipoIdentificacion", ""),
            status=status,
            is_valid=bool(status) and status not in INVALID_REGISTRY_STATES,
            activities=[
                ContributorActivity(
                    code=str(a.get("codigo", "")),
                    description=a.get("descripcion", ""),
                    status=a.get("estado", ""),
                )
                for a in data.get("actividades") or []
            ],
        )
