"""
Client for the external XAdES signing service.

The service receives the unsigned XML (base64) plus a reference to the
issuer's .p12 certificate and answers the signed XML (base64).
"""

import base64
import binascii

import httpx

from facturacr.config import get_logger
from facturacr.core.entities.submission import KeyMaterial
from facturacr.core.exceptions import SigningError, SigningUnavailableError
from facturacr.core.interfaces import ISigner

logger = get_logger(__name__)


class RemoteSigner(ISigner):
    """httpx client for the signing service."""

    def __init__(
        self,
        service_url: str,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.service_url = service_url.rstrip("/") if service_url else ""
        self.timeout = timeout
        self._transport = transport

    async def sign(self, document_xml: str, key_material: KeyMaterial) -> str:
        if not self.service_url:
            raise SigningUnavailableError("no signing service configured")
        if not key_material.certificate_path:
            raise SigningUnavailableError("no certificate configured")

        payload = {
            "xml": base64.b64encode(document_xml.encode("utf-8")).decode("ascii"),
            "certificate_path": key_material.certificate_path,
            "pin": key_material.pin,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(f"{self.service_url}/sign", json=payload)
        except httpx.TransportError as e:
            logger.warning("signing_service_unreachable", error=str(e))
            raise SigningUnavailableError(str(e)) from e

        if response.status_code in (502, 503, 504):
            raise SigningUnavailableError(f"HTTP {response.status_code}")
        if response.status_code != 200:
            raise SigningError(f"HTTP {response.status_code}: {response.text[:200]}")

        signed = response.json().get("signed_xml")
        if not signed:
            raise SigningError("response without signed_xml")
        try:
            signed_xml = base64.b64decode(signed).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise SigningError(f"signed_xml is not valid base64: {e}") from e

        logger.info("document_signed", size=len(signed_xml))
        return signed_xml
