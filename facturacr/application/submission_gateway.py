"""
Signing and tax authority steps shared by submission and resubmission.

Neither step raises for collaborator failures: the caller gets the error
text back and records the document as Pending.
"""

import asyncio
from dataclasses import dataclass

from facturacr.config import get_logger
from facturacr.config.settings import Settings
from facturacr.core.entities.document import Issuer
from facturacr.core.entities.record import InvoiceStatus
from facturacr.core.entities.submission import KeyMaterial, SubmissionResult
from facturacr.core.exceptions import (
    SigningError,
    SigningUnavailableError,
    SubmissionRejectedError,
    SubmissionTransportError,
)
from facturacr.core.interfaces import ISigner, ITaxAuthority

logger = get_logger(__name__)


@dataclass
class SigningOutcome:
    xml: str
    signed: bool
    error: str | None = None


@dataclass
class SubmissionOutcome:
    status: InvoiceStatus
    result: SubmissionResult | None = None
    error: str | None = None

    @property
    def simulated(self) -> bool:
        return bool(self.result and self.result.simulated)


class SubmissionGateway:
    """Wraps the signer and the tax authority with the degraded-mode rules."""

    def __init__(self, signer: ISigner, tax_authority: ITaxAuthority, settings: Settings):
        self._signer = signer
        self._tax_authority = tax_authority
        self._settings = settings

    async def sign(self, xml: str, clave: str) -> SigningOutcome:
        """
        Sign a rendered document.

        An unavailable signer outside production lets the unsigned XML
        through; any other signing failure is reported as an error.
        """
        signing = self._settings.signing
        key_material = KeyMaterial(
            certificate_path=signing.certificate_path,
            pin=signing.certificate_pin,
        )
        try:
            return SigningOutcome(await self._signer.sign(xml, key_material), True)
        except SigningUnavailableError as e:
            if self._settings.hacienda.is_production:
                logger.error("signing_unavailable", clave=clave, error=e.message)
                return SigningOutcome(xml, False, e.message)
            logger.warning("signing_skipped", clave=clave, reason=e.message)
            return SigningOutcome(xml, False)
        except SigningError as e:
            logger.error("signing_failed", clave=clave, error=e.message)
            return SigningOutcome(xml, False, e.message)

    async def submit(self, xml: str, clave: str, issuer: Issuer) -> SubmissionOutcome:
        """
        Send a document once. Transport failures are not retried.

        In sandbox with simulation enabled acceptance is simulated after the
        configured delay.
        """
        hacienda = self._settings.hacienda
        if hacienda.simulate and not hacienda.is_production:
            await asyncio.sleep(hacienda.simulate_delay)
            logger.info("submission_simulated", clave=clave)
            return SubmissionOutcome(
                InvoiceStatus.COMPLETED,
                SubmissionResult(accepted=True, reference_id=clave, simulated=True),
            )

        try:
            result = await self._tax_authority.submit(xml, clave, issuer)
        except SubmissionTransportError as e:
            logger.error("submission_transport_failed", clave=clave, error=e.message)
            return SubmissionOutcome(InvoiceStatus.PENDING, error=e.message)
        except SubmissionRejectedError as e:
            result = SubmissionResult(accepted=False, reason_code=e.reason_code, error=e.reason)

        if result.accepted:
            return SubmissionOutcome(InvoiceStatus.COMPLETED, result)
        logger.warning(
            "submission_rejected",
            clave=clave,
            reason_code=result.reason_code,
            error=result.error,
        )
        return SubmissionOutcome(InvoiceStatus.REJECTED, result, result.error)
