"""
Abstract interfaces for the external collaborators of the submission flow.

Signer, tax authority, CABYS catalog, e-mail dispatch and exchange rate
source are network boundaries; every method is a suspension point.
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from facturacr.core.entities.cabys import CabysItem, CabysSearchResult
from facturacr.core.entities.document import ElectronicDocument, Issuer
from facturacr.core.entities.submission import (
    Attachment,
    ContributorInfo,
    EmailResult,
    KeyMaterial,
    SubmissionResult,
)


class ISigner(ABC):
    """Interface for the XAdES signing collaborator."""

    @abstractmethod
    async def sign(self, document_xml: str, key_material: KeyMaterial) -> str:
        """
        Sign a document.

        Raises:
            SigningUnavailableError: signer not configured or unreachable
            SigningError: signer refused the document
        """
        pass


class ITaxAuthority(ABC):
    """Interface for the tax authority reception boundary."""

    @abstractmethod
    async def submit(self, signed_xml: str, clave: str, issuer: Issuer) -> SubmissionResult:
        """
        Submit a signed document.

        Raises:
            SubmissionTransportError: the authority could not be reached
            SubmissionRejectedError: the authority refused the document
        """
        pass

    @abstractmethod
    async def lookup_contributor(self, identification: str) -> ContributorInfo:
        """Look up a taxpayer in the public registry."""
        pass


class ICabysCatalog(ABC):
    """Interface for the public CABYS catalog."""

    @abstractmethod
    async def search(self, query: str, limit: int = 10) -> CabysSearchResult:
        """Search codes by description."""
        pass

    @abstractmethod
    async def get_by_code(self, code: str) -> list[CabysItem]:
        """
        Entries for a code; empty when the code is unknown.

        Raises:
            SubmissionTransportError: the catalog could not be reached
        """
        pass


class IEmailSender(ABC):
    """Interface for e-mail dispatch."""

    @abstractmethod
    async def send(
        self, recipient: str, subject: str, attachments: list[Attachment], body: str = ""
    ) -> EmailResult:
        """Send an e-mail; failures are reported in the result, not raised."""
        pass


class IExchangeRateSource(ABC):
    """Interface for exchange rate lookups."""

    @abstractmethod
    async def get_rate(self, currency: str) -> Decimal:
        """Get the selling rate of a currency in colones."""
        pass


class IDocumentRenderer(ABC):
    """Interface for serialising a canonical document to its XML schema."""

    @abstractmethod
    def render(self, document: ElectronicDocument) -> str:
        """Render the document as an XML string."""
        pass
