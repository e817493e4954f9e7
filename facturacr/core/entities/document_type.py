"""Electronic document types and their schema metadata."""

from enum import Enum

SCHEMA_BASE_URL = "https://cdn.comprobanteselectronicos.go.cr/xml-schemas"


class DocumentType(str, Enum):
    """Document type codes used in the consecutive."""

    INVOICE = "01"
    TICKET = "04"

    @property
    def record_prefix(self) -> str:
        return "F" if self is DocumentType.INVOICE else "T"

    @property
    def schema_version(self) -> str:
        return "4.4" if self is DocumentType.INVOICE else "4.2"

    @property
    def root_element(self) -> str:
        return "FacturaElectronica" if self is DocumentType.INVOICE else "TiqueteElectronico"

    @property
    def namespace(self) -> str:
        name = "facturaElectronica" if self is DocumentType.INVOICE else "tiqueteElectronico"
        return f"{SCHEMA_BASE_URL}/v{self.schema_version}/{name}"

    @property
    def label(self) -> str:
        return "Factura Electrónica" if self is DocumentType.INVOICE else "Tiquete Electrónico"
