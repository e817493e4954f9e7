"""XML serialisation of electronic documents."""

from facturacr.infrastructure.xml.document_xml import (
    DocumentXmlRenderer,
    format_amount,
    format_quantity,
)

__all__ = ["DocumentXmlRenderer", "format_amount", "format_quantity"]
