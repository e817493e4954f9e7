"""
XML rendering of canonical documents with lxml.

Invoices follow schema v4.4 (FacturaElectronica), tickets v4.2
(TiqueteElectronico). The two versions differ in a handful of tag names
and in where MedioPago lives; those differences are kept in _SchemaTags.
"""

from dataclasses import dataclass
from decimal import Decimal

from lxml import etree

from facturacr.config import get_logger
from facturacr.core.entities.document import ElectronicDocument, Party
from facturacr.core.entities.document_type import DocumentType
from facturacr.core.entities.line_item import DEFAULT_DISCOUNT_REASON, LineItem, OtherCharge
from facturacr.core.interfaces import IDocumentRenderer

logger = get_logger(__name__)

DS_NS = "http://www.w3.org/2000/09/xmldsig#"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
VC_NS = "http://www.w3.org/2007/XMLSchema-versioning"


@dataclass(frozen=True)
class _SchemaTags:
    activity: str
    provider: bool
    cabys: str
    rate_code: str
    base_amount: bool
    payment_in_summary: bool
    exemption_doc_type: str
    exemption_date: str
    exemption_rate: str


_TAGS = {
    DocumentType.INVOICE: _SchemaTags(
        activity="CodigoActividadEmisor",
        provider=True,
        cabys="CodigoCABYS",
        rate_code="CodigoTarifaIVA",
        base_amount=True,
        payment_in_summary=True,
        exemption_doc_type="TipoDocumentoEX1",
        exemption_date="FechaEmisionEX",
        exemption_rate="TarifaExonerada",
    ),
    DocumentType.TICKET: _SchemaTags(
        activity="CodigoActividad",
        provider=False,
        cabys="Codigo",
        rate_code="CodigoTarifa",
        base_amount=False,
        payment_in_summary=False,
        exemption_doc_type="TipoDocumento",
        exemption_date="FechaEmision",
        exemption_rate="PorcentajeExoneracion",
    ),
}


def format_amount(value: Decimal | int | None) -> str:
    """Five-decimal amount as required by the schema."""
    if value is None:
        value = Decimal("0")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return f"{value.quantize(Decimal('0.00001')):.5f}"


def format_quantity(value: Decimal) -> str:
    return f"{Decimal(value).quantize(Decimal('0.001')):.3f}"


class DocumentXmlRenderer(IDocumentRenderer):
    """Serialises an ElectronicDocument to the national XML schema."""

    def render(self, document: ElectronicDocument) -> str:
        root = self.build(document)
        xml = etree.tostring(root, xml_declaration=True, encoding="utf-8", pretty_print=True)
        logger.debug("document_xml_rendered", clave=document.clave, size=len(xml))
        return xml.decode("utf-8")

    def build(self, document: ElectronicDocument) -> etree._Element:
        doc_type = document.document_type
        tags = _TAGS[doc_type]
        ns = doc_type.namespace

        root = etree.Element(
            f"{{{ns}}}{doc_type.root_element}",
            nsmap={None: ns, "ds": DS_NS, "xsi": XSI_NS, "vc": VC_NS},
        )
        root.set(f"{{{XSI_NS}}}schemaLocation", f"{ns} {ns}.xsd")

        def sub(parent: etree._Element, tag: str, text: str | None = None) -> etree._Element:
            element = etree.SubElement(parent, f"{{{ns}}}{tag}")
            if text is not None:
                element.text = text
            return element

        sub(root, "Clave", document.clave)
        if tags.provider and document.systems_provider_id:
            sub(root, "ProveedorSistemas", document.systems_provider_id)
        sub(root, tags.activity, document.issuer.economic_activity)
        if doc_type == DocumentType.INVOICE and document.receiver_activity:
            sub(root, "CodigoActividadReceptor", document.receiver_activity)
        sub(root, "NumeroConsecutivo", document.consecutive)
        sub(root, "FechaEmision", document.issued_at.isoformat(timespec="seconds"))

        self._party(sub, sub(root, "Emisor"), document.issuer, with_location=True)
        if doc_type == DocumentType.INVOICE:
            self._party(sub, sub(root, "Receptor"), document.receiver, with_location=False)

        sub(root, "CondicionVenta", document.sale_condition.value)
        if document.credit_term_days:
            sub(root, "PlazoCredito", str(document.credit_term_days))
        if not tags.payment_in_summary:
            for method in document.payment_methods:
                sub(root, "MedioPago", method.value)

        detail = sub(root, "DetalleServicio")
        for line in document.lines:
            self._line(sub, sub(detail, "LineaDetalle"), line, tags)

        for charge in document.other_charges:
            self._other_charge(sub, sub(root, "OtrosCargos"), charge)

        self._summary(sub, sub(root, "ResumenFactura"), document, tags)

        if document.notes:
            others = sub(root, "Otros")
            sub(others, "OtroTexto", document.notes)

        return root

    @staticmethod
    def _party(sub, element, party: Party, with_location: bool) -> None:
        sub(element, "Nombre", party.name)
        if party.identification is not None:
            identification = sub(element, "Identificacion")
            sub(identification, "Tipo", party.identification.type.value)
            sub(identification, "Numero", party.identification.number)
        if party.commercial_name:
            sub(element, "NombreComercial", party.commercial_name)
        if with_location and party.location is not None:
            location = sub(element, "Ubicacion")
            sub(location, "Provincia", party.location.province)
            sub(location, "Canton", party.location.canton.zfill(2))
            sub(location, "Distrito", party.location.district.zfill(2))
            if party.location.neighborhood:
                sub(location, "Barrio", party.location.neighborhood)
            sub(location, "OtrasSenas", party.location.other_signs or "Sin otras señas")
        if party.phone is not None:
            phone = sub(element, "Telefono")
            sub(phone, "CodigoPais", party.phone.country_code)
            sub(phone, "NumTelefono", party.phone.number)
        if party.email:
            sub(element, "CorreoElectronico", party.email)

    @staticmethod
    def _line(sub, element, line: LineItem, tags: _SchemaTags) -> None:
        sub(element, "NumeroLinea", str(line.line_number))
        sub(element, tags.cabys, line.cabys_code)
        if line.commercial_code:
            code = sub(element, "CodigoComercial")
            sub(code, "Tipo", "04")
            sub(code, "Codigo", line.commercial_code)
        sub(element, "Cantidad", format_quantity(line.quantity))
        sub(element, "UnidadMedida", line.unit_of_measure)
        sub(element, "Detalle", line.description)
        for serial in line.serial_numbers:
            sub(element, "NumeroVINoSerie", serial)
        if line.pharma is not None:
            sub(element, "RegistroMedicamento", line.pharma.registration_number)
            sub(element, "FormaFarmaceutica", line.pharma.pharmaceutical_form)
        sub(element, "PrecioUnitario", format_amount(line.unit_price))
        sub(element, "MontoTotal", format_amount(line.gross_amount))

        if line.discount > 0:
            discount = sub(element, "Descuento")
            sub(discount, "MontoDescuento", format_amount(line.discount))
            sub(discount, "NaturalezaDescuento", line.discount_reason or DEFAULT_DISCOUNT_REASON)

        sub(element, "SubTotal", format_amount(line.subtotal))
        if tags.base_amount:
            sub(element, "BaseImponible", format_amount(line.subtotal))

        tax = sub(element, "Impuesto")
        sub(tax, "Codigo", line.tax_code.value)
        sub(tax, tags.rate_code, line.tax_rate_code)
        sub(tax, "Tarifa", format_amount(line.tax_rate))
        sub(tax, "Monto", format_amount(line.gross_tax))
        if line.exemption is not None:
            exemption = sub(tax, "Exoneracion")
            sub(exemption, tags.exemption_doc_type, line.exemption.document_type)
            sub(exemption, "NumeroDocumento", line.exemption.document_number)
            sub(exemption, "NombreInstitucion", line.exemption.institution)
            sub(exemption, tags.exemption_date, line.exemption.issued_at.isoformat(timespec="seconds"))
            sub(exemption, tags.exemption_rate, format_amount(line.exemption.percentage))
            sub(exemption, "MontoExoneracion", format_amount(line.exempted_amount))

        sub(element, "ImpuestoNeto", format_amount(line.tax_amount))
        sub(element, "MontoTotalLinea", format_amount(line.line_total))

    @staticmethod
    def _other_charge(sub, element, charge: OtherCharge) -> None:
        sub(element, "TipoDocumentoOC", charge.type_code.value)
        if charge.third_party_id:
            sub(element, "NumeroIdentidadTercero", charge.third_party_id)
        if charge.third_party_name:
            sub(element, "NombreTercero", charge.third_party_name)
        sub(element, "Detalle", charge.description)
        if charge.percentage is not None:
            sub(element, "PorcentajeOC", format_amount(charge.percentage))
        sub(element, "MontoCargo", format_amount(charge.amount))

    @staticmethod
    def _summary(sub, element, document: ElectronicDocument, tags: _SchemaTags) -> None:
        summary = document.summary

        currency = sub(element, "CodigoTipoMoneda")
        sub(currency, "CodigoMoneda", summary.currency)
        sub(currency, "TipoCambio", format_amount(summary.exchange_rate))

        for tag, value in (
            ("TotalServGravados", summary.total_taxed_services),
            ("TotalServExentos", summary.total_exempt_services),
            ("TotalServExonerado", summary.total_exonerated_services),
            ("TotalMercanciasGravadas", summary.total_taxed_goods),
            ("TotalMercanciasExentas", summary.total_exempt_goods),
            ("TotalMercExonerada", summary.total_exonerated_goods),
            ("TotalGravado", summary.total_taxed),
            ("TotalExento", summary.total_exempt),
            ("TotalExonerado", summary.total_exonerated),
            ("TotalVenta", summary.gross_sales),
            ("TotalDescuentos", summary.discounts),
            ("TotalVentaNeta", summary.net_sales),
            ("TotalImpuesto", summary.tax),
            ("TotalOtrosCargos", summary.other_charges),
        ):
            sub(element, tag, format_amount(value))

        if tags.payment_in_summary:
            for method in document.payment_methods:
                payment = sub(element, "MedioPago")
                sub(payment, "TipoMedioPago", method.value)
                if len(document.payment_methods) == 1:
                    sub(payment, "TotalMedioPago", format_amount(summary.grand_total))

        sub(element, "TotalComprobante", format_amount(summary.grand_total))
