"""Conversions from domain entities and request DTOs."""

from facturacr.application.dto.requests import DocumentRequest
from facturacr.application.dto.responses import (
    EmailDeliveryResponse,
    LineItemResponse,
    RecordDetailResponse,
    RecordResponse,
    SessionResponse,
    SummaryResponse,
)
from facturacr.core.entities.document import DocumentForm, DocumentSummary
from facturacr.core.entities.line_item import LineItem
from facturacr.core.entities.record import StoredInvoiceRecord
from facturacr.core.entities.session import DocumentSession


def form_from_request(request: DocumentRequest) -> DocumentForm:
    return DocumentForm(
        company_id=request.company_id,
        document_type=request.document_type,
        issuer=request.issuer,
        receiver=request.receiver,
        receiver_activity=request.receiver_activity,
        sale_condition=request.sale_condition,
        credit_term_days=request.credit_term_days,
        payment_methods=request.payment_methods,
        currency=request.currency,
        exchange_rate=request.exchange_rate,
        other_charges=request.other_charges,
        notes=request.notes,
        situation=request.situation,
    )


def lines_from_request(request: DocumentRequest) -> list[LineItem]:
    return [LineItem(**line.model_dump()) for line in request.lines]


def line_response(line: LineItem) -> LineItemResponse:
    return LineItemResponse(
        line_number=line.line_number or 0,
        cabys_code=line.cabys_code,
        description=line.description,
        quantity=line.quantity,
        unit_of_measure=line.unit_of_measure,
        unit_price=line.unit_price,
        base_unit_price=line.base_unit_price,
        discount=line.discount,
        subtotal=line.subtotal,
        tax_rate=line.tax_rate,
        tax_rate_code=line.tax_rate_code,
        tax_amount=line.tax_amount,
        exempted_amount=line.exempted_amount,
        line_total=line.line_total,
    )


def summary_response(summary: DocumentSummary) -> SummaryResponse:
    return SummaryResponse(
        currency=summary.currency,
        exchange_rate=summary.exchange_rate,
        total_taxed=summary.total_taxed,
        total_exempt=summary.total_exempt,
        total_exonerated=summary.total_exonerated,
        gross_sales=summary.gross_sales,
        discounts=summary.discounts,
        net_sales=summary.net_sales,
        tax=summary.tax,
        other_charges=summary.other_charges,
        grand_total=summary.grand_total,
    )


def session_response(session: DocumentSession) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        company_id=session.company_id,
        document_type=session.document_type.value,
        branch=session.branch,
        terminal=session.terminal,
        clave=session.key.clave if session.key else None,
        consecutive=session.key.consecutive if session.key else None,
        record_id=session.record_id,
        created_at=session.created_at,
    )


def record_response(record: StoredInvoiceRecord, include_xml: bool = False) -> RecordResponse:
    data = dict(
        id=record.id,
        company_id=record.company_id,
        document_type=record.document_type.value,
        environment=record.environment.value,
        clave=record.clave,
        consecutive=record.consecutive,
        status=record.status.value,
        issued_at=record.issued_at,
        receiver_name=record.receiver_name,
        receiver_email=record.receiver_email,
        currency=record.currency,
        exchange_rate=record.exchange_rate,
        subtotal=record.subtotal,
        tax=record.tax,
        total=record.total,
        signed=record.signed,
        reference_id=record.reference_id,
        rejection_code=record.rejection_code,
        error_message=record.error_message,
        can_resubmit=record.can_resubmit,
        email=EmailDeliveryResponse(
            recipient=record.email.recipient,
            requested=record.email.requested,
            status=record.email.status.value,
            attempts=record.email.attempts,
            last_error=record.email.last_error,
            last_attempt_at=record.email.last_attempt_at,
        ),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )
    if include_xml:
        return RecordDetailResponse(xml_content=record.xml_content, **data)
    return RecordResponse(**data)
