"""
Document assembler service.

Maps form data, computed lines, summary and key into the canonical
document, enforcing the per-document-type rules:

- ticket: receiver is always the generic final consumer, no exemptions
- invoice: receiver required, exemptions allowed, credit sales need a term
"""

import re
from collections.abc import Sequence
from datetime import datetime

from facturacr.config import get_logger
from facturacr.core.entities.document import (
    DocumentForm,
    DocumentSummary,
    ElectronicDocument,
    Party,
    PaymentMethod,
    SaleCondition,
    final_consumer,
)
from facturacr.core.entities.document_type import DocumentType
from facturacr.core.entities.line_item import CABYS_CODE_LENGTH, LineItem
from facturacr.core.entities.sequence import DocumentKey
from facturacr.core.exceptions import InvalidLineItemError, MissingRequiredFieldError
from facturacr.core.services.tax_calculator import TaxCalculator

logger = get_logger(__name__)

_CABYS_CODE = re.compile(rf"[0-9]{{{CABYS_CODE_LENGTH}}}")


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


class DocumentAssembler:
    """Builds the canonical ElectronicDocument for one submission."""

    def __init__(
        self,
        calculator: TaxCalculator | None = None,
        systems_provider_id: str | None = None,
    ):
        self._calculator = calculator or TaxCalculator()
        self._systems_provider_id = systems_provider_id

    def assemble(
        self,
        form: DocumentForm,
        lines: Sequence[LineItem],
        summary: DocumentSummary,
        key: DocumentKey,
        issued_at: datetime | None = None,
    ) -> ElectronicDocument:
        """
        Assemble the canonical document.

        Raises:
            MissingRequiredFieldError: a required field is empty (dotted path)
            InvalidLineItemError: a CABYS code is not 13 digits
        """
        doc_type = form.document_type
        self.validate(form, lines)

        lines = list(lines)
        if doc_type == DocumentType.TICKET:
            receiver = final_consumer(
                form.receiver.email if form.receiver and form.receiver.email else form.issuer.email
            )
            if any(line.exemption is not None for line in lines):
                logger.warning(
                    "ticket_exemptions_removed",
                    clave=key.clave,
                    lines=[line.line_number for line in lines if line.exemption is not None],
                )
                lines, summary = self._calculator.compute_document(
                    [line.model_copy(update={"exemption": None}) for line in lines],
                    form.other_charges,
                    summary.currency,
                    summary.exchange_rate,
                )
            receiver_activity = None
        else:
            receiver = form.receiver
            receiver_activity = form.receiver_activity

        return ElectronicDocument(
            document_type=doc_type,
            key=key,
            issued_at=issued_at or key.issued_at,
            issuer=form.issuer,
            receiver=receiver,
            receiver_activity=receiver_activity,
            sale_condition=form.sale_condition,
            credit_term_days=form.credit_term_days,
            payment_methods=form.payment_methods or [PaymentMethod.CASH],
            lines=lines,
            other_charges=form.other_charges,
            summary=summary,
            notes=form.notes,
            systems_provider_id=self._systems_provider_id,
        )

    def validate(self, form: DocumentForm, lines: Sequence[LineItem]) -> None:
        """
        Check the required fields without building anything.

        Run before a key is minted so an incomplete form consumes no number.

        Raises:
            MissingRequiredFieldError: a required field is empty (dotted path)
        """
        doc_type = form.document_type
        self._check_issuer(form)
        self._check_lines(lines, doc_type)
        if doc_type == DocumentType.INVOICE:
            self._check_receiver(form.receiver)
        if form.sale_condition == SaleCondition.CREDIT and not form.credit_term_days:
            raise MissingRequiredFieldError("credit_term_days", doc_type.value)

    def _check_issuer(self, form: DocumentForm) -> None:
        issuer = form.issuer
        doc_type = form.document_type.value

        if _blank(issuer.name):
            raise MissingRequiredFieldError("issuer.name", doc_type)
        if issuer.identification is None:
            raise MissingRequiredFieldError("issuer.identification", doc_type)
        if _blank(issuer.identification.number):
            raise MissingRequiredFieldError("issuer.identification.number", doc_type)
        if issuer.location is None:
            raise MissingRequiredFieldError("issuer.location", doc_type)
        for field in ("province", "canton", "district"):
            if _blank(getattr(issuer.location, field)):
                raise MissingRequiredFieldError(f"issuer.location.{field}", doc_type)
        if _blank(issuer.economic_activity):
            raise MissingRequiredFieldError("issuer.economic_activity", doc_type)

    def _check_receiver(self, receiver: Party | None) -> Party:
        doc_type = DocumentType.INVOICE.value
        if receiver is None:
            raise MissingRequiredFieldError("receiver", doc_type)
        if _blank(receiver.name):
            raise MissingRequiredFieldError("receiver.name", doc_type)
        if receiver.identification is None:
            raise MissingRequiredFieldError("receiver.identification", doc_type)
        if _blank(receiver.identification.number):
            raise MissingRequiredFieldError("receiver.identification.number", doc_type)
        return receiver

    def _check_lines(self, lines: Sequence[LineItem], doc_type: DocumentType) -> None:
        if not lines:
            raise MissingRequiredFieldError("lines", doc_type.value)
        for index, line in enumerate(lines):
            if _blank(line.cabys_code):
                raise MissingRequiredFieldError(f"lines[{index}].cabys_code", doc_type.value)
            if not _CABYS_CODE.fullmatch(line.cabys_code.strip()):
                raise InvalidLineItemError(
                    f"CABYS code must be {CABYS_CODE_LENGTH} digits", index + 1, line.cabys_code
                )
            if _blank(line.description):
                raise MissingRequiredFieldError(f"lines[{index}].description", doc_type.value)
