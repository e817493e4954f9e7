"""Tests for SubmitDocumentUseCase."""

from decimal import Decimal

import pytest

from facturacr.application.email_delivery import wait_for_pending_deliveries
from facturacr.config.settings import HaciendaSettings, Settings, StorageSettings
from facturacr.core.entities import (
    FINAL_CONSUMER_NAME,
    DocumentType,
    EmailStatus,
    Environment,
    InvoiceStatus,
    SubmissionResult,
    SubmissionStage,
)
from facturacr.core.exceptions import (
    MissingRequiredFieldError,
    SigningError,
    SigningUnavailableError,
    SubmissionRejectedError,
    SubmissionTransportError,
    ValidationError,
)

SIGNED_MARK = "<!-- signed -->"


class TestSuccessfulSubmission:
    @pytest.mark.asyncio
    async def test_completed_invoice(
        self, make_submit_use_case, make_request, registry, record_store, tax_authority
    ):
        uc = make_submit_use_case()
        session = registry.open("cmp_001", DocumentType.INVOICE)

        result = await uc.execute(session, make_request())

        record = result.record
        assert record.status == InvoiceStatus.COMPLETED
        assert record.id.startswith("F-")
        assert record.consecutive == "00100001010000000001"
        assert len(record.clave) == 50
        assert record.reference_id == "ref-001"
        assert record.total == Decimal("2260.00000")
        assert record.signed is True
        assert record.xml_content.endswith(SIGNED_MARK)
        assert result.stage == SubmissionStage.RECORDED
        assert result.finished is True
        assert session.record_id == record.id

        stored = await record_store.get_record(record.id)
        assert stored.status == InvoiceStatus.COMPLETED

        signed_xml, clave, issuer = tax_authority.submit.call_args.args
        assert signed_xml.endswith(SIGNED_MARK)
        assert clave == record.clave
        assert issuer.identification.number == "3101123456"

    @pytest.mark.asyncio
    async def test_email_sent_after_acceptance(
        self, make_submit_use_case, make_request, registry, record_store, email_sender
    ):
        uc = make_submit_use_case()
        session = registry.open("cmp_001", DocumentType.INVOICE)

        result = await uc.execute(session, make_request(send_email=True))
        await wait_for_pending_deliveries()

        assert result.email_scheduled is True
        recipient, subject, attachments, _body = email_sender.send.call_args.args
        assert recipient == "maria@example.com"
        assert subject == f"Factura Electrónica {result.record.consecutive}"
        assert attachments[0].filename == f"{result.record.clave}.xml"

        stored = await record_store.get_record(result.record.id)
        assert stored.email.status == EmailStatus.SENT
        assert stored.email.attempts == 1
        assert stored.status == InvoiceStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_failed_email_does_not_change_status(
        self, make_submit_use_case, make_request, registry, record_store, email_sender
    ):
        email_sender.send.side_effect = RuntimeError("smtp down")
        uc = make_submit_use_case()
        session = registry.open("cmp_001", DocumentType.INVOICE)

        result = await uc.execute(session, make_request(send_email=True))
        await wait_for_pending_deliveries()

        stored = await record_store.get_record(result.record.id)
        assert stored.status == InvoiceStatus.COMPLETED
        assert stored.email.status == EmailStatus.FAILED
        assert stored.email.last_error == "smtp down"

    @pytest.mark.asyncio
    async def test_email_opt_out_is_stored(
        self, make_submit_use_case, make_request, registry, record_store
    ):
        uc = make_submit_use_case()

        result = await uc.execute(
            registry.open("cmp_001", DocumentType.INVOICE), make_request(send_email=False)
        )

        stored = await record_store.get_record(result.record.id)
        assert stored.email.requested is False
        assert result.email_scheduled is False

    @pytest.mark.asyncio
    async def test_back_to_back_documents_get_consecutive_numbers(
        self, make_submit_use_case, make_request, registry
    ):
        uc = make_submit_use_case()
        first = await uc.execute(registry.open("cmp_001", DocumentType.INVOICE), make_request())
        second = await uc.execute(registry.open("cmp_001", DocumentType.INVOICE), make_request())

        assert first.document.key.sequence == 1
        assert second.document.key.sequence == 2
        assert first.record.clave != second.record.clave
        assert first.record.clave[42:] == second.record.clave[42:]

    @pytest.mark.asyncio
    async def test_company_registered_on_first_document(
        self, make_submit_use_case, make_request, registry, company_store
    ):
        uc = make_submit_use_case()
        await uc.execute(registry.open("cmp_001", DocumentType.INVOICE), make_request())

        company = company_store.companies["cmp_001"]
        assert company.name == "Comercial La Sabana S.A."
        assert company.identification_number == "3101123456"
        assert company_store.codes["cmp_001"]

    @pytest.mark.asyncio
    async def test_ticket(self, make_submit_use_case, make_request, registry):
        uc = make_submit_use_case()
        session = registry.open("cmp_001", DocumentType.TICKET)

        result = await uc.execute(session, make_request(document_type=DocumentType.TICKET))

        assert result.record.id.startswith("T-")
        assert result.record.consecutive == "00100001040000000001"
        assert result.record.receiver_name == FINAL_CONSUMER_NAME
        assert "<TiqueteElectronico" in result.record.xml_content

    @pytest.mark.asyncio
    async def test_foreign_currency_rate_looked_up(
        self, make_submit_use_case, make_request, registry, rate_source
    ):
        uc = make_submit_use_case()
        session = registry.open("cmp_001", DocumentType.INVOICE)

        result = await uc.execute(session, make_request(currency="USD"))

        rate_source.get_rate.assert_awaited_once_with("USD")
        assert result.record.currency == "USD"
        assert result.record.exchange_rate == Decimal("506.50000")
        assert result.document.lines[0].base_unit_price == Decimal("1000")

    @pytest.mark.asyncio
    async def test_to_response(self, make_submit_use_case, make_request, registry):
        uc = make_submit_use_case()
        session = registry.open("cmp_001", DocumentType.INVOICE)
        result = await uc.execute(session, make_request())

        response = uc.to_response(result)

        assert response.status == "completed"
        assert response.session_id == session.id
        assert response.summary.grand_total == Decimal("2260.00000")
        assert response.lines[0].tax_amount == Decimal("260.00000")


class TestDegradedSubmission:
    @pytest.mark.asyncio
    async def test_transport_failure_leaves_pending_and_retry_reuses_clave(
        self, make_submit_use_case, make_request, registry, tax_authority, sequence_generator
    ):
        uc = make_submit_use_case()
        session = registry.open("cmp_001", DocumentType.INVOICE)
        tax_authority.submit.side_effect = SubmissionTransportError("timeout")

        first = await uc.execute(session, make_request())

        assert first.record.status == InvoiceStatus.PENDING
        assert first.stage == SubmissionStage.FAILED
        assert first.finished is False
        assert "timeout" in first.error

        tax_authority.submit.side_effect = None
        second = await uc.execute(session, make_request())

        assert second.record.status == InvoiceStatus.COMPLETED
        assert second.record.clave == first.record.clave
        assert second.record.id == first.record.id
        assert await sequence_generator.current(session.key.scope) == 1

    @pytest.mark.asyncio
    async def test_rejection(
        self, make_submit_use_case, make_request, registry, tax_authority, email_sender
    ):
        tax_authority.submit.return_value = SubmissionResult(
            accepted=False, reason_code="400", error="clave duplicada"
        )
        uc = make_submit_use_case()
        session = registry.open("cmp_001", DocumentType.INVOICE)

        result = await uc.execute(session, make_request(send_email=True))

        assert result.record.status == InvoiceStatus.REJECTED
        assert result.record.rejection_code == "400"
        assert result.record.error_message == "clave duplicada"
        assert result.finished is True
        assert result.email_scheduled is False
        email_sender.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_raised_rejection_is_recorded(
        self, make_submit_use_case, make_request, registry, tax_authority
    ):
        tax_authority.submit.side_effect = SubmissionRejectedError(
            "400", "La clave ya fue recibida"
        )
        uc = make_submit_use_case()
        session = registry.open("cmp_001", DocumentType.INVOICE)

        result = await uc.execute(session, make_request())

        assert result.record.status == InvoiceStatus.REJECTED
        assert result.record.rejection_code == "400"
        assert result.record.error_message == "La clave ya fue recibida"
        assert result.stage == SubmissionStage.RECORDED

    @pytest.mark.asyncio
    async def test_signing_unavailable_in_sandbox_submits_unsigned(
        self, make_submit_use_case, make_request, registry, signer, tax_authority
    ):
        signer.sign.side_effect = SigningUnavailableError("no signing service configured")
        uc = make_submit_use_case()

        result = await uc.execute(registry.open("cmp_001", DocumentType.INVOICE), make_request())

        assert result.record.status == InvoiceStatus.COMPLETED
        assert result.record.signed is False
        assert result.signed is False
        tax_authority.submit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_signing_unavailable_in_production_stays_pending(
        self, make_submit_use_case, make_request, registry, signer, tax_authority,
        production_settings,
    ):
        signer.sign.side_effect = SigningUnavailableError("no signing service configured")
        uc = make_submit_use_case(production_settings)

        result = await uc.execute(registry.open("cmp_001", DocumentType.INVOICE), make_request())

        assert result.record.status == InvoiceStatus.PENDING
        assert result.record.signed is False
        assert "Signing service unavailable" in result.error
        tax_authority.submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_signing_failure_stays_pending(
        self, make_submit_use_case, make_request, registry, signer, tax_authority
    ):
        signer.sign.side_effect = SigningError("certificate expired")
        uc = make_submit_use_case()

        result = await uc.execute(registry.open("cmp_001", DocumentType.INVOICE), make_request())

        assert result.record.status == InvoiceStatus.PENDING
        assert result.stage == SubmissionStage.FAILED
        tax_authority.submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_simulated_acceptance(
        self, make_submit_use_case, make_request, registry, tax_authority, tmp_path
    ):
        settings = Settings(
            hacienda=HaciendaSettings(simulate=True, simulate_delay=0),
            storage=StorageSettings(data_dir=tmp_path),
        )
        uc = make_submit_use_case(settings)

        result = await uc.execute(registry.open("cmp_001", DocumentType.INVOICE), make_request())

        assert result.record.status == InvoiceStatus.COMPLETED
        assert result.simulated is True
        assert result.record.reference_id == result.record.clave
        tax_authority.submit.assert_not_called()


class TestRecordIdentity:
    @pytest.mark.asyncio
    async def test_two_companies_keep_their_first_documents(
        self, make_submit_use_case, make_request, registry, record_store
    ):
        uc = make_submit_use_case()

        first = await uc.execute(registry.open("cmp_001", DocumentType.INVOICE), make_request())
        second = await uc.execute(
            registry.open("cmp_002", DocumentType.INVOICE), make_request(company_id="cmp_002")
        )

        assert first.record.consecutive == second.record.consecutive
        assert first.record.id != second.record.id
        assert (await record_store.get_record(first.record.id)).company_id == "cmp_001"
        assert (await record_store.get_record(second.record.id)).company_id == "cmp_002"
        assert await record_store.count_records("cmp_001") == 1
        assert await record_store.count_records("cmp_002") == 1

    @pytest.mark.asyncio
    async def test_environment_switch_keeps_sandbox_history(
        self, make_submit_use_case, make_request, registry, record_store, sequence_generator
    ):
        uc = make_submit_use_case()
        sandbox = await uc.execute(registry.open("cmp_001", DocumentType.INVOICE), make_request())
        scope = await sequence_generator.resolve_scope(
            "cmp_001", DocumentType.INVOICE, "001", "00001"
        )
        await sequence_generator.switch_environment(scope, Environment.PRODUCTION)

        production = await uc.execute(
            registry.open("cmp_001", DocumentType.INVOICE), make_request()
        )

        assert production.record.environment == Environment.PRODUCTION
        assert production.record.consecutive == sandbox.record.consecutive
        kept = await record_store.get_record(sandbox.record.id)
        assert kept.environment == Environment.SANDBOX
        assert kept.clave == sandbox.record.clave
        assert await record_store.count_records("cmp_001") == 2


class TestInvalidInput:
    @pytest.mark.asyncio
    async def test_missing_receiver_consumes_no_number(
        self, make_submit_use_case, make_request, registry, sequence_generator, record_store
    ):
        uc = make_submit_use_case()
        session = registry.open("cmp_001", DocumentType.INVOICE)

        with pytest.raises(MissingRequiredFieldError):
            await uc.execute(session, make_request(receiver=None))

        assert session.has_key is False
        scope = await sequence_generator.resolve_scope(
            "cmp_001", DocumentType.INVOICE, "001", "00001"
        )
        assert await sequence_generator.current(scope) == 0
        assert record_store.records == {}

    @pytest.mark.asyncio
    async def test_company_mismatch(self, make_submit_use_case, make_request, registry):
        uc = make_submit_use_case()
        session = registry.open("cmp_other", DocumentType.INVOICE)

        with pytest.raises(ValidationError):
            await uc.execute(session, make_request())

    @pytest.mark.asyncio
    async def test_document_type_mismatch(self, make_submit_use_case, make_request, registry):
        uc = make_submit_use_case()
        session = registry.open("cmp_001", DocumentType.TICKET)

        with pytest.raises(ValidationError):
            await uc.execute(session, make_request())
