"""Tests for session, sequence and lookup use cases."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from facturacr.application.dto.requests import (
    OpenSessionRequest,
    SequenceScopeRequest,
    SwitchEnvironmentRequest,
)
from facturacr.application.dto.responses import SwitchEnvironmentResponse
from facturacr.application.use_cases import (
    GetExchangeRateUseCase,
    LookupContributorUseCase,
    ManageSequencesUseCase,
    ManageSessionsUseCase,
)
from facturacr.core.entities import (
    ContributorActivity,
    ContributorInfo,
    DocumentType,
    Environment,
    SequenceScope,
)
from facturacr.core.exceptions import SessionNotFoundError, ValidationError
from facturacr.core.services import ExchangeRateService


class TestManageSessionsUseCase:
    @pytest.mark.asyncio
    async def test_open_uses_default_branch_and_terminal(self, registry):
        uc = ManageSessionsUseCase(registry)

        result = await uc.open(OpenSessionRequest(company_id="cmp_001"))

        assert result.session.branch == "001"
        assert result.session.terminal == "00001"
        assert result.session.document_type == DocumentType.INVOICE
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_open_with_explicit_terminal(self, registry):
        uc = ManageSessionsUseCase(registry)

        result = await uc.open(
            OpenSessionRequest(
                company_id="cmp_001",
                document_type=DocumentType.TICKET,
                branch="002",
                terminal="00004",
            )
        )
        response = uc.to_response(result)

        assert response.branch == "002"
        assert response.terminal == "00004"
        assert response.clave is None

    @pytest.mark.asyncio
    async def test_get_and_discard(self, registry):
        uc = ManageSessionsUseCase(registry)
        opened = await uc.open(OpenSessionRequest(company_id="cmp_001"))

        fetched = await uc.get(opened.session.id)
        assert fetched.session is opened.session

        discarded = await uc.discard(opened.session.id)
        assert discarded.discarded is True
        with pytest.raises(SessionNotFoundError):
            await uc.get(opened.session.id)

    @pytest.mark.asyncio
    async def test_discard_unknown(self, registry):
        with pytest.raises(SessionNotFoundError):
            await ManageSessionsUseCase(registry).discard("nope")

    @pytest.mark.asyncio
    async def test_discard_after_mint_keeps_number_consumed(
        self, registry, key_service, sequence_generator
    ):
        uc = ManageSessionsUseCase(registry)
        session = (await uc.open(OpenSessionRequest(company_id="cmp_001"))).session
        key = await key_service.ensure_key(session, "02", "3101123456")

        await uc.discard(session.id)

        replacement = registry.open("cmp_001", DocumentType.INVOICE)
        next_key = await key_service.ensure_key(replacement, "02", "3101123456")
        assert next_key.sequence == key.sequence + 1


class TestManageSequencesUseCase:
    @pytest.mark.asyncio
    async def test_current(self, sequence_generator, sequence_store):
        scope = SequenceScope(company_id="cmp_001", document_type=DocumentType.INVOICE)
        sequence_store.counters[scope] = 12
        uc = ManageSequencesUseCase(sequence_generator)

        state = await uc.current(SequenceScopeRequest(company_id="cmp_001"))
        response = uc.to_response(state)

        assert state.current_value == 12
        assert response.environment == "sandbox"
        assert response.next_consecutive == "00100001010000000013"

    @pytest.mark.asyncio
    async def test_switch_environment(self, sequence_generator, sequence_store):
        scope = SequenceScope(company_id="cmp_001", document_type=DocumentType.INVOICE)
        sequence_store.counters[scope] = 12
        uc = ManageSequencesUseCase(sequence_generator)

        state = await uc.switch_environment(
            SwitchEnvironmentRequest(company_id="cmp_001", environment=Environment.PRODUCTION)
        )
        response = uc.to_response(state)

        assert isinstance(response, SwitchEnvironmentResponse)
        assert response.changed is True
        assert response.previous_environment == "sandbox"
        assert response.environment == "production"
        assert response.current_value == 0
        assert response.next_consecutive.endswith("0000000001")
        assert sequence_store.counters[scope] == 12

        current = await uc.current(SequenceScopeRequest(company_id="cmp_001"))
        assert current.scope.environment == Environment.PRODUCTION

    @pytest.mark.asyncio
    async def test_switch_to_same_environment(self, sequence_generator):
        uc = ManageSequencesUseCase(sequence_generator)

        state = await uc.switch_environment(
            SwitchEnvironmentRequest(company_id="cmp_001", environment=Environment.SANDBOX)
        )

        assert state.changed is False


class TestLookups:
    @pytest.mark.asyncio
    async def test_exchange_rate(self, rate_source):
        uc = GetExchangeRateUseCase(ExchangeRateService(rate_source))

        response = uc.to_response(await uc.execute("usd"))

        assert response.currency == "USD"
        assert response.rate == Decimal("506.50000")
        assert response.base_currency == "CRC"

    @pytest.mark.asyncio
    async def test_contributor_lookup(self):
        authority = AsyncMock()
        authority.lookup_contributor.return_value = ContributorInfo(
            identification="3101123456",
            name="COMERCIAL LA SABANA SOCIEDAD ANONIMA",
            identification_type="02",
            status="Inscrito",
            is_valid=True,
            activities=[ContributorActivity(code="523101", description="Comercio", status="A")],
        )
        uc = LookupContributorUseCase(authority)

        response = uc.to_response(await uc.execute("3-101-123456"))

        authority.lookup_contributor.assert_awaited_once_with("3101123456")
        assert response.is_valid is True
        assert response.activities[0].code == "523101"

    @pytest.mark.asyncio
    async def test_contributor_lookup_rejects_bad_id(self):
        authority = AsyncMock()
        with pytest.raises(ValidationError):
            await LookupContributorUseCase(authority).execute("12ab")
        authority.lookup_contributor.assert_not_called()
