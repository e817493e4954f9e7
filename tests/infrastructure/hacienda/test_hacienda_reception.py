"""Tests for HaciendaReceptionClient."""

import base64
import json

import httpx
import pytest

from facturacr.core.exceptions import SubmissionRejectedError, SubmissionTransportError
from facturacr.infrastructure.hacienda import HaciendaReceptionClient, HaciendaTokenProvider

RECEPTION_URL = "https://api.example.cr/recepcion/v1/"
CLAVE = "50605032400310112345600100001010000000001112345678"
SIGNED_XML = "<FacturaElectronica><Clave>x</Clave></FacturaElectronica>"


def _token_response(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"access_token": "tok-1", "expires_in": 300})


def _client(handler) -> HaciendaReceptionClient:
    """Reception client whose token and API calls share one mock transport."""

    def route(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/token":
            return _token_response(request)
        return handler(request)

    transport = httpx.MockTransport(route)
    tokens = HaciendaTokenProvider(
        token_url="https://idp.example.cr/token",
        client_id="api-stag",
        username="user",
        password="secret",
        max_retries=1,
        transport=transport,
    )
    return HaciendaReceptionClient(
        reception_url=RECEPTION_URL,
        token_provider=tokens,
        public_api_url="https://public.example.cr",
        max_retries=1,
        transport=transport,
    )


class TestSubmit:
    @pytest.mark.asyncio
    async def test_accepted_with_location(self, issuer):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(202, headers={"Location": "/recepcion/" + CLAVE})

        result = await _client(handler).submit(SIGNED_XML, CLAVE, issuer)

        assert result.accepted is True
        assert result.reference_id == "/recepcion/" + CLAVE
        assert captured["url"] == "https://api.example.cr/recepcion/v1/recepcion"
        assert captured["auth"] == "Bearer tok-1"
        body = captured["body"]
        assert body["clave"] == CLAVE
        assert body["emisor"] == {"tipoIdentificacion": "02", "numeroIdentificacion": "3101123456"}
        assert base64.b64decode(body["comprobanteXml"]).decode() == SIGNED_XML
        assert body["fecha"].endswith("-06:00")

    @pytest.mark.asyncio
    async def test_accepted_without_location_uses_clave(self, issuer):
        result = await _client(lambda r: httpx.Response(200)).submit(SIGNED_XML, CLAVE, issuer)

        assert result.reference_id == CLAVE

    @pytest.mark.asyncio
    async def test_rejection_carries_cause(self, issuer):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400, headers={"X-Error-Cause": "La clave ya fue recibida"}, text="bad"
            )

        with pytest.raises(SubmissionRejectedError) as exc_info:
            await _client(handler).submit(SIGNED_XML, CLAVE, issuer)

        assert exc_info.value.reason_code == "400"
        assert exc_info.value.reason == "La clave ya fue recibida"
        assert exc_info.value.details["clave"] == CLAVE

    @pytest.mark.asyncio
    async def test_rejection_falls_back_to_body(self, issuer):
        with pytest.raises(SubmissionRejectedError) as exc_info:
            await _client(lambda r: httpx.Response(422, text="estructura invalida")).submit(
                SIGNED_XML, CLAVE, issuer
            )

        assert exc_info.value.reason_code == "422"
        assert exc_info.value.reason == "estructura invalida"

    @pytest.mark.asyncio
    async def test_server_error_is_transport_failure(self, issuer):
        with pytest.raises(SubmissionTransportError) as exc_info:
            await _client(lambda r: httpx.Response(503)).submit(SIGNED_XML, CLAVE, issuer)

        assert exc_info.value.details["status_code"] == 503
        assert exc_info.value.details["clave"] == CLAVE

    @pytest.mark.asyncio
    async def test_unauthorized_invalidates_token(self, issuer):
        token_requests = []

        def route(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/token":
                token_requests.append(request)
                return _token_response(request)
            return httpx.Response(401)

        transport = httpx.MockTransport(route)
        tokens = HaciendaTokenProvider(
            "https://idp.example.cr/token", "api-stag", "user", "secret", transport=transport
        )
        client = HaciendaReceptionClient(RECEPTION_URL, tokens, transport=transport)

        for _ in range(2):
            with pytest.raises(SubmissionTransportError):
                await client.submit(SIGNED_XML, CLAVE, issuer)

        assert len(token_requests) == 2

    @pytest.mark.asyncio
    async def test_connection_error_is_not_retried(self, issuer):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            raise httpx.ConnectError("connection refused")

        with pytest.raises(SubmissionTransportError, match="connection refused"):
            await _client(handler).submit(SIGNED_XML, CLAVE, issuer)

        assert len(attempts) == 1

    @pytest.mark.asyncio
    async def test_token_failure_is_transport_failure(self, issuer):
        def route(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, text="invalid_grant")

        transport = httpx.MockTransport(route)
        tokens = HaciendaTokenProvider(
            "https://idp.example.cr/token", "api-stag", "user", "secret",
            max_retries=1, transport=transport,
        )
        client = HaciendaReceptionClient(RECEPTION_URL, tokens, transport=transport)

        with pytest.raises(SubmissionTransportError, match="authentication failed"):
            await client.submit(SIGNED_XML, CLAVE, issuer)


class TestLookupContributor:
    @pytest.mark.asyncio
    async def test_registered_contributor(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/fe/ae"
            assert request.url.params["identificacion"] == "3101123456"
            return httpx.Response(
                200,
                json={
                    "nombre": "COMERCIAL LA SABANA SOCIEDAD ANONIMA",
                    "tipoIdentificacion": "02",
                    "situacion": {"estado": "Inscrito"},
                    "actividades": [
                        {"codigo": 523101, "descripcion": "VENTA AL POR MENOR", "estado": "A"}
                    ],
                },
            )

        info = await _client(handler).lookup_contributor("3101123456")

        assert info.is_valid is True
        assert info.name == "COMERCIAL LA SABANA SOCIEDAD ANONIMA"
        assert info.activities[0].code == "523101"

    @pytest.mark.asyncio
    async def test_unregistered_state_is_invalid(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"nombre": "X", "situacion": {"estado": "Desinscrito oficio"}}
            )

        info = await _client(handler).lookup_contributor("112340567")

        assert info.is_valid is False
        assert info.status == "Desinscrito oficio"
        assert info.activities == []

    @pytest.mark.asyncio
    async def test_not_found(self):
        info = await _client(lambda r: httpx.Response(404)).lookup_contributor("999999999")

        assert info.status == "No inscrito"
        assert info.is_valid is False

    @pytest.mark.asyncio
    async def test_server_error(self):
        with pytest.raises(SubmissionTransportError):
            await _client(lambda r: httpx.Response(500)).lookup_contributor("3101123456")
