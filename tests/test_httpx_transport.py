"""Tests for the httpx transport adapter and the transport factory."""

import json

import httpx
import pytest

from crpt.adapters.transport import HttpxTransport, create_transport
from crpt.core.config import CrptSettings, settings
from crpt.core.errors import ConfigurationError, TransportFailureError


def _transport(handler) -> HttpxTransport:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url="https://crpt.test/api/v3",
    )
    return HttpxTransport(client=client)


class TestHttpxTransport:
    """Calls go through httpx and failures become TransportFailureError."""

    @pytest.mark.asyncio
    async def test_send_returns_status_and_raw_body(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "doc-1"})

        transport = _transport(handler)
        try:
            response = await transport.send(
                "/lk/documents/create",
                "POST",
                {"Signature": "sig", "Content-Type": "application/json"},
                b'{"doc_type": "LP_INTRODUCE_GOODS"}',
                5.0,
            )
        finally:
            await transport.aclose()

        assert response.status_code == 200
        assert json.loads(response.body) == {"id": "doc-1"}

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://crpt.test/api/v3/lk/documents/create"
        assert request.headers["Signature"] == "sig"
        assert request.content == b'{"doc_type": "LP_INTRODUCE_GOODS"}'

    @pytest.mark.asyncio
    async def test_non_2xx_is_returned_not_raised(self) -> None:
        transport = _transport(lambda request: httpx.Response(400, json={"error_message": "bad"}))
        try:
            response = await transport.send("/lk/documents/create", "POST", {}, None, None)
        finally:
            await transport.aclose()

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_connect_error_becomes_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport = _transport(handler)
        try:
            with pytest.raises(TransportFailureError) as exc:
                await transport.send("/lk/documents/create", "POST", {}, None, 1.0)
        finally:
            await transport.aclose()

        assert exc.value.code == "transport_error"
        assert exc.value.timed_out is False
        assert isinstance(exc.value.cause, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_timeout_is_flagged(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        transport = _transport(handler)
        try:
            with pytest.raises(TransportFailureError) as exc:
                await transport.send("/lk/documents/create", "POST", {}, None, 1.0)
        finally:
            await transport.aclose()

        assert exc.value.code == "transport_timeout"
        assert exc.value.timed_out is True
        assert exc.value.details["target"] == "/lk/documents/create"


class TestTransportFactory:
    """Transport selection from settings."""

    def test_creates_httpx_transport_from_settings(self, monkeypatch) -> None:
        monkeypatch.setattr(
            settings,
            "crpt",
            CrptSettings(base_url="https://example.test/api/v3", transport="httpx"),
        )

        transport = create_transport()

        assert isinstance(transport, HttpxTransport)
        assert transport.base_url == "https://example.test/api/v3"
        assert str(transport.client.base_url) == "https://example.test/api/v3/"

    def test_unknown_transport_raises_configuration_error(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "crpt", CrptSettings(transport="carrier-pigeon"))

        with pytest.raises(ConfigurationError, match="Unknown transport") as exc:
            create_transport()
        assert exc.value.code == "unknown_transport"
