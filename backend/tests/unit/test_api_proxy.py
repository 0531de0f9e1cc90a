"""Tests for the transcription API reverse proxy.

Endpoint: /api/v1/vexa/{path} (GET, POST, PUT, PATCH, DELETE)
"""

import httpx
import pytest
from pydantic import SecretStr

from app.adapters.vexa import ProxiedResponse, VexaApiClient
from app.api.deps import vexa_client
from app.core.auth import SESSION_COOKIE_NAME
from app.core.errors import UpstreamUnavailableError
from app.main import app
from tests.conftest import TEST_SESSION_TOKEN


def _forwarded(fake_vexa) -> dict:
    (call,) = [args for name, args in fake_vexa.calls if name == "forward"]
    return call


class TestProxyForwarding:
    """Method, path, query and body are relayed."""

    @pytest.mark.asyncio
    async def test_get_with_query_uses_cookie_token(self, client, fake_vexa):
        client.cookies.set(SESSION_COOKIE_NAME, TEST_SESSION_TOKEN)

        response = await client.get("/api/v1/vexa/transcripts/google_meet/abc?limit=5")

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        call = _forwarded(fake_vexa)
        assert call["method"] == "GET"
        assert call["path"] == "transcripts/google_meet/abc"
        assert call["query"] == "limit=5"
        assert call["token"] == TEST_SESSION_TOKEN

    @pytest.mark.asyncio
    async def test_post_body_forwarded(self, client, fake_vexa):
        fake_vexa.forward_response = ProxiedResponse(status_code=201, body={"id": 1})
        client.cookies.set(SESSION_COOKIE_NAME, TEST_SESSION_TOKEN)

        response = await client.post(
            "/api/v1/vexa/bots", json={"platform": "google_meet", "native_meeting_id": "x"}
        )

        assert response.status_code == 201
        assert response.json() == {"id": 1}
        call = _forwarded(fake_vexa)
        assert call["method"] == "POST"
        assert b'"native_meeting_id"' in call["body"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE"])
    async def test_other_methods(self, client, fake_vexa, method):
        client.cookies.set(SESSION_COOKIE_NAME, TEST_SESSION_TOKEN)

        await client.request(method, "/api/v1/vexa/bots/google_meet/abc")

        assert _forwarded(fake_vexa)["method"] == method

    @pytest.mark.asyncio
    async def test_falls_back_to_server_api_key(self, client, fake_vexa, configured_settings):
        configured_settings.vexa_api_key = SecretStr("server-side-key")

        await client.get("/api/v1/vexa/meetings")

        assert _forwarded(fake_vexa)["token"] == "server-side-key"

    @pytest.mark.asyncio
    async def test_no_token_at_all(self, client, fake_vexa):
        await client.get("/api/v1/vexa/meetings")

        assert _forwarded(fake_vexa)["token"] is None


class TestProxyResponses:
    """Relayed status, body and caching."""

    @pytest.mark.asyncio
    async def test_upstream_error_status_relayed(self, client, fake_vexa):
        fake_vexa.forward_response = ProxiedResponse(status_code=403, body={"detail": "nope"})

        response = await client.get("/api/v1/vexa/meetings")

        assert response.status_code == 403
        assert response.json() == {"detail": "nope"}

    @pytest.mark.asyncio
    async def test_204_has_empty_body(self, client, fake_vexa):
        fake_vexa.forward_response = ProxiedResponse(status_code=204)

        response = await client.delete("/api/v1/vexa/bots/google_meet/abc")

        assert response.status_code == 204
        assert response.content == b""

    @pytest.mark.asyncio
    async def test_never_cached(self, client):
        response = await client.get("/api/v1/vexa/meetings")

        assert "no-store" in response.headers["cache-control"]

    @pytest.mark.asyncio
    async def test_unreachable_upstream_is_502(self, client, fake_vexa):
        fake_vexa.forward_error = UpstreamUnavailableError(details="refused")

        response = await client.get("/api/v1/vexa/meetings")

        assert response.status_code == 502
        body = response.json()
        assert body["error"] == "Failed to connect to Vexa API"
        assert body["code"] == "UPSTREAM_UNAVAILABLE"
        assert body["canRetry"] is True

    @pytest.mark.asyncio
    async def test_malformed_upstream_json_is_502(self, client):
        gateway_page = httpx.MockTransport(
            lambda request: httpx.Response(
                200,
                content=b"<html>gateway</html>",
                headers={"content-type": "application/json"},
            )
        )
        app.dependency_overrides[vexa_client] = lambda: VexaApiClient(
            "http://api.vexa.test", transport=gateway_page
        )

        response = await client.get("/api/v1/vexa/meetings")

        assert response.status_code == 502
        body = response.json()
        assert body["code"] == "UPSTREAM_ERROR"
        assert body["canRetry"] is True
