"""Tests for rate limiting on sign-in endpoints."""

import pytest

from app.core.rate_limiting import limiter


@pytest.fixture
def enable_limiter():
    limiter.reset()
    limiter.enabled = True
    yield
    limiter.enabled = False
    limiter.reset()


class TestMagicLinkRateLimit:
    """send-magic-link is throttled per client address."""

    @pytest.mark.asyncio
    async def test_sixth_request_in_a_minute_is_rejected(self, client, enable_limiter):  # noqa: ARG002
        statuses = []
        for _ in range(6):
            response = await client.post(
                "/api/v1/auth/send-magic-link", json={"email": "not-an-email"}
            )
            statuses.append(response.status_code)

        assert statuses[:5] == [400] * 5
        assert statuses[5] == 429

    @pytest.mark.asyncio
    async def test_429_payload_and_retry_after(self, client, enable_limiter):  # noqa: ARG002
        for _ in range(5):
            await client.post("/api/v1/auth/send-magic-link", json={"email": "x"})

        response = await client.post("/api/v1/auth/send-magic-link", json={"email": "x"})

        assert response.status_code == 429
        body = response.json()
        assert body["code"] == "RATE_LIMITED"
        assert body["canRetry"] is True
        assert "Retry-After" in response.headers
