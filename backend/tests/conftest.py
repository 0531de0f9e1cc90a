from collections.abc import AsyncGenerator, Iterator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr

from app.adapters.vexa import AdminApiError, ProxiedResponse, VexaUser
from app.core.config import settings
from app.core.errors import UnauthorizedError
from app.core.rate_limiting import limiter
from app.core.runtime_config import reset_runtime_config

# Security: test-only secrets. Production uses real values from env.
TEST_ADMIN_API_KEY = "test-admin-api-key-that-is-at-least-32-chars"  # nosec B105  # gitleaks:allow
TEST_JWT_SECRET = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105  # gitleaks:allow
TEST_SESSION_TOKEN = "vexa-session-token-0001"  # nosec B105

TEST_EMAIL = "alice@example.com"
TEST_USER_ID = "101"


class FakeAdminClient:
    """In-memory stand-in for VexaAdminClient.

    Users are keyed by email. ``failures`` maps a method name to the
    AdminApiError it should raise instead of succeeding.
    """

    def __init__(self) -> None:
        self.users: dict[str, VexaUser] = {}
        self.failures: dict[str, AdminApiError] = {}
        self.calls: list[tuple[str, Any]] = []
        self.probe_status = 200
        self._next_id = 500
        self._tokens_issued = 0

    def add_user(self, email: str, user_id: str = TEST_USER_ID) -> VexaUser:
        user = VexaUser(id=user_id, email=email, name=email.split("@")[0])
        self.users[email] = user
        return user

    def _maybe_fail(self, method: str) -> None:
        if method in self.failures:
            raise self.failures[method]

    async def find_user_by_email(
        self, email: str, *, timeout: float | None = None
    ) -> VexaUser:
        self.calls.append(("find_user_by_email", email))
        self._maybe_fail("find_user_by_email")
        if email not in self.users:
            raise AdminApiError("NOT_FOUND", "Resource not found")
        return self.users[email]

    async def create_user(self, email: str, name: str | None = None) -> VexaUser:
        self.calls.append(("create_user", email))
        self._maybe_fail("create_user")
        self._next_id += 1
        user = VexaUser(id=str(self._next_id), email=email, name=name or email.split("@")[0])
        self.users[email] = user
        return user

    async def create_user_token(self, user_id: str) -> str:
        self.calls.append(("create_user_token", user_id))
        self._maybe_fail("create_user_token")
        self._tokens_issued += 1
        return f"api-token-{user_id}-{self._tokens_issued}"

    async def get_user(self, user_id: str) -> dict[str, Any]:
        self.calls.append(("get_user", user_id))
        self._maybe_fail("get_user")
        for user in self.users.values():
            if user.id == user_id:
                return {**user.to_profile(), "api_tokens": []}
        raise AdminApiError("NOT_FOUND", "Resource not found")

    async def list_users(self, *, skip: int = 0, limit: int = 50) -> Any:
        self.calls.append(("list_users", (skip, limit)))
        self._maybe_fail("list_users")
        users = [u.to_profile() for u in self.users.values()]
        return users[skip : skip + limit]

    async def probe(self, *, timeout: float) -> int:
        self.calls.append(("probe", timeout))
        self._maybe_fail("probe")
        return self.probe_status

    def called(self, method: str) -> bool:
        return any(name == method for name, _ in self.calls)


class FakeVexaClient:
    """In-memory stand-in for VexaApiClient.

    Tokens in ``valid_tokens`` are accepted; everything else is a 401.
    """

    def __init__(self) -> None:
        self.valid_tokens: set[str] = {TEST_SESSION_TOKEN}
        self.responses: dict[str, Any] = {}
        self.forward_response = ProxiedResponse(status_code=200, body={"ok": True})
        self.forward_error: Exception | None = None
        self.validate_error: Exception | None = None
        self.calls: list[tuple[str, Any]] = []
        self.probe_status = 200
        self.probe_error: Exception | None = None

    async def validate_token(self, token: str) -> bool:
        self.calls.append(("validate_token", token))
        if self.validate_error is not None:
            raise self.validate_error
        return token in self.valid_tokens

    async def get_json(self, path: str, *, token: str) -> Any:
        self.calls.append(("get_json", path))
        if token not in self.valid_tokens:
            raise UnauthorizedError("Invalid token")
        return self.responses[path]

    async def forward(
        self,
        method: str,
        path: str,
        *,
        token: str | None,
        query: str = "",
        body: bytes | None = None,
    ) -> ProxiedResponse:
        self.calls.append(
            ("forward", {"method": method, "path": path, "token": token, "query": query, "body": body})
        )
        if self.forward_error is not None:
            raise self.forward_error
        return self.forward_response

    async def probe(self, *, timeout: float) -> int:
        self.calls.append(("probe", timeout))
        if self.probe_error is not None:
            raise self.probe_error
        return self.probe_status


@pytest.fixture(autouse=True)
def _isolate_state() -> Iterator[None]:
    """Disable rate limiting and drop cached runtime config around each test."""
    original_enabled = limiter.enabled
    limiter.enabled = False
    reset_runtime_config()
    yield
    limiter.enabled = original_enabled
    limiter.reset()
    reset_runtime_config()


@pytest.fixture
def configured_settings() -> Iterator[Any]:
    """Configure the admin API key and signing secret; email left unset.

    Restores every touched setting afterwards.
    """
    original = {
        "vexa_admin_api_key": settings.vexa_admin_api_key,
        "jwt_secret": settings.jwt_secret,
        "resend_api_key": settings.resend_api_key,
        "app_url": settings.app_url,
        "allow_registration": settings.allow_registration,
        "allowed_email_domains": settings.allowed_email_domains,
        "allowed_emails": settings.allowed_emails,
        "admin_panel_key": settings.admin_panel_key,
        "vexa_api_key": settings.vexa_api_key,
        "vexa_api_url": settings.vexa_api_url,
        "public_vexa_api_url": settings.public_vexa_api_url,
        "public_vexa_ws_url": settings.public_vexa_ws_url,
        "cookie_domain": settings.cookie_domain,
    }
    settings.vexa_admin_api_key = SecretStr(TEST_ADMIN_API_KEY)
    settings.jwt_secret = SecretStr(TEST_JWT_SECRET)
    settings.resend_api_key = SecretStr("")
    settings.app_url = "http://dashboard.test"
    settings.allow_registration = True
    settings.allowed_email_domains = []
    settings.allowed_emails = []
    settings.admin_panel_key = SecretStr("")
    settings.vexa_api_key = SecretStr("")
    settings.cookie_domain = ""

    yield settings

    for name, value in original.items():
        setattr(settings, name, value)


@pytest.fixture
def fake_admin() -> FakeAdminClient:
    return FakeAdminClient()


@pytest.fixture
def fake_vexa() -> FakeVexaClient:
    return FakeVexaClient()


@pytest_asyncio.fixture
async def client(
    configured_settings,  # noqa: ARG001 - settings must be in place first
    fake_admin: FakeAdminClient,
    fake_vexa: FakeVexaClient,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client with both upstream clients replaced by fakes.

    Yields:
        AsyncClient without any cookies set.
    """
    from app.api.deps import admin_client, vexa_client
    from app.main import app

    app.dependency_overrides[admin_client] = lambda: fake_admin
    app.dependency_overrides[vexa_client] = lambda: fake_vexa

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
