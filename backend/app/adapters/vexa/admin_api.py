"""Vexa Admin API adapter (upstream identity store).

Finds, creates, and inspects users and mints API tokens for them. Every call
carries the server-side admin key, which never reaches the browser.

Failures are raised as AdminApiError with a code the session service maps
onto the BFF error taxonomy.
"""

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from app.core.errors import APIError

logger = structlog.get_logger()

ADMIN_KEY_HEADER = "X-Admin-API-Key"

# Default concurrent bot allowance for accounts created on first sign-in
_DEFAULT_MAX_CONCURRENT_BOTS = 3

# HTTP status for each admin API error code when surfaced to the browser.
# A rejected admin key is a server misconfiguration, not a user session
# problem, so it never surfaces as 401/403.
_STATUS_BY_CODE = {
    "NOT_CONFIGURED": 503,
    "UNAUTHORIZED": 503,
    "FORBIDDEN": 503,
    "NOT_FOUND": 404,
    "CONFLICT": 409,
    "VALIDATION_ERROR": 400,
    "RATE_LIMITED": 429,
    "SERVER_ERROR": 502,
    "SERVICE_UNAVAILABLE": 503,
    "TIMEOUT": 504,
    "NETWORK_ERROR": 503,
}

RETRYABLE_CODES = frozenset(
    {"TIMEOUT", "NETWORK_ERROR", "SERVICE_UNAVAILABLE", "SERVER_ERROR"}
)


class AdminApiError(Exception):
    """A call to the admin API failed.

    Attributes:
        code: One of the keys of the status map (e.g. "NOT_FOUND", "TIMEOUT").
        message: Human-readable description.
        details: Upstream response text or transport error, if any.
    """

    def __init__(self, code: str, message: str, details: str | None = None) -> None:
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def can_retry(self) -> bool:
        """True for transient failures the caller may re-issue."""
        return self.code in RETRYABLE_CODES

    def to_api_error(self, context: str) -> APIError:
        """Convert to an APIError prefixed with what we were trying to do."""
        return APIError(
            code=self.code,
            message=f"{context}: {self.message}",
            status_code=_STATUS_BY_CODE.get(self.code, 500),
            details=self.details,
            can_retry=self.can_retry,
        )


@dataclass
class VexaUser:
    """User record from the identity store.

    Attributes:
        id: Opaque upstream identifier.
        email: Natural key.
        name: Display name.
        max_concurrent_bots: Bot allowance for the account.
        created_at: Upstream creation timestamp string.
        raw: Full upstream payload.
    """

    id: str
    email: str
    name: str | None = None
    max_concurrent_bots: int | None = None
    created_at: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "VexaUser":
        """Build from an admin API JSON body.

        Raises:
            AdminApiError: SERVER_ERROR when id or email is missing.
        """
        try:
            user_id, email = payload["id"], payload["email"]
        except (KeyError, TypeError) as exc:
            raise AdminApiError(
                "SERVER_ERROR", "Admin API returned an incomplete user record"
            ) from exc
        return cls(
            id=str(user_id),
            email=email,
            name=payload.get("name"),
            max_concurrent_bots=payload.get("max_concurrent_bots"),
            created_at=payload.get("created_at"),
            raw=payload,
        )

    def to_profile(self) -> dict[str, Any]:
        """Profile fields safe to return to the browser."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "max_concurrent_bots": self.max_concurrent_bots,
            "created_at": self.created_at,
        }


def _code_for_status(status_code: int) -> str:
    if status_code == 401:
        return "UNAUTHORIZED"
    if status_code == 403:
        return "FORBIDDEN"
    if status_code == 404:
        return "NOT_FOUND"
    if status_code == 409:
        return "CONFLICT"
    if status_code in (400, 422):
        return "VALIDATION_ERROR"
    if status_code == 429:
        return "RATE_LIMITED"
    if status_code == 503:
        return "SERVICE_UNAVAILABLE"
    if status_code >= 500:
        return "SERVER_ERROR"
    return "UNKNOWN_ERROR"


_MESSAGES = {
    "UNAUTHORIZED": "Invalid admin API key. Please check VEXA_ADMIN_API_KEY configuration.",
    "FORBIDDEN": "Admin API access forbidden",
    "NOT_FOUND": "Resource not found",
    "CONFLICT": "Resource already exists",
    "VALIDATION_ERROR": "Admin API rejected the request",
    "RATE_LIMITED": "Admin API rate limit exceeded",
    "SERVICE_UNAVAILABLE": "Admin API is temporarily unavailable",
    "SERVER_ERROR": "Admin API server error",
}


class VexaAdminClient:
    """Async client for the Vexa Admin API.

    A fresh httpx.AsyncClient is opened per call; requests are awaited
    sequentially by the caller and never retried here.

    Args:
        base_url: Admin API base URL.
        api_key: Admin API key sent as X-Admin-API-Key.
        timeout: Default per-request timeout in seconds.
        transport: Optional httpx transport (tests).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self.timeout = timeout
        self._transport = transport

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        if not self._api_key:
            raise AdminApiError("NOT_CONFIGURED", "Admin API key is not configured")

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                return await client.request(
                    method,
                    f"{self.base_url}{path}",
                    headers={ADMIN_KEY_HEADER: self._api_key},
                    json=json,
                    params=params,
                    timeout=timeout or self.timeout,
                )
        except httpx.TimeoutException as exc:
            logger.warning("Admin API timeout", method=method, path=path)
            raise AdminApiError(
                "TIMEOUT",
                "Cannot reach Vexa API. Please check VEXA_API_URL configuration.",
                str(exc) or type(exc).__name__,
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Admin API unreachable", method=method, path=path, error=str(exc))
            raise AdminApiError(
                "NETWORK_ERROR",
                "Cannot reach Vexa API. Please check VEXA_API_URL configuration.",
                str(exc) or type(exc).__name__,
            ) from exc

    async def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        resp = await self._send(method, path, **kwargs)
        if resp.is_success:
            try:
                return resp.json()
            except ValueError as exc:
                logger.warning("Admin API returned malformed JSON", path=path)
                raise AdminApiError(
                    "SERVER_ERROR",
                    "Admin API returned an invalid response",
                    resp.text[:200] or None,
                ) from exc
        code = _code_for_status(resp.status_code)
        raise AdminApiError(
            code,
            _MESSAGES.get(code, f"Admin API returned {resp.status_code}"),
            resp.text or None,
        )

    async def find_user_by_email(
        self, email: str, *, timeout: float | None = None
    ) -> VexaUser:
        """Look up a user by email.

        Raises:
            AdminApiError: code NOT_FOUND when no such user exists.
        """
        payload = await self._request_json(
            "GET", f"/admin/users/email/{quote(email, safe='')}", timeout=timeout
        )
        return VexaUser.from_payload(payload)

    async def create_user(self, email: str, name: str | None = None) -> VexaUser:
        """Create a user, defaulting the name to the email's local part."""
        payload = await self._request_json(
            "POST",
            "/admin/users",
            json={
                "email": email,
                "name": name or email.split("@")[0],
                "max_concurrent_bots": _DEFAULT_MAX_CONCURRENT_BOTS,
            },
        )
        return VexaUser.from_payload(payload)

    async def get_user(self, user_id: str) -> dict[str, Any]:
        """Get user detail, including its API tokens."""
        result: dict[str, Any] = await self._request_json(
            "GET", f"/admin/users/{quote(user_id, safe='')}"
        )
        return result

    async def list_users(self, *, skip: int = 0, limit: int = 50) -> Any:
        """List users (admin panel)."""
        return await self._request_json(
            "GET", "/admin/users", params={"skip": skip, "limit": limit}
        )

    async def create_user_token(self, user_id: str) -> str:
        """Mint a fresh API token for user_id and return its value.

        Existing token values cannot be read back, so every login mints one.
        """
        payload = await self._request_json(
            "POST", f"/admin/users/{quote(user_id, safe='')}/tokens"
        )
        token = payload.get("token") if isinstance(payload, dict) else None
        if not token:
            raise AdminApiError("SERVER_ERROR", "Admin API returned no token")
        return str(token)

    async def probe(self, *, timeout: float) -> int:
        """Hit ``/admin/users?limit=1`` and return the raw status code.

        Raises:
            AdminApiError: TIMEOUT or NETWORK_ERROR when the host is unreachable.
        """
        resp = await self._send(
            "GET", "/admin/users", params={"limit": 1}, timeout=timeout
        )
        return resp.status_code
