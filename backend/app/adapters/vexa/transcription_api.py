"""Vexa transcription API adapter.

Used three ways: validating a session token, fetching meetings for the
status views, and relaying arbitrary browser requests through the proxy.
The user's token travels as the X-API-Key header.
"""

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from app.core.errors import UnauthorizedError, UpstreamUnavailableError

logger = structlog.get_logger()

API_KEY_HEADER = "X-API-Key"

# Methods whose request body is forwarded
_BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


@dataclass
class ProxiedResponse:
    """Upstream reply relayed to the browser.

    Attributes:
        status_code: Upstream HTTP status.
        body: Parsed JSON, or None for 204 / non-JSON replies.
    """

    status_code: int
    body: Any = None


class VexaApiClient:
    """Async client for the Vexa transcription API.

    Args:
        base_url: API base URL.
        timeout: Default per-request timeout in seconds.
        transport: Optional httpx transport (tests).
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _send(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        params: Any = None,
        content: bytes | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if token:
            headers[API_KEY_HEADER] = token

        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                return await client.request(
                    method,
                    url,
                    headers=headers,
                    params=params,
                    content=content,
                    timeout=timeout or self.timeout,
                )
        except httpx.TimeoutException as exc:
            logger.warning("Vexa API timeout", method=method, path=path)
            raise UpstreamUnavailableError(
                code="TIMEOUT", status_code=504, details=str(exc) or "timeout"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Vexa API unreachable", method=method, path=path, error=str(exc))
            raise UpstreamUnavailableError(details=str(exc) or type(exc).__name__) from exc

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            logger.warning(
                "Vexa API returned malformed JSON", status_code=resp.status_code
            )
            raise UpstreamUnavailableError(
                message="Vexa API returned an invalid response",
                code="UPSTREAM_ERROR",
                details=resp.text[:200] or None,
            ) from exc

    async def validate_token(self, token: str) -> bool:
        """Check a session token with a lightweight authenticated call.

        Returns:
            True if the upstream accepts the token, False on any non-2xx reply.

        Raises:
            UpstreamUnavailableError: If the API cannot be reached.
        """
        resp = await self._send("GET", "/meetings", token=token)
        return resp.is_success

    async def get_json(self, path: str, *, token: str) -> Any:
        """GET path as the token's user and return the JSON body.

        Raises:
            UnauthorizedError: If the upstream rejects the token (401).
            UpstreamUnavailableError: On any other failure.
        """
        resp = await self._send("GET", path, token=token)
        if resp.status_code == 401:
            raise UnauthorizedError("Invalid token")
        if not resp.is_success:
            raise UpstreamUnavailableError(
                message=f"Vexa API returned {resp.status_code}",
                code="UPSTREAM_ERROR",
                details=resp.text or None,
            )
        return self._decode(resp)

    async def forward(
        self,
        method: str,
        path: str,
        *,
        token: str | None,
        query: str = "",
        body: bytes | None = None,
    ) -> ProxiedResponse:
        """Relay one browser request verbatim.

        Args:
            method: HTTP method.
            path: Path below the API root.
            token: X-API-Key value, if any.
            query: Raw query string, without the leading '?'.
            body: Raw request body; ignored for GET/HEAD.

        Returns:
            Upstream status and JSON body (None for 204 or non-JSON).

        Raises:
            UpstreamUnavailableError: If the API cannot be reached.
        """
        content = body if method in _BODY_METHODS and body else None
        full_path = f"{path}?{query}" if query else path
        resp = await self._send(method, full_path, token=token, content=content)

        content_type = resp.headers.get("content-type", "")
        if resp.status_code == 204 or "application/json" not in content_type:
            return ProxiedResponse(status_code=resp.status_code)
        return ProxiedResponse(status_code=resp.status_code, body=self._decode(resp))

    async def probe(self, *, timeout: float) -> int:
        """GET the API root and return the raw status code."""
        resp = await self._send("GET", "/", timeout=timeout)
        return resp.status_code
