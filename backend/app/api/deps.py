"""Shared dependencies for API endpoints.

Upstream clients, the session service, and the session/admin cookie gates.

WHY DEPENDENCY INJECTION:
- Consistent auth across all endpoints
- Tests swap upstream clients via app.dependency_overrides
"""

from typing import Annotated

from fastapi import Depends, Request

from app.adapters.vexa import (
    VexaAdminClient,
    VexaApiClient,
    get_admin_client,
    get_vexa_client,
)
from app.core.auth import ADMIN_COOKIE_NAME, SESSION_COOKIE_NAME, verify_admin_session
from app.core.config import settings
from app.core.errors import ConfigurationError, UnauthorizedError
from app.services.session_service import SessionService


def admin_client() -> VexaAdminClient:
    """Admin API client built from settings."""
    return get_admin_client()


def vexa_client() -> VexaApiClient:
    """Transcription API client built from settings."""
    return get_vexa_client()


AdminClient = Annotated[VexaAdminClient, Depends(admin_client)]
VexaClient = Annotated[VexaApiClient, Depends(vexa_client)]


def get_session_service(admin: AdminClient, vexa: VexaClient) -> SessionService:
    """Session service wired to the request's upstream clients."""
    return SessionService(admin, vexa)


def get_session_token(request: Request) -> str | None:
    """Read the ``vexa-token`` cookie, if any."""
    return request.cookies.get(SESSION_COOKIE_NAME) or None


def require_session_token(
    token: Annotated[str | None, Depends(get_session_token)],
) -> str:
    """Require a session cookie; 401 without touching the upstream."""
    if not token:
        raise UnauthorizedError()
    return token


def require_admin(request: Request) -> None:
    """Require a valid admin-panel session cookie.

    Raises:
        ConfigurationError: No admin key is configured (503).
        UnauthorizedError: Missing, expired, or forged admin session (401).
    """
    secret = settings.magic_link_secret
    if not settings.resolved_admin_panel_key or not secret:
        raise ConfigurationError("Admin panel not configured")
    if not verify_admin_session(request.cookies.get(ADMIN_COOKIE_NAME), secret=secret):
        raise UnauthorizedError("Admin access required")


Sessions = Annotated[SessionService, Depends(get_session_service)]
SessionToken = Annotated[str | None, Depends(get_session_token)]
RequiredSessionToken = Annotated[str, Depends(require_session_token)]
AdminAccess = Depends(require_admin)
