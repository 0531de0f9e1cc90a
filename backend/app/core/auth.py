"""Session cookie helpers and input validation shared by auth endpoints.

Pipeline:
- validate_email_address: format check before any upstream call
- set_session_cookie / clear_session_cookies: the ``vexa-token`` cookie
- read_user_info_cookie: best-effort parse of the SSO profile hint
- create_admin_session / verify_admin_session: signed admin-panel cookie
"""

import json
import logging
import re
from datetime import UTC, datetime, timedelta
from typing import Any
from urllib.parse import unquote

import jwt
from fastapi import Response

from app.core.config import settings
from app.core.errors import ValidationError

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "vexa-token"
USER_INFO_COOKIE_NAME = "vexa-user-info"
ADMIN_COOKIE_NAME = "vexa-admin-session"

# Legacy NextAuth cookies left behind by older dashboard deployments
_LEGACY_SESSION_COOKIES = (
    "next-auth.session-token",
    "__Secure-next-auth.session-token",
)

SESSION_MAX_AGE = timedelta(days=30)
_ADMIN_SESSION_TTL = timedelta(hours=8)
_ADMIN_AUDIENCE = "vexa-admin"

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_email_address(email: Any) -> str:
    """Validate the basic ``local@domain.tld`` shape.

    Args:
        email: Raw value from the request body.

    Returns:
        The email, unchanged.

    Raises:
        ValidationError: If the email is missing or malformed.
    """
    if not email or not isinstance(email, str):
        raise ValidationError("Email is required")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format")
    return email


def _cookie_domain() -> str | None:
    return settings.cookie_domain or None


def set_session_cookie(response: Response, token: str) -> None:
    """Set the httpOnly ``vexa-token`` cookie on response.

    Security: httpOnly prevents XSS cookie theft. When COOKIE_DOMAIN is set
    (e.g. ".vexa.ai") the cookie is shared across subdomains for SSO.

    Args:
        response: FastAPI response object.
        token: Upstream API token.
    """
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
        max_age=int(SESSION_MAX_AGE.total_seconds()),
        domain=_cookie_domain(),
    )


def clear_session_cookie(response: Response) -> None:
    """Delete only the ``vexa-token`` cookie (credential rejected upstream)."""
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        domain=_cookie_domain(),
    )


def clear_session_cookies(response: Response) -> None:
    """Delete every session cookie this dashboard may have set.

    Attributes must match set_session_cookie() for the browser to delete.
    """
    clear_session_cookie(response)
    response.delete_cookie(key=USER_INFO_COOKIE_NAME, path="/", domain=_cookie_domain())
    for name in _LEGACY_SESSION_COOKIES:
        response.delete_cookie(key=name, path="/")


def read_user_info_cookie(raw: str | None) -> dict[str, Any] | None:
    """Parse the optional JSON profile hint set by an external SSO layer.

    Parse failures are ignored; the cookie is informational only.
    """
    if not raw:
        return None
    try:
        value = json.loads(unquote(raw))
    except ValueError:
        logger.debug("Ignoring unparseable %s cookie", USER_INFO_COOKIE_NAME)
        return None
    return value if isinstance(value, dict) else None


def create_admin_session(*, secret: str, expires_delta: timedelta | None = None) -> str:
    """Create a signed admin-panel session token.

    Args:
        secret: HMAC signing secret.
        expires_delta: Time until expiration. Defaults to 8 hours.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(UTC)
    payload = {
        "sub": "admin",
        "aud": _ADMIN_AUDIENCE,
        "exp": now + (expires_delta or _ADMIN_SESSION_TTL),
        "iat": now,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def verify_admin_session(token: str | None, *, secret: str) -> bool:
    """Return True when token is a valid, unexpired admin session."""
    if not token or not secret:
        return False
    try:
        jwt.decode(token, secret, algorithms=["HS256"], audience=_ADMIN_AUDIENCE)
    except jwt.InvalidTokenError:
        return False
    return True


def set_admin_cookie(response: Response, token: str) -> None:
    """Set the httpOnly admin-panel cookie."""
    response.set_cookie(
        key=ADMIN_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="strict",
        path="/",
        max_age=int(_ADMIN_SESSION_TTL.total_seconds()),
    )


def clear_admin_cookie(response: Response) -> None:
    """Delete the admin-panel cookie."""
    response.delete_cookie(
        key=ADMIN_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="strict",
    )
