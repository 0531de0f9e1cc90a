"""Stateless magic-link tokens.

A magic link carries a signed JWT binding an email address to a sign-in
intent. Nothing is stored server-side: validity is the signature plus the
embedded expiry. Redeeming the same token twice inside the window succeeds
both times; expiry is the only revocation mechanism.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from urllib.parse import quote

import jwt

from app.core.errors import InvalidTokenError

MAGIC_LINK_TTL = timedelta(minutes=15)
MAGIC_LINK_PURPOSE = "magic-link"


@dataclass(frozen=True)
class MagicLinkClaims:
    """Verified contents of a magic-link token.

    Attributes:
        email: Address the link was sent to.
        purpose: Always ``"magic-link"`` once verified.
        issued_at: Signing time (UTC).
        expires_at: Last instant the token is accepted (UTC).
    """

    email: str
    purpose: str
    issued_at: datetime
    expires_at: datetime


def issue_magic_link_token(
    *,
    email: str,
    secret: str,
    issued_at: datetime | None = None,
    ttl: timedelta = MAGIC_LINK_TTL,
) -> str:
    """Sign a magic-link token for email.

    Args:
        email: Recipient address embedded in the token.
        secret: HMAC signing secret.
        issued_at: Override the signing time (tests). Defaults to now.
        ttl: Validity window. Defaults to 15 minutes.

    Returns:
        Encoded JWT string.
    """
    now = issued_at or datetime.now(UTC)
    payload = {
        "email": email,
        "type": MAGIC_LINK_PURPOSE,
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def verify_magic_link_token(token: str, *, secret: str) -> MagicLinkClaims:
    """Verify signature, expiry, and purpose of a magic-link token.

    Args:
        token: Encoded JWT from the verification URL.
        secret: HMAC signing secret used at issuance.

    Returns:
        The verified claims.

    Raises:
        InvalidTokenError: TOKEN_EXPIRED, INVALID_TOKEN or INVALID_TOKEN_TYPE.
    """
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise InvalidTokenError(
            "TOKEN_EXPIRED", "This link has expired. Please request a new one."
        ) from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidTokenError(
            "INVALID_TOKEN", "Invalid verification link. Please request a new one."
        ) from exc

    if payload.get("type") != MAGIC_LINK_PURPOSE:
        raise InvalidTokenError("INVALID_TOKEN_TYPE", "Invalid token type")

    email = payload.get("email")
    if not isinstance(email, str) or not email:
        raise InvalidTokenError(
            "INVALID_TOKEN", "Invalid verification link. Please request a new one."
        )

    return MagicLinkClaims(
        email=email,
        purpose=MAGIC_LINK_PURPOSE,
        issued_at=datetime.fromtimestamp(payload["iat"], tz=UTC),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
    )


def build_magic_link_url(base_url: str, token: str) -> str:
    """Build the dashboard verification URL carrying token."""
    return f"{base_url.rstrip('/')}/auth/verify?token={quote(token, safe='')}"
