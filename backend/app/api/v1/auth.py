"""Sign-in and session endpoints.

Endpoints:
- POST /auth/send-magic-link — start sign-in (direct or magic-link mode)
- POST /auth/verify — redeem a magic-link token (JSON)
- GET /auth/verify — redeem a magic-link token from the email, then redirect
- GET /auth/me — current session, validated against the upstream
- POST /auth/logout — clear session cookies
"""

import logging
from typing import Annotated, Any
from urllib.parse import quote

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, ConfigDict
from starlette.responses import Response

from app.api.deps import Sessions, SessionToken
from app.core.auth import (
    USER_INFO_COOKIE_NAME,
    clear_session_cookie,
    clear_session_cookies,
    read_user_info_cookie,
    set_session_cookie,
    validate_email_address,
)
from app.core.config import settings
from app.core.errors import APIError, ConfigurationError
from app.core.rate_limiting import limiter
from app.core.responses import DataResponse, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# ===================================================================
# Request models
# ===================================================================


class SendMagicLinkRequest(BaseModel):
    """Request body for POST /auth/send-magic-link."""

    model_config = ConfigDict(extra="forbid")

    email: str | None = None


class VerifyRequest(BaseModel):
    """Request body for POST /auth/verify."""

    model_config = ConfigDict(extra="forbid")

    token: str | None = None


# ===================================================================
# Helpers
# ===================================================================


def _app_base_url(request: Request) -> str:
    """Dashboard origin for magic links and post-login redirects.

    APP_URL wins. Outside production the request's Origin, then the
    forwarded scheme and Host, stand in for local development; production
    never derives the link host from request headers.
    """
    if settings.app_url:
        return settings.app_url.rstrip("/")
    if settings.environment == "production":
        raise ConfigurationError(
            "APP_URL is not configured", code="APP_URL_NOT_CONFIGURED"
        )
    origin = request.headers.get("origin")
    if origin:
        return origin.rstrip("/")
    scheme = request.headers.get("x-forwarded-proto") or request.url.scheme
    host = request.headers.get("host") or request.url.netloc
    return f"{scheme}://{host}"


def _not_authenticated(message: str, *, clear_cookie: bool) -> JSONResponse:
    response = JSONResponse(
        status_code=401,
        content=ErrorResponse(error=message, code="UNAUTHORIZED").to_content(),
    )
    if clear_cookie:
        clear_session_cookie(response)
    return response


# ===================================================================
# POST /auth/send-magic-link
# ===================================================================


@router.post("/send-magic-link")
@limiter.limit(lambda: settings.rate_limit_magic_link)
async def send_magic_link(
    request: Request,
    body: SendMagicLinkRequest,
    response: Response,
    sessions: Sessions,
) -> DataResponse[dict[str, Any]]:
    """Start sign-in for an email address.

    Without email delivery configured the user is signed in directly and the
    session cookie is set. Otherwise a magic link is emailed and only an
    acknowledgement is returned.
    """
    email = validate_email_address(body.email)
    result = await sessions.initiate_login(email, base_url=_app_base_url(request))

    if result.token is not None:
        set_session_cookie(response, result.token)

    return DataResponse(data=result.to_response())


# ===================================================================
# POST /auth/verify
# ===================================================================


@router.post("/verify")
@limiter.limit(lambda: settings.rate_limit_verify)
async def verify_magic_link(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: VerifyRequest,
    response: Response,
    sessions: Sessions,
) -> DataResponse[dict[str, Any]]:
    """Redeem a magic-link token and set the session cookie."""
    result = await sessions.redeem_magic_link(body.token)
    assert result.token is not None
    set_session_cookie(response, result.token)
    return DataResponse(data=result.to_response())


# ===================================================================
# GET /auth/verify
# ===================================================================


@router.get("/verify")
@limiter.limit(lambda: settings.rate_limit_verify)
async def verify_magic_link_redirect(
    request: Request,
    sessions: Sessions,
    token: Annotated[str | None, Query(max_length=4096)] = None,
) -> RedirectResponse:
    """Redeem a magic-link token from the email and redirect to the dashboard.

    Failures redirect to the login page with the error code instead of
    rendering JSON in the browser.
    """
    base_url = _app_base_url(request)
    try:
        result = await sessions.redeem_magic_link(token)
    except APIError as exc:
        logger.info("Magic link redemption failed: %s", exc.code)
        return RedirectResponse(
            url=f"{base_url}/login?error={quote(exc.code)}", status_code=303
        )

    response = RedirectResponse(url=f"{base_url}/", status_code=303)
    assert result.token is not None
    set_session_cookie(response, result.token)
    # Prevent token leakage via Referer header
    response.headers["Referrer-Policy"] = "no-referrer"
    return response


# ===================================================================
# GET /auth/me
# ===================================================================


@router.get("/me", response_model=None)
async def get_me(
    request: Request,
    token: SessionToken,
    sessions: Sessions,
) -> DataResponse[dict[str, Any]] | JSONResponse:
    """Return the current session.

    No cookie: 401 without contacting the upstream. A token the upstream
    rejects is cleared from the browser.
    """
    if not token:
        return _not_authenticated("Not authenticated", clear_cookie=False)

    if not await sessions.check_session(token):
        logger.info("Upstream rejected session token; clearing cookie")
        return _not_authenticated("Invalid token", clear_cookie=True)

    data: dict[str, Any] = {"authenticated": True, "token": token}
    user_info = read_user_info_cookie(request.cookies.get(USER_INFO_COOKIE_NAME))
    if user_info is not None:
        data["user"] = user_info
    return DataResponse(data=data)


# ===================================================================
# POST /auth/logout
# ===================================================================


@router.post("/logout")
async def logout(response: Response) -> DataResponse[dict[str, bool]]:
    """Clear all session cookies. No auth required; always succeeds."""
    clear_session_cookies(response)
    return DataResponse(data={"success": True})
