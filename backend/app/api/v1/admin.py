"""Admin panel router.

Endpoints:
- POST /admin/session — exchange the admin panel key for an admin cookie
- DELETE /admin/session — drop the admin cookie
- GET /admin/users — list upstream users
- GET /admin/users/{user_id} — user detail with API tokens
- POST /admin/users — create a user
- POST /admin/users/{user_id}/tokens — mint an API token for a user

User endpoints require the admin cookie and are relayed to the Vexa Admin
API with the server-side admin key.
"""

import hmac
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Path, Query, Request, Response, status
from pydantic import BaseModel, ConfigDict, Field

from app.adapters.vexa import AdminApiError
from app.api.deps import AdminAccess, AdminClient
from app.core.auth import (
    clear_admin_cookie,
    create_admin_session,
    set_admin_cookie,
    validate_email_address,
)
from app.core.config import settings
from app.core.errors import ConfigurationError, UnauthorizedError
from app.core.rate_limiting import limiter
from app.core.responses import DataResponse

logger = logging.getLogger(__name__)

router = APIRouter()

UserIdParam = Annotated[str, Path(min_length=1, max_length=100)]


# =============================================================================
# Request models
# =============================================================================


class AdminSessionRequest(BaseModel):
    """Request body for POST /admin/session."""

    model_config = ConfigDict(extra="forbid")

    admin_key: str = Field(..., min_length=1, max_length=512)


class CreateUserRequest(BaseModel):
    """Request body for POST /admin/users."""

    model_config = ConfigDict(extra="forbid")

    email: str = Field(..., max_length=254)
    name: str | None = Field(default=None, max_length=255)


# =============================================================================
# Admin session
# =============================================================================


@router.post("/session")
@limiter.limit(lambda: settings.rate_limit_admin_session)
async def create_session(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: AdminSessionRequest,
    response: Response,
) -> DataResponse[dict[str, bool]]:
    """Open the admin panel.

    Raises:
        ConfigurationError: No admin panel key configured (503).
        UnauthorizedError: Wrong key (401).
    """
    expected = settings.resolved_admin_panel_key
    secret = settings.magic_link_secret
    if not expected or not secret:
        raise ConfigurationError("Admin panel not configured")

    if not hmac.compare_digest(body.admin_key.encode(), expected.encode()):
        logger.warning("Rejected admin panel sign-in")
        raise UnauthorizedError("Invalid admin key")

    set_admin_cookie(response, create_admin_session(secret=secret))
    return DataResponse(data={"success": True})


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(response: Response) -> None:
    """Close the admin panel. Always succeeds."""
    clear_admin_cookie(response)


# =============================================================================
# Users
# =============================================================================


@router.get("/users", dependencies=[AdminAccess])
async def list_users(
    admin: AdminClient,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
) -> DataResponse[Any]:
    """List upstream users."""
    try:
        users = await admin.list_users(skip=skip, limit=limit)
    except AdminApiError as exc:
        raise exc.to_api_error("Failed to list users") from exc
    return DataResponse(data=users)


@router.get("/users/{user_id}", dependencies=[AdminAccess])
async def get_user(user_id: UserIdParam, admin: AdminClient) -> DataResponse[dict[str, Any]]:
    """Get one user with its API tokens."""
    try:
        user = await admin.get_user(user_id)
    except AdminApiError as exc:
        raise exc.to_api_error("Failed to get user") from exc
    return DataResponse(data=user)


@router.post(
    "/users", status_code=status.HTTP_201_CREATED, dependencies=[AdminAccess]
)
async def create_user(
    body: CreateUserRequest, admin: AdminClient
) -> DataResponse[dict[str, Any]]:
    """Create a user. The registration policy does not apply to admins."""
    email = validate_email_address(body.email)
    try:
        user = await admin.create_user(email, body.name)
    except AdminApiError as exc:
        raise exc.to_api_error("Failed to create user") from exc
    return DataResponse(data=user.to_profile())


@router.post(
    "/users/{user_id}/tokens",
    status_code=status.HTTP_201_CREATED,
    dependencies=[AdminAccess],
)
async def create_user_token(
    user_id: UserIdParam, admin: AdminClient
) -> DataResponse[dict[str, str]]:
    """Mint a new API token for a user."""
    try:
        token = await admin.create_user_token(user_id)
    except AdminApiError as exc:
        raise exc.to_api_error("Failed to create token") from exc
    logger.info("Admin minted API token for user %s", user_id)
    return DataResponse(data={"token": token})
