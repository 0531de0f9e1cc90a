"""Meeting list and detail, annotated with status descriptors.

Endpoints:
- GET /meetings — upstream meetings, each with ``status_info``
- GET /meetings/{meeting_id} — one meeting with ``status_info`` and ``history``
- POST /meetings/parse-input — resolve a pasted meeting link to bot request fields
"""

import logging
from typing import Any
from urllib.parse import quote

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from app.api.deps import RequiredSessionToken, VexaClient
from app.core.auth import clear_session_cookie
from app.core.errors import UnauthorizedError, ValidationError
from app.core.responses import DataResponse, ErrorResponse
from app.services.meeting_input import parse_meeting_input
from app.services.meeting_view import annotate_meeting, annotate_meetings

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_rejected(exc: UnauthorizedError) -> JSONResponse:
    response = JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message, code=exc.code).to_content(),
    )
    clear_session_cookie(response)
    return response


@router.get("", response_model=None)
async def list_meetings(
    token: RequiredSessionToken, vexa: VexaClient
) -> DataResponse[Any] | JSONResponse:
    """List the session user's meetings with derived status badges."""
    try:
        payload = await vexa.get_json("/meetings", token=token)
    except UnauthorizedError as exc:
        logger.info("Upstream rejected session token; clearing cookie")
        return _session_rejected(exc)
    return DataResponse(data=annotate_meetings(payload))


@router.get("/{meeting_id}", response_model=None)
async def get_meeting(
    meeting_id: str, token: RequiredSessionToken, vexa: VexaClient
) -> DataResponse[Any] | JSONResponse:
    """Get one meeting with its badge and rendered status history."""
    try:
        payload = await vexa.get_json(
            f"/meetings/{quote(meeting_id, safe='')}", token=token
        )
    except UnauthorizedError as exc:
        logger.info("Upstream rejected session token; clearing cookie")
        return _session_rejected(exc)
    if not isinstance(payload, dict):
        return DataResponse(data=payload)
    return DataResponse(data=annotate_meeting(payload, include_history=True))


class MeetingInputRequest(BaseModel):
    """Request body for POST /meetings/parse-input."""

    model_config = ConfigDict(extra="forbid")

    input: str = Field(max_length=2048)


@router.post("/parse-input")
async def parse_input(body: MeetingInputRequest) -> DataResponse[dict[str, str]]:
    """Turn a Google Meet, Teams, or Zoom link or ID into ``POST /bots`` fields.

    Raises:
        ValidationError: Input is not a recognisable meeting link or ID.
    """
    parsed = parse_meeting_input(body.input)
    if parsed is None:
        raise ValidationError(
            "Could not recognise a Google Meet, Teams, or Zoom meeting",
            code="INVALID_MEETING_INPUT",
        )
    return DataResponse(data=parsed.to_bot_request())
