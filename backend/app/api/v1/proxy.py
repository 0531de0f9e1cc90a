"""Reverse proxy to the Vexa transcription API.

Endpoints:
- /vexa/{path} — GET, POST, PUT, PATCH, DELETE relayed verbatim

The browser never sees an API key: the session cookie's token (or the
server-side VEXA_API_KEY fallback) is attached here as X-API-Key.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from app.api.deps import SessionToken, VexaClient
from app.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

_NO_STORE = {"Cache-Control": "no-store"}


@router.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    response_model=None,
)
async def proxy(
    path: str,
    request: Request,
    token: SessionToken,
    vexa: VexaClient,
) -> Response:
    """Forward the request and relay the upstream status and JSON body.

    204 and non-JSON upstream replies are relayed with an empty body.
    An unreachable upstream surfaces as 502 UPSTREAM_UNAVAILABLE through
    the APIError handler.
    """
    api_key = token or settings.vexa_api_key.get_secret_value() or None
    body = await request.body()

    result = await vexa.forward(
        request.method,
        path,
        token=api_key,
        query=request.url.query,
        body=body or None,
    )
    if result.status_code >= 500:
        logger.warning(
            "Vexa API returned %d for %s /%s", result.status_code, request.method, path
        )

    if result.body is None:
        return Response(status_code=result.status_code, headers=_NO_STORE)
    return JSONResponse(
        status_code=result.status_code, content=result.body, headers=_NO_STORE
    )
