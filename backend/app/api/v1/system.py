"""Deployment introspection endpoints.

Endpoints:
- GET /config — public runtime config for the browser
- GET /health — configuration and upstream reachability report
- GET /ai/config — whether the AI assistant is configured, and with what
"""

from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.api.deps import AdminClient, VexaClient
from app.core.config import settings
from app.core.runtime_config import ai_feature_flags, get_runtime_config
from app.services.health_check import build_health_report

router = APIRouter()


@router.get("/config")
def get_config() -> dict[str, str]:
    """Return ``{wsUrl, apiUrl}`` so the dashboard needs no build-time URLs."""
    return get_runtime_config().to_public_dict()


@router.get("/health", response_model=None)
async def get_health(admin: AdminClient, vexa: VexaClient) -> JSONResponse:
    """Report which features are configured and which upstreams answer.

    Returns 200 for "ok" and "degraded", 503 for "error" so load balancers
    can act on it.
    """
    report = await build_health_report(settings, admin, vexa)
    content: dict[str, Any] = report.to_dict()
    status_code = 503 if report.status == "error" else 200
    return JSONResponse(status_code=status_code, content=content)


@router.get("/ai/config")
def get_ai_config() -> dict[str, Any]:
    """Return the AI assistant feature flag; the API key never leaves the server."""
    return ai_feature_flags()
