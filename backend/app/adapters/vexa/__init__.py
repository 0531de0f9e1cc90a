"""Vexa upstream adapters.

This module provides:
- VexaAdminClient: identity store (users, API tokens)
- VexaApiClient: transcription API (meetings, transcripts, proxy)
- Factory functions building clients from settings
"""

from app.adapters.vexa.admin_api import AdminApiError, VexaAdminClient, VexaUser
from app.adapters.vexa.transcription_api import ProxiedResponse, VexaApiClient
from app.core.config import Settings, settings


def get_admin_client(config: Settings | None = None) -> VexaAdminClient:
    """Build an admin API client from settings."""
    config = config or settings
    return VexaAdminClient(
        config.resolved_admin_api_url,
        config.vexa_admin_api_key.get_secret_value(),
        timeout=config.upstream_timeout_seconds,
    )


def get_vexa_client(config: Settings | None = None) -> VexaApiClient:
    """Build a transcription API client from settings."""
    config = config or settings
    return VexaApiClient(
        config.resolved_vexa_api_url,
        timeout=config.upstream_timeout_seconds,
    )


__all__ = [
    "AdminApiError",
    "get_admin_client",
    "get_vexa_client",
    "ProxiedResponse",
    "VexaAdminClient",
    "VexaApiClient",
    "VexaUser",
]
