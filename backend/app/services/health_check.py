"""Deployment health report.

Checks which optional features are configured and whether the upstream
services answer. Only the admin API is required: without it nobody can
sign in. The transcription API being down degrades the dashboard.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from app.adapters.vexa import AdminApiError, VexaAdminClient, VexaApiClient
from app.core.config import Settings
from app.core.errors import UpstreamUnavailableError

_PROBE_TIMEOUT = 5.0


@dataclass
class ServiceCheck:
    """Result for one collaborator.

    Attributes:
        configured: Required settings are present.
        reachable: The service answered (None for optional, unprobed checks).
        optional: Missing configuration only disables a feature.
        error: Human-readable problem, if any.
    """

    configured: bool = False
    reachable: bool | None = None
    optional: bool = False
    error: str | None = None


@dataclass
class HealthReport:
    """Overall deployment health."""

    status: Literal["ok", "degraded", "error"] = "ok"
    auth_mode: Literal["direct", "magic-link"] = "direct"
    checks: dict[str, ServiceCheck] = field(default_factory=dict)
    missing_config: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return asdict(self)


def _check_email(config: Settings) -> ServiceCheck:
    if config.email_configured:
        return ServiceCheck(configured=True, optional=True)
    return ServiceCheck(optional=True, error="Email delivery not configured")


async def _check_admin_api(config: Settings, admin: VexaAdminClient) -> ServiceCheck:
    check = ServiceCheck(reachable=False)
    if not config.admin_api_configured:
        check.error = "Admin API key not configured"
        return check
    check.configured = True

    try:
        status_code = await admin.probe(timeout=_PROBE_TIMEOUT)
    except AdminApiError as exc:
        if exc.code == "TIMEOUT":
            check.error = "Connection timeout"
        else:
            check.error = f"Cannot reach API: {exc.details or 'unknown error'}"
        return check

    if status_code == 200:
        check.reachable = True
    elif status_code == 401:
        check.reachable = True
        check.error = "Invalid admin API key"
    elif status_code == 403:
        check.reachable = True
        check.error = "Access forbidden"
    elif status_code == 404:
        # Admin endpoints missing: likely only the bot manager is deployed
        check.error = "Admin API endpoints not found. Ensure Vexa admin service is running."
    elif status_code >= 500:
        check.error = f"Server error: {status_code}"
    else:
        check.reachable = True
    return check


async def _check_vexa_api(config: Settings, vexa: VexaApiClient) -> ServiceCheck:
    check = ServiceCheck(reachable=False)
    if not config.vexa_api_url:
        check.error = "Vexa API URL not configured"
        return check
    check.configured = True

    try:
        status_code = await vexa.probe(timeout=_PROBE_TIMEOUT)
    except UpstreamUnavailableError as exc:
        if exc.code == "TIMEOUT":
            check.error = "Connection timeout"
        else:
            check.error = f"Cannot reach API: {exc.details or 'unknown error'}"
        return check

    check.reachable = status_code < 500
    if status_code >= 500:
        check.error = f"Server error: {status_code}"
    return check


async def build_health_report(
    config: Settings, admin: VexaAdminClient, vexa: VexaApiClient
) -> HealthReport:
    """Probe collaborators sequentially and summarise.

    Returns:
        HealthReport with status "error" when sign-in is impossible,
        "degraded" when only the transcription API is missing, else "ok".
    """
    report = HealthReport()
    report.checks["email"] = _check_email(config)
    if config.email_configured:
        report.auth_mode = "magic-link"

    admin_check = await _check_admin_api(config, admin)
    report.checks["admin_api"] = admin_check
    if not admin_check.configured:
        report.missing_config.append("VEXA_ADMIN_API_KEY")

    vexa_check = await _check_vexa_api(config, vexa)
    report.checks["vexa_api"] = vexa_check
    if not vexa_check.configured:
        report.missing_config.append("VEXA_API_URL")

    if not (admin_check.configured and admin_check.reachable):
        report.status = "error"
    elif not (vexa_check.configured and vexa_check.reachable):
        report.status = "degraded"
    return report
