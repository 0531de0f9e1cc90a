"""Rate limiting configuration using slowapi.

Security: Limits how often an address can request magic links, try
verification tokens, or guess the admin panel key.

Usage in routers:
    from app.core.rate_limiting import limiter

    @router.post("/send-magic-link")
    @limiter.limit(lambda: settings.rate_limit_magic_link)
    async def send_magic_link(request: Request, ...):
        ...
"""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from app.core.config import settings
from app.core.responses import ErrorResponse


def _rate_limit_key_func(request: Request) -> str:
    """Get rate limit key from request.

    All rate-limited endpoints run before a session exists, so keying is
    always by client address. Behind a reverse proxy, run uvicorn with
    --proxy-headers so this is the real client IP.
    """
    return get_remote_address(request)


# Global limiter instance
# Configured with in-memory storage (suitable for single-instance deployment)
# For multi-instance, configure Redis storage via RATELIMIT_STORAGE_URL
limiter = Limiter(
    key_func=_rate_limit_key_func,
    enabled=settings.rate_limit_enabled,
)


def rate_limit_exceeded_handler(
    _request: Request,
    exc: RateLimitExceeded,
) -> Response:
    """Handle rate limit exceeded errors.

    Returns 429 Too Many Requests with the standard error payload.

    Args:
        request: The incoming request.
        exc: The rate limit exception.

    Returns:
        JSONResponse with 429 status and retry-after header.
    """
    # Parse retry-after from exception detail (e.g., "10 per 1 minute")
    # Fallback to 60 seconds if parsing fails
    try:
        retry_after = str(exc.detail.split()[-1])
        int(retry_after.rstrip("s"))
    except (ValueError, AttributeError, IndexError):
        retry_after = "60"

    return JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=f"Rate limit exceeded: {exc.detail}",
            code="RATE_LIMITED",
            can_retry=True,
        ).to_content(),
        headers={"Retry-After": retry_after},
    )
