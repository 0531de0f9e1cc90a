"""Email sending via Resend API.

Simple HTTP POST to Resend for magic link emails. Failures are classified so
the sign-in endpoint can tell the user whether the mail host is unreachable,
rejected our credentials, or failed for another reason.
"""

import logging
from html import escape

import httpx

from app.core.config import settings
from app.core.errors import EmailDeliveryError, EmailFailureKind

logger = logging.getLogger(__name__)

_RESEND_TIMEOUT = 10.0
_APP_NAME = "Vexa"


def _render_html(magic_link: str) -> str:
    link = escape(magic_link, quote=True)
    return (
        '<div style="font-family: -apple-system, BlinkMacSystemFont, '
        "'Segoe UI', Roboto, Arial, sans-serif; max-width: 480px;\">"
        f'<p style="font-size: 24px; font-weight: 700;">{_APP_NAME}</p>'
        f"<p>Click the button below to sign in to your {_APP_NAME} account. "
        "This link will expire in 15 minutes.</p>"
        f'<p><a href="{link}" style="display: inline-block; background-color: #000; '
        'color: #fff; padding: 12px 24px; border-radius: 5px; '
        'text-decoration: none;">Sign in</a></p>'
        "<p>Or copy and paste this URL into your browser:</p>"
        f'<p style="word-break: break-all;">{link}</p>'
        '<p style="font-size: 12px; color: #666;">'
        "If you didn't request this email, you can safely ignore it.</p>"
        "</div>"
    )


def _render_text(magic_link: str) -> str:
    return (
        f"Sign in to {_APP_NAME}\n\n"
        "Click the link below to sign in to your account. "
        "This link will expire in 15 minutes.\n\n"
        f"{magic_link}\n\n"
        "If you didn't request this email, you can safely ignore it."
    )


async def send_magic_link_email(
    to_email: str,
    magic_link: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """Send a magic link sign-in email via Resend.

    Args:
        to_email: Recipient email address.
        magic_link: Full verification URL carrying the signed token.
        transport: Optional httpx transport (tests).

    Raises:
        EmailDeliveryError: UNREACHABLE on connect/DNS/timeout failures,
            AUTH_FAILED when Resend rejects the API key, SEND_FAILED otherwise.
    """
    try:
        async with httpx.AsyncClient(transport=transport) as client:
            resp = await client.post(
                settings.resend_api_url,
                headers={
                    "Authorization": f"Bearer {settings.resend_api_key.get_secret_value()}",
                },
                json={
                    "from": settings.email_from,
                    "to": to_email,
                    "subject": f"Sign in to {_APP_NAME}",
                    "html": _render_html(magic_link),
                    "text": _render_text(magic_link),
                },
                timeout=_RESEND_TIMEOUT,
            )
    except (httpx.ConnectError, httpx.TimeoutException) as exc:
        logger.warning("Email server unreachable: %s", type(exc).__name__)
        raise EmailDeliveryError(EmailFailureKind.UNREACHABLE, str(exc)) from exc
    except httpx.HTTPError as exc:
        logger.warning("Failed to send magic link email", exc_info=True)
        raise EmailDeliveryError(EmailFailureKind.SEND_FAILED, str(exc)) from exc

    if resp.status_code in (401, 403):
        logger.warning("Email provider rejected credentials (%s)", resp.status_code)
        raise EmailDeliveryError(EmailFailureKind.AUTH_FAILED)
    if resp.is_error:
        logger.warning("Email provider returned %s", resp.status_code)
        raise EmailDeliveryError(
            EmailFailureKind.SEND_FAILED, f"Email provider returned {resp.status_code}"
        )
