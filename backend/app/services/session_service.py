"""Session issuance service.

Resolves a user by email against the Vexa Admin API, mints an API token
for them, and hands it back for the router to store in the session cookie.

Two mutually exclusive modes, chosen by deployment configuration:
- direct: email delivery unconfigured; sign in immediately
- magic-link: email a signed, 15-minute link; sign in on redemption

State per browser: anonymous -> pending-verification (magic-link sent) ->
authenticated -> anonymous (logout or credential rejected). Direct login
skips pending-verification.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Literal

from app.adapters.vexa import AdminApiError, VexaAdminClient, VexaApiClient, VexaUser
from app.core.config import Settings, settings
from app.core.email import send_magic_link_email
from app.core.errors import (
    ConfigurationError,
    RegistrationBlockedError,
    UpstreamUnavailableError,
    ValidationError,
)
from app.core.magic_link import (
    build_magic_link_url,
    issue_magic_link_token,
    verify_magic_link_token,
)
from app.core.registration import (
    RegistrationPolicy,
    get_registration_policy,
    validate_email_for_registration,
)

logger = logging.getLogger(__name__)

# Existence check before sending a magic link doubles as a reachability probe
_USER_CHECK_TIMEOUT = 10.0

EmailSender = Callable[[str, str], Awaitable[None]]


@dataclass
class LoginResult:
    """Outcome of a sign-in step.

    Attributes:
        mode: "direct" or "magic-link".
        user: Signed-in user (None while a magic link is pending).
        token: Upstream API token for the session cookie (None while pending).
        is_new_user: True when the account was created by this sign-in.
        message: User-facing acknowledgement for magic-link mode.
    """

    mode: Literal["direct", "magic-link"]
    user: VexaUser | None = None
    token: str | None = None
    is_new_user: bool = False
    message: str | None = None

    @property
    def authenticated(self) -> bool:
        """True when a credential was issued."""
        return self.token is not None

    def to_response(self) -> dict[str, Any]:
        """Response body; never includes anything for a pending magic link."""
        if not self.authenticated:
            return {"success": True, "mode": self.mode, "message": self.message}
        assert self.user is not None
        return {
            "success": True,
            "mode": self.mode,
            "is_new_user": self.is_new_user,
            "user": self.user.to_profile(),
            "token": self.token,
        }


class SessionService:
    """Issue and check dashboard sessions.

    Args:
        admin: Identity store client.
        vexa: Transcription API client (session validation).
        config: Settings to read modes and secrets from.
        send_email: Coroutine delivering (to_email, magic_link).
        policy: Registration policy; built from config when omitted.
    """

    def __init__(
        self,
        admin: VexaAdminClient,
        vexa: VexaApiClient,
        *,
        config: Settings | None = None,
        send_email: EmailSender = send_magic_link_email,
        policy: RegistrationPolicy | None = None,
    ) -> None:
        self.admin = admin
        self.vexa = vexa
        self.config = config or settings
        self.send_email = send_email
        self.policy = policy or get_registration_policy(self.config)

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    def _require_admin_api(self) -> None:
        if not self.config.admin_api_configured:
            raise ConfigurationError(
                "Authentication service not configured. Please set VEXA_ADMIN_API_KEY.",
                code="ADMIN_API_NOT_CONFIGURED",
            )

    def _check_registration(self, email: str, user_exists: bool) -> None:
        rejection = validate_email_for_registration(email, user_exists, self.policy)
        if rejection:
            logger.info("Registration blocked for new account")
            raise RegistrationBlockedError(rejection)

    async def _resolve_or_create_user(self, email: str) -> tuple[VexaUser, bool]:
        """Find the user, creating them if absent and the policy allows.

        Returns:
            (user, is_new_user)

        Raises:
            RegistrationBlockedError: Policy rejected a new email.
            APIError: Identity store failure, mapped from AdminApiError.
        """
        try:
            return await self.admin.find_user_by_email(email), False
        except AdminApiError as exc:
            if exc.code != "NOT_FOUND":
                raise exc.to_api_error("Failed to verify account") from exc

        self._check_registration(email, user_exists=False)

        try:
            return await self.admin.create_user(email), True
        except AdminApiError as exc:
            if exc.code != "CONFLICT":
                raise exc.to_api_error("Failed to create account") from exc
            # Created concurrently between lookup and create; read it back
            try:
                return await self.admin.find_user_by_email(email), False
            except AdminApiError:
                raise exc.to_api_error("Failed to create account") from exc

    async def _issue_credential(self, user: VexaUser) -> str:
        try:
            return await self.admin.create_user_token(user.id)
        except AdminApiError as exc:
            raise exc.to_api_error("Failed to create session") from exc

    # -----------------------------------------------------------------
    # Operations
    # -----------------------------------------------------------------

    async def initiate_login(self, email: str, *, base_url: str) -> LoginResult:
        """Start sign-in for email.

        Args:
            email: Already format-validated address.
            base_url: Dashboard origin used to build the magic link.

        Returns:
            Direct mode: an authenticated LoginResult.
            Magic-link mode: a pending LoginResult (token not exposed).
        """
        self._require_admin_api()

        if not self.config.email_configured:
            logger.info("Email delivery not configured, using direct login")
            user, is_new_user = await self._resolve_or_create_user(email)
            token = await self._issue_credential(user)
            return LoginResult(
                mode="direct", user=user, token=token, is_new_user=is_new_user
            )

        try:
            await self.admin.find_user_by_email(email, timeout=_USER_CHECK_TIMEOUT)
            user_exists = True
        except AdminApiError as exc:
            if exc.code != "NOT_FOUND":
                raise exc.to_api_error("Failed to verify account") from exc
            user_exists = False

        self._check_registration(email, user_exists=user_exists)

        magic_token = issue_magic_link_token(
            email=email, secret=self.config.magic_link_secret
        )
        await self.send_email(email, build_magic_link_url(base_url, magic_token))
        logger.info("Magic link sent")

        return LoginResult(mode="magic-link", message="Magic link sent to your email")

    async def redeem_magic_link(self, token: str | None) -> LoginResult:
        """Verify a magic-link token and sign its email in.

        The token is not single-use: redeeming it again before expiry signs
        in again.

        Raises:
            ValidationError: MISSING_TOKEN.
            InvalidTokenError: Expired, tampered, or wrong-purpose token.
        """
        self._require_admin_api()

        if not token or not isinstance(token, str):
            raise ValidationError("Verification token is required", code="MISSING_TOKEN")

        claims = verify_magic_link_token(token, secret=self.config.magic_link_secret)
        user, is_new_user = await self._resolve_or_create_user(claims.email)
        api_token = await self._issue_credential(user)
        return LoginResult(
            mode="magic-link", user=user, token=api_token, is_new_user=is_new_user
        )

    async def check_session(self, token: str) -> bool:
        """Return True when the upstream still accepts token.

        Raises:
            UpstreamUnavailableError: 503 if the API cannot be reached. The
                credential was not rejected, so the caller keeps the cookie.
        """
        try:
            return await self.vexa.validate_token(token)
        except UpstreamUnavailableError as exc:
            logger.warning("Session check failed: Vexa API unreachable")
            raise UpstreamUnavailableError(
                message="Cannot verify session: Vexa API unreachable",
                code=exc.code,
                status_code=503,
                details=exc.details,
            ) from exc
