"""Application configuration loaded from environment variables.

Settings for the upstream Vexa services, session cookies, magic-link email
delivery, registration policy, and rate limiting. Uses pydantic-settings for
validation and .env file support.
"""

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Placeholder shipped in example env files; treated the same as "unset"
ADMIN_KEY_PLACEHOLDER = "your_admin_api_key_here"  # nosec B105

_DEFAULT_VEXA_API_URL = "http://localhost:18056"

# Minimum length for the magic-link signing secret in production (256 bits)
_MIN_JWT_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # CORS (Security)
    # Default allows localhost:3000 for the dashboard frontend in development
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Upstream Vexa services
    vexa_api_url: str = ""
    vexa_api_key: SecretStr = SecretStr("")
    vexa_admin_api_url: str = ""
    vexa_admin_api_key: SecretStr = SecretStr("")
    upstream_timeout_seconds: float = 15.0

    # Public URLs handed to the browser at runtime
    public_vexa_api_url: str = ""
    public_vexa_ws_url: str = ""

    # Base URL of the dashboard, used to build magic links
    app_url: str = ""

    # Session cookies
    jwt_secret: SecretStr = SecretStr("")
    cookie_domain: str = ""
    cookie_secure: bool | None = None

    # Email (magic links via Resend)
    resend_api_key: SecretStr = SecretStr("")
    resend_api_url: str = "https://api.resend.com/emails"
    email_from: str = "Vexa <noreply@vexa.ai>"

    # Registration policy for first-time sign-ins
    allow_registration: bool = True
    allowed_email_domains: list[str] = []
    allowed_emails: list[str] = []

    # AI assistant, "provider/model" (e.g. "openai/gpt-4o"); empty disables it
    ai_model: str = ""
    ai_api_key: SecretStr = SecretStr("")
    ai_base_url: str = ""

    # Admin panel gate
    admin_panel_key: SecretStr = SecretStr("")

    # Rate Limiting (Security)
    # Format: "count/period" (e.g., "5/minute", "100/hour")
    rate_limit_magic_link: str = "5/minute"
    rate_limit_verify: str = "10/minute"
    rate_limit_admin_session: str = "5/minute"
    rate_limit_enabled: bool = True  # Disable for testing

    @property
    def resolved_vexa_api_url(self) -> str:
        """Transcription API base URL without a trailing slash."""
        return (self.vexa_api_url or _DEFAULT_VEXA_API_URL).rstrip("/")

    @property
    def resolved_admin_api_url(self) -> str:
        """Admin API base URL; shares the transcription API host by default."""
        return (self.vexa_admin_api_url or self.resolved_vexa_api_url).rstrip("/")

    @property
    def admin_api_configured(self) -> bool:
        """True when a real admin API key is set (not empty, not the placeholder)."""
        key = self.vexa_admin_api_key.get_secret_value()
        return bool(key) and key != ADMIN_KEY_PLACEHOLDER

    @property
    def email_configured(self) -> bool:
        """True when outbound email is available, enabling magic-link mode."""
        return bool(self.resend_api_key.get_secret_value())

    @property
    def magic_link_secret(self) -> str:
        """Signing secret for magic links; falls back to the admin API key."""
        return (
            self.jwt_secret.get_secret_value()
            or self.vexa_admin_api_key.get_secret_value()
        )

    @property
    def resolved_admin_panel_key(self) -> str:
        """Key required to open the admin panel."""
        return (
            self.admin_panel_key.get_secret_value()
            or self.vexa_admin_api_key.get_secret_value()
        )

    @property
    def session_cookie_secure(self) -> bool:
        """Secure flag for session cookies; on by default in production."""
        if self.cookie_secure is not None:
            return self.cookie_secure
        return self.environment == "production"

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate production security requirements.

        Checks:
        - CORS must not use wildcard origin (incompatible with credentials)
        - Magic-link signing secret must be >= 32 chars in production
        - APP_URL must be set in production
        """
        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "Session cookies are incompatible with wildcard CORS origins."
            )
            raise ValueError(msg)

        if self.environment == "production":
            secret_value = self.magic_link_secret
            if secret_value and len(secret_value) < _MIN_JWT_SECRET_LENGTH:
                msg = (
                    f"JWT_SECRET must be at least {_MIN_JWT_SECRET_LENGTH} "
                    "characters in production. Generate with: "
                    'python -c "import secrets; print(secrets.token_hex(32))"'
                )
                raise ValueError(msg)

            if not self.app_url:
                msg = (
                    "APP_URL must be set in production. Magic links are built "
                    "from it; request headers cannot be trusted for the host."
                )
                raise ValueError(msg)

        return self


settings = Settings()
