"""Registration policy for first-time sign-ins.

Existing users can always sign in. New emails are checked against the
deployment's policy before any user or credential is created.
"""

from dataclasses import dataclass, field

from app.core.config import Settings, settings


@dataclass(frozen=True)
class RegistrationPolicy:
    """Who may create an account.

    Attributes:
        allow_registration: False makes the deployment invite-only.
        allowed_domains: If non-empty, new emails must use one of these domains.
        allowed_emails: Emails always allowed, even when registration is closed
            or the domain is not listed.
    """

    allow_registration: bool = True
    allowed_domains: frozenset[str] = field(default_factory=frozenset)
    allowed_emails: frozenset[str] = field(default_factory=frozenset)


def get_registration_policy(config: Settings | None = None) -> RegistrationPolicy:
    """Build the policy from settings, normalising case and leading '@'."""
    config = config or settings
    return RegistrationPolicy(
        allow_registration=config.allow_registration,
        allowed_domains=frozenset(
            d.strip().lower().lstrip("@") for d in config.allowed_email_domains if d.strip()
        ),
        allowed_emails=frozenset(
            e.strip().lower() for e in config.allowed_emails if e.strip()
        ),
    )


def validate_email_for_registration(
    email: str, user_exists: bool, policy: RegistrationPolicy
) -> str | None:
    """Check email against the registration policy.

    Args:
        email: Address attempting to sign in.
        user_exists: Whether the identity store already has this user.
        policy: Deployment registration policy.

    Returns:
        None when allowed, otherwise a user-facing rejection message.
    """
    if user_exists:
        return None

    normalized = email.strip().lower()
    if normalized in policy.allowed_emails:
        return None

    if not policy.allow_registration:
        return "Registration is currently closed. Please contact an administrator for access."

    if policy.allowed_domains:
        domain = normalized.rsplit("@", 1)[-1]
        if domain not in policy.allowed_domains:
            return "Registration is restricted to approved email domains."

    return None
