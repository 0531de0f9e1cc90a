"""Tests for the registration policy."""

import pytest
from pydantic import SecretStr

from app.core.config import Settings
from app.core.registration import (
    RegistrationPolicy,
    get_registration_policy,
    validate_email_for_registration,
)


class TestGetRegistrationPolicy:
    """Policy built from settings."""

    def test_normalises_domains_and_emails(self):
        config = Settings(
            _env_file=None,
            allow_registration=False,
            allowed_email_domains=["@Example.COM ", "vexa.ai", " "],
            allowed_emails=["Boss@Corp.test"],
            vexa_admin_api_key=SecretStr("k"),
        )
        policy = get_registration_policy(config)

        assert policy.allow_registration is False
        assert policy.allowed_domains == frozenset({"example.com", "vexa.ai"})
        assert policy.allowed_emails == frozenset({"boss@corp.test"})


class TestValidateEmailForRegistration:
    """Order of checks: existing user, allow-list, closed, domain."""

    def test_open_policy_allows_anyone(self):
        assert validate_email_for_registration("a@b.co", False, RegistrationPolicy()) is None

    def test_existing_user_always_allowed(self):
        policy = RegistrationPolicy(allow_registration=False)
        assert validate_email_for_registration("a@b.co", True, policy) is None

    def test_closed_registration_blocks_new_users(self):
        policy = RegistrationPolicy(allow_registration=False)
        message = validate_email_for_registration("a@b.co", False, policy)
        assert message is not None
        assert "closed" in message

    def test_allowed_email_bypasses_closed_registration(self):
        policy = RegistrationPolicy(
            allow_registration=False, allowed_emails=frozenset({"vip@b.co"})
        )
        assert validate_email_for_registration("VIP@b.co", False, policy) is None

    @pytest.mark.parametrize(
        ("email", "allowed"),
        [("dev@vexa.ai", True), ("DEV@VEXA.AI", True), ("dev@other.io", False)],
    )
    def test_domain_restriction(self, email, allowed):
        policy = RegistrationPolicy(allowed_domains=frozenset({"vexa.ai"}))
        result = validate_email_for_registration(email, False, policy)
        assert (result is None) is allowed
