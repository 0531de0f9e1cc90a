"""Tests for session cookie helpers and email validation."""

import json
from datetime import timedelta
from urllib.parse import quote

import pytest
from fastapi import Response

from app.core.auth import (
    ADMIN_COOKIE_NAME,
    SESSION_COOKIE_NAME,
    USER_INFO_COOKIE_NAME,
    clear_session_cookie,
    clear_session_cookies,
    create_admin_session,
    read_user_info_cookie,
    set_admin_cookie,
    set_session_cookie,
    validate_email_address,
    verify_admin_session,
)
from app.core.config import settings
from app.core.errors import ValidationError

_SECRET = "admin-session-secret-that-is-long-enough"  # nosec B105


def _set_cookie_headers(response: Response) -> list[str]:
    return [v.decode() for k, v in response.raw_headers if k == b"set-cookie"]


class TestValidateEmailAddress:
    """Email shape check runs before any upstream call."""

    @pytest.mark.parametrize("email", ["a@b.co", "first.last@sub.example.org", "x+tag@y.io"])
    def test_accepts_valid_shapes(self, email):
        assert validate_email_address(email) == email

    @pytest.mark.parametrize("email", ["", None, 42])
    def test_missing_email_is_required_error(self, email):
        with pytest.raises(ValidationError, match="Email is required"):
            validate_email_address(email)

    @pytest.mark.parametrize(
        "email", ["plainaddress", "no-at.example.com", "a@b", "a b@c.com", "a@@b.com"]
    )
    def test_rejects_malformed(self, email):
        with pytest.raises(ValidationError, match="Invalid email format"):
            validate_email_address(email)


class TestSessionCookie:
    """vexa-token cookie attributes."""

    def test_set_session_cookie_attributes(self):
        response = Response()
        set_session_cookie(response, "tok-123")

        (header,) = _set_cookie_headers(response)
        assert header.startswith(f"{SESSION_COOKIE_NAME}=tok-123")
        assert "HttpOnly" in header
        assert "Max-Age=2592000" in header
        assert "Path=/" in header
        assert "SameSite=lax" in header

    def test_set_session_cookie_uses_shared_domain(self):
        original = settings.cookie_domain
        settings.cookie_domain = ".vexa.test"
        try:
            response = Response()
            set_session_cookie(response, "tok")
            assert "Domain=.vexa.test" in _set_cookie_headers(response)[0]
        finally:
            settings.cookie_domain = original

    def test_clear_session_cookie_expires_token(self):
        response = Response()
        clear_session_cookie(response)

        (header,) = _set_cookie_headers(response)
        assert header.startswith(f'{SESSION_COOKIE_NAME}=""')
        assert "Max-Age=0" in header

    def test_clear_session_cookies_includes_user_info_and_legacy(self):
        response = Response()
        clear_session_cookies(response)

        names = [h.split("=", 1)[0] for h in _set_cookie_headers(response)]
        assert SESSION_COOKIE_NAME in names
        assert USER_INFO_COOKIE_NAME in names
        assert "next-auth.session-token" in names


class TestUserInfoCookie:
    """Best-effort parsing of the profile hint cookie."""

    def test_parses_json_object(self):
        assert read_user_info_cookie('{"email": "a@b.co"}') == {"email": "a@b.co"}

    def test_parses_url_encoded_json(self):
        raw = quote(json.dumps({"name": "Alice"}))
        assert read_user_info_cookie(raw) == {"name": "Alice"}

    @pytest.mark.parametrize("raw", [None, "", "not-json{", "[1, 2]", '"string"'])
    def test_unusable_values_are_ignored(self, raw):
        assert read_user_info_cookie(raw) is None


class TestAdminSession:
    """Signed admin panel session."""

    def test_roundtrip(self):
        token = create_admin_session(secret=_SECRET)
        assert verify_admin_session(token, secret=_SECRET) is True

    def test_wrong_secret_rejected(self):
        token = create_admin_session(secret=_SECRET)
        assert verify_admin_session(token, secret=_SECRET + "x") is False

    def test_expired_rejected(self):
        token = create_admin_session(secret=_SECRET, expires_delta=timedelta(seconds=-1))
        assert verify_admin_session(token, secret=_SECRET) is False

    def test_missing_token_rejected(self):
        assert verify_admin_session(None, secret=_SECRET) is False

    def test_admin_cookie_is_strict(self):
        response = Response()
        set_admin_cookie(response, "t")
        (header,) = _set_cookie_headers(response)
        assert header.startswith(f"{ADMIN_COOKIE_NAME}=t")
        assert "SameSite=strict" in header
        assert "HttpOnly" in header
