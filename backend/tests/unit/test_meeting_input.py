"""Tests for join-bot meeting input parsing."""

import pytest

from app.services.meeting_input import ParsedMeetingInput, parse_meeting_input


class TestGoogleMeet:
    """Google Meet links and codes."""

    @pytest.mark.parametrize(
        "raw",
        [
            "https://meet.google.com/abc-defg-hij",
            "meet.google.com/ABC-DEFG-HIJ?authuser=0",
            "  abc-defg-hij  ",
        ],
    )
    def test_resolves_lowercase_code(self, raw):
        assert parse_meeting_input(raw) == ParsedMeetingInput("google_meet", "abc-defg-hij")

    def test_malformed_code_is_not_google_meet(self):
        assert parse_meeting_input("abc-def-hij") is None


class TestTeams:
    """Microsoft Teams links and IDs."""

    def test_live_link_with_passcode(self):
        parsed = parse_meeting_input(
            "https://teams.live.com/meet/9387167464734?p=qxJanYOcdjN4d6UlGa"
        )
        assert parsed == ParsedMeetingInput("teams", "9387167464734", "qxJanYOcdjN4d6UlGa")

    def test_meetup_join_link_is_decoded(self):
        parsed = parse_meeting_input(
            "https://teams.microsoft.com/l/meetup-join/19%3ameeting_abc%40thread.v2/0"
            "?context=%7b%7d"
        )
        assert parsed is not None
        assert parsed.platform == "teams"
        assert parsed.meeting_id == "19:meeting_abc@thread.v2"
        assert parsed.passcode is None

    def test_long_numeric_id(self):
        assert parse_meeting_input("938716746473") == ParsedMeetingInput(
            "teams", "938716746473"
        )

    def test_unknown_teams_path_uses_last_segment(self):
        parsed = parse_meeting_input("https://teams.microsoft.com/v2/abc123?p=secret")
        assert parsed == ParsedMeetingInput("teams", "abc123", "secret")


class TestZoom:
    """Zoom links and IDs."""

    def test_link_with_passcode(self):
        parsed = parse_meeting_input("https://zoom.us/j/85173157171?pwd=a%2Bb")
        assert parsed == ParsedMeetingInput("zoom", "85173157171", "a+b")

    def test_subdomain_link_without_passcode(self):
        parsed = parse_meeting_input("us05web.zoom.us/j/851731571")
        assert parsed == ParsedMeetingInput("zoom", "851731571")

    @pytest.mark.parametrize("raw", ["851731571", "85173157171"])
    def test_nine_to_eleven_digits(self, raw):
        assert parse_meeting_input(raw) == ParsedMeetingInput("zoom", raw)


class TestUnrecognised:
    """Inputs that resolve to nothing."""

    @pytest.mark.parametrize("raw", ["", "   ", "12345678", "https://example.com/j/123"])
    def test_returns_none(self, raw):
        assert parse_meeting_input(raw) is None


class TestBotRequest:
    """Conversion to Vexa bots API fields."""

    def test_passcode_included_only_when_present(self):
        assert ParsedMeetingInput("zoom", "851731571").to_bot_request() == {
            "platform": "zoom",
            "native_meeting_id": "851731571",
        }
        assert ParsedMeetingInput("zoom", "851731571", "pw").to_bot_request()[
            "passcode"
        ] == "pw"
