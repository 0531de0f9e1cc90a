"""Parse what a user pastes into the join-bot form.

Accepts Google Meet, Microsoft Teams, and Zoom links, or bare meeting
codes/IDs, and resolves them to the ``platform`` / ``native_meeting_id`` /
``passcode`` triple the Vexa bots API expects.

Bare numeric IDs are ambiguous: 9-11 digits are treated as Zoom, 12 or
more as Teams.
"""

import re
from dataclasses import dataclass
from typing import Literal
from urllib.parse import unquote

Platform = Literal["google_meet", "teams", "zoom"]

_GOOGLE_MEET_URL = re.compile(
    r"(?:https?://)?meet\.google\.com/([a-z]{3}-[a-z]{4}-[a-z]{3})", re.IGNORECASE
)
_GOOGLE_MEET_CODE = re.compile(r"^[a-z]{3}-[a-z]{4}-[a-z]{3}$", re.IGNORECASE)
_TEAMS_URL = re.compile(
    r"(?:https?://)?(?:teams\.microsoft\.com|teams\.live\.com)"
    r"/(?:l/meetup-join|meet)/([^\s?#]+)",
    re.IGNORECASE,
)
_TEAMS_PASSCODE = re.compile(r"[?&]p=([^&]+)", re.IGNORECASE)
_ZOOM_URL = re.compile(r"(?:https?://)?(?:[\w-]+\.)?zoom\.us/j/(\d+)", re.IGNORECASE)
_ZOOM_PASSCODE = re.compile(r"[?&]pwd=([^&]+)", re.IGNORECASE)
_ZOOM_ID = re.compile(r"^\d{9,11}$")
_TEAMS_ID = re.compile(r"^\d{12,}$")
_TEAMS_HOSTS = ("teams.microsoft.com", "teams.live.com")


@dataclass(frozen=True)
class ParsedMeetingInput:
    """A recognised meeting.

    Attributes:
        platform: Vexa platform identifier.
        meeting_id: Platform-native meeting ID.
        passcode: Join passcode carried in the link, if any.
    """

    platform: Platform
    meeting_id: str
    passcode: str | None = None

    def to_bot_request(self) -> dict[str, str]:
        """Fields for ``POST /bots`` on the Vexa API."""
        request = {"platform": self.platform, "native_meeting_id": self.meeting_id}
        if self.passcode:
            request["passcode"] = self.passcode
        return request


def _passcode(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    return unquote(match.group(1)) if match else None


def parse_meeting_input(raw: str) -> ParsedMeetingInput | None:
    """Resolve a pasted link or code to a meeting.

    Args:
        raw: User input, surrounding whitespace allowed.

    Returns:
        ParsedMeetingInput, or None when nothing recognisable was found.
    """
    text = raw.strip()
    if not text:
        return None

    match = _GOOGLE_MEET_URL.search(text)
    if match:
        return ParsedMeetingInput("google_meet", match.group(1).lower())
    if _GOOGLE_MEET_CODE.match(text):
        return ParsedMeetingInput("google_meet", text.lower())

    match = _TEAMS_URL.search(text)
    if match:
        decoded = unquote(match.group(1))
        meeting_id = decoded.split("/")[0] or decoded
        return ParsedMeetingInput("teams", meeting_id, _passcode(_TEAMS_PASSCODE, text))

    match = _ZOOM_URL.search(text)
    if match:
        return ParsedMeetingInput("zoom", match.group(1), _passcode(_ZOOM_PASSCODE, text))
    if _ZOOM_ID.match(text):
        return ParsedMeetingInput("zoom", text)
    if _TEAMS_ID.match(text):
        return ParsedMeetingInput("teams", text)

    # Teams links in formats the URL pattern does not know: take the last
    # path segment
    lowered = text.lower()
    if any(host in lowered for host in _TEAMS_HOSTS):
        last_segment = re.sub(r"^https?://", "", text).split("/")[-1]
        meeting_id = last_segment.split("?")[0]
        if meeting_id:
            return ParsedMeetingInput(
                "teams", meeting_id, _passcode(_TEAMS_PASSCODE, text)
            )

    return None
