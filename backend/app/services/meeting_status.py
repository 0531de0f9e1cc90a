"""Meeting lifecycle status model.

Classifies a meeting's raw upstream status plus auxiliary data into the
descriptor the dashboard renders (label, colour classes, explanation).

Raw strings are parsed once into a MeetingState variant:
- Requested, Joining, AwaitingAdmission, Active: no refinement
- Completed(reason): completion reason refines label and tone
- Failed(cause): error code refines the explanation
- Unknown(raw): anything the upstream sends that we don't recognise

describe() then dispatches on the variant and never re-reads strings.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

# =============================================================================
# Enums
# =============================================================================


class MeetingStatus(Enum):
    """Upstream meeting status values, in lifecycle order."""

    REQUESTED = "requested"
    JOINING = "joining"
    AWAITING_ADMISSION = "awaiting_admission"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def parse(cls, value: Any) -> "MeetingStatus | None":
        """Return the matching status, or None for unrecognised values."""
        for status in cls:
            if status.value == value:
                return status
        return None


class CompletionReason(Enum):
    """Why a meeting reached ``completed``."""

    STOPPED = "stopped"
    MEETING_ENDED = "meeting_ended"
    KICKED = "kicked"
    REMOVED = "removed"
    AWAITING_ADMISSION_REJECTED = "awaiting_admission_rejected"


class FailureCause(Enum):
    """Known causes behind a ``failed`` meeting's error code."""

    NOT_ADMITTED = "not_admitted"
    MEETING_ENDED = "meeting_ended"
    CONNECTION_FAILED = "connection_failed"


# Error code fragments, matched case-insensitively as substrings
_FAILURE_CODE_FRAGMENTS: tuple[tuple[str, FailureCause], ...] = (
    ("admission_timeout", FailureCause.NOT_ADMITTED),
    ("not_admitted", FailureCause.NOT_ADMITTED),
    ("meeting_ended", FailureCause.MEETING_ENDED),
    ("connection_failed", FailureCause.CONNECTION_FAILED),
)


# =============================================================================
# Descriptors
# =============================================================================


@dataclass(frozen=True)
class StatusDescriptor:
    """What the UI shows for a meeting status.

    Attributes:
        label: Short badge text.
        color: Text colour class.
        bg_color: Badge background class.
        description: One-line explanation, if any.
    """

    label: str
    color: str
    bg_color: str
    description: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        """Serialize for JSON responses."""
        return {
            "label": self.label,
            "color": self.color,
            "bg_color": self.bg_color,
            "description": self.description,
        }


@dataclass(frozen=True)
class _Tone:
    color: str
    bg_color: str


BLUE = _Tone("text-blue-600 dark:text-blue-400", "bg-blue-100 dark:bg-blue-950/50")
AMBER = _Tone("text-amber-600 dark:text-amber-400", "bg-amber-100 dark:bg-amber-950/50")
GREEN = _Tone("text-green-600 dark:text-green-400", "bg-green-100 dark:bg-green-950/50")
RED = _Tone("text-red-600 dark:text-red-400", "bg-red-100 dark:bg-red-950/50")
ORANGE = _Tone(
    "text-orange-600 dark:text-orange-400", "bg-orange-100 dark:bg-orange-950/50"
)
GRAY = _Tone("text-gray-600 dark:text-gray-400", "bg-gray-100 dark:bg-gray-800/50")


def _descriptor(label: str, tone: _Tone, description: str | None = None) -> StatusDescriptor:
    return StatusDescriptor(label, tone.color, tone.bg_color, description)


# Base badge per status; used as-is by the transition history
STATUS_CONFIG: dict[MeetingStatus, StatusDescriptor] = {
    MeetingStatus.REQUESTED: _descriptor("Requested", BLUE),
    MeetingStatus.JOINING: _descriptor("Joining", BLUE),
    MeetingStatus.AWAITING_ADMISSION: _descriptor("Waiting", AMBER),
    MeetingStatus.ACTIVE: _descriptor("Active", GREEN),
    MeetingStatus.COMPLETED: _descriptor("Completed", GREEN),
    MeetingStatus.FAILED: _descriptor("Failed", RED),
}

UNKNOWN_DESCRIPTOR = _descriptor("Unknown", GRAY, "Unknown status")


def base_descriptor(status: Any) -> StatusDescriptor:
    """Coarse badge for a raw status string, without refinement.

    Unrecognised statuses keep their raw text as the label, in gray.
    """
    parsed = MeetingStatus.parse(status)
    if parsed is not None:
        return STATUS_CONFIG[parsed]
    return _descriptor(str(status), GRAY)


# =============================================================================
# Meeting state variants
# =============================================================================


@dataclass(frozen=True)
class Requested:
    pass


@dataclass(frozen=True)
class Joining:
    pass


@dataclass(frozen=True)
class AwaitingAdmission:
    pass


@dataclass(frozen=True)
class Active:
    pass


@dataclass(frozen=True)
class Completed:
    """Finished meeting; reason is None when absent or unrecognised."""

    reason: CompletionReason | None = None


@dataclass(frozen=True)
class Failed:
    """Failed meeting; cause is None when the error code is absent or unknown."""

    cause: FailureCause | None = None


@dataclass(frozen=True)
class Unknown:
    """Status outside the known set."""

    raw: Any


MeetingState = (
    Requested | Joining | AwaitingAdmission | Active | Completed | Failed | Unknown
)

_SIMPLE_STATES: dict[MeetingStatus, MeetingState] = {
    MeetingStatus.REQUESTED: Requested(),
    MeetingStatus.JOINING: Joining(),
    MeetingStatus.AWAITING_ADMISSION: AwaitingAdmission(),
    MeetingStatus.ACTIVE: Active(),
}


def _parse_completion_reason(value: Any) -> CompletionReason | None:
    for reason in CompletionReason:
        if reason.value == value:
            return reason
    return None


def _parse_failure_cause(error_code: Any) -> FailureCause | None:
    if not error_code or not isinstance(error_code, str):
        return None
    lowered = error_code.lower()
    for fragment, cause in _FAILURE_CODE_FRAGMENTS:
        if fragment in lowered:
            return cause
    return None


def parse_meeting_state(status: Any, data: dict[str, Any] | None = None) -> MeetingState:
    """Resolve raw upstream strings into a MeetingState.

    Args:
        status: Raw ``status`` field.
        data: Meeting ``data`` dict; may be None or missing keys.

    Returns:
        The matching variant; Unknown for unrecognised statuses.
    """
    data = data if isinstance(data, dict) else {}
    parsed = MeetingStatus.parse(status)

    if parsed is MeetingStatus.COMPLETED:
        return Completed(_parse_completion_reason(data.get("completion_reason")))
    if parsed is MeetingStatus.FAILED:
        return Failed(_parse_failure_cause(data.get("error_code")))
    if parsed is None:
        return Unknown(status)
    return _SIMPLE_STATES[parsed]


# =============================================================================
# Classification
# =============================================================================

_COMPLETED_BY_REASON: dict[CompletionReason, StatusDescriptor] = {
    CompletionReason.STOPPED: _descriptor("Stopped", GRAY, "Manually stopped by user"),
    CompletionReason.MEETING_ENDED: _descriptor(
        "Ended", GREEN, "Meeting ended naturally"
    ),
    CompletionReason.KICKED: _descriptor(
        "Removed", ORANGE, "Bot was removed from meeting"
    ),
    CompletionReason.REMOVED: _descriptor(
        "Removed", ORANGE, "Bot was removed from meeting"
    ),
    # The reason outweighs the coarse status here: shown as an error
    CompletionReason.AWAITING_ADMISSION_REJECTED: _descriptor(
        "Rejected", RED, "Bot was not admitted to meeting"
    ),
}

_FAILURE_DESCRIPTIONS: dict[FailureCause | None, str] = {
    FailureCause.NOT_ADMITTED: "Bot was not admitted to meeting",
    FailureCause.MEETING_ENDED: "Meeting ended before bot could join",
    FailureCause.CONNECTION_FAILED: "Failed to connect to meeting",
    None: "Transcription failed",
}

_SIMPLE_DESCRIPTORS: dict[type, StatusDescriptor] = {
    Requested: _descriptor("Requested", BLUE, "Starting bot"),
    Joining: _descriptor("Joining", BLUE, "Connecting to meeting"),
    AwaitingAdmission: _descriptor("Waiting", AMBER, "Waiting in lobby"),
    Active: _descriptor("Active", GREEN, "Recording in progress"),
}


def describe(state: MeetingState) -> StatusDescriptor:
    """Map a parsed state to its UI descriptor."""
    if isinstance(state, Completed):
        if state.reason is not None:
            return _COMPLETED_BY_REASON[state.reason]
        return _descriptor("Completed", GREEN, "Transcription completed")
    if isinstance(state, Failed):
        return _descriptor("Failed", RED, _FAILURE_DESCRIPTIONS[state.cause])
    simple = _SIMPLE_DESCRIPTORS.get(type(state))
    if simple is not None:
        return simple
    return UNKNOWN_DESCRIPTOR


def classify(status: Any, data: dict[str, Any] | None = None) -> StatusDescriptor:
    """Classify a raw status and meeting data into a UI descriptor.

    Total over any input: unrecognised statuses yield the Unknown descriptor.

    Args:
        status: Raw ``status`` from the upstream meeting.
        data: Meeting ``data`` (completion_reason, error_code, ...).

    Returns:
        The refined StatusDescriptor.
    """
    return describe(parse_meeting_state(status, data))
