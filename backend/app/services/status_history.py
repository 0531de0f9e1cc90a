"""Meeting status transition history.

Orders the upstream's append-only transition records chronologically and
builds the timeline entries the meeting page shows. The last entry is the
current status. Badges use the coarse base label, not the refined
descriptor.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.services.meeting_status import StatusDescriptor, base_descriptor


class TransitionSource(Enum):
    """Who initiated a status change."""

    USER = "user"
    BOT_CALLBACK = "bot_callback"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "TransitionSource":
        """Map a raw source string; omitted or unrecognised become UNKNOWN."""
        for source in (cls.USER, cls.BOT_CALLBACK):
            if source.value == value:
                return source
        return cls.UNKNOWN


class StatusTransition(BaseModel):
    """One upstream status-change record (immutable)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    from_status: str | None = Field(default=None, alias="from")
    to: str
    timestamp: datetime
    source: str | None = None
    reason: str | None = None
    completion_reason: str | None = None


@dataclass(frozen=True)
class HistoryEntry:
    """A rendered timeline row.

    Attributes:
        to: Target status (raw).
        badge: Coarse badge for the target status.
        source: Initiator kind.
        source_label: Display text for the initiator; None when omitted.
        timestamp: Transition time (UTC).
        time_label: Absolute time, ``HH:MM:SS``.
        relative_label: Relative time, e.g. "5 minutes ago".
        reason: Free-text reason, if any.
        is_current: True for the chronologically last entry.
    """

    to: str
    badge: StatusDescriptor
    source: TransitionSource
    source_label: str | None
    timestamp: datetime
    time_label: str
    relative_label: str
    reason: str | None
    is_current: bool

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "to": self.to,
            "badge": self.badge.to_dict(),
            "source": self.source.value,
            "source_label": self.source_label,
            "timestamp": self.timestamp.isoformat(),
            "time_label": self.time_label,
            "relative_label": self.relative_label,
            "reason": self.reason,
            "is_current": self.is_current,
        }


def _as_utc(value: datetime) -> datetime:
    # Upstream timestamps without an offset are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def order_transitions(transitions: list[StatusTransition]) -> list[StatusTransition]:
    """Sort ascending by timestamp; equal timestamps keep input order."""
    return sorted(transitions, key=lambda t: _as_utc(t.timestamp))


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_relative(moment: datetime, now: datetime) -> str:
    """Describe moment relative to now ("less than a minute ago", "3 hours ago")."""
    seconds = (now - moment).total_seconds()
    suffix = "ago" if seconds >= 0 else "from now"
    seconds = abs(seconds)
    minutes = round(seconds / 60)

    if seconds < 30:
        text = "less than a minute"
    elif minutes < 2:
        text = "1 minute"
    elif minutes < 45:
        text = f"{minutes} minutes"
    elif minutes < 90:
        text = "about 1 hour"
    elif minutes < 24 * 60:
        text = f"about {round(minutes / 60)} hours"
    elif minutes < 42 * 60:
        text = "1 day"
    elif minutes < 30 * 24 * 60:
        text = f"{round(minutes / (24 * 60))} days"
    elif minutes < 60 * 24 * 60:
        months = round(minutes / (30 * 24 * 60))
        text = "about 1 month" if months == 1 else f"about {months} months"
    elif minutes < 365 * 24 * 60:
        text = f"{round(minutes / (30 * 24 * 60))} months"
    else:
        months = int(minutes // (30 * 24 * 60))
        years, remainder = divmod(months, 12)
        if remainder < 3:
            text = f"about {_plural(years, 'year')}"
        elif remainder < 9:
            text = f"over {_plural(years, 'year')}"
        else:
            text = f"almost {_plural(years + 1, 'year')}"

    return f"in {text}" if suffix == "from now" else f"{text} ago"


def _source_label(raw: str | None) -> str | None:
    if not raw:
        return None
    return raw.replace("_", " ").title()


def parse_transitions(raw: Any) -> list[StatusTransition]:
    """Parse ``data.status_transition`` from an upstream meeting.

    Records that fail validation are dropped; history is informational.
    """
    if not isinstance(raw, list):
        return []
    parsed = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            parsed.append(StatusTransition.model_validate(item))
        except ValueError:
            continue
    return parsed


def render_history(
    transitions: list[StatusTransition] | None,
    *,
    now: datetime | None = None,
) -> list[HistoryEntry] | None:
    """Build timeline entries for a meeting's transitions.

    Args:
        transitions: Records in any order; None or empty is valid.
        now: Reference time for relative labels. Defaults to now (UTC).

    Returns:
        Entries oldest first with the last marked current, or None when
        there is no history to show.
    """
    if not transitions:
        return None

    now = now or datetime.now(UTC)
    ordered = order_transitions(transitions)
    last_index = len(ordered) - 1

    entries = []
    for index, transition in enumerate(ordered):
        moment = _as_utc(transition.timestamp)
        entries.append(
            HistoryEntry(
                to=transition.to,
                badge=base_descriptor(transition.to),
                source=TransitionSource.parse(transition.source),
                source_label=_source_label(transition.source),
                timestamp=moment,
                time_label=moment.strftime("%H:%M:%S"),
                relative_label=format_relative(moment, now),
                reason=transition.reason or transition.completion_reason,
                is_current=index == last_index,
            )
        )
    return entries
