"""Annotate upstream meetings with their derived UI state."""

from datetime import datetime
from typing import Any

from app.services.meeting_status import classify
from app.services.status_history import parse_transitions, render_history


def annotate_meeting(
    meeting: dict[str, Any], *, include_history: bool = False, now: datetime | None = None
) -> dict[str, Any]:
    """Return a copy of meeting with ``status_info`` (and optionally ``history``).

    Args:
        meeting: Upstream meeting payload.
        include_history: Also render ``data.status_transition``.
        now: Reference time for relative history labels.
    """
    data = meeting.get("data")
    data = data if isinstance(data, dict) else {}

    annotated = dict(meeting)
    annotated["status_info"] = classify(meeting.get("status"), data).to_dict()
    if include_history:
        entries = render_history(parse_transitions(data.get("status_transition")), now=now)
        annotated["history"] = (
            [entry.to_dict() for entry in entries] if entries is not None else None
        )
    return annotated


def annotate_meetings(payload: Any) -> Any:
    """Annotate every meeting in a ``{"meetings": [...]}`` list response."""
    if not isinstance(payload, dict) or not isinstance(payload.get("meetings"), list):
        return payload
    result = dict(payload)
    result["meetings"] = [
        annotate_meeting(m) if isinstance(m, dict) else m for m in payload["meetings"]
    ]
    return result
