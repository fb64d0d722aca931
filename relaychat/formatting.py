"""Timestamp labels for session lists and transcripts."""

from __future__ import annotations

from datetime import datetime


def _to_local(ts: datetime) -> datetime:
    return ts.astimezone() if ts.tzinfo else ts


def format_message_time(ts: datetime) -> str:
    """Clock time such as ``09:05 PM``."""
    return _to_local(ts).strftime("%I:%M %p")


def format_relative_time(ts: datetime, now: datetime | None = None) -> str:
    """
    Short label for when a session was last updated.

    Whole days elapsed: 0 -> clock time, 1 -> "Yesterday", under 7 -> weekday
    name, otherwise month and day ("Mar 5").
    """
    local = _to_local(ts)
    now = _to_local(now) if now else datetime.now(local.tzinfo)
    days = (now - local).days

    if days <= 0:
        return format_message_time(local)
    if days == 1:
        return "Yesterday"
    if days < 7:
        return local.strftime("%A")
    return f"{local.strftime('%b')} {local.day}"
