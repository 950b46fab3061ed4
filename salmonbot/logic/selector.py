"""Picks the rotation that is running now, or the next one to start."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from salmonbot.data.schedule import ScheduleEntry


class NoActiveEntry(LookupError):
    """Raised when the feed is empty or every rotation has already ended."""


def select_active_entry(feed: Iterable[ScheduleEntry], now: datetime) -> ScheduleEntry:
    """Return the first entry in feed order whose end time is after now.

    Overlapping windows resolve to whichever entry appears first in the feed.
    """
    for entry in feed:
        if entry.end_time > now:
            return entry
    raise NoActiveEntry(f"No rotation ends after {now.isoformat()}")


__all__ = ["NoActiveEntry", "select_active_entry"]
