from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, List

from remember_me.models import URGENT_WINDOW, Event


def suggest(events: Iterable[Event], now: datetime) -> List[str]:
    """Short advisories about the near-term load, in a fixed order."""
    snapshot = list(events)
    suggestions: List[str] = []

    next_hour = [
        e for e in snapshot
        if timedelta(0) < e.event_date - now < URGENT_WINDOW
    ]
    if next_hour:
        suggestions.append(f"{len(next_hour)} event(s) in the next hour")

    today = now.date()
    todays = [e for e in snapshot if e.event_date.astimezone(now.tzinfo).date() == today]
    if todays:
        suggestions.append(f"{len(todays)} event(s) scheduled today")

    return suggestions
