from __future__ import annotations

from datetime import datetime
from typing import Iterable, List

from remember_me.models import Event, SOON_WINDOW, URGENT_WINDOW, Urgency


def classify_urgency(event_date: datetime, now: datetime) -> Urgency:
    """urgent under one hour away (including past events), soon under a day, else distant."""
    diff = event_date - now
    if diff < URGENT_WINDOW:
        return "urgent"
    if diff < SOON_WINDOW:
        return "soon"
    return "distant"


def sort_by_proximity(events: Iterable[Event], now: datetime) -> List[Event]:
    """Display order: closest to ``now`` first, past or future alike."""
    return sorted(events, key=lambda e: abs((e.event_date - now).total_seconds()))
