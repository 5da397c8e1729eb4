"""
Turns relative and absolute time expressions into concrete timestamps.

The resolver never reads the clock: ``now`` is always passed in, and the
returned datetime carries ``now``'s tzinfo.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from remember_me.lexicon import ENGLISH, Lexicon, contains_any

logger = logging.getLogger(__name__)


def _to_24h(hour: int, meridiem: Optional[str]) -> Optional[int]:
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        hour = hour % 12
        return hour + 12 if meridiem.lower() == "pm" else hour
    return hour if 0 <= hour <= 23 else None


def extract_hour(text: str, lexicon: Lexicon = ENGLISH) -> Optional[int]:
    """Hour of day mentioned in ``text``, or None.

    The explicit "at HH" form is tried before bare "HHh" tokens. Out of range
    values are skipped and the next match is considered.
    """
    for pattern in (lexicon.explicit_hour, lexicon.bare_hour):
        for match in pattern.finditer(text):
            hour = _to_24h(int(match.group(1)), match.group(2))
            if hour is not None:
                return hour
    return None


def _at_hour(day: datetime, hour: Optional[int]) -> datetime:
    if hour is None:
        return day
    return day.replace(hour=hour, minute=0, second=0, microsecond=0)


def _find_weekday(text: str, lexicon: Lexicon) -> Optional[int]:
    for index, name in enumerate(lexicon.weekdays):
        if contains_any(text, (name,)):
            return index
    return None


def resolve(text: str, now: datetime, lexicon: Lexicon = ENGLISH) -> Optional[datetime]:
    """Resolve the first matching time expression in ``text`` against ``now``.

    Strategies, first match wins:
      1. today / tomorrow (+ optional hour)
      2. weekday name, always strictly after today (+ optional hour)
      3. "in N minutes", then "in N hours"
      4. bare hour: today, or tomorrow if that hour already passed
    Returns None when nothing temporal is found; callers must not invent a date.
    """
    lowered = text.lower()
    hour = extract_hour(lowered, lexicon)

    if contains_any(lowered, lexicon.today):
        return _at_hour(now, hour)

    if contains_any(lowered, lexicon.tomorrow):
        return _at_hour(now + timedelta(days=1), hour)

    target = _find_weekday(lowered, lexicon)
    if target is not None:
        days_to_add = target - now.weekday()
        if days_to_add <= 0:
            days_to_add += 7
        return _at_hour(now + timedelta(days=days_to_add), hour)

    # the finer offset wins when both are present
    match = lexicon.minutes_offset.search(lowered)
    if match:
        return now + timedelta(minutes=int(match.group(1)))

    match = lexicon.hours_offset.search(lowered)
    if match:
        return now + timedelta(hours=int(match.group(1)))

    if hour is not None:
        anchor = _at_hour(now, hour)
        if anchor < now:
            anchor += timedelta(days=1)
        return anchor

    logger.debug("No temporal anchor found in %r", text)
    return None


def extract_title(text: str, lexicon: Lexicon = ENGLISH) -> str:
    """Leading part of ``text`` before any temporal/locative marker, capitalized."""
    stripped = text.strip()
    title = lexicon.title_split.split(stripped, maxsplit=1)[0].strip() or stripped
    return title[:1].upper() + title[1:]


def time_until(event_date: datetime, now: datetime) -> str:
    diff = event_date - now
    if diff < timedelta(0):
        return "Past event"

    minutes = int(diff.total_seconds() // 60)
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"In {days} day{'s' if days > 1 else ''}"
    if hours > 0:
        return f"In {hours} hour{'s' if hours > 1 else ''}"
    if minutes > 0:
        return f"In {minutes} minute{'s' if minutes > 1 else ''}"
    return "Now!"
