from __future__ import annotations

from collections import Counter
from datetime import tzinfo
from typing import Iterable, Optional

from remember_me.lexicon import ENGLISH, Lexicon
from remember_me.models import DEFAULT_CATEGORY, Event, PatternSummary


def _busiest_index(counts: Counter) -> int:
    # ties go to the lowest weekday/hour
    if not counts:
        return 0
    return max(sorted(counts), key=lambda k: counts[k])


def analyze(
    events: Iterable[Event], tz: Optional[tzinfo] = None, lexicon: Lexicon = ENGLISH
) -> PatternSummary:
    """Busiest weekday (Monday = 0), busiest hour and dominant category.

    ``tz`` selects the calendar the weekday/hour are read in; by default each
    event's own offset is used. Category ties go to the first category seen.
    """
    day_count: Counter = Counter()
    hour_count: Counter = Counter()
    category_count: Counter = Counter()
    total = 0

    for event in events:
        when = event.event_date.astimezone(tz) if tz is not None else event.event_date
        day_count[when.weekday()] += 1
        hour_count[when.hour] += 1
        category_count[event.category or DEFAULT_CATEGORY] += 1
        total += 1

    busiest_weekday = _busiest_index(day_count)
    most_common_category = (
        max(category_count, key=lambda k: category_count[k]) if category_count else DEFAULT_CATEGORY
    )

    return PatternSummary(
        busiest_weekday=busiest_weekday,
        busiest_day_name=lexicon.weekday_names[busiest_weekday],
        busiest_hour=_busiest_index(hour_count),
        most_common_category=most_common_category,
        total_events=total,
    )
