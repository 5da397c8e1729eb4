from __future__ import annotations

import re
from datetime import datetime
from typing import Iterable, List

from remember_me.lexicon import ENGLISH, Lexicon
from remember_me.models import Event


def extract_search_term(utterance: str, lexicon: Lexicon = ENGLISH) -> str:
    """Strip question phrasing from a history question, keeping the subject.

    "When was the last time I went to the dentist?" -> "dentist". Lossy on
    purpose; matching downstream is plain substring.
    """
    text = utterance.lower()
    for phrase in lexicon.historical_phrases:
        text = re.sub(r"(?<!\w)" + re.escape(phrase) + r"(?!\w)", " ", text)
    text = re.sub(r"[^\w\s'-]", " ", text)
    words = [w for w in text.split() if w not in lexicon.search_stopwords]
    return " ".join(words)


def search_past_events(phrase: str, events: Iterable[Event], now: datetime) -> List[Event]:
    """Past events whose title contains ``phrase``, most recent first."""
    needle = phrase.strip().lower()
    matches = [
        e for e in events
        if e.event_date < now and needle in e.title.lower()
    ]
    return sorted(matches, key=lambda e: e.event_date, reverse=True)
