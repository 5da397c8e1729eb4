from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from remember_me.lexicon import ENGLISH, Lexicon, contains_any
from remember_me.models import DEFAULT_CATEGORY, ExtractedAttributes, ExtractedCandidate, Priority
from classification.intent_classifier import classify
from temporal.resolver import extract_title, resolve


def detect_category(text: str, lexicon: Lexicon = ENGLISH) -> str:
    lowered = text.lower()
    for category, keywords in lexicon.categories:
        if contains_any(lowered, keywords):
            return category
    return DEFAULT_CATEGORY


def detect_priority(text: str, lexicon: Lexicon = ENGLISH) -> Priority:
    lowered = text.lower()
    if contains_any(lowered, lexicon.high_priority):
        return "high"
    if contains_any(lowered, lexicon.low_priority):
        return "low"
    return "medium"


def extract_location(text: str, lexicon: Lexicon = ENGLISH) -> Optional[str]:
    # Capitalized weekday/relative-day words ("on Monday") are not places.
    not_places = set(lexicon.weekdays) | set(lexicon.today) | set(lexicon.tomorrow)
    for match in lexicon.location.finditer(text):
        phrase = match.group(1).strip()
        if phrase.split()[0].lower() not in not_places:
            return phrase
    return None


def extract_participants(text: str, lexicon: Lexicon = ENGLISH) -> Optional[List[str]]:
    match = lexicon.participants.search(text)
    if not match:
        return None
    names = [n.strip() for n in lexicon.participant_separator.split(match.group(1))]
    return [n for n in names if n] or None


def extract(text: str, lexicon: Lexicon = ENGLISH) -> ExtractedAttributes:
    """Keyword/pattern extraction of category, priority, location and participants.

    Every field is an independent best-effort guess; nothing here raises.
    """
    return ExtractedAttributes(
        category=detect_category(text, lexicon),
        priority=detect_priority(text, lexicon),
        location=extract_location(text, lexicon),
        participants=extract_participants(text, lexicon),
    )


def parse_locally(text: str, now: datetime, lexicon: Lexicon = ENGLISH) -> ExtractedCandidate:
    """Build a candidate without the language model (fallback path)."""
    attributes = extract(text, lexicon)
    date = resolve(text, now, lexicon)
    local_intent = classify(text, lexicon)

    if local_intent.is_historical_query:
        intent = "ask_question"
    elif local_intent.special_command != "none":
        intent = "command"
    elif date is not None:
        intent = "create_event"
    else:
        intent = "chat"

    return ExtractedCandidate(
        title=extract_title(text, lexicon),
        date=date,
        description=text.strip(),
        intent=intent,
        sentiment="neutral",
        **attributes.model_dump(),
    )
