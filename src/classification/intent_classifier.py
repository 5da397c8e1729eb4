from remember_me.lexicon import ENGLISH, Lexicon, contains_any
from remember_me.models import LocalIntent, SpecialCommand


def is_historical_query(text: str, lexicon: Lexicon = ENGLISH) -> bool:
    """Does the utterance ask about something that already happened?"""
    return contains_any(text.lower(), lexicon.historical_phrases)


def detect_special_command(text: str, lexicon: Lexicon = ENGLISH) -> SpecialCommand:
    lowered = text.lower()
    if contains_any(lowered, lexicon.stats_keywords):
        return "stats"
    if contains_any(lowered, lexicon.help_keywords):
        return "help"
    return "none"


def classify(text: str, lexicon: Lexicon = ENGLISH) -> LocalIntent:
    """Cheap local checks that can run alongside (or instead of) the model."""
    return LocalIntent(
        is_historical_query=is_historical_query(text, lexicon),
        special_command=detect_special_command(text, lexicon),
    )
