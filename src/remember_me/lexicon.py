"""
Keyword tables used by the local heuristics.

Every heuristic (temporal resolver, attribute extractor, intent classifier,
history search) reads its vocabulary from a ``Lexicon`` so the same rules can
run over English or Portuguese input. Category identifiers are canonical and
locale independent.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Pattern, Tuple


def _rx(pattern: str, flags: int = re.IGNORECASE) -> Pattern[str]:
    return re.compile(pattern, flags)


def contains_any(text: str, keywords: Tuple[str, ...]) -> bool:
    """True when any keyword appears in ``text`` as a whole word or phrase.

    ``text`` is expected to be lower-cased already. Inflected forms ("meetings")
    must be listed in the tables; "workout" does not match "work".
    """
    for kw in keywords:
        if re.search(r"(?<!\w)" + re.escape(kw) + r"(?!\w)", text):
            return True
    return False


@dataclass(frozen=True)
class Lexicon:
    code: str

    today: Tuple[str, ...]
    tomorrow: Tuple[str, ...]
    # Monday first, matching datetime.weekday()
    weekdays: Tuple[str, ...]
    weekday_names: Tuple[str, ...]

    hours_offset: Pattern[str]
    minutes_offset: Pattern[str]
    # group 1 = hour, group 2 = optional am/pm marker
    explicit_hour: Pattern[str]
    bare_hour: Pattern[str]

    title_split: Pattern[str]

    categories: Tuple[Tuple[str, Tuple[str, ...]], ...]
    high_priority: Tuple[str, ...]
    low_priority: Tuple[str, ...]

    location: Pattern[str]
    participants: Pattern[str]
    participant_separator: Pattern[str]

    historical_phrases: Tuple[str, ...]
    stats_keywords: Tuple[str, ...]
    help_keywords: Tuple[str, ...]
    search_stopwords: Tuple[str, ...]


_EN_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

ENGLISH = Lexicon(
    code="en",
    today=("today", "tonight"),
    tomorrow=("tomorrow",),
    weekdays=_EN_WEEKDAYS,
    weekday_names=tuple(d.capitalize() for d in _EN_WEEKDAYS),
    hours_offset=_rx(r"\bin\s+(\d+)\s+(?:hours?|hrs?)\b"),
    minutes_offset=_rx(r"\bin\s+(\d+)\s+(?:minutes?|mins?)\b"),
    explicit_hour=_rx(r"\bat\s+(\d{1,2})(?::\d{2})?\s*(am|pm)?\b"),
    bare_hour=_rx(r"\b(\d{1,2})(?:\s*(am|pm)\b|h\b|:00\b)"),
    title_split=_rx(
        r"\s+(?:at|in|on|for|today|tonight|tomorrow|next|this|"
        + "|".join(_EN_WEEKDAYS)
        + r")\b"
    ),
    categories=(
        ("health", ("doctor", "doctors", "dentist", "dentists", "appointment", "appointments",
                    "checkup", "check-up", "hospital", "clinic", "medical", "therapy",
                    "pharmacy")),
        ("work", ("meeting", "meetings", "work", "project", "projects", "presentation",
                  "client", "clients", "office", "deadline", "deadlines", "report", "reports")),
        ("personal", ("birthday", "party", "parties", "anniversary", "dinner", "lunch",
                      "family", "wedding")),
        ("study", ("class", "classes", "exam", "exams", "test", "tests", "study", "studying",
                   "course", "college", "lecture", "lectures", "homework")),
        ("fitness", ("gym", "workout", "workouts", "exercise", "running", "run", "yoga",
                     "training")),
        ("shopping", ("buy", "market", "supermarket", "grocery", "groceries", "shopping",
                      "store", "mall")),
    ),
    high_priority=("urgent", "important", "critical", "emergency", "asap"),
    low_priority=("maybe", "if possible", "whenever", "someday", "if i can"),
    location=re.compile(r"\b(?:at|in|on)\s+([A-Z][\w'-]*(?:\s+[A-Z][\w'-]*)*)"),
    participants=re.compile(
        r"\bwith\s+([A-Z][a-z'-]+(?:(?:\s*,\s*|\s+and\s+)[A-Z][a-z'-]+)*)"
    ),
    participant_separator=_rx(r"\s*,\s*|\s+and\s+"),
    historical_phrases=("when was", "when did", "last time", "have i ever", "did i ever",
                        "history", "past"),
    stats_keywords=("statistic", "statistics", "stats", "analysis", "analyze", "analyse",
                    "pattern", "patterns"),
    help_keywords=("help", "how to use", "how do i use"),
    search_stopwords=("when", "was", "did", "the", "last", "time", "have", "had", "ever",
                      "been", "i", "my", "me", "a", "an", "to", "at", "go", "went", "of",
                      "for", "is", "that", "in", "past", "history"),
)


_PT_WEEKDAYS = ("segunda", "terça", "quarta", "quinta", "sexta", "sábado", "domingo")

PORTUGUESE = Lexicon(
    code="pt",
    today=("hoje",),
    tomorrow=("amanhã",),
    weekdays=_PT_WEEKDAYS,
    weekday_names=("Segunda", "Terça", "Quarta", "Quinta", "Sexta", "Sábado", "Domingo"),
    hours_offset=_rx(r"\bem\s+(\d+)\s+horas?\b"),
    minutes_offset=_rx(r"\bem\s+(\d+)\s+minutos?\b"),
    explicit_hour=_rx(r"\b(?:às|as)\s+(\d{1,2})(?:h|:00)?()"),
    bare_hour=_rx(r"(\d{1,2})(?:h|:00)()"),
    title_split=_rx(r"\s+(?:em|às|as|na|no|para|amanhã|hoje|depois)\s+"),
    categories=(
        ("health", ("médico", "médica", "dentista", "consulta", "exame", "exames", "hospital",
                    "clínica")),
        ("work", ("reunião", "reuniões", "meeting", "trabalho", "projeto", "apresentação")),
        ("personal", ("aniversário", "festa", "encontro", "jantar", "almoço")),
        ("study", ("aula", "aulas", "prova", "provas", "estudo", "estudar", "curso", "faculdade")),
        ("fitness", ("academia", "treino", "exercício", "exercícios", "corrida", "yoga")),
        ("shopping", ("comprar", "compras", "mercado", "supermercado", "shopping", "loja")),
    ),
    high_priority=("urgente", "importante", "crítico", "emergência"),
    low_priority=("talvez", "se possível", "quando der"),
    location=re.compile(r"\b(?:em|no|na)\s+([A-ZÀ-Ú][a-zà-ú]+(?:\s+[A-ZÀ-Ú][a-zà-ú]+)*)"),
    participants=re.compile(
        r"\bcom\s+([A-ZÀ-Ú][a-zà-ú]+(?:\s+e\s+[A-ZÀ-Ú][a-zà-ú]+)*)"
    ),
    participant_separator=_rx(r"\s+e\s+"),
    historical_phrases=("quando foi", "última vez", "já fui", "já tive", "histórico",
                        "passado"),
    stats_keywords=("estatística", "estatísticas", "análise", "padrão", "padrões"),
    help_keywords=("ajuda", "help", "como usar"),
    search_stopwords=("quando", "foi", "a", "o", "ao", "à", "no", "na", "última", "vez",
                      "já", "fui", "tive", "que", "eu", "de", "do", "da", "minha", "meu"),
)

LEXICONS = {lex.code: lex for lex in (ENGLISH, PORTUGUESE)}

DEFAULT_LOCALE = os.getenv("ASSISTANT_LOCALE", "en").strip().lower() or "en"


def get_lexicon(code: str | None = None) -> Lexicon:
    """Return the lexicon for ``code`` (falls back to English)."""
    return LEXICONS.get((code or DEFAULT_LOCALE).lower(), ENGLISH)
