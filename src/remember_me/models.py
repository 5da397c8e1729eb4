from __future__ import annotations

from datetime import datetime, timedelta
from typing import Literal, Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


Urgency = Literal["urgent", "soon", "distant"]
Priority = Literal["high", "medium", "low"]
Intent = Literal["create_event", "reminder", "task", "ask_question", "command", "chat"]
Sentiment = Literal["positive", "negative", "neutral"]
SpecialCommand = Literal["stats", "help", "none"]

INTENTS = ("create_event", "reminder", "task", "ask_question", "command", "chat")
SENTIMENTS = ("positive", "negative", "neutral")
PRIORITIES = ("high", "medium", "low")

# Intents that turn an undated candidate into a "do it today" event
ACTIONABLE_INTENTS = frozenset({"create_event", "reminder", "task"})

CATEGORIES = ("health", "work", "personal", "study", "fitness", "shopping", "general")
DEFAULT_CATEGORY = "general"

URGENT_WINDOW = timedelta(hours=1)
SOON_WINDOW = timedelta(hours=24)
CONFLICT_WINDOW = timedelta(hours=1)


def _strip_title(v: str) -> str:
    v2 = v.strip()
    if not v2:
        raise ValueError("title must not be blank")
    return v2


class Enrichment(BaseModel):
    """Optional attributes produced by extraction; absence is valid."""

    category: Optional[str] = None
    priority: Optional[Priority] = None
    location: Optional[str] = None
    participants: Optional[List[str]] = None
    entities: Optional[List[str]] = None
    keywords: Optional[List[str]] = None
    intent: Optional[Intent] = None
    sentiment: Optional[Sentiment] = None


class ExtractedCandidate(Enrichment):
    """Structured guess about one utterance, not yet persisted."""

    title: str = Field(..., min_length=1)
    date: Optional[datetime] = None
    description: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        return _strip_title(v)


class EventDraft(Enrichment):
    """An event as handed to the store, before it has an id."""

    title: str = Field(..., min_length=1)
    description: str = ""
    event_date: datetime
    notified: bool = False
    # informational copy; readers recompute it from event_date
    urgency: Optional[Urgency] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        return _strip_title(v)

    @field_validator("event_date")
    @classmethod
    def event_date_is_aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("event_date must be timezone-aware")
        return v


class Event(EventDraft):
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: Optional[datetime] = None


class LocalIntent(BaseModel):
    is_historical_query: bool = False
    special_command: SpecialCommand = "none"


class ExtractedAttributes(BaseModel):
    category: str = DEFAULT_CATEGORY
    priority: Priority = "medium"
    location: Optional[str] = None
    participants: Optional[List[str]] = None


class PatternSummary(BaseModel):
    busiest_weekday: int = 0
    busiest_day_name: str = "Monday"
    busiest_hour: int = 0
    most_common_category: str = DEFAULT_CATEGORY
    total_events: int = 0


class SynthesisResult(BaseModel):
    event: Event
    urgency: Urgency
    conflict: Optional[Event] = None


ReplyKind = Literal["event_created", "history", "stats", "help", "chat", "info"]


class AssistantReply(BaseModel):
    """What the presentation layer renders for one processed message."""

    kind: ReplyKind
    message: str
    extraction_path: Literal["remote", "local"] = "remote"
    candidate: Optional[ExtractedCandidate] = None
    event: Optional[Event] = None
    urgency: Optional[Urgency] = None
    conflict: Optional[Event] = None
    warnings: List[str] = Field(default_factory=list)
    history: List[Event] = Field(default_factory=list)
    stats: Optional[PatternSummary] = None
    keep_awake: bool = False
