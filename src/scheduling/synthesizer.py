from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from remember_me.errors import AssistantError, ErrorKind
from remember_me.models import (
    ACTIONABLE_INTENTS,
    CONFLICT_WINDOW,
    Event,
    EventDraft,
    ExtractedCandidate,
    SynthesisResult,
    Urgency,
)
from scheduling.reminders import ReminderScheduler, schedule_event_reminders
from scheduling.urgency import classify_urgency
from storage.event_store import EventStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SynthesisPlan:
    draft: EventDraft
    urgency: Urgency
    conflict: Optional[Event]


def find_conflict(when: datetime, existing: Iterable[Event]) -> Optional[Event]:
    """First stored event closer than one hour to ``when``, if any."""
    for event in existing:
        if abs(when - event.event_date) < CONFLICT_WINDOW:
            return event
    return None


class EventSynthesizer:
    """Turns a candidate into a stored event, with conflict and urgency annotations."""

    def __init__(self, store: EventStore, reminders: Optional[ReminderScheduler] = None):
        self.store = store
        self.reminders = reminders

    @staticmethod
    def plan(
        candidate: ExtractedCandidate, existing: Iterable[Event], now: datetime
    ) -> Optional[SynthesisPlan]:
        """Pure part of synthesis. Returns None for informational candidates."""
        if not candidate.title or not candidate.title.strip():
            raise AssistantError(ErrorKind.MISSING_TITLE, "candidate has no title")

        when = candidate.date
        if when is None:
            if candidate.intent not in ACTIONABLE_INTENTS:
                return None
            # undated reminder/task: do it today
            when = now

        urgency = classify_urgency(when, now)
        draft = EventDraft(
            title=candidate.title,
            description=candidate.description or "",
            event_date=when,
            notified=False,
            urgency=urgency,
            category=candidate.category,
            priority=candidate.priority,
            location=candidate.location,
            participants=candidate.participants,
            entities=candidate.entities,
            keywords=candidate.keywords,
            intent=candidate.intent,
            sentiment=candidate.sentiment,
        )
        return SynthesisPlan(draft=draft, urgency=urgency, conflict=find_conflict(when, existing))

    async def synthesize(
        self, candidate: ExtractedCandidate, existing: Iterable[Event], now: datetime
    ) -> Optional[SynthesisResult]:
        plan = self.plan(candidate, list(existing), now)
        if plan is None:
            logger.info("Candidate %r is informational, no event created", candidate.title)
            return None

        if plan.conflict is not None:
            logger.warning(
                "New event %r is within an hour of %r", candidate.title, plan.conflict.title
            )

        event = await self.store.insert(plan.draft)
        logger.info("Created event %s (%s) for %s", event.id, plan.urgency, event.event_date.isoformat())

        if self.reminders is not None:
            schedule_event_reminders(self.reminders, event, now)

        return SynthesisResult(event=event, urgency=plan.urgency, conflict=plan.conflict)
