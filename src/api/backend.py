import asyncio
import logging
from datetime import datetime
from typing import Optional

from analytics.history import extract_search_term, search_past_events
from analytics.patterns import analyze
from classification.intent_classifier import classify
from extraction.event_extractor import EventExtractor
from remember_me.errors import AssistantError, ErrorKind
from remember_me.lexicon import Lexicon, get_lexicon
from remember_me.models import AssistantReply, Event, ExtractedCandidate
from scheduling.reminders import ReminderScheduler, schedule_event_reminders
from scheduling.synthesizer import EventSynthesizer
from storage.event_store import EventStore

logger = logging.getLogger(__name__)

HELP_MESSAGE = (
    "How to use RememberMe:\n\n"
    "Create events:\n"
    '- "Dentist tomorrow at 2pm"\n'
    '- "Meeting on Friday at 10"\n'
    '- "Gym in 2 hours"\n\n'
    "Search your history:\n"
    '- "When was the last time I went to the dentist?"\n'
    '- "Have I ever been to the doctor?"\n\n'
    "See statistics:\n"
    '- "Show statistics"\n'
    '- "Analyze my patterns"'
)

OFFLINE_WARNING = "The language model is unavailable; this message was understood offline."


def _fmt(when: datetime, now: datetime, pattern: str) -> str:
    return when.astimezone(now.tzinfo).strftime(pattern)


class AssistantBackend:
    """Central orchestration: one user message in, one AssistantReply out.

    Holds no per-session state; the event collection lives in the store and is
    read as a snapshot on every call.
    """

    def __init__(
        self,
        store: EventStore,
        extractor: Optional[EventExtractor] = None,
        reminders: Optional[ReminderScheduler] = None,
        lexicon: Optional[Lexicon] = None,
    ):
        self.store = store
        self.lexicon = lexicon or get_lexicon()
        self.extractor = extractor or EventExtractor(lexicon=self.lexicon)
        self.reminders = reminders
        self.synthesizer = EventSynthesizer(store, reminders)

    async def handle_message(
        self, message: str, now: datetime, cancel: Optional[asyncio.Event] = None
    ) -> AssistantReply:
        if not isinstance(message, str) or not message.strip():
            raise AssistantError(ErrorKind.INVALID_INPUT, "empty message")
        text = message.strip()

        local = classify(text, self.lexicon)
        candidate, path = await self.extractor.extract_async(text, now, cancel=cancel)
        events = await self.store.list()
        warnings = [OFFLINE_WARNING] if path == "local" else []

        # a local command keyword only wins when the model did not see something else
        command_allowed = candidate.intent in (None, "command")
        if command_allowed and local.special_command == "stats":
            stats = analyze(events, tz=now.tzinfo, lexicon=self.lexicon)
            message_out = (
                "Pattern analysis:\n"
                f"- Busiest day: {stats.busiest_day_name}\n"
                f"- Most common hour: {stats.busiest_hour}h\n"
                f"- Most frequent category: {stats.most_common_category}\n"
                f"- Total events: {stats.total_events}"
            )
            return AssistantReply(kind="stats", message=message_out, stats=stats,
                                  candidate=candidate, extraction_path=path, warnings=warnings)

        if command_allowed and local.special_command == "help":
            return AssistantReply(kind="help", message=HELP_MESSAGE, candidate=candidate,
                                  extraction_path=path, warnings=warnings)

        if candidate.intent == "ask_question" or local.is_historical_query:
            return self._history_reply(text, candidate, events, now, path, warnings)

        if candidate.intent == "chat":
            return AssistantReply(kind="chat", message=self._chat_message(candidate),
                                  candidate=candidate, extraction_path=path, warnings=warnings)

        result = await self.synthesizer.synthesize(candidate, events, now)
        if result is None:
            return AssistantReply(kind="info", message=self._info_message(candidate),
                                  candidate=candidate, extraction_path=path, warnings=warnings)

        if result.conflict is not None:
            warnings.append(
                f'Heads up: you already have "{result.conflict.title}" close to this time '
                f"({_fmt(result.conflict.event_date, now, '%H:%M')})."
            )

        return AssistantReply(
            kind="event_created",
            message=self._created_message(candidate, result.event, now),
            candidate=candidate,
            extraction_path=path,
            event=result.event,
            urgency=result.urgency,
            conflict=result.conflict,
            warnings=warnings,
            keep_awake=result.urgency == "urgent",
        )

    def _history_reply(self, text, candidate, events, now, path, warnings) -> AssistantReply:
        term = extract_search_term(text, self.lexicon)
        past = search_past_events(term, events, now)
        if past:
            last = past[0]
            message_out = (
                f'The last time you had "{last.title}" was on '
                f"{_fmt(last.event_date, now, '%d %B %Y at %H:%M')}."
            )
        else:
            message_out = f'No past events found for "{term}".'
        return AssistantReply(kind="history", message=message_out, history=past,
                              candidate=candidate, extraction_path=path, warnings=warnings)

    @staticmethod
    def _chat_message(candidate: ExtractedCandidate) -> str:
        if candidate.sentiment == "positive":
            return (f"{candidate.title}! How can I help you today? You can create events, "
                    "ask about your history or request statistics.")
        if candidate.sentiment == "negative":
            return ("I understand. I'm here to help! I can organize your appointments and "
                    "reminders to make your day easier.")
        return (f"{candidate.title}! Ready to help. Tell me about events, ask questions "
                "or request an analysis.")

    @staticmethod
    def _info_message(candidate: ExtractedCandidate) -> str:
        lines = ["Message processed.", f"Title: {candidate.title}"]
        if candidate.category:
            lines.append(f"Category: {candidate.category}")
        if candidate.sentiment:
            lines.append(f"Sentiment: {candidate.sentiment}")
        if candidate.intent:
            lines.append(f"Intent: {candidate.intent}")
        if candidate.entities:
            lines.append(f"Entities: {', '.join(candidate.entities)}")
        if candidate.keywords:
            lines.append(f"Keywords: {', '.join(candidate.keywords)}")
        lines.append("")
        lines.append('Tip: mention a date or time to create an event, or ask "when was..." '
                     "to search your history.")
        return "\n".join(lines)

    @staticmethod
    def _created_message(candidate: ExtractedCandidate, event: Event, now: datetime) -> str:
        lines = [f'Event "{event.title}" created for '
                 f"{_fmt(event.event_date, now, '%a %d %b, %H:%M')}."]
        badges = [
            ("Category", candidate.category),
            ("Priority", candidate.priority),
            ("Location", candidate.location),
            ("With", ", ".join(candidate.participants or [])),
            ("Entities", ", ".join(candidate.entities or [])),
            ("Keywords", ", ".join(candidate.keywords or [])),
        ]
        for label, value in badges:
            if value:
                lines.append(f"{label}: {value}")
        return "\n".join(lines)

    # Event operations driven directly by the presentation layer

    async def create_event(self, title: str, when: datetime, now: datetime):
        candidate = ExtractedCandidate(title=title, date=when, intent="create_event")
        return await self.synthesizer.synthesize(candidate, await self.store.list(), now)

    async def rename_event(self, event_id: str, title: str, now: datetime) -> Event:
        if not title or not title.strip():
            raise AssistantError(ErrorKind.INVALID_INPUT, "title must not be blank")
        event = await self.store.update(event_id, title=title.strip())
        # armed reminders carry the title in their text; instants already past stay unarmed
        self._rearm(event, now)
        return event

    async def move_event(self, event_id: str, when: datetime, now: datetime) -> Event:
        event = await self.store.update(event_id, event_date=when, notified=False)
        self._rearm(event, now)
        return event

    def _rearm(self, event: Event, now: datetime) -> None:
        if self.reminders is not None:
            self.reminders.cancel(event.id)
            schedule_event_reminders(self.reminders, event, now)

    async def delete_event(self, event_id: str) -> None:
        await self.store.delete(event_id)
        if self.reminders is not None:
            self.reminders.cancel(event_id)

    async def rearm_reminders(self, now: datetime) -> int:
        """Arm reminders for stored events that have not been notified yet."""
        if self.reminders is None:
            return 0
        armed = 0
        for event in await self.store.list():
            if not event.notified:
                armed += schedule_event_reminders(self.reminders, event, now)
        logger.info(f"Re-armed {armed} reminders")
        return armed

    async def on_reminder_fired(self, event_id: str, kind: str) -> None:
        try:
            await self.store.update(event_id, notified=True)
        except AssistantError as e:
            if e.kind != ErrorKind.NOT_FOUND:
                raise
            # the event was deleted after its reminder was armed
            logger.info(f"Reminder {kind} fired for deleted event {event_id}")
