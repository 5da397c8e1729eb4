import asyncio
from datetime import timedelta

import pytest

from remember_me.errors import AssistantError, ErrorKind
from remember_me.models import ExtractedCandidate
from scheduling.reminders import ReminderScheduler
from scheduling.synthesizer import EventSynthesizer, find_conflict
from scheduling.urgency import classify_urgency, sort_by_proximity
from storage.event_store import InMemoryEventStore


def test_dentist_event_is_stored(now):
    store = InMemoryEventStore()
    candidate = ExtractedCandidate(
        title="Dentist", date=now + timedelta(hours=28), category="health", priority="medium",
        intent="create_event",
    )

    result = asyncio.run(EventSynthesizer(store).synthesize(candidate, [], now))

    assert result.urgency == "distant"
    assert result.conflict is None
    stored = asyncio.run(store.list())
    assert [e.title for e in stored] == ["Dentist"]
    assert stored[0].category == "health"
    assert stored[0].notified is False


def test_conflict_with_event_thirty_minutes_apart(make_event, now):
    existing = [make_event("Meeting", now + timedelta(hours=3))]
    candidate = ExtractedCandidate(title="Call", date=now + timedelta(hours=3, minutes=30))

    result = asyncio.run(EventSynthesizer(InMemoryEventStore()).synthesize(candidate, existing, now))

    assert result.conflict is not None
    assert result.conflict.title == "Meeting"


def test_exactly_one_hour_apart_is_not_a_conflict(make_event, now):
    existing = [make_event("Meeting", now + timedelta(hours=3))]
    assert find_conflict(now + timedelta(hours=4), existing) is None
    assert find_conflict(now + timedelta(hours=2), existing) is None
    assert find_conflict(now + timedelta(hours=3, minutes=59), existing) is not None


def test_undated_reminder_is_due_now(now):
    store = InMemoryEventStore()
    candidate = ExtractedCandidate(title="Buy milk", intent="reminder")

    result = asyncio.run(EventSynthesizer(store).synthesize(candidate, [], now))

    assert result.event.event_date == now
    assert result.urgency == "urgent"


@pytest.mark.parametrize("intent", ["chat", "ask_question", "command", None])
def test_undated_non_actionable_creates_nothing(now, intent):
    store = InMemoryEventStore()
    candidate = ExtractedCandidate(title="Hello", intent=intent)

    assert asyncio.run(EventSynthesizer(store).synthesize(candidate, [], now)) is None
    assert asyncio.run(store.list()) == []


def test_blank_title_is_rejected(now):
    candidate = ExtractedCandidate.model_construct(title="  ", date=now)
    with pytest.raises(AssistantError) as exc:
        EventSynthesizer.plan(candidate, [], now)
    assert exc.value.kind == ErrorKind.MISSING_TITLE


def test_synthesis_arms_reminders(now):
    store = InMemoryEventStore()
    candidate = ExtractedCandidate(title="Gym", date=now + timedelta(hours=2))

    async def scenario():
        reminders = ReminderScheduler(clock=lambda: now)
        result = await EventSynthesizer(store, reminders).synthesize(candidate, [], now)
        return reminders.pending_count(result.event.id)

    assert asyncio.run(scenario()) == 2


def test_urgency_bands(now):
    assert classify_urgency(now - timedelta(days=3), now) == "urgent"
    assert classify_urgency(now + timedelta(minutes=59), now) == "urgent"
    assert classify_urgency(now + timedelta(hours=1), now) == "soon"
    assert classify_urgency(now + timedelta(hours=23), now) == "soon"
    assert classify_urgency(now + timedelta(hours=24), now) == "distant"


def test_urgency_is_monotonic(now):
    order = {"urgent": 0, "soon": 1, "distant": 2}
    offsets = [timedelta(minutes=m) for m in range(-120, 3000, 17)]
    levels = [order[classify_urgency(now + o, now)] for o in offsets]
    assert levels == sorted(levels)


def test_sort_by_proximity(make_event, now):
    events = [
        make_event("Later", now + timedelta(hours=3)),
        make_event("Earlier", now - timedelta(hours=1)),
        make_event("Next", now + timedelta(minutes=30)),
    ]
    assert [e.title for e in sort_by_proximity(events, now)] == ["Next", "Earlier", "Later"]
