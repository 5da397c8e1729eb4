from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from remember_me.errors import AssistantError, ErrorKind
from remember_me.models import Event, EventDraft, ExtractedCandidate


def test_event_is_immutable(make_event, now):
    event = make_event("Dentist", now)
    with pytest.raises(ValidationError):
        event.title = "Doctor"


def test_event_date_must_be_aware():
    with pytest.raises(ValidationError):
        EventDraft(title="Dentist", event_date=datetime(2024, 1, 2, 14, 0))


def test_title_is_trimmed_and_required(now):
    assert EventDraft(title="  Dentist ", event_date=now).title == "Dentist"
    with pytest.raises(ValidationError):
        EventDraft(title="   ", event_date=now)
    with pytest.raises(ValidationError):
        ExtractedCandidate(title="")


def test_candidate_defaults():
    candidate = ExtractedCandidate(title="Buy milk")
    assert candidate.date is None
    assert candidate.intent is None
    assert candidate.participants is None


def test_candidate_rejects_unknown_vocabulary():
    with pytest.raises(ValidationError):
        ExtractedCandidate(title="x", intent="dance")
    with pytest.raises(ValidationError):
        ExtractedCandidate(title="x", priority="extreme")


def test_event_defaults(now):
    event = Event(id="1", title="Gym", event_date=now)
    assert event.notified is False
    assert event.description == ""
    assert event.event_date.tzinfo == timezone.utc


def test_error_kinds_map_to_distinct_messages():
    messages = {AssistantError(kind).user_message for kind in ErrorKind}
    assert len(messages) == len(ErrorKind)


def test_error_payload():
    err = AssistantError(ErrorKind.RATE_LIMITED, "HTTP 429")
    assert err.status_code == 429
    assert err.retryable is True
    assert err.to_dict() == {
        "error": "rate_limited",
        "message": err.user_message,
        "detail": "HTTP 429",
        "retryable": True,
    }
    assert AssistantError(ErrorKind.AUTH_FAILURE).retryable is False
