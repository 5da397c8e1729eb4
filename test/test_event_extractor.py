import asyncio
import json
import threading
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from extraction.event_extractor import EventExtractor, normalize_response, parse_model_date
from llm.llm_client import LLMClient
from llm.providers.mock_provider import MockProvider
from remember_me.errors import AssistantError, ErrorKind
from remember_me.lexicon import ENGLISH


def _extractor(provider, **kwargs) -> EventExtractor:
    return EventExtractor(LLMClient(provider=provider), lexicon=ENGLISH, **kwargs)


def test_model_answer_is_normalized(fake_provider_factory, now):
    answer = json.dumps({
        "title": "Dentist",
        "date": "2024-01-02T14:00:00Z",
        "category": "Health",
        "priority": "medium",
        "participants": "Ana",
        "intent": "create_event",
        "sentiment": "neutral",
        "confidence": 0.9,
    })
    candidate = _extractor(fake_provider_factory(answer)).extract("Dentist tomorrow at 2pm", now)

    assert candidate.title == "Dentist"
    assert candidate.date == datetime(2024, 1, 2, 14, 0, tzinfo=timezone.utc)
    assert candidate.category == "health"
    assert candidate.participants == ["Ana"]
    assert candidate.intent == "create_event"


def test_localized_labels_map_to_canonical(now):
    candidate = normalize_response(
        {
            "title": "Dentista",
            "category": "Saúde",
            "priority": "alta",
            "intent": "criar_evento",
            "sentiment": "positivo",
        },
        now,
    )
    assert candidate.category == "health"
    assert candidate.priority == "high"
    assert candidate.intent == "create_event"
    assert candidate.sentiment == "positive"


def test_unknown_labels_are_dropped(now):
    candidate = normalize_response({"title": "Party", "intent": "celebrate", "priority": "huge"}, now)
    assert candidate.intent is None
    assert candidate.priority is None


def test_missing_title_is_reported(now):
    for payload in ({"date": "2024-01-02T14:00:00Z"}, {"title": "   "}, {"title": None}):
        with pytest.raises(AssistantError) as exc:
            normalize_response(payload, now)
        assert exc.value.kind == ErrorKind.MISSING_TITLE


def test_unparsable_date_becomes_none(now):
    assert parse_model_date("next tuesday-ish", now.tzinfo) is None
    assert parse_model_date(None, now.tzinfo) is None
    assert normalize_response({"title": "Gym", "date": "soon"}, now).date is None


def test_naive_date_takes_reference_zone():
    plus_three = timezone(timedelta(hours=3))
    parsed = parse_model_date("2024-01-02T14:00:00", plus_three)
    assert parsed == datetime(2024, 1, 2, 14, 0, tzinfo=plus_three)


def test_empty_text_never_reaches_the_model(fake_provider_factory, now):
    provider = fake_provider_factory('{"title": "x"}')
    with pytest.raises(AssistantError) as exc:
        _extractor(provider).extract("   ", now)
    assert exc.value.kind == ErrorKind.INVALID_INPUT
    assert provider.calls == []


def test_offline_falls_back_to_local_parsing(failing_provider_factory, now):
    extractor = _extractor(failing_provider_factory(httpx.ConnectError("down")), local_fallback=True)
    candidate, path = extractor.extract_with_fallback("Dentist tomorrow at 2pm", now)
    assert path == "local"
    assert candidate.title == "Dentist"
    assert candidate.date == datetime(2024, 1, 2, 14, 0, tzinfo=timezone.utc)


def test_fallback_can_be_disabled(failing_provider_factory, now):
    extractor = _extractor(failing_provider_factory(httpx.ConnectError("down")), local_fallback=False)
    with pytest.raises(AssistantError) as exc:
        extractor.extract_with_fallback("Dentist tomorrow at 2pm", now)
    assert exc.value.kind == ErrorKind.NETWORK_ERROR


def test_bad_answers_do_not_fall_back(failing_provider_factory, now):
    request = httpx.Request("POST", "https://llm.test")
    error = httpx.HTTPStatusError(
        "HTTP 401", request=request, response=httpx.Response(401, request=request)
    )
    extractor = _extractor(failing_provider_factory(error), local_fallback=True)
    with pytest.raises(AssistantError) as exc:
        extractor.extract_with_fallback("Dentist tomorrow at 2pm", now)
    assert exc.value.kind == ErrorKind.AUTH_FAILURE


def test_mock_provider_round_trip(now):
    candidate, path = _extractor(MockProvider()).extract_with_fallback("Gym in 2 hours", now)
    assert path == "remote"
    assert candidate.date == now + timedelta(hours=2)
    assert candidate.category == "fitness"


def test_async_extraction(fake_provider_factory, now):
    extractor = _extractor(fake_provider_factory('{"title": "Gym", "intent": "task"}'))
    candidate, path = asyncio.run(extractor.extract_async("gym", now, cancel=asyncio.Event()))
    assert candidate.title == "Gym"
    assert path == "remote"


class BlockingProvider:
    def __init__(self):
        self.release = threading.Event()

    def generate(self, *, system: str, user: str) -> str:
        self.release.wait(5)
        return '{"title": "Late answer"}'


def test_cancelled_extraction_discards_late_answer(now):
    provider = BlockingProvider()
    extractor = _extractor(provider)

    async def scenario():
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, cancel.set)
        try:
            await extractor.extract_async("Dentist tomorrow", now, cancel=cancel)
        finally:
            provider.release.set()

    with pytest.raises(AssistantError) as exc:
        asyncio.run(scenario())
    assert exc.value.kind == ErrorKind.CANCELLED
