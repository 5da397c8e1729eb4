from datetime import datetime, timezone

import pytest

# Monday
NOW = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


class FakeProvider:
    def __init__(self, response_text: str):
        self._response_text = response_text
        self.calls = []

    def generate(self, *, system: str, user: str) -> str:
        self.calls.append((system, user))
        return self._response_text


class FailingProvider:
    def __init__(self, exc: Exception):
        self._exc = exc

    def generate(self, *, system: str, user: str) -> str:
        raise self._exc


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def fake_provider_factory():
    def _make(response_text: str):
        return FakeProvider(response_text)
    return _make


@pytest.fixture
def failing_provider_factory():
    def _make(exc: Exception):
        return FailingProvider(exc)
    return _make


@pytest.fixture
def make_event():
    from remember_me.models import Event

    counter = {"n": 0}

    def _make(title: str, event_date: datetime, **fields):
        counter["n"] += 1
        return Event(id=f"evt-{counter['n']}", title=title, event_date=event_date, **fields)
    return _make
