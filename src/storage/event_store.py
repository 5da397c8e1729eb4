"""
Persistence adapters for events.

The store is an external collaborator of the assistant core: ``list`` returns
immutable snapshots, and every failure is translated into an AssistantError.
"""

from __future__ import annotations

import json
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List

import asyncpg
from pydantic import ValidationError

from remember_me.errors import AssistantError, ErrorKind
from remember_me.models import Event, EventDraft
from storage import db

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({
    "title", "description", "event_date", "notified", "urgency", "category", "priority",
    "location", "participants", "entities", "keywords", "intent", "sentiment",
})
_JSON_FIELDS = ("participants", "entities", "keywords")


def _check_fields(fields: Dict[str, Any]) -> None:
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise AssistantError(ErrorKind.INVALID_INPUT, f"cannot update {sorted(unknown)}")


class EventStore(ABC):
    @abstractmethod
    async def list(self) -> List[Event]:
        """All events, ordered by event_date ascending."""
        raise NotImplementedError

    @abstractmethod
    async def insert(self, draft: EventDraft) -> Event:
        raise NotImplementedError

    @abstractmethod
    async def update(self, event_id: str, **fields: Any) -> Event:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, event_id: str) -> None:
        raise NotImplementedError

    async def get(self, event_id: str) -> Event:
        for event in await self.list():
            if event.id == event_id:
                return event
        raise AssistantError(ErrorKind.NOT_FOUND, event_id)


class InMemoryEventStore(EventStore):
    """Process-local store, used for development and tests."""

    def __init__(self):
        self._events: Dict[str, Event] = {}

    async def list(self) -> List[Event]:
        return sorted(self._events.values(), key=lambda e: e.event_date)

    async def insert(self, draft: EventDraft) -> Event:
        event = Event(
            id=str(uuid.uuid4()),
            created_at=datetime.now(timezone.utc),
            **draft.model_dump(),
        )
        self._events[event.id] = event
        return event

    async def update(self, event_id: str, **fields: Any) -> Event:
        _check_fields(fields)
        current = self._events.get(event_id)
        if current is None:
            raise AssistantError(ErrorKind.NOT_FOUND, event_id)
        try:
            updated = Event.model_validate({**current.model_dump(), **fields})
        except ValidationError as e:
            raise AssistantError(ErrorKind.INVALID_INPUT, str(e)) from e
        self._events[event_id] = updated
        return updated

    async def delete(self, event_id: str) -> None:
        if self._events.pop(event_id, None) is None:
            raise AssistantError(ErrorKind.NOT_FOUND, event_id)


def _row_to_event(record) -> Event:
    data = dict(record)
    data["id"] = str(data["id"])
    for key in _JSON_FIELDS:
        if isinstance(data.get(key), str):
            data[key] = json.loads(data[key])
    data.pop("user_id", None)
    data.pop("updated_at", None)
    return Event.model_validate(data)


def _parse_id(event_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(event_id)
    except ValueError as e:
        raise AssistantError(ErrorKind.NOT_FOUND, event_id) from e


def _to_db_value(key: str, value: Any) -> Any:
    if key in _JSON_FIELDS and value is not None:
        return json.dumps(value)
    return value


class PostgresEventStore(EventStore):
    """Events table in PostgreSQL, through the asyncpg pool in storage.db."""

    def __init__(self, user_id: str = "anonymous"):
        self.user_id = user_id

    async def list(self) -> List[Event]:
        try:
            rows = await db.fetch(
                "SELECT * FROM events WHERE user_id = $1 ORDER BY event_date ASC", self.user_id
            )
        except (asyncpg.PostgresError, OSError) as e:
            logger.error(f"Failed to list events: {e}")
            raise AssistantError(ErrorKind.PERSISTENCE_FAILURE, str(e)) from e
        return [_row_to_event(r) for r in rows]

    async def insert(self, draft: EventDraft) -> Event:
        data = draft.model_dump()
        columns = list(data)
        placeholders = [
            f"${i}::jsonb" if col in _JSON_FIELDS else f"${i}"
            for i, col in enumerate(columns, start=2)
        ]
        query = (
            f"INSERT INTO events (user_id, {', '.join(columns)}) "
            f"VALUES ($1, {', '.join(placeholders)}) RETURNING *"
        )
        try:
            row = await db.fetchrow(
                query, self.user_id, *[_to_db_value(c, data[c]) for c in columns]
            )
        except (asyncpg.PostgresError, OSError) as e:
            logger.error(f"Failed to insert event {draft.title!r}: {e}")
            raise AssistantError(ErrorKind.PERSISTENCE_FAILURE, str(e)) from e
        return _row_to_event(row)

    async def update(self, event_id: str, **fields: Any) -> Event:
        _check_fields(fields)
        if not fields:
            return await self.get(event_id)
        if "title" in fields and not str(fields["title"] or "").strip():
            raise AssistantError(ErrorKind.INVALID_INPUT, "title must not be blank")
        if "event_date" in fields and fields["event_date"].tzinfo is None:
            raise AssistantError(ErrorKind.INVALID_INPUT, "event_date must be timezone-aware")

        assignments = []
        args: List[Any] = [_parse_id(event_id), self.user_id]
        for col, value in fields.items():
            args.append(_to_db_value(col, value))
            cast = "::jsonb" if col in _JSON_FIELDS else ""
            assignments.append(f"{col} = ${len(args)}{cast}")

        query = (
            f"UPDATE events SET {', '.join(assignments)}, updated_at = now() "
            "WHERE id = $1 AND user_id = $2 RETURNING *"
        )
        try:
            row = await db.fetchrow(query, *args)
        except (asyncpg.PostgresError, OSError) as e:
            logger.error(f"Failed to update event {event_id}: {e}")
            raise AssistantError(ErrorKind.PERSISTENCE_FAILURE, str(e)) from e
        if row is None:
            raise AssistantError(ErrorKind.NOT_FOUND, event_id)
        return _row_to_event(row)

    async def delete(self, event_id: str) -> None:
        try:
            status = await db.execute(
                "DELETE FROM events WHERE id = $1 AND user_id = $2",
                _parse_id(event_id),
                self.user_id,
            )
        except (asyncpg.PostgresError, OSError) as e:
            logger.error(f"Failed to delete event {event_id}: {e}")
            raise AssistantError(ErrorKind.PERSISTENCE_FAILURE, str(e)) from e
        if status.endswith(" 0"):
            raise AssistantError(ErrorKind.NOT_FOUND, event_id)
