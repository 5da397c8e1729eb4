import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from analytics.patterns import analyze
from analytics.suggestions import suggest
from api.backend import AssistantBackend
from api.dependencies import get_backend, get_now
from api.metrics import CONFLICTS_TOTAL, EVENTS_CREATED_TOTAL
from remember_me.errors import AssistantError, ErrorKind
from remember_me.models import Event
from scheduling.urgency import classify_urgency, sort_by_proximity
from temporal.resolver import time_until

router = APIRouter()
logger = logging.getLogger(__name__)


class CreateEventIn(BaseModel):
    title: str
    event_date: datetime


class UpdateEventIn(BaseModel):
    title: Optional[str] = None
    event_date: Optional[datetime] = None


def _aware(when: datetime, now: datetime) -> datetime:
    return when if when.tzinfo is not None else when.replace(tzinfo=now.tzinfo)


def _view(event: Event, now: datetime) -> dict:
    """Event as shown to the client; urgency is recomputed, never read from storage."""
    data = event.model_dump(mode="json")
    data["urgency"] = classify_urgency(event.event_date, now)
    data["time_until"] = time_until(event.event_date, now)
    return data


@router.get("/events")
async def list_events(
    search: Optional[str] = None,
    urgency: Optional[str] = None,
    day: Optional[str] = None,
    limit: int = 100,
    backend: AssistantBackend = Depends(get_backend),
    now: datetime = Depends(get_now),
) -> dict:
    """Events ordered by proximity to now, with optional title/urgency/day filters."""
    events = await backend.store.list()

    if search:
        needle = search.lower()
        events = [e for e in events if needle in e.title.lower()]
    if urgency:
        events = [e for e in events if classify_urgency(e.event_date, now) == urgency]
    if day:
        try:
            wanted = date.fromisoformat(day)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid date format. Use YYYY-MM-DD")
        events = [e for e in events if e.event_date.astimezone(now.tzinfo).date() == wanted]

    ordered = sort_by_proximity(events, now)[:limit]
    return {"events": [_view(e, now) for e in ordered], "total": len(events)}


@router.post("/events")
async def create_event(
    payload: CreateEventIn,
    backend: AssistantBackend = Depends(get_backend),
    now: datetime = Depends(get_now),
) -> dict:
    """Manual creation from the calendar grid."""
    if not payload.title.strip():
        raise AssistantError(ErrorKind.INVALID_INPUT, "title must not be blank")

    result = await backend.create_event(payload.title, _aware(payload.event_date, now), now)
    EVENTS_CREATED_TOTAL.inc()
    if result.conflict is not None:
        CONFLICTS_TOTAL.inc()
    return {
        "event": _view(result.event, now),
        "conflict": _view(result.conflict, now) if result.conflict else None,
    }


@router.get("/events/stats")
async def event_stats(
    backend: AssistantBackend = Depends(get_backend),
    now: datetime = Depends(get_now),
) -> dict:
    events = await backend.store.list()
    return analyze(events, tz=now.tzinfo, lexicon=backend.lexicon).model_dump()


@router.patch("/events/{event_id}")
async def update_event(
    event_id: str,
    payload: UpdateEventIn,
    backend: AssistantBackend = Depends(get_backend),
    now: datetime = Depends(get_now),
) -> dict:
    """Title edit and/or date move (drag and drop)."""
    if payload.title is None and payload.event_date is None:
        raise AssistantError(ErrorKind.INVALID_INPUT, "nothing to update")

    event = None
    if payload.title is not None:
        event = await backend.rename_event(event_id, payload.title, now)
    if payload.event_date is not None:
        event = await backend.move_event(event_id, _aware(payload.event_date, now), now)
    logger.info(f"Updated event {event_id}")
    return {"event": _view(event, now)}


@router.delete("/events/{event_id}")
async def delete_event(
    event_id: str,
    backend: AssistantBackend = Depends(get_backend),
) -> dict:
    await backend.delete_event(event_id)
    logger.info(f"Deleted event {event_id}")
    return {"status": "deleted", "id": event_id}


@router.get("/suggestions")
async def get_suggestions(
    backend: AssistantBackend = Depends(get_backend),
    now: datetime = Depends(get_now),
) -> dict:
    return {"suggestions": suggest(await backend.store.list(), now)}
