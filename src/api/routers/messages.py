import asyncio
import logging
import time
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api import state
from api.backend import AssistantBackend
from api.dependencies import get_backend, get_now
from api.metrics import (
    CONFLICTS_TOTAL,
    EVENTS_CREATED_TOTAL,
    EXTRACTION_PATH_TOTAL,
    REQUEST_LATENCY_SECONDS,
    REQUESTS_TOTAL,
)
from remember_me.errors import AssistantError, ErrorKind

router = APIRouter()
logger = logging.getLogger(__name__)


class MessageIn(BaseModel):
    message: str


def _transcript(kind: str, message: str, now: datetime) -> None:
    state.chat_history.append({"type": kind, "message": message, "at": now.isoformat()})


@router.post("/messages")
async def post_message(
    payload: MessageIn,
    backend: AssistantBackend = Depends(get_backend),
    now: datetime = Depends(get_now),
) -> dict:
    start = time.time()
    key = " ".join(payload.message.lower().split())
    if not key:
        raise AssistantError(ErrorKind.INVALID_INPUT, "empty message")
    if key in state.inflight:
        raise AssistantError(ErrorKind.BUSY, key)

    logger.info(f"Received message: {payload.message[:50]}...")
    cancel = asyncio.Event()
    state.inflight[key] = cancel
    _transcript("user", payload.message, now)

    try:
        reply = await backend.handle_message(payload.message, now=now, cancel=cancel)
    except AssistantError as e:
        _transcript("system", e.user_message, now)
        REQUESTS_TOTAL.labels(endpoint="/messages", status=e.kind.value).inc()
        raise
    finally:
        state.inflight.pop(key, None)
        REQUEST_LATENCY_SECONDS.labels(endpoint="/messages").observe(time.time() - start)

    for warning in reply.warnings:
        _transcript("system", warning, now)
    _transcript("system", reply.message, now)

    EXTRACTION_PATH_TOTAL.labels(path=reply.extraction_path).inc()
    if reply.kind == "event_created":
        EVENTS_CREATED_TOTAL.inc()
        if reply.conflict is not None:
            CONFLICTS_TOTAL.inc()
    REQUESTS_TOTAL.labels(endpoint="/messages", status=reply.kind).inc()

    logger.info(f"Message handled as {reply.kind} ({reply.extraction_path})")
    return reply.model_dump(mode="json")


@router.post("/messages/cancel")
async def cancel_messages() -> dict:
    """Abandon every message still being processed (e.g. the user navigated away)."""
    for cancel in state.inflight.values():
        cancel.set()
    return {"cancelled": len(state.inflight)}


@router.get("/history")
async def get_history(limit: int = 50) -> dict:
    """Chat transcript, oldest first."""
    messages = list(state.chat_history)[-limit:]
    return {"messages": messages, "total": len(state.chat_history)}
