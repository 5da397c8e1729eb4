import os
import logging
from fastapi import APIRouter, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from api import state
from api.metrics import PENDING_REMINDERS
from storage import db
from storage.event_store import PostgresEventStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint for container orchestration."""
    health = {
        "status": "healthy" if state.backend is not None else "starting",
        "profile": os.getenv("DEPLOYMENT_PROFILE", "unknown"),
        "store": "postgres" if isinstance(state.store, PostgresEventStore) else "in-memory",
        "pending_reminders": state.reminders.pending_count() if state.reminders else 0,
        "inflight_messages": len(state.inflight),
    }

    if isinstance(state.store, PostgresEventStore):
        db_health = await db.health_check()
        health["database"] = db_health
        if db_health["status"] != "healthy":
            health["status"] = "degraded"

    return health


@router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus scrape endpoint.
    """
    PENDING_REMINDERS.set(state.reminders.pending_count() if state.reminders else 0)
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
