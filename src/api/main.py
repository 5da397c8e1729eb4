import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api import state
from api.backend import AssistantBackend
from api.dependencies import get_now
from api.metrics import EXTRACTION_FAILURES_TOTAL, REMINDERS_FIRED_TOTAL
from api.routers import events, messages, ops
from remember_me.errors import AssistantError
from scheduling.reminders import ReminderScheduler
from storage import db
from storage.event_store import InMemoryEventStore, PostgresEventStore

# Logging configuration
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


async def _on_reminder_fired(event_id: str, kind: str) -> None:
    REMINDERS_FIRED_TOTAL.inc()
    if state.backend is not None:
        await state.backend.on_reminder_fired(event_id, kind)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if db.DATABASE_URL:
        await db.init_db_pool()
        await db.init_schema()
        state.store = PostgresEventStore()
        logger.info("Using PostgreSQL event store")
    else:
        state.store = InMemoryEventStore()
        logger.info("DATABASE_URL not set, using in-memory event store")

    state.reminders = ReminderScheduler(on_fired=_on_reminder_fired)
    state.backend = AssistantBackend(state.store, reminders=state.reminders)
    await state.backend.rearm_reminders(get_now())

    yield

    state.reminders.cancel_all()
    state.inflight.clear()
    await db.close_db_pool()
    state.backend = None
    state.reminders = None
    state.store = None


app = FastAPI(title="RememberMe assistant", lifespan=lifespan)
app.include_router(messages.router)
app.include_router(events.router)
app.include_router(ops.router)


@app.exception_handler(AssistantError)
async def assistant_error_handler(request: Request, exc: AssistantError) -> JSONResponse:
    EXTRACTION_FAILURES_TOTAL.labels(kind=exc.kind.value).inc()
    logger.warning(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
