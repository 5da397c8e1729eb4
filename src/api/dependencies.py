import os
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from api import state
from api.backend import AssistantBackend
from remember_me.errors import AssistantError, ErrorKind

# IANA name, e.g. "Europe/Lisbon". Unset: the host's current UTC offset, which
# does not follow DST changes when resolving dates on the other side of one.
ASSISTANT_TIMEZONE = os.getenv("ASSISTANT_TIMEZONE", "").strip()

ASSISTANT_TZ: Optional[ZoneInfo] = ZoneInfo(ASSISTANT_TIMEZONE) if ASSISTANT_TIMEZONE else None


def get_backend() -> AssistantBackend:
    if state.backend is None:
        raise AssistantError(ErrorKind.SERVICE_UNAVAILABLE, "backend not initialized")
    return state.backend


def get_now() -> datetime:
    """Wall clock of the presentation layer; the core only ever receives it."""
    if ASSISTANT_TZ is not None:
        return datetime.now(ASSISTANT_TZ)
    return datetime.now().astimezone()
