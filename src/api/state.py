import asyncio
from collections import deque
from typing import Any, Deque, Dict, Optional

from api.backend import AssistantBackend
from scheduling.reminders import ReminderScheduler
from storage.event_store import EventStore

# Chat transcript shown by the client ({"type": "user"|"system", "message": ...})
chat_history: Deque[Dict[str, Any]] = deque(maxlen=200)

# Messages currently being processed, keyed by normalized text
inflight: Dict[str, asyncio.Event] = {}

# Global instances initialized at startup
store: Optional[EventStore] = None
reminders: Optional[ReminderScheduler] = None
backend: Optional[AssistantBackend] = None
