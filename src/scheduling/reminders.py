"""
Local reminder timers.

Each armed reminder is an asyncio task sleeping until its firing instant. The
scheduler keeps no state across restarts; on startup the application re-arms
reminders for stored events that have not been notified yet.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Dict, Optional, Set, Union

from remember_me.models import Event

logger = logging.getLogger(__name__)

REMINDER_LEAD_MINUTES = int(os.getenv("REMINDER_LEAD_MINUTES", "15"))

Notify = Callable[[str, Optional[str]], None]
OnFired = Callable[[str, str], Union[Awaitable[None], None]]


def log_notification(title: str, body: Optional[str] = None) -> None:
    """Default sink: the host platform notification is outside this service."""
    logger.info("NOTIFY %s%s", title, f" - {body}" if body else "")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReminderScheduler:
    def __init__(
        self,
        notify: Optional[Notify] = None,
        on_fired: Optional[OnFired] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._notify = notify or log_notification
        self._clock = clock
        self.on_fired = on_fired
        self._pending: Dict[str, Set[asyncio.Task]] = {}

    def arm(
        self,
        event_id: str,
        title: str,
        firing_instant: datetime,
        body: Optional[str] = None,
        kind: str = "at_time",
    ) -> asyncio.Task:
        """Fire ``title``/``body`` once, at or after ``firing_instant``.

        Must be called from inside a running event loop.
        """
        delay = max((firing_instant - self._clock()).total_seconds(), 0.0)
        task = asyncio.get_running_loop().create_task(
            self._fire_later(event_id, title, body, kind, delay)
        )
        self._pending.setdefault(event_id, set()).add(task)
        task.add_done_callback(lambda t: self._forget(event_id, t))
        logger.debug("Armed %s reminder for %s in %.0fs", kind, event_id, delay)
        return task

    async def _fire_later(
        self, event_id: str, title: str, body: Optional[str], kind: str, delay: float
    ) -> None:
        await asyncio.sleep(delay)
        try:
            self._notify(title, body)
            if self.on_fired is not None:
                result = self.on_fired(event_id, kind)
                if inspect.isawaitable(result):
                    await result
        except Exception:
            logger.exception("Reminder %s for event %s failed", kind, event_id)

    def _forget(self, event_id: str, task: asyncio.Task) -> None:
        tasks = self._pending.get(event_id)
        if tasks is None:
            return
        tasks.discard(task)
        if not tasks:
            del self._pending[event_id]

    def cancel(self, event_id: str) -> int:
        """Cancel pending reminders of one event. Advisory: a reminder already
        running may still deliver."""
        tasks = self._pending.pop(event_id, set())
        for task in tasks:
            task.cancel()
        return len(tasks)

    def cancel_all(self) -> None:
        for event_id in list(self._pending):
            self.cancel(event_id)

    def pending_count(self, event_id: Optional[str] = None) -> int:
        if event_id is not None:
            return len(self._pending.get(event_id, ()))
        return sum(len(tasks) for tasks in self._pending.values())


def schedule_event_reminders(
    scheduler: ReminderScheduler,
    event: Event,
    now: datetime,
    lead: timedelta = timedelta(minutes=REMINDER_LEAD_MINUTES),
) -> int:
    """Arm the "before" and "at event time" reminders that are still in the future."""
    armed = 0
    lead_minutes = int(lead.total_seconds() // 60)

    if event.event_date - lead > now:
        scheduler.arm(
            event.id,
            f"Reminder: {event.title}",
            event.event_date - lead,
            body=f"Event in {lead_minutes} minutes",
            kind="upcoming",
        )
        armed += 1

    if event.event_date > now:
        scheduler.arm(event.id, f"Event now: {event.title}", event.event_date, kind="at_time")
        armed += 1

    return armed
