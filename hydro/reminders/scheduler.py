# -*- coding: utf-8 -*-
"""Reminder scheduler — one cancellable timer per client session.

The timer is re-armed from scratch whenever its inputs change. A timer that
has been cancelled or superseded never fires: each arm bumps a generation
counter and the callback checks it before notifying.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional, Protocol, Set

from ..profiles.models import UserProfile
from ..store.base import utc_now
from ..timeutil import EPOCH

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Stay Hydrated!"


def reminder_body(reminder_hours: float) -> str:
    return f"It's been over {reminder_hours:g} hours. Time to log some water!"


def reminder_delay(last_log_at: Optional[datetime], reminder_hours: float, now: datetime) -> float:
    """Seconds until the reminder is due; 0 when it is already due.

    With no log at all the last log is taken to be the epoch, so the
    reminder is due immediately.
    """
    last = last_log_at or EPOCH
    hours_since = (now - last).total_seconds() / 3600.0
    if hours_since >= reminder_hours:
        return 0.0
    return (reminder_hours - hours_since) * 3600.0


class Notifier(Protocol):
    async def request_permission(self) -> str:
        ...

    async def show(self, title: str, body: str) -> None:
        ...


class ReminderScheduler:
    def __init__(
        self,
        notifier: Notifier,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.notifier = notifier
        self._loop = loop
        self._clock = clock
        self._handle: Optional[asyncio.TimerHandle] = None
        self._generation = 0
        self._closed = False
        self._tasks: Set[asyncio.Task] = set()
        self.next_delay: Optional[float] = None
        self.fired = 0

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def cancel(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.next_delay = None

    def reschedule(self, profile: Optional[UserProfile], last_log_at: Optional[datetime]) -> Optional[float]:
        """Drop any pending timer and arm a new one; return its delay in seconds."""
        self.cancel()
        if self._closed or profile is None:
            return None
        if not profile.reminders_enabled or profile.reminder_hours <= 0:
            return None

        delay = reminder_delay(last_log_at, profile.reminder_hours, self._clock())
        generation = self._generation
        self._handle = self.loop.call_later(delay, self._fire, generation, profile.reminder_hours)
        self.next_delay = delay
        logger.debug("Reminder armed in %.1fs (every %gh)", delay, profile.reminder_hours)
        return delay

    def close(self) -> None:
        self._closed = True
        self.cancel()
        for task in list(self._tasks):
            task.cancel()

    def _fire(self, generation: int, reminder_hours: float) -> None:
        if self._closed or generation != self._generation:
            return
        self._handle = None
        self.next_delay = None
        self.fired += 1
        task = self.loop.create_task(self._show(reminder_hours))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _show(self, reminder_hours: float) -> None:
        try:
            await self.notifier.show(REMINDER_TITLE, reminder_body(reminder_hours))
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Reminder notification failed")
