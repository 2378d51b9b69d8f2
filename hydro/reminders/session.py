# -*- coding: utf-8 -*-
"""Reminder session — keeps a scheduler in sync with one user's documents."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional, Tuple

from ..profiles.models import UserProfile
from ..profiles.storage import profile_from_doc, profile_path
from ..store import DocumentStore
from ..store.base import utc_now
from ..water.ledger import latest_log
from .scheduler import ReminderScheduler

logger = logging.getLogger(__name__)


class ReminderSession:
    """Re-arms the scheduler whenever the profile or the log collection changes.

    Store listeners may run on worker threads; they only hand a refresh over
    to the session's event loop.
    """

    def __init__(
        self,
        store: DocumentStore,
        user_id: str,
        scheduler: ReminderScheduler,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.user_id = user_id
        self.scheduler = scheduler
        self._clock = clock
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._refresh_task: Optional[asyncio.Task] = None
        self._closed = False

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._unsubscribe = self.store.subscribe(profile_path(self.user_id), self._on_change)
        await self.refresh()

    def _load(self) -> Tuple[Optional[UserProfile], Optional[datetime]]:
        doc = self.store.get(profile_path(self.user_id))
        profile = profile_from_doc(self.user_id, doc) if doc is not None else None
        log = latest_log(self.store, self.user_id)
        if log is None:
            return profile, None
        # A log without a resolved timestamp was just written.
        return profile, log.timestamp or self._clock()

    async def refresh(self) -> Optional[float]:
        if self._closed:
            return None
        profile, last_log_at = await asyncio.to_thread(self._load)
        if self._closed:
            return None
        return self.scheduler.reschedule(profile, last_log_at)

    def _on_change(self, path: str) -> None:
        loop = self._loop
        if self._closed or loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._schedule_refresh)

    def _schedule_refresh(self) -> None:
        if self._closed:
            return
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
        self._refresh_task = asyncio.ensure_future(self._safe_refresh())

    async def _safe_refresh(self) -> None:
        try:
            await self.refresh()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Reminder refresh failed for user %s", self.user_id)

    def close(self) -> None:
        self._closed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._refresh_task is not None:
            self._refresh_task.cancel()
        self.scheduler.close()
