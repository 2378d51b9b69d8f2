# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import unittest
from datetime import datetime, timedelta, timezone
from typing import List, Tuple

from fastapi import WebSocketDisconnect

from hydro.profiles.models import UserProfile
from hydro.profiles.storage import get_profile
from hydro.reminders.scheduler import REMINDER_TITLE, ReminderScheduler, reminder_body, reminder_delay
from hydro.reminders.session import ReminderSession
from hydro.reminders.websocket import ReminderManager
from hydro.store import MemoryDocumentStore, StorePermissionError
from hydro.water.ledger import log_water

NOW = datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)


def _profile(enabled: bool = True, hours: float = 2.0) -> UserProfile:
    return UserProfile(
        id="u1",
        reminders_enabled=enabled,
        reminder_hours=hours,
        last_log_date="2026-10-19",
    )


class _RecordingNotifier:
    def __init__(self) -> None:
        self.shown: List[Tuple[str, str]] = []

    async def request_permission(self) -> str:
        return "granted"

    async def show(self, title: str, body: str) -> None:
        self.shown.append((title, body))


async def _wait_for(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


class TestReminderDelay(unittest.TestCase):
    def test_due_when_threshold_passed(self) -> None:
        self.assertEqual(reminder_delay(NOW - timedelta(hours=3), 2, NOW), 0.0)

    def test_due_exactly_at_threshold(self) -> None:
        self.assertEqual(reminder_delay(NOW - timedelta(hours=2), 2, NOW), 0.0)

    def test_remaining_time(self) -> None:
        self.assertAlmostEqual(reminder_delay(NOW - timedelta(hours=1), 2, NOW), 3600.0)
        self.assertAlmostEqual(reminder_delay(NOW - timedelta(minutes=90), 2, NOW), 1800.0)

    def test_no_log_counts_from_epoch(self) -> None:
        self.assertEqual(reminder_delay(None, 2, NOW), 0.0)

    def test_body_text(self) -> None:
        self.assertEqual(reminder_body(2.0), "It's been over 2 hours. Time to log some water!")
        self.assertEqual(reminder_body(1.5), "It's been over 1.5 hours. Time to log some water!")


class TestReminderScheduler(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.notifier = _RecordingNotifier()
        self.scheduler = ReminderScheduler(self.notifier, clock=lambda: NOW)

    async def asyncTearDown(self) -> None:
        self.scheduler.close()

    async def test_fires_immediately_when_overdue(self) -> None:
        delay = self.scheduler.reschedule(_profile(hours=2), NOW - timedelta(hours=3))
        self.assertEqual(delay, 0.0)
        await _wait_for(lambda: self.notifier.shown)
        self.assertEqual(self.notifier.shown, [(REMINDER_TITLE, reminder_body(2.0))])
        self.assertFalse(self.scheduler.armed)

    async def test_schedules_remaining_time_and_does_not_fire_early(self) -> None:
        delay = self.scheduler.reschedule(_profile(hours=2), NOW - timedelta(hours=1))
        self.assertAlmostEqual(delay, 3600.0)
        self.assertTrue(self.scheduler.armed)
        await asyncio.sleep(0.05)
        self.assertEqual(self.notifier.shown, [])
        self.assertEqual(self.scheduler.fired, 0)

    async def test_fires_after_remaining_time(self) -> None:
        last = NOW - timedelta(hours=2) + timedelta(seconds=0.05)
        delay = self.scheduler.reschedule(_profile(hours=2), last)
        self.assertGreater(delay, 0)
        self.assertEqual(self.notifier.shown, [])
        await _wait_for(lambda: self.notifier.shown)
        self.assertEqual(self.scheduler.fired, 1)

    async def test_cancelled_timer_never_fires(self) -> None:
        last = NOW - timedelta(hours=2) + timedelta(seconds=0.05)
        self.scheduler.reschedule(_profile(hours=2), last)
        self.scheduler.cancel()
        await asyncio.sleep(0.15)
        self.assertEqual(self.notifier.shown, [])
        self.assertFalse(self.scheduler.armed)

    async def test_reschedule_replaces_pending_timer(self) -> None:
        last = NOW - timedelta(hours=2) + timedelta(seconds=0.05)
        self.scheduler.reschedule(_profile(hours=2), last)
        self.scheduler.reschedule(_profile(hours=2), NOW)
        await asyncio.sleep(0.15)
        self.assertEqual(self.notifier.shown, [])
        self.assertAlmostEqual(self.scheduler.next_delay, 7200.0)

    async def test_disabled_reminders_tear_down(self) -> None:
        self.scheduler.reschedule(_profile(hours=2), NOW - timedelta(hours=1))
        self.assertIsNone(self.scheduler.reschedule(_profile(enabled=False), None))
        self.assertFalse(self.scheduler.armed)

        zero_hours = _profile().model_copy(update={"reminder_hours": 0})
        self.assertIsNone(self.scheduler.reschedule(zero_hours, None))
        await asyncio.sleep(0.05)
        self.assertEqual(self.notifier.shown, [])

    async def test_closed_scheduler_stays_quiet(self) -> None:
        self.scheduler.close()
        self.assertIsNone(self.scheduler.reschedule(_profile(), None))
        await asyncio.sleep(0.05)
        self.assertEqual(self.notifier.shown, [])


class TestReminderSession(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.store = MemoryDocumentStore()
        self.notifier = _RecordingNotifier()
        self.scheduler = ReminderScheduler(self.notifier)
        self.session = ReminderSession(self.store, "u1", self.scheduler)

    async def asyncTearDown(self) -> None:
        self.session.close()

    async def test_no_profile_means_no_timer(self) -> None:
        await self.session.start()
        self.assertFalse(self.scheduler.armed)
        await asyncio.sleep(0.05)
        self.assertEqual(self.notifier.shown, [])

    async def test_enabled_without_logs_fires_immediately(self) -> None:
        get_profile(self.store, "u1", "2026-10-19")
        self.store.update("users/u1", {"reminders_enabled": True, "reminder_hours": 2})
        await self.session.start()
        await _wait_for(lambda: self.notifier.shown)

    async def test_new_log_rearms_for_full_interval(self) -> None:
        get_profile(self.store, "u1", "2026-10-19")
        self.store.update("users/u1", {"reminders_enabled": True, "reminder_hours": 2})
        await self.session.start()
        await _wait_for(lambda: self.notifier.shown)

        log_water(self.store, "u1", 250, "2026-10-19")
        await _wait_for(lambda: self.scheduler.next_delay is not None and self.scheduler.next_delay > 7000)
        self.assertEqual(len(self.notifier.shown), 1)

    async def test_disabling_reminders_cancels_timer(self) -> None:
        get_profile(self.store, "u1", "2026-10-19")
        log_water(self.store, "u1", 250, "2026-10-19")
        self.store.update("users/u1", {"reminders_enabled": True})
        await self.session.start()
        self.assertTrue(self.scheduler.armed)

        self.store.update("users/u1", {"reminders_enabled": False})
        await _wait_for(lambda: not self.scheduler.armed)

    async def test_close_unsubscribes(self) -> None:
        get_profile(self.store, "u1", "2026-10-19")
        await self.session.start()
        self.session.close()
        self.store.update("users/u1", {"reminders_enabled": True})
        await asyncio.sleep(0.05)
        self.assertFalse(self.scheduler.armed)
        self.assertEqual(self.notifier.shown, [])


class _FakeSocket:
    def __init__(self, fail_on_send: bool = False) -> None:
        self.fail_on_send = fail_on_send
        self.sent: List[dict] = []

    async def accept(self) -> None:
        return None

    async def send_json(self, data: dict) -> None:
        if self.fail_on_send:
            raise WebSocketDisconnect(code=1001)
        self.sent.append(data)


class _UnreadableStore(MemoryDocumentStore):
    def _get(self, path):
        raise StorePermissionError(path, "get")


class TestReminderManager(unittest.IsolatedAsyncioTestCase):
    async def test_connect_registers_started_session(self) -> None:
        manager = ReminderManager()
        store = MemoryDocumentStore()
        conn = await manager.connect(_FakeSocket(), {"id": "u1"}, store)
        self.assertIn(conn.session_id, manager.connections)
        self.assertEqual(len(store._listeners), 1)

        manager.disconnect(conn.session_id)
        self.assertEqual(manager.connections, {})
        self.assertEqual(store._listeners, {})

    async def test_store_failure_during_connect_leaves_nothing_behind(self) -> None:
        manager = ReminderManager()
        store = _UnreadableStore()
        with self.assertRaises(StorePermissionError):
            await manager.connect(_FakeSocket(), {"id": "u1"}, store)
        self.assertEqual(manager.connections, {})
        self.assertEqual(store._listeners, {})

    async def test_client_gone_during_connect_leaves_nothing_behind(self) -> None:
        manager = ReminderManager()
        store = MemoryDocumentStore()
        with self.assertRaises(WebSocketDisconnect):
            await manager.connect(_FakeSocket(fail_on_send=True), {"id": "u1"}, store)
        self.assertEqual(manager.connections, {})
        self.assertEqual(store._listeners, {})


if __name__ == "__main__":
    unittest.main()
