# -*- coding: utf-8 -*-

from __future__ import annotations

import shutil
import tempfile
import threading
import unittest
from pathlib import Path

from hydro.profiles.storage import get_profile
from hydro.store import MemoryDocumentStore, SqliteDocumentStore, TransactionConflict, TransactionFailure
from hydro.water.ledger import latest_log, list_logs, log_water

DAY1 = "2026-05-04"
DAY2 = "2026-05-05"


class _LedgerContract:
    def make_store(self):
        raise NotImplementedError

    def setUp(self) -> None:
        self.store = self.make_store()

    def test_same_day_amounts_accumulate(self) -> None:
        profile = get_profile(self.store, "u1", DAY1)
        self.assertEqual(profile.daily_goal, 2000)
        self.assertEqual(profile.units, "ml")

        log_water(self.store, "u1", 500, DAY1)
        profile = log_water(self.store, "u1", 750, DAY1)
        self.assertEqual(profile.today_intake, 1250)
        self.assertEqual(profile.last_log_date, DAY1)

    def test_new_day_resets_baseline_before_adding(self) -> None:
        log_water(self.store, "u1", 500, DAY1)
        log_water(self.store, "u1", 750, DAY1)
        profile = log_water(self.store, "u1", 300, DAY2)
        self.assertEqual(profile.today_intake, 300)
        self.assertEqual(profile.last_log_date, DAY2)
        self.assertEqual(self.store.get("users/u1")["today_intake"], 300)

    def test_unaffected_fields_are_preserved(self) -> None:
        get_profile(self.store, "u1", DAY1, email="a@example.com")
        self.store.update("users/u1", {"daily_goal": 2500, "units": "oz"})
        profile = log_water(self.store, "u1", 200, DAY1)
        self.assertEqual(profile.daily_goal, 2500)
        self.assertEqual(profile.units, "oz")
        self.assertEqual(profile.email, "a@example.com")

    def test_missing_profile_is_treated_as_fresh(self) -> None:
        profile = log_water(self.store, "fresh", 300, DAY1)
        self.assertEqual(profile.today_intake, 300)
        self.assertEqual(profile.daily_goal, 2000)
        self.assertEqual(self.store.get("users/fresh")["last_log_date"], DAY1)

    def test_each_call_appends_exactly_one_log(self) -> None:
        for amount in (250, 500, 125):
            log_water(self.store, "u1", amount, DAY1)
        logs = list_logs(self.store, "u1", limit=10)
        self.assertEqual(len(logs), 3)
        self.assertEqual(sorted(log.amount for log in logs), [125, 250, 500])
        self.assertTrue(all(log.user_id == "u1" for log in logs))
        self.assertTrue(all(log.timestamp is not None for log in logs))
        self.assertEqual(list_logs(self.store, "someone-else"), [])

    def test_latest_log(self) -> None:
        self.assertIsNone(latest_log(self.store, "u1"))
        log_water(self.store, "u1", 250, DAY1)
        self.assertEqual(latest_log(self.store, "u1").amount, 250)

    def test_rejects_non_positive_or_non_integer_amounts(self) -> None:
        for bad in (0, -5, 2.5, True):
            with self.assertRaises(ValueError):
                log_water(self.store, "u1", bad, DAY1)
        self.assertEqual(list_logs(self.store, "u1"), [])

    def test_concurrent_logs_lose_no_increment(self) -> None:
        get_profile(self.store, "u1", DAY1)
        amounts = [10 * (i + 1) for i in range(6)]
        errors = []

        def _worker(amount: int) -> None:
            try:
                for _ in range(5):
                    log_water(self.store, "u1", amount, DAY1)
            except Exception as exc:  # collected and asserted below
                errors.append(exc)

        threads = [threading.Thread(target=_worker, args=(a,)) for a in amounts]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        self.assertEqual(self.store.get("users/u1")["today_intake"], 5 * sum(amounts))
        self.assertEqual(len(list_logs(self.store, "u1", limit=100)), 5 * len(amounts))


class TestLedgerMemory(_LedgerContract, unittest.TestCase):
    def make_store(self):
        return MemoryDocumentStore()

    def test_failed_transaction_changes_nothing(self) -> None:
        class _Conflicting(MemoryDocumentStore):
            fail = False

            def _commit(self, tx):
                if self.fail:
                    raise TransactionConflict("contention")
                super()._commit(tx)

        store = _Conflicting(max_attempts=2)
        log_water(store, "u1", 400, DAY1)
        store.fail = True
        with self.assertLogs("hydro.water.ledger", level="ERROR"):
            with self.assertRaises(TransactionFailure):
                log_water(store, "u1", 100, DAY1)
        self.assertEqual(store.get("users/u1")["today_intake"], 400)
        self.assertEqual(len(list_logs(store, "u1")), 1)


class TestLedgerSqlite(_LedgerContract, unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="hydro-ledger-"))
        super().setUp()

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)

    def make_store(self):
        return SqliteDocumentStore(self._tmp / "hydro.db", busy_timeout=10.0, max_attempts=10)


if __name__ == "__main__":
    unittest.main()
