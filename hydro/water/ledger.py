# -*- coding: utf-8 -*-
"""Daily intake ledger.

Adds a logged amount to the user's running total for today and appends an
immutable log entry, both inside one store transaction. The transaction
re-reads the profile on every attempt, so concurrent logs for the same user
never lose an increment, and a stale ``last_log_date`` resets the baseline
to 0 before adding.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..profiles.models import UserProfile
from ..profiles.storage import default_profile, profile_from_doc, profile_path
from ..store import SERVER_TIMESTAMP, DocumentStore, StoreError, Transaction
from ..timeutil import parse_timestamp
from .models import WaterLog

logger = logging.getLogger(__name__)

SAVE_FAILED_MESSAGE = "Could not save your progress. Please try again."


def logs_collection(uid: str) -> str:
    return f"users/{uid}/waterLogs"


def _log_from_doc(path: str, doc: dict) -> WaterLog:
    return WaterLog(
        id=path.rsplit("/", 1)[-1],
        user_id=str(doc.get("user_id") or ""),
        amount=int(doc["amount"]),
        timestamp=parse_timestamp(doc.get("timestamp")),
    )


def log_water(store: DocumentStore, uid: str, amount_ml: int, today: str, *, email: str = "") -> UserProfile:
    """Record ``amount_ml`` for ``today`` and return the updated profile."""
    if isinstance(amount_ml, bool) or not isinstance(amount_ml, int) or amount_ml <= 0:
        raise ValueError("amount_ml must be a positive integer")

    path = profile_path(uid)
    log_path = store.new_doc_path(logs_collection(uid))

    def _apply(tx: Transaction) -> UserProfile:
        doc = tx.get(path)
        current = profile_from_doc(uid, doc) if doc is not None else default_profile(uid, today, email=email)
        baseline = current.today_intake if current.last_log_date == today else 0
        changes = {"today_intake": baseline + amount_ml, "last_log_date": today}
        updated = current.model_copy(update=changes)
        if doc is None:
            tx.set(path, updated.model_dump())
        else:
            tx.update(path, changes)
        tx.set(log_path, {"user_id": uid, "amount": amount_ml, "timestamp": SERVER_TIMESTAMP})
        return updated

    try:
        profile = store.run_transaction(_apply)
    except StoreError as exc:
        logger.error(
            "Logging %d ml for user %s failed: %s",
            amount_ml,
            uid,
            exc,
            extra={"path": path, "operation": "write"},
        )
        raise
    logger.info("User %s logged %d ml, today=%d ml (%s)", uid, amount_ml, profile.today_intake, today)
    return profile


def list_logs(store: DocumentStore, uid: str, limit: int = 20) -> List[WaterLog]:
    rows = store.query(logs_collection(uid), order_by="timestamp", descending=True, limit=limit)
    return [_log_from_doc(path, doc) for path, doc in rows]


def latest_log(store: DocumentStore, uid: str) -> Optional[WaterLog]:
    logs = list_logs(store, uid, limit=1)
    return logs[0] if logs else None
