# -*- coding: utf-8 -*-
"""Profiles — document store helpers.

A profile lives at ``users/{uid}``. ``today_intake`` only means something for
``last_log_date``; once the viewer's calendar date moves past it the total is
stale and reads report 0 until the document is rolled forward.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from ..config import settings
from ..store import DocumentStore, Transaction
from .models import ProfileSettingsUpdate, UserProfile

logger = logging.getLogger(__name__)

Defer = Callable[..., Any]


def profile_path(uid: str) -> str:
    return f"users/{uid}"


def default_profile(uid: str, today: str, email: str = "") -> UserProfile:
    return UserProfile(
        id=uid,
        email=email,
        daily_goal=settings.default_goal_ml,
        units="ml",
        reminders_enabled=False,
        reminder_hours=settings.default_reminder_hours,
        today_intake=0,
        last_log_date=today,
    )


def profile_from_doc(uid: str, doc: Dict[str, Any]) -> UserProfile:
    return UserProfile.model_validate({**doc, "id": uid})


def create_profile(store: DocumentStore, uid: str, today: str, *, email: str = "") -> Dict[str, Any]:
    """Write default settings unless a profile already exists; return the stored document.

    The existence check runs inside the write transaction, so a log that
    committed since the caller's read is kept rather than overwritten.
    """
    path = profile_path(uid)

    def _create(tx: Transaction) -> Dict[str, Any]:
        current = tx.get(path)
        if current is not None:
            return current
        doc = default_profile(uid, today, email=email).model_dump()
        tx.set(path, doc)
        logger.info("Created profile for user %s", uid)
        return doc

    return store.run_transaction(_create)


def get_profile(
    store: DocumentStore,
    uid: str,
    today: str,
    *,
    email: str = "",
    defer: Optional[Defer] = None,
) -> UserProfile:
    """Load the profile, creating it on first access and rolling a stale day forward.

    The rollover write is fire-and-forget: it is handed to ``defer`` (run
    inline when None) and never blocks or fails the read. The ledger
    transaction re-reads the baseline, so this reset is only an optimization.
    """
    path = profile_path(uid)
    doc = store.get(path)
    if doc is None:
        doc = create_profile(store, uid, today, email=email)

    profile = profile_from_doc(uid, doc)
    if profile.last_log_date == today:
        return profile

    rolled = profile.model_copy(update={"today_intake": 0, "last_log_date": today})
    args = (
        path,
        {"today_intake": 0, "last_log_date": today},
        lambda current: current.get("last_log_date") != today,
    )
    if defer is not None:
        defer(store.update_nonblocking, *args)
    else:
        store.update_nonblocking(*args)
    return rolled


def update_settings(store: DocumentStore, uid: str, today: str, changes: ProfileSettingsUpdate) -> UserProfile:
    """Apply the given settings; intake fields are never written here."""
    path = profile_path(uid)
    partial = changes.model_dump(exclude_none=True)

    def _apply(tx: Transaction) -> None:
        if tx.get(path) is None:
            # Settings saved before the first read still get a full profile.
            tx.set(path, default_profile(uid, today).model_copy(update=partial).model_dump())
        else:
            tx.update(path, partial)

    if partial:
        store.run_transaction(_apply)
        logger.info("Updated settings for user %s: %s", uid, sorted(partial))
    return get_profile(store, uid, today)
