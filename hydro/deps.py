# -*- coding: utf-8 -*-
"""Shared FastAPI dependencies: the document store and the viewer's date."""

from __future__ import annotations

import threading
from typing import Optional

from fastapi import Request

from .config import settings
from .store import DocumentStore, SqliteDocumentStore
from .timeutil import parse_timezone_offset, today_str

_store: Optional[DocumentStore] = None
_store_lock = threading.Lock()


def get_store() -> DocumentStore:
    global _store
    with _store_lock:
        if _store is None:
            _store = SqliteDocumentStore(settings.db_path, max_attempts=settings.tx_max_attempts)
        return _store


def set_store(store: Optional[DocumentStore]) -> None:
    global _store
    with _store_lock:
        _store = store


def get_client_today(request: Request) -> str:
    """Today's date in the caller's time zone (``X-Timezone`` / ``X-Timezone-Offset``)."""
    tz_name = request.headers.get("x-timezone")
    offset = parse_timezone_offset(request.headers.get("x-timezone-offset"))
    return today_str(tz_name, offset)
