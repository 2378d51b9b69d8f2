# -*- coding: utf-8 -*-
"""Document store — shared behaviour for all backends.

Paths are slash separated and alternate collection / document id, e.g.
``users/{uid}`` and ``users/{uid}/waterLogs/{log_id}``.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, ContextManager, Dict, List, Optional, Tuple
from uuid import uuid4

from .errors import DocumentNotFound, StoreError, TransactionConflict, TransactionFailure

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def collection_of(path: str) -> str:
    return path.rsplit("/", 1)[0] if "/" in path else ""


def _path_matches(prefix: str, path: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


class Transaction:
    """Buffered writes applied together when the owning store commits."""

    def __init__(self, reader: Callable[[str], Optional[Dict[str, Any]]]) -> None:
        self._reader = reader
        self.writes: List[Tuple[str, str, Dict[str, Any]]] = []
        self.first_path: Optional[str] = None

    def get(self, path: str) -> Optional[Dict[str, Any]]:
        if self.writes:
            raise StoreError("Transactions require all reads to happen before writes")
        if self.first_path is None:
            self.first_path = path
        return self._reader(path)

    def set(self, path: str, doc: Dict[str, Any], merge: bool = False) -> None:
        self._touch(path)
        self.writes.append(("merge" if merge else "set", path, dict(doc)))

    def update(self, path: str, partial: Dict[str, Any]) -> None:
        self._touch(path)
        self.writes.append(("update", path, dict(partial)))

    @property
    def written_paths(self) -> List[str]:
        return [path for _, path, _ in self.writes]

    def _touch(self, path: str) -> None:
        if self.first_path is None:
            self.first_path = path


class DocumentStore:
    """Abstract document store.

    Backends implement ``_get``, ``_begin`` (a context manager yielding a
    :class:`Transaction` and committing it on clean exit) and ``_query``.
    Single-document writes are expressed as one-write transactions so every
    mutation goes through the same commit path.
    """

    def __init__(self, *, max_attempts: int = 5, clock: Callable[[], datetime] = utc_now) -> None:
        self.max_attempts = max(1, int(max_attempts))
        self.clock = clock
        self._listeners: Dict[int, Tuple[str, Listener]] = {}
        self._listeners_lock = threading.Lock()
        self._next_listener_id = 0

    # ---- backend hooks ----
    def _get(self, path: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def _begin(self) -> ContextManager[Transaction]:
        raise NotImplementedError

    def _query(self, collection: str, order_by: str, descending: bool, limit: Optional[int]) -> List[Tuple[str, Dict[str, Any]]]:
        raise NotImplementedError

    def close(self) -> None:
        pass

    # ---- public API ----
    def get(self, path: str) -> Optional[Dict[str, Any]]:
        return self._get(path)

    def set(self, path: str, doc: Dict[str, Any], merge: bool = False) -> None:
        self.run_transaction(lambda tx: tx.set(path, doc, merge=merge))

    def update(self, path: str, partial: Dict[str, Any]) -> None:
        self.run_transaction(lambda tx: tx.update(path, partial))

    def update_nonblocking(
        self,
        path: str,
        partial: Dict[str, Any],
        precondition: Optional[Callable[[Dict[str, Any]], bool]] = None,
    ) -> None:
        """Fire-and-forget update: failures go to the log, never to the caller.

        When ``precondition`` is given the update is skipped unless it holds
        for the document as read inside the same transaction.
        """

        def _apply(tx: Transaction) -> None:
            if precondition is not None:
                current = tx.get(path)
                if current is None or not precondition(current):
                    return
            tx.update(path, partial)

        try:
            self.run_transaction(_apply)
        except StoreError as exc:
            logger.error(
                "Non-blocking update failed: %s",
                exc,
                extra={"path": path, "operation": "write"},
            )

    def new_doc_path(self, collection: str) -> str:
        return f"{collection}/{uuid4().hex}"

    def query(
        self,
        collection: str,
        *,
        order_by: str,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Tuple[str, Dict[str, Any]]]:
        return self._query(collection, order_by, descending, limit)

    def run_transaction(self, fn: Callable[[Transaction], Any]) -> Any:
        """Run ``fn(tx)`` atomically, re-running it when a concurrent commit conflicts."""
        last_exc: Optional[BaseException] = None
        path: Optional[str] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                with self._begin() as tx:
                    result = fn(tx)
                    path = tx.first_path
                    written = tx.written_paths
            except TransactionConflict as exc:
                last_exc = exc
                logger.warning("Transaction conflict (attempt %d/%d): %s", attempt, self.max_attempts, exc)
                continue
            self._notify(written)
            return result
        raise TransactionFailure(path, self.max_attempts, last_exc)

    def run_atomic(self, key: str, fn: Callable[[Optional[Dict[str, Any]]], Dict[str, Any]]) -> Dict[str, Any]:
        """Replace the document at ``key`` with ``fn(current)`` in one transaction."""

        def _apply(tx: Transaction) -> Dict[str, Any]:
            new_doc = fn(tx.get(key))
            tx.set(key, new_doc)
            return new_doc

        return self.run_transaction(_apply)

    # ---- change notification ----
    def subscribe(self, prefix: str, callback: Listener) -> Callable[[], None]:
        """Call ``callback(path)`` after every commit touching ``prefix``."""
        with self._listeners_lock:
            listener_id = self._next_listener_id
            self._next_listener_id += 1
            self._listeners[listener_id] = (prefix, callback)

        def _unsubscribe() -> None:
            with self._listeners_lock:
                self._listeners.pop(listener_id, None)

        return _unsubscribe

    def _notify(self, paths: List[str]) -> None:
        if not paths:
            return
        with self._listeners_lock:
            listeners = list(self._listeners.values())
        for prefix, callback in listeners:
            for path in paths:
                if _path_matches(prefix, path):
                    try:
                        callback(path)
                    except Exception:
                        logger.exception("Store listener failed for %s", path)
                    break

    # ---- helpers for backends ----
    def _resolve(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        now = None
        resolved: Dict[str, Any] = {}
        for key, value in doc.items():
            if value is SERVER_TIMESTAMP:
                if now is None:
                    now = format_timestamp(self.clock())
                value = now
            resolved[key] = value
        return resolved


def apply_write(path: str, current: Optional[Dict[str, Any]], op: str, doc: Dict[str, Any]) -> Dict[str, Any]:
    """Return the document that results from applying one buffered write."""
    if op == "set":
        return dict(doc)
    if op == "merge":
        merged = dict(current or {})
        merged.update(doc)
        return merged
    if op == "update":
        if current is None:
            raise DocumentNotFound(path)
        merged = dict(current)
        merged.update(doc)
        return merged
    raise ValueError(f"unknown write op: {op}")
