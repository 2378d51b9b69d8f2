# -*- coding: utf-8 -*-
"""Document store — in-process backend.

Read-modify-write transactions take a per-document lock on every path they
read, so two transactions on the same document run one after the other.
Writes are applied under a single commit lock.
"""

from __future__ import annotations

import copy
import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .base import DocumentStore, Transaction, apply_write, collection_of


class MemoryDocumentStore(DocumentStore):
    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._order: Dict[str, int] = {}
        self._seq = 0
        self._commit_lock = threading.RLock()
        self._key_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._key_locks_guard = threading.Lock()

    def _key_lock(self, path: str) -> threading.Lock:
        with self._key_locks_guard:
            return self._key_locks[path]

    def _get(self, path: str) -> Optional[Dict[str, Any]]:
        with self._commit_lock:
            doc = self._docs.get(path)
            return copy.deepcopy(doc) if doc is not None else None

    @contextmanager
    def _begin(self) -> Iterator[Transaction]:
        held: List[threading.Lock] = []
        held_paths = set()

        def _reader(path: str) -> Optional[Dict[str, Any]]:
            if path not in held_paths:
                lock = self._key_lock(path)
                lock.acquire()
                held.append(lock)
                held_paths.add(path)
            return self._get(path)

        tx = Transaction(_reader)
        try:
            yield tx
            self._commit(tx)
        finally:
            for lock in reversed(held):
                lock.release()

    def _commit(self, tx: Transaction) -> None:
        with self._commit_lock:
            staged: Dict[str, Dict[str, Any]] = {}
            for op, path, doc in tx.writes:
                current = staged.get(path, self._docs.get(path))
                staged[path] = apply_write(path, current, op, self._resolve(doc))
            for path, doc in staged.items():
                if path not in self._order:
                    self._seq += 1
                    self._order[path] = self._seq
                self._docs[path] = copy.deepcopy(doc)

    def _query(self, collection: str, order_by: str, descending: bool, limit: Optional[int]) -> List[Tuple[str, Dict[str, Any]]]:
        with self._commit_lock:
            rows = [
                (path, copy.deepcopy(doc))
                for path, doc in self._docs.items()
                if collection_of(path) == collection and doc.get(order_by) is not None
            ]
            rows.sort(key=lambda item: (item[1][order_by], self._order[item[0]]), reverse=descending)
        if limit is not None:
            rows = rows[: max(0, int(limit))]
        return rows
