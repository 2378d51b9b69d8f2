# -*- coding: utf-8 -*-
"""Document store — SQLite backend.

Each transaction opens its own connection on first access and starts with
``BEGIN IMMEDIATE``, which takes the database write lock before the first
read. A writer that cannot get the lock within the busy timeout counts as a
conflict and the transaction is re-run by :meth:`DocumentStore.run_transaction`.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..app_db import connect, init_app_db
from .base import DocumentStore, Transaction, apply_write, collection_of, format_timestamp
from .errors import StoreError, StorePermissionError, TransactionConflict


def _is_busy(exc: sqlite3.Error) -> bool:
    message = str(exc).lower()
    return "locked" in message or "busy" in message


def _translate(exc: sqlite3.Error, path: Optional[str], operation: str) -> StoreError:
    if isinstance(exc, sqlite3.OperationalError) and _is_busy(exc):
        return TransactionConflict(str(exc))
    return StorePermissionError(path or "", operation, detail=str(exc))


class SqliteDocumentStore(DocumentStore):
    def __init__(self, db_path: Path, *, busy_timeout: float = 5.0, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.db_path = Path(db_path)
        self.busy_timeout = busy_timeout
        init_app_db(self.db_path)

    def _connect(self) -> sqlite3.Connection:
        return connect(self.db_path, timeout=self.busy_timeout, isolation_level=None)

    @staticmethod
    def _read(conn: sqlite3.Connection, path: str) -> Optional[Dict[str, Any]]:
        try:
            row = conn.execute("SELECT data FROM documents WHERE path = ?", (path,)).fetchone()
        except sqlite3.Error as exc:
            raise _translate(exc, path, "get") from exc
        return json.loads(row["data"]) if row else None

    def _get(self, path: str) -> Optional[Dict[str, Any]]:
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StorePermissionError(path, "get", detail=str(exc)) from exc
        try:
            return self._read(conn, path)
        finally:
            conn.close()

    def _open(self, path: Optional[str]) -> sqlite3.Connection:
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise _translate(exc, path, "write") from exc
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as exc:
            conn.close()
            raise _translate(exc, path, "write") from exc
        return conn

    @contextmanager
    def _begin(self) -> Iterator[Transaction]:
        # The write lock is taken on first access, when the target path is known.
        opened: List[sqlite3.Connection] = []

        def _conn(path: Optional[str]) -> sqlite3.Connection:
            if not opened:
                opened.append(self._open(path))
            return opened[0]

        tx = Transaction(lambda path: self._read(_conn(path), path))
        try:
            yield tx
            if tx.writes:
                conn = _conn(tx.first_path)
                try:
                    self._write_all(conn, tx)
                    conn.execute("COMMIT")
                except sqlite3.Error as exc:
                    raise _translate(exc, tx.first_path, "write") from exc
        finally:
            for conn in opened:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                conn.close()

    def _write_all(self, conn: sqlite3.Connection, tx: Transaction) -> None:
        now = format_timestamp(self.clock())
        staged: Dict[str, Dict[str, Any]] = {}
        for op, path, doc in tx.writes:
            current = staged[path] if path in staged else self._read(conn, path)
            staged[path] = apply_write(path, current, op, self._resolve(doc))
        for path, doc in staged.items():
            conn.execute(
                """
                INSERT INTO documents (path, collection, data, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(path) DO UPDATE SET data = excluded.data, updated_at = excluded.updated_at
                """,
                (path, collection_of(path), json.dumps(doc, ensure_ascii=False), now, now),
            )

    def _query(self, collection: str, order_by: str, descending: bool, limit: Optional[int]) -> List[Tuple[str, Dict[str, Any]]]:
        direction = "DESC" if descending else "ASC"
        sql = (
            "SELECT path, data FROM documents "
            "WHERE collection = ? AND json_extract(data, ?) IS NOT NULL "
            f"ORDER BY json_extract(data, ?) {direction}, rowid {direction}"
        )
        params: List[Any] = [collection, f"$.{order_by}", f"$.{order_by}"]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(max(0, int(limit)))
        try:
            conn = self._connect()
            try:
                rows = conn.execute(sql, params).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise _translate(exc, collection, "list") from exc
        return [(row["path"], json.loads(row["data"])) for row in rows]
