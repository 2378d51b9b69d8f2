# -*- coding: utf-8 -*-
"""App database — SQLite helpers.

Holds the auth ``users`` table and the ``documents`` table that backs
:class:`hydro.store.sqlite.SqliteDocumentStore`. Documents are keyed by
their full path and indexed by parent collection for ordered listing.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS documents (
        path TEXT PRIMARY KEY,
        collection TEXT NOT NULL,
        data TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection)",
)


def connect(db_path: Path, *, timeout: float = 5.0, isolation_level: Optional[str] = "") -> sqlite3.Connection:
    """Open ``db_path``; ``isolation_level=None`` leaves transactions to the caller."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), timeout=timeout, isolation_level=isolation_level, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_app_db(db_path: Path) -> None:
    with db_conn(db_path) as conn:
        # WAL lets readers proceed while a logging transaction holds the write lock.
        conn.execute("PRAGMA journal_mode=WAL")
        for statement in SCHEMA:
            conn.execute(statement)


@contextmanager
def db_conn(db_path: Path) -> Iterator[sqlite3.Connection]:
    conn = connect(db_path)
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()
