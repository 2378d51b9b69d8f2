# -*- coding: utf-8 -*-
"""Auth — user rows in the app database.

Emails are stored lower-cased, so lookups and the UNIQUE constraint are
case-insensitive.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from ..app_db import db_conn
from ..config import settings
from .errors import EMAIL_IN_USE, AuthError


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _find_user(column: str, value: str) -> Optional[Dict[str, Any]]:
    with db_conn(settings.db_path) as conn:
        row = conn.execute(f"SELECT * FROM users WHERE {column} = ?", (value,)).fetchone()
    return dict(row) if row else None


def get_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    return _find_user("email", normalize_email(email))


def get_user_by_id(user_id: str) -> Optional[Dict[str, Any]]:
    return _find_user("id", user_id)


def create_user(*, email: str, password_hash: str) -> Dict[str, Any]:
    """Insert a user row; a duplicate email becomes ``AuthError(EMAIL_IN_USE)``."""
    user = {
        "id": str(uuid4()),
        "email": normalize_email(email),
        "password_hash": password_hash,
        "created_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }
    try:
        with db_conn(settings.db_path) as conn:
            conn.execute(
                "INSERT INTO users (id, email, password_hash, created_at) "
                "VALUES (:id, :email, :password_hash, :created_at)",
                user,
            )
    except sqlite3.IntegrityError as exc:
        raise AuthError(EMAIL_IN_USE) from exc
    return user
