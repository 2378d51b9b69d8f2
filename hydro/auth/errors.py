# -*- coding: utf-8 -*-
"""Auth — identity errors mapped to user-facing messages."""

from __future__ import annotations

from ..config import settings

EMAIL_IN_USE = "email-already-in-use"
WEAK_PASSWORD = "weak-password"
INVALID_CREDENTIAL = "invalid-credential"

GENERIC_MESSAGE = "An unexpected error occurred."


def auth_message(code: str) -> str:
    if code == EMAIL_IN_USE:
        return "This email is already in use. Please sign in."
    if code == WEAK_PASSWORD:
        return f"Password should be at least {settings.min_password_length} characters."
    if code == INVALID_CREDENTIAL:
        return "Invalid email or password."
    return GENERIC_MESSAGE


class AuthError(Exception):
    def __init__(self, code: str) -> None:
        self.code = code
        self.message = auth_message(code)
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return 401 if self.code == INVALID_CREDENTIAL else 400
