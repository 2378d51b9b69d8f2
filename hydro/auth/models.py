# -*- coding: utf-8 -*-
"""Auth — Pydantic models."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    """Email and password as typed; length policy is applied by ``sign_up``."""

    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1, max_length=128)


class RegisterRequest(Credentials):
    pass


class LoginRequest(Credentials):
    pass


class UserPublic(BaseModel):
    id: str
    email: str
    created_at: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "UserPublic":
        return cls(id=row["id"], email=row["email"], created_at=row["created_at"])


class AuthResponse(BaseModel):
    user: UserPublic
    token: str
