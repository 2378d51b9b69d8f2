# -*- coding: utf-8 -*-
"""Auth — password hashing, session tokens and the FastAPI user dependency.

Tokens are HS256 JWTs signed with ``HYDRO_JWT_SECRET``. The same token is
accepted as a bearer header, as the ``hydro_token`` cookie, or as the
``token`` query parameter of the reminder WebSocket.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request

from ..config import settings
from .storage import get_user_by_id

TOKEN_COOKIE_NAME = "hydro_token"

_HASH_NAME = "sha256"
_HASH_ROUNDS = 200_000
_JWT_HEADER = {"alg": "HS256", "typ": "JWT"}


class TokenError(Exception):
    """The token is malformed, forged, expired or names an unknown user."""


def _encode_segment(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _decode_segment(data: str) -> bytes:
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def _derive(password: str, salt: bytes, rounds: int, name: str = _HASH_NAME) -> bytes:
    return hashlib.pbkdf2_hmac(name, password.encode("utf-8"), salt, rounds)


def hash_password(password: str) -> str:
    salt = os.urandom(16)
    digest = _derive(password, salt, _HASH_ROUNDS)
    return "$".join([f"pbkdf2_{_HASH_NAME}", str(_HASH_ROUNDS), _encode_segment(salt), _encode_segment(digest)])


def verify_password(password: str, stored: str) -> bool:
    parts = stored.split("$")
    if len(parts) != 4 or not parts[0].startswith("pbkdf2_"):
        return False
    name = parts[0][len("pbkdf2_"):]
    try:
        actual = _derive(password, _decode_segment(parts[2]), int(parts[1]), name)
        expected = _decode_segment(parts[3])
    except (ValueError, TypeError):
        return False
    return hmac.compare_digest(actual, expected)


def _signature(signing_input: str) -> bytes:
    return hmac.new(settings.jwt_secret.encode("utf-8"), signing_input.encode("ascii"), hashlib.sha256).digest()


def create_access_token(*, user_id: str, email: str) -> str:
    issued = datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "email": email,
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(days=int(settings.token_ttl_days))).timestamp()),
    }
    head = _encode_segment(json.dumps(_JWT_HEADER, separators=(",", ":")).encode("utf-8"))
    body = _encode_segment(json.dumps(claims, separators=(",", ":"), ensure_ascii=False).encode("utf-8"))
    signing_input = f"{head}.{body}"
    return f"{signing_input}.{_encode_segment(_signature(signing_input))}"


def decode_token(token: str) -> Dict[str, Any]:
    """Return the verified claims of ``token``; raise :class:`TokenError` otherwise."""
    try:
        head, body, sig = token.split(".")
        if not hmac.compare_digest(_signature(f"{head}.{body}"), _decode_segment(sig)):
            raise TokenError("Invalid token")
        claims = json.loads(_decode_segment(body).decode("utf-8"))
    except (ValueError, UnicodeError) as exc:
        raise TokenError("Invalid token") from exc
    if not isinstance(claims, dict) or not claims.get("sub"):
        raise TokenError("Invalid token")
    expires = int(claims.get("exp") or 0)
    if expires and expires < int(datetime.now(timezone.utc).timestamp()):
        raise TokenError("Token expired")
    return claims


def authenticate_token(token: str) -> Dict[str, Any]:
    """Resolve ``token`` to its user row."""
    claims = decode_token(token)
    user = get_user_by_id(str(claims["sub"]))
    if not user:
        raise TokenError("User not found")
    return user


def user_from_token(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """Like :func:`authenticate_token`, but None for a missing or bad token."""
    if not token:
        return None
    try:
        return authenticate_token(token)
    except TokenError:
        return None


def token_from_request(request: Request) -> Optional[str]:
    header = request.headers.get("authorization") or ""
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(TOKEN_COOKIE_NAME) or None


def get_current_user(request: Request) -> Dict[str, Any]:
    cached = getattr(request.state, "user", None)
    if cached:
        return cached
    token = token_from_request(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        user = authenticate_token(token)
    except TokenError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    request.state.user = user
    return user
