# -*- coding: utf-8 -*-
"""Auth — API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from ..config import settings
from ..deps import get_client_today, get_store
from ..profiles.storage import get_profile
from ..store import DocumentStore
from .models import AuthResponse, LoginRequest, RegisterRequest, UserPublic
from .provider import sign_in, sign_up
from .security import TOKEN_COOKIE_NAME, create_access_token, get_current_user

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _set_auth_cookie(resp: Response, token: str) -> None:
    max_age = int(settings.token_ttl_days) * 24 * 60 * 60
    resp.set_cookie(
        TOKEN_COOKIE_NAME,
        token,
        httponly=True,
        secure=bool(settings.cookie_secure),
        samesite="lax",
        max_age=max_age,
        path="/",
    )


def _session(user: dict, response: Response) -> AuthResponse:
    token = create_access_token(user_id=user["id"], email=user["email"])
    _set_auth_cookie(response, token)
    return AuthResponse(user=UserPublic.from_row(user), token=token)


@router.post("/register", response_model=AuthResponse, summary="Register a new user")
def register(
    request: RegisterRequest,
    response: Response,
    store: DocumentStore = Depends(get_store),
    today: str = Depends(get_client_today),
):
    user = sign_up(request.email, request.password)
    get_profile(store, user["id"], today, email=user["email"])
    return _session(user, response)


@router.post("/login", response_model=AuthResponse, summary="Login")
def login(request: LoginRequest, response: Response):
    user = sign_in(request.email, request.password)
    return _session(user, response)


@router.post("/logout", summary="Logout")
def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE_NAME, path="/")
    return {"status": "ok"}


@router.get("/me", response_model=UserPublic, summary="Get current user")
def me(user: dict = Depends(get_current_user)):
    return UserPublic.from_row(user)
