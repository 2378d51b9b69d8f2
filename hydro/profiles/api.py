# -*- coding: utf-8 -*-
"""Profiles — API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends

from ..auth.security import get_current_user
from ..deps import get_client_today, get_store
from ..store import DocumentStore
from .models import ProfileSettingsUpdate, UserProfile
from .storage import get_profile, update_settings

router = APIRouter(prefix="/api/profile", tags=["Profile"])


@router.get("", response_model=UserProfile, summary="Get the current user's profile")
def read_profile(
    background_tasks: BackgroundTasks,
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    today: str = Depends(get_client_today),
):
    return get_profile(store, user["id"], today, email=user["email"], defer=background_tasks.add_task)


@router.patch("", response_model=UserProfile, summary="Update goal, units and reminder settings")
def patch_profile(
    request: ProfileSettingsUpdate,
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    today: str = Depends(get_client_today),
):
    return update_settings(store, user["id"], today, request)
