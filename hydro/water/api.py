# -*- coding: utf-8 -*-
"""Water — API endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..auth.security import get_current_user
from ..deps import get_client_today, get_store
from ..profiles.models import UserProfile
from ..profiles.storage import get_profile
from ..store import DocumentStore
from .ledger import latest_log, list_logs, log_water
from .models import LogWaterRequest, WaterLog, WaterLogList, WaterSummary
from .units import from_ml, progress_percent, quick_add_amounts, to_ml

router = APIRouter(prefix="/api/water", tags=["Water"])


@router.post("/logs", response_model=UserProfile, summary="Log a water intake event")
def create_log(
    request: LogWaterRequest,
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    today: str = Depends(get_client_today),
):
    units = request.units or get_profile(store, user["id"], today, email=user["email"]).units
    amount_ml = to_ml(request.amount, units)
    if amount_ml <= 0:
        raise HTTPException(status_code=422, detail="Amount rounds to 0 ml")
    return log_water(store, user["id"], amount_ml, today, email=user["email"])


@router.get("/logs", response_model=WaterLogList, summary="Most recent log entries")
def read_logs(
    limit: int = Query(20, ge=1, le=500),
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    logs = list_logs(store, user["id"], limit=limit)
    return WaterLogList(logs=logs, count=len(logs))


@router.get("/logs/latest", response_model=Optional[WaterLog], summary="The single most recent log entry")
def read_latest_log(
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    return latest_log(store, user["id"])


@router.get("/summary", response_model=WaterSummary, summary="Today's progress in display units")
def read_summary(
    user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    today: str = Depends(get_client_today),
):
    profile = get_profile(store, user["id"], today, email=user["email"])
    last = latest_log(store, user["id"])
    return WaterSummary(
        date=today,
        units=profile.units,
        intake_ml=profile.today_intake,
        goal_ml=profile.daily_goal,
        intake=from_ml(profile.today_intake, profile.units),
        goal=from_ml(profile.daily_goal, profile.units),
        percent=progress_percent(profile.today_intake, profile.daily_goal),
        quick_add=quick_add_amounts(profile.units),
        last_log_at=last.timestamp if last else None,
    )
