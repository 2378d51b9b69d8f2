# -*- coding: utf-8 -*-
"""Profiles — Pydantic models."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

Units = Literal["ml", "oz"]


class UserProfile(BaseModel):
    id: str
    email: str = ""
    daily_goal: int = Field(2000, gt=0, description="Daily target in ml")
    units: Units = "ml"
    reminders_enabled: bool = False
    reminder_hours: float = Field(2.0, gt=0, allow_inf_nan=False)
    today_intake: int = Field(0, ge=0, description="Running total in ml for last_log_date")
    last_log_date: str = Field(..., description="YYYY-MM-DD")


class ProfileSettingsUpdate(BaseModel):
    daily_goal: Optional[int] = Field(None, gt=0)
    units: Optional[Units] = None
    reminders_enabled: Optional[bool] = None
    reminder_hours: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
