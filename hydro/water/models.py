# -*- coding: utf-8 -*-
"""Water — Pydantic models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..profiles.models import Units


class WaterLog(BaseModel):
    id: str
    user_id: str
    amount: int = Field(..., gt=0, description="ml")
    timestamp: Optional[datetime] = None


class LogWaterRequest(BaseModel):
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Amount in the given units")
    units: Optional[Units] = Field(None, description="Defaults to the profile's display units")


class WaterLogList(BaseModel):
    logs: List[WaterLog]
    count: int


class WaterSummary(BaseModel):
    date: str = Field(..., description="YYYY-MM-DD")
    units: Units
    intake_ml: int
    goal_ml: int
    intake: float = Field(..., description="Intake in display units")
    goal: float = Field(..., description="Goal in display units")
    percent: int = Field(..., ge=0, le=100)
    quick_add: List[int]
    last_log_at: Optional[datetime] = None
