# -*- coding: utf-8 -*-
"""HTTP client for the Hydro API.

Keeps a cached copy of the profile the way a UI would. ``log_water`` bumps
the cached total before the request completes and puts the pre-call value
back if the request fails.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .auth.errors import AuthError
from .auth.models import UserPublic
from .profiles.models import UserProfile
from .water.ledger import SAVE_FAILED_MESSAGE
from .water.models import WaterLog, WaterSummary
from .water.units import to_ml

logger = logging.getLogger(__name__)


class LogWaterFailed(Exception):
    """The intake was not saved; ``notice`` is meant for the user."""

    def __init__(self, notice: str = SAVE_FAILED_MESSAGE) -> None:
        self.notice = notice
        super().__init__(notice)


class HydroClient:
    def __init__(
        self,
        http: httpx.Client,
        *,
        timezone: Optional[str] = None,
        token: Optional[str] = None,
    ) -> None:
        self.http = http
        self.timezone = timezone
        self.token = token
        self.user: Optional[UserPublic] = None
        self.profile: Optional[UserProfile] = None

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.timezone:
            headers["X-Timezone"] = self.timezone
        return headers

    def _authenticate(self, path: str, email: str, password: str) -> UserPublic:
        resp = self.http.post(path, json={"email": email, "password": password}, headers=self._headers())
        if resp.status_code >= 400:
            payload = resp.json() if resp.headers.get("content-type", "").startswith("application/json") else {}
            raise AuthError(str(payload.get("code") or ""))
        data = resp.json()
        self.token = data["token"]
        self.user = UserPublic.model_validate(data["user"])
        return self.user

    def sign_up(self, email: str, password: str) -> UserPublic:
        return self._authenticate("/api/auth/register", email, password)

    def sign_in(self, email: str, password: str) -> UserPublic:
        return self._authenticate("/api/auth/login", email, password)

    def load(self) -> UserProfile:
        resp = self.http.get("/api/profile", headers=self._headers())
        resp.raise_for_status()
        self.profile = UserProfile.model_validate(resp.json())
        return self.profile

    def save_settings(self, **changes: Any) -> UserProfile:
        resp = self.http.patch("/api/profile", json=changes, headers=self._headers())
        resp.raise_for_status()
        self.profile = UserProfile.model_validate(resp.json())
        return self.profile

    def summary(self) -> WaterSummary:
        resp = self.http.get("/api/water/summary", headers=self._headers())
        resp.raise_for_status()
        return WaterSummary.model_validate(resp.json())

    def recent_logs(self, limit: int = 20) -> List[WaterLog]:
        resp = self.http.get("/api/water/logs", params={"limit": limit}, headers=self._headers())
        resp.raise_for_status()
        return [WaterLog.model_validate(item) for item in resp.json()["logs"]]

    def log_water(self, amount: float) -> UserProfile:
        """Log ``amount`` in the profile's display units."""
        if self.profile is None:
            self.load()
        assert self.profile is not None
        snapshot = self.profile
        amount_ml = to_ml(amount, snapshot.units)
        if amount_ml <= 0:
            raise ValueError("amount must be positive")

        self.profile = snapshot.model_copy(update={"today_intake": snapshot.today_intake + amount_ml})
        try:
            resp = self.http.post(
                "/api/water/logs",
                json={"amount": amount_ml, "units": "ml"},
                headers=self._headers(),
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            self.profile = snapshot
            logger.warning("Logging %d ml failed, restored total %d: %s", amount_ml, snapshot.today_intake, exc)
            raise LogWaterFailed() from exc

        self.profile = UserProfile.model_validate(resp.json())
        return self.profile
