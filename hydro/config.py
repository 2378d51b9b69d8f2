# -*- coding: utf-8 -*-
"""Centralized configuration, read from the environment at import time."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional


def _env_bool(name: str, default: str = "") -> bool:
    return (os.environ.get(name) or default).strip() in {"1", "true", "True", "yes"}


class Settings:
    """Settings for the hydration tracking backend."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent
        data_root_default = repo_root / "data"

        self.data_root: Path = Path(
            os.environ.get("HYDRO_DATA_ROOT") or data_root_default
        ).expanduser()
        self.db_path: Path = Path(
            os.environ.get("HYDRO_DB_PATH") or (self.data_root / "hydro.db")
        ).expanduser()

        # In production you MUST set HYDRO_JWT_SECRET. The dev fallback keeps local
        # demos easy but is not safe for public deployments.
        self.jwt_secret: str = os.environ.get("HYDRO_JWT_SECRET") or "dev-secret-change-me"
        self.token_ttl_days: int = int(os.environ.get("HYDRO_TOKEN_TTL_DAYS") or "7")
        self.cookie_secure: bool = _env_bool("HYDRO_COOKIE_SECURE")
        self.min_password_length: int = int(os.environ.get("HYDRO_MIN_PASSWORD_LENGTH") or "6")

        self.default_goal_ml: int = int(os.environ.get("HYDRO_DEFAULT_GOAL_ML") or "2000")
        self.default_reminder_hours: float = float(
            os.environ.get("HYDRO_DEFAULT_REMINDER_HOURS") or "2"
        )
        self.tx_max_attempts: int = int(os.environ.get("HYDRO_TX_MAX_ATTEMPTS") or "5")

        self.log_level: str = (os.environ.get("HYDRO_LOG_LEVEL") or "INFO").upper()
        log_file = os.environ.get("HYDRO_LOG_FILE")
        self.log_file: Optional[Path] = Path(log_file).expanduser() if log_file else None

        cors = os.environ.get("HYDRO_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]


settings = Settings()
