# -*- coding: utf-8 -*-
"""Logging setup: console handler plus an optional rotating log file."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler

from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_MAX_BYTES = 1 * 1024 * 1024
LOG_BACKUP_COUNT = 3


def setup_logging() -> None:
    """Configure the ``hydro`` logger. Safe to call more than once."""
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    root = logging.getLogger("hydro")
    root.setLevel(getattr(logging, settings.log_level, logging.INFO))

    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(formatter)
        root.addHandler(console)

    if settings.log_file is not None and not any(
        isinstance(h, RotatingFileHandler) for h in root.handlers
    ):
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            settings.log_file,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        root.info("Logging to %s (rotating)", settings.log_file)
