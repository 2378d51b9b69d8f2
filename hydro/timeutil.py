# -*- coding: utf-8 -*-
"""Calendar helpers: the viewer's local date as ``YYYY-MM-DD``."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timezone_offset(offset_str: Optional[str]) -> Optional[int]:
    """Parse a UTC offset in minutes.

    Accepts plain minutes (``"330"``, ``"-480"``) or ``"+05:30"`` / ``"-08:00"``.
    Returns None for anything else.
    """
    if not offset_str:
        return None
    value = offset_str.strip()
    if value.lstrip("+-").isdigit():
        return int(value)
    if ":" in value:
        sign = -1 if value.startswith("-") else 1
        hours, _, minutes = value.lstrip("+-").partition(":")
        if hours.isdigit() and (not minutes or minutes.isdigit()):
            return sign * (int(hours) * 60 + int(minutes or 0))
    return None


def resolve_timezone(tz_name: Optional[str] = None, offset_minutes: Optional[int] = None) -> tzinfo:
    if tz_name:
        try:
            return ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown time zone %r, falling back to offset/UTC", tz_name)
    if offset_minutes is not None and abs(offset_minutes) < 24 * 60:
        return timezone(timedelta(minutes=offset_minutes))
    return timezone.utc


def today_str(
    tz_name: Optional[str] = None,
    offset_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> str:
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return current.astimezone(resolve_timezone(tz_name, offset_minutes)).date().isoformat()


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
