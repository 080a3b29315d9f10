"""
Date/time parsing utilities.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

DEFAULT_DURATION = timedelta(hours=1)


def parse_iso_datetime(value: str) -> datetime:
    """Parse ISO datetime string, handling Z timezone suffix."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def parse_iso_date(value: Union[str, date]) -> date:
    """Parse ISO date string. A trailing time component is ignored."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError:
        return parse_iso_datetime(value).date()


def parse_clock(value: Optional[str]) -> Optional[time]:
    """Parse "HH:MM" (or "HH:MM:SS"). Blank or malformed input gives None."""
    if not value or not value.strip():
        return None
    try:
        return time.fromisoformat(value.strip())
    except ValueError:
        logger.warning("[Date] Ignoring malformed start time %r", value)
        return None


def parse_duration(value: Optional[str]) -> timedelta:
    """
    Parse an "H:MM" / "HH:MM" duration.

    Anything without a colon, with non-numeric parts or a non-positive total
    falls back to one hour. Never raises.
    """
    if not value or not isinstance(value, str) or ":" not in value:
        return DEFAULT_DURATION

    parts = value.strip().split(":")
    try:
        hours = int(parts[0]) if parts[0] else 0
        minutes = int(parts[1]) if parts[1] else 0
    except ValueError:
        return DEFAULT_DURATION

    total = hours * 60 + minutes
    if total <= 0:
        return DEFAULT_DURATION
    return timedelta(minutes=total)


def to_civil_time(value: datetime, timezone: str) -> datetime:
    """Convert an aware datetime to naive wall-clock time in `timezone`."""
    if value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(timezone)).replace(tzinfo=None)


def format_local_datetime(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:00")
