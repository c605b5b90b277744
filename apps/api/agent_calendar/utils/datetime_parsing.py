"""Datetime parsing helpers for agent-supplied dates and times."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from agent_calendar.core.config import settings

DEFAULT_TIMEZONE = "UTC"

TIME_FORMATS: list[str] = [
    "%H:%M",
    "%H:%M:%S",
    "%I:%M %p",
    "%I:%M%p",
    "%I %p",
    "%I%p",
]

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def get_business_timezone() -> ZoneInfo:
    """Return the configured business timezone (UTC if unknown)."""
    try:
        return ZoneInfo(settings.BUSINESS_TIMEZONE or DEFAULT_TIMEZONE)
    except ZoneInfoNotFoundError:
        return ZoneInfo(DEFAULT_TIMEZONE)


def parse_local_date(raw_value: str, tz: ZoneInfo) -> date:
    """
    Parse a calendar date supplied by the agent.

    Accepts YYYY-MM-DD, or a full ISO timestamp whose date in `tz` is used.
    Raises ValueError on anything else.
    """
    value = raw_value.strip()
    if _DATE_RE.fullmatch(value):
        return date.fromisoformat(value)

    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        return dt.date()
    return dt.astimezone(tz).date()


def parse_time_of_day(raw_value: str) -> time:
    """Parse "14:30", "2:30 PM", "2 pm" and similar. Raises ValueError."""
    value = " ".join(raw_value.strip().upper().split())
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(value, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Unrecognized time format: {raw_value}")


def combine_local(day: date, time_of_day: time, tz: ZoneInfo) -> datetime:
    """Build an aware datetime for a local date and wall-clock time."""
    return datetime.combine(day, time_of_day, tzinfo=tz)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite returns naive values)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
