"""Availability service - bookable slots from a tenant's busy intervals.

Candidates are offered on the hour between 9 AM and 5 PM local time,
Monday to Friday, never in the past, at most six per search. A candidate
is rejected if [start, start + duration + buffer) overlaps any busy
interval.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from agent_calendar.core.constants import (
    BUSINESS_HOURS_END,
    BUSINESS_HOURS_START,
    MAX_CANDIDATE_SLOTS,
    NO_SLOTS_MESSAGE,
    SLOT_STEP_MINUTES,
)
from agent_calendar.core.structured_logging import build_log_context
from agent_calendar.schemas.calendar import AvailabilityResult, BusyInterval
from agent_calendar.services import calendar_service, calendar_session_service
from agent_calendar.utils.datetime_parsing import (
    ensure_utc,
    get_business_timezone,
    parse_local_date,
)
from agent_calendar.utils.presentation import format_for_voice

logger = logging.getLogger(__name__)


class InvalidRequestError(ValueError):
    """An agent-supplied date or time could not be parsed."""


# =============================================================================
# Search Window
# =============================================================================

def _local_midnight(value: datetime, tz: ZoneInfo) -> datetime:
    return datetime.combine(value.astimezone(tz).date(), time.min, tzinfo=tz)


def resolve_search_window(
    now: datetime,
    preferred_date: date | None,
    booking_window_days: int,
    tz: ZoneInfo,
) -> tuple[datetime, datetime]:
    """
    Compute [window_start, window_end) for a search.

    A preferred date searches exactly that local day; otherwise the window
    starts today and spans the booking window. A start in the past is pulled
    forward to now before truncating to midnight, so past dates resolve to
    today rather than being rejected.
    """
    if preferred_date is not None:
        start = datetime.combine(preferred_date, time.min, tzinfo=tz)
        days = 1
    else:
        start = now
        days = booking_window_days

    if start < now:
        start = now
    window_start = _local_midnight(start, tz)
    window_end = window_start + timedelta(days=days)
    return window_start, window_end


# =============================================================================
# Candidate Generation
# =============================================================================

def _at_hour(day: date, hour: int, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time(hour=hour), tzinfo=tz)


def _next_hour(cursor: datetime) -> datetime:
    return cursor.replace(minute=0, second=0, microsecond=0) + timedelta(minutes=SLOT_STEP_MINUTES)


def _conflicts(
    start: datetime,
    test_end: datetime,
    busy: list[BusyInterval],
) -> bool:
    return any(start < b.end and test_end > b.start for b in busy)


def generate_candidate_slots(
    busy: list[BusyInterval],
    window_start: datetime,
    window_end: datetime,
    duration_minutes: int,
    buffer_minutes: int,
    now: datetime,
    max_slots: int = MAX_CANDIDATE_SLOTS,
) -> list[datetime]:
    """
    Walk the window hour by hour and collect free candidates.

    `window_start` must be aware; its tzinfo is the local wall clock used for
    weekday and business-hour checks. `now` is read once by the caller and
    reused for every past-time comparison. Returned starts are chronological.
    """
    tz = window_start.tzinfo
    occupied = timedelta(minutes=duration_minutes + buffer_minutes)
    available: list[datetime] = []
    cursor = window_start

    while cursor < window_end and len(available) < max_slots:
        # Saturday=5, Sunday=6
        if cursor.weekday() >= 5:
            cursor = _at_hour(cursor.date() + timedelta(days=1), BUSINESS_HOURS_START, tz)
            continue

        if cursor.hour < BUSINESS_HOURS_START:
            cursor = _at_hour(cursor.date(), BUSINESS_HOURS_START, tz)
        if cursor.hour >= BUSINESS_HOURS_END:
            cursor = _at_hour(cursor.date() + timedelta(days=1), BUSINESS_HOURS_START, tz)
            continue

        if cursor < now:
            cursor = _next_hour(cursor)
            continue

        if not _conflicts(cursor, cursor + occupied, busy):
            available.append(cursor)

        cursor = _next_hour(cursor)

    return available


def format_slots(slots: list[datetime], tz: ZoneInfo) -> str:
    """Join spoken slot phrases with ", or "; never returns an empty string."""
    if not slots:
        return NO_SLOTS_MESSAGE
    return ", or ".join(format_for_voice(slot.astimezone(tz)) for slot in slots)


# =============================================================================
# Public API
# =============================================================================

async def find_slots(
    db: Session,
    tenant_id: str,
    preferred_date: str | None = None,
    duration_minutes: int | None = None,
    now: datetime | None = None,
) -> AvailabilityResult | None:
    """
    Find up to six bookable slots for a tenant.

    Returns None if the tenant's calendar is not connected. A connected
    calendar with no free time returns an empty slot list with a fallback
    sentence.

    Raises:
        InvalidRequestError: If preferred_date cannot be parsed.
        ProviderAPIError: If the busy-interval query fails.
    """
    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    tz = get_business_timezone()

    session = await calendar_session_service.get_session(db, tenant_id, now=now)
    if not session:
        return None

    day = None
    if preferred_date:
        try:
            day = parse_local_date(preferred_date, tz)
        except ValueError as exc:
            raise InvalidRequestError(f"Unrecognized date: {preferred_date}") from exc

    if duration_minutes and duration_minutes > 0:
        duration = duration_minutes
    else:
        duration = session.default_duration_minutes
    window_start, window_end = resolve_search_window(
        now, day, session.booking_window_days, tz
    )

    busy = await calendar_service.query_busy_intervals(
        access_token=session.access_token,
        calendar_id=session.calendar_id,
        time_min=window_start,
        time_max=window_end,
    )

    slots = generate_candidate_slots(
        busy=busy,
        window_start=window_start,
        window_end=window_end,
        duration_minutes=duration,
        buffer_minutes=session.buffer_minutes,
        now=now,
    )
    logger.info(
        "Resolved %d candidate slots",
        len(slots),
        extra=build_log_context(
            tenant_id=tenant_id,
            calendar_id=session.calendar_id,
            operation="find_slots",
        ),
    )

    return AvailabilityResult(
        slots=[slot.astimezone(timezone.utc).isoformat() for slot in slots],
        formatted=format_slots(slots, tz),
    )
