"""Tests for availability resolution (search window, candidate slots, find_slots)."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from agent_calendar.core.constants import NO_SLOTS_MESSAGE
from agent_calendar.schemas.calendar import BusyInterval
from agent_calendar.services import availability_service, calendar_service
from agent_calendar.services.availability_service import (
    InvalidRequestError,
    generate_candidate_slots,
    resolve_search_window,
)
from agent_calendar.services.calendar_service import ProviderAPIError

UTC = ZoneInfo("UTC")


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _busy(start: datetime, end: datetime) -> BusyInterval:
    return BusyInterval(start=start, end=end)


# 2026-10-19 is a Monday
MONDAY = date(2026, 10, 19)


# =============================================================================
# Search window
# =============================================================================

def test_window_for_preferred_date_is_that_day():
    now = _utc(2026, 10, 16, 12, 0)
    start, end = resolve_search_window(now, MONDAY, 14, UTC)

    assert start == datetime(2026, 10, 19, tzinfo=UTC)
    assert end == datetime(2026, 10, 20, tzinfo=UTC)


def test_window_without_date_spans_booking_window_from_today():
    now = _utc(2026, 10, 19, 13, 45)
    start, end = resolve_search_window(now, None, 14, UTC)

    assert start == datetime(2026, 10, 19, tzinfo=UTC)
    assert end == datetime(2026, 11, 2, tzinfo=UTC)


def test_window_past_date_is_pulled_forward_to_today():
    now = _utc(2026, 10, 21, 10, 0)
    start, end = resolve_search_window(now, date(2026, 10, 1), 14, UTC)

    assert start == datetime(2026, 10, 21, tzinfo=UTC)
    assert end == datetime(2026, 10, 22, tzinfo=UTC)


def test_window_truncates_in_business_timezone():
    tz = ZoneInfo("America/New_York")
    # 02:00 UTC Tuesday is still Monday evening in New York
    now = _utc(2026, 10, 20, 2, 0)
    start, _ = resolve_search_window(now, None, 14, tz)

    assert start == datetime(2026, 10, 19, tzinfo=tz)


# =============================================================================
# Candidate generation
# =============================================================================

def test_busy_hour_with_buffer_pushes_first_slot_to_eleven():
    now = _utc(2026, 10, 19, 8, 0)
    start, end = resolve_search_window(now, MONDAY, 14, UTC)
    busy = [_busy(_utc(2026, 10, 19, 10), _utc(2026, 10, 19, 11))]

    slots = generate_candidate_slots(busy, start, end, 60, 15, now)

    assert slots[0] == _utc(2026, 10, 19, 11)
    assert [s.hour for s in slots] == [11, 12, 13, 14, 15, 16]


def test_slot_ending_with_buffer_at_busy_start_is_allowed():
    now = _utc(2026, 10, 19, 8, 0)
    start, end = resolve_search_window(now, MONDAY, 14, UTC)
    # 09:00 + 45 + 15 = 10:00, touching but not overlapping
    busy = [_busy(_utc(2026, 10, 19, 10), _utc(2026, 10, 19, 11))]

    slots = generate_candidate_slots(busy, start, end, 45, 15, now)

    assert slots[0] == _utc(2026, 10, 19, 9)
    assert _utc(2026, 10, 19, 10) not in slots


def test_buffer_only_applies_after_the_slot():
    now = _utc(2026, 10, 19, 8, 0)
    start, end = resolve_search_window(now, MONDAY, 14, UTC)
    busy = [_busy(_utc(2026, 10, 19, 9), _utc(2026, 10, 19, 10))]

    slots = generate_candidate_slots(busy, start, end, 60, 15, now)

    # A busy block ending exactly at 10:00 does not block the 10:00 slot
    assert slots[0] == _utc(2026, 10, 19, 10)


def test_weekends_are_skipped():
    # Saturday morning, two-week window
    now = _utc(2026, 10, 17, 10, 0)
    start, end = resolve_search_window(now, None, 14, UTC)

    slots = generate_candidate_slots([], start, end, 60, 15, now)

    assert slots[0] == _utc(2026, 10, 19, 9)
    assert all(s.weekday() < 5 for s in slots)


def test_weekend_preferred_date_yields_nothing():
    now = _utc(2026, 10, 16, 10, 0)
    start, end = resolve_search_window(now, date(2026, 10, 18), 14, UTC)

    assert generate_candidate_slots([], start, end, 60, 15, now) == []


def test_past_hours_are_skipped():
    now = _utc(2026, 10, 19, 13, 30)
    start, end = resolve_search_window(now, None, 14, UTC)

    slots = generate_candidate_slots([], start, end, 60, 15, now)

    assert slots[0] == _utc(2026, 10, 19, 14)
    assert all(s > now for s in slots)


def test_late_afternoon_rolls_to_next_business_day():
    # Friday 17:30 -> Monday 09:00
    now = _utc(2026, 10, 23, 17, 30)
    start, end = resolve_search_window(now, None, 14, UTC)

    slots = generate_candidate_slots([], start, end, 60, 15, now)

    assert slots[0] == _utc(2026, 10, 26, 9)


def test_never_more_than_six_slots():
    now = _utc(2026, 10, 19, 0, 0)
    start, end = resolve_search_window(now, None, 90, UTC)

    slots = generate_candidate_slots([], start, end, 30, 0, now)

    assert len(slots) == 6


def test_fully_busy_day_returns_no_slots():
    now = _utc(2026, 10, 19, 7, 0)
    start, end = resolve_search_window(now, MONDAY, 14, UTC)
    busy = [_busy(_utc(2026, 10, 19, 0), _utc(2026, 10, 20, 0))]

    assert generate_candidate_slots(busy, start, end, 60, 15, now) == []


def test_generated_slots_hold_all_invariants():
    now = _utc(2026, 10, 20, 11, 20)
    start, end = resolve_search_window(now, None, 10, UTC)
    busy = [
        _busy(_utc(2026, 10, 20, 12, 30), _utc(2026, 10, 20, 14, 0)),
        _busy(_utc(2026, 10, 20, 15, 50), _utc(2026, 10, 21, 10, 10)),
        _busy(_utc(2026, 10, 21, 13, 0), _utc(2026, 10, 21, 13, 5)),
    ]
    duration, buffer = 45, 20

    slots = generate_candidate_slots(busy, start, end, duration, buffer, now)

    assert 0 < len(slots) <= 6
    assert slots == sorted(slots)
    for slot in slots:
        test_end = slot + timedelta(minutes=duration + buffer)
        assert all(not (slot < b.end and test_end > b.start) for b in busy)
        assert slot.weekday() < 5
        assert 9 <= slot.hour < 17
        assert slot > now


def test_business_hours_follow_local_wall_clock():
    tz = ZoneInfo("America/New_York")
    now = _utc(2026, 10, 19, 0, 0)
    start, end = resolve_search_window(now, MONDAY, 14, tz)

    slots = generate_candidate_slots([], start, end, 60, 0, now)

    # 09:00 in New York is 13:00 UTC
    assert slots[0].astimezone(timezone.utc) == _utc(2026, 10, 19, 13)
    assert all(9 <= s.astimezone(tz).hour < 17 for s in slots)


# =============================================================================
# find_slots
# =============================================================================

@pytest.mark.asyncio
async def test_find_slots_not_connected_returns_none(db):
    assert await availability_service.find_slots(db, "missing-tenant") is None


@pytest.mark.asyncio
async def test_find_slots_queries_window_and_formats(db, make_connection, monkeypatch):
    make_connection(tenant_id="tenant-1", calendar_id="cal-1")
    captured = {}

    async def fake_query(access_token, calendar_id, time_min, time_max):
        captured.update(
            access_token=access_token,
            calendar_id=calendar_id,
            time_min=time_min,
            time_max=time_max,
        )
        return [_busy(_utc(2026, 10, 19, 10), _utc(2026, 10, 19, 11))]

    monkeypatch.setattr(calendar_service, "query_busy_intervals", fake_query)

    result = await availability_service.find_slots(
        db, "tenant-1", preferred_date="2026-10-19", now=_utc(2026, 10, 19, 8, 0)
    )

    assert captured["access_token"] == "access-token"
    assert captured["calendar_id"] == "cal-1"
    assert captured["time_min"] == datetime(2026, 10, 19, tzinfo=UTC)
    assert captured["time_max"] == datetime(2026, 10, 20, tzinfo=UTC)
    assert result.slots[0] == "2026-10-19T11:00:00+00:00"
    assert len(result.slots) == 6
    assert result.formatted.startswith(
        "Monday October nineteen at eleven AM, or Monday October nineteen at twelve PM"
    )


@pytest.mark.asyncio
async def test_find_slots_explicit_duration_overrides_default(db, make_connection, monkeypatch):
    make_connection(tenant_id="tenant-1", default_duration_minutes=60, buffer_minutes=0)

    async def fake_query(**kwargs):
        return [_busy(_utc(2026, 10, 19, 10, 15), _utc(2026, 10, 19, 11))]

    monkeypatch.setattr(calendar_service, "query_busy_intervals", fake_query)

    result = await availability_service.find_slots(
        db,
        "tenant-1",
        preferred_date="2026-10-19",
        duration_minutes=90,
        now=_utc(2026, 10, 19, 8, 0),
    )

    # 09:00 + 90 minutes overlaps 10:15; 60 minutes would not
    assert result.slots[0] == "2026-10-19T11:00:00+00:00"


@pytest.mark.asyncio
async def test_find_slots_non_positive_duration_uses_default(db, make_connection, monkeypatch):
    make_connection(tenant_id="tenant-1", default_duration_minutes=60, buffer_minutes=0)

    async def fake_query(**kwargs):
        return [_busy(_utc(2026, 10, 19, 10, 15), _utc(2026, 10, 19, 11))]

    monkeypatch.setattr(calendar_service, "query_busy_intervals", fake_query)

    result = await availability_service.find_slots(
        db,
        "tenant-1",
        preferred_date="2026-10-19",
        duration_minutes=-30,
        now=_utc(2026, 10, 19, 8, 0),
    )

    assert result.slots[0] == "2026-10-19T09:00:00+00:00"
    assert "2026-10-19T10:00:00+00:00" not in result.slots


@pytest.mark.asyncio
async def test_find_slots_zero_slots_uses_fallback_sentence(db, make_connection, monkeypatch):
    make_connection(tenant_id="tenant-1")

    async def fake_query(**kwargs):
        return [_busy(_utc(2026, 10, 19, 0), _utc(2026, 10, 20, 0))]

    monkeypatch.setattr(calendar_service, "query_busy_intervals", fake_query)

    result = await availability_service.find_slots(
        db, "tenant-1", preferred_date="2026-10-19", now=_utc(2026, 10, 19, 8, 0)
    )

    assert result is not None
    assert result.slots == []
    assert result.formatted == NO_SLOTS_MESSAGE


@pytest.mark.asyncio
async def test_find_slots_provider_failure_raises(db, make_connection, monkeypatch):
    make_connection(tenant_id="tenant-1")

    async def fake_query(**kwargs):
        raise ProviderAPIError("freebusy", "unexpected status", 500)

    monkeypatch.setattr(calendar_service, "query_busy_intervals", fake_query)

    with pytest.raises(ProviderAPIError):
        await availability_service.find_slots(db, "tenant-1", now=_utc(2026, 10, 19, 8, 0))


@pytest.mark.asyncio
async def test_find_slots_invalid_date_raises(db, make_connection):
    make_connection(tenant_id="tenant-1")

    with pytest.raises(InvalidRequestError):
        await availability_service.find_slots(db, "tenant-1", preferred_date="someday")
