"""Booking service - create confirmed appointments on a tenant's calendar.

Never raises past this boundary: every failure is a BookingResult with a
typed error so the voice agent can fall back gracefully. The slot is not
re-checked against the calendar before insert.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from agent_calendar.core.constants import AGENT_BOOKING_MARKER
from agent_calendar.core.structured_logging import build_log_context
from agent_calendar.schemas.calendar import BookingError, BookingRequest, BookingResult
from agent_calendar.services import calendar_service, calendar_session_service
from agent_calendar.services.calendar_service import ProviderAPIError
from agent_calendar.utils.datetime_parsing import (
    combine_local,
    get_business_timezone,
    parse_local_date,
    parse_time_of_day,
)
from agent_calendar.utils.presentation import format_for_voice

logger = logging.getLogger(__name__)


def build_event_summary(request: BookingRequest) -> str:
    return f"{request.service_type or 'Appointment'} - {request.customer_name}"


def build_event_description(request: BookingRequest) -> str:
    """Customer details followed by the agent provenance marker."""
    lines = [
        f"Customer: {request.customer_name}",
        f"Phone: {request.customer_phone}",
    ]
    if request.service_type:
        lines.append(f"Service: {request.service_type}")
    if request.notes:
        lines.append(f"Notes: {request.notes}")
    lines.append("")
    lines.append(AGENT_BOOKING_MARKER)
    return "\n".join(lines)


async def create_event(
    db: Session,
    tenant_id: str,
    request: BookingRequest,
    now: datetime | None = None,
) -> BookingResult:
    """
    Book an appointment on the tenant's calendar.

    The event always lasts the tenant's default duration; the request's
    duration_minutes only applies to slot search.
    """
    session = await calendar_session_service.get_session(db, tenant_id, now=now)
    if not session:
        return BookingResult(success=False, error=BookingError.NOT_CONNECTED)

    tz = get_business_timezone()
    try:
        start_time = combine_local(
            parse_local_date(request.preferred_date, tz),
            parse_time_of_day(request.preferred_time),
            tz,
        )
    except ValueError:
        logger.warning(
            "Unparseable booking date/time",
            extra=build_log_context(tenant_id=tenant_id, operation="create_event"),
        )
        return BookingResult(success=False, error=BookingError.INVALID_REQUEST)

    end_time = start_time + timedelta(minutes=session.default_duration_minutes)

    try:
        event_id = await calendar_service.insert_event(
            access_token=session.access_token,
            calendar_id=session.calendar_id,
            summary=build_event_summary(request),
            description=build_event_description(request),
            start_time=start_time,
            end_time=end_time,
        )
    except ProviderAPIError as exc:
        logger.error(
            f"Calendar event creation failed: {exc}",
            extra=build_log_context(
                tenant_id=tenant_id,
                calendar_id=session.calendar_id,
                operation="create_event",
                status_code=exc.status_code,
            ),
        )
        return BookingResult(success=False, error=BookingError.PROVIDER_API_ERROR)

    logger.info(
        "Calendar event created",
        extra=build_log_context(
            tenant_id=tenant_id,
            calendar_id=session.calendar_id,
            operation="create_event",
        ),
    )
    return BookingResult(
        success=True,
        event_id=event_id,
        formatted=f"{format_for_voice(start_time)} for {session.default_duration_minutes} minutes",
    )
