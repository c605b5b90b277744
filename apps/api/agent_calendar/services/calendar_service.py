"""Calendar service - Google Calendar API calls.

Handles:
- Freebusy queries to check availability
- Event creation

Note: Requires calendar.readonly and calendar.events scopes.
"""

import logging
from datetime import datetime
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from agent_calendar.core.structured_logging import build_log_context
from agent_calendar.schemas.calendar import BusyInterval
from agent_calendar.services.http_service import provider_client, request_with_retries

logger = logging.getLogger(__name__)

GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"


class ProviderAPIError(Exception):
    """A calendar provider call failed (transport error or rejection)."""

    def __init__(self, operation: str, message: str, status_code: int | None = None):
        self.operation = operation
        self.status_code = status_code
        super().__init__(f"{operation} failed: {message}")


def _auth_headers(access_token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {access_token}",
        "Content-Type": "application/json",
    }


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


# =============================================================================
# Freebusy Queries
# =============================================================================

async def query_busy_intervals(
    access_token: str,
    calendar_id: str,
    time_min: datetime,
    time_max: datetime,
) -> list[BusyInterval]:
    """
    Get busy intervals from Google Calendar in a single freebusy request.

    Raises:
        ProviderAPIError: On transport errors, non-200 responses, or a
            per-calendar error in the response body.
    """
    operation = "freebusy"
    try:
        async with provider_client() as client:
            response = await request_with_retries(
                lambda: client.post(
                    f"{GOOGLE_CALENDAR_API}/freeBusy",
                    headers=_auth_headers(access_token),
                    json={
                        "timeMin": time_min.isoformat(),
                        "timeMax": time_max.isoformat(),
                        "items": [{"id": calendar_id}],
                    },
                ),
                operation=operation,
            )
    except httpx.RequestError as exc:
        raise ProviderAPIError(operation, str(exc)) from exc

    if response.status_code != 200:
        logger.warning(
            "Google freebusy query rejected",
            extra=build_log_context(
                calendar_id=calendar_id,
                operation=operation,
                status_code=response.status_code,
            ),
        )
        raise ProviderAPIError(operation, "unexpected status", response.status_code)

    try:
        data = response.json()
        calendar_data = data.get("calendars", {}).get(calendar_id, {})
        if calendar_data.get("errors"):
            reason = calendar_data["errors"][0].get("reason", "unknown")
            raise ProviderAPIError(operation, f"calendar error: {reason}", response.status_code)
        return [
            BusyInterval(start=_parse_timestamp(b["start"]), end=_parse_timestamp(b["end"]))
            for b in calendar_data.get("busy", [])
        ]
    except (ValueError, KeyError, AttributeError, ValidationError) as exc:
        raise ProviderAPIError(operation, f"malformed response: {exc}") from exc


# =============================================================================
# Event Management (Write)
# =============================================================================

async def insert_event(
    access_token: str,
    calendar_id: str,
    summary: str,
    description: str,
    start_time: datetime,
    end_time: datetime,
) -> str:
    """
    Create a Google Calendar event and return its id.

    Raises:
        ProviderAPIError: If the event could not be created.
    """
    operation = "event_insert"
    event_body = {
        "summary": summary,
        "description": description,
        "start": {"dateTime": start_time.isoformat()},
        "end": {"dateTime": end_time.isoformat()},
    }

    try:
        async with provider_client() as client:
            # No retries: a timed-out insert may have succeeded
            response = await client.post(
                f"{GOOGLE_CALENDAR_API}/calendars/{quote(calendar_id, safe='')}/events",
                headers=_auth_headers(access_token),
                json=event_body,
            )
    except httpx.RequestError as exc:
        raise ProviderAPIError(operation, str(exc)) from exc

    if response.status_code not in (200, 201):
        logger.warning(
            "Google event insert rejected",
            extra=build_log_context(
                calendar_id=calendar_id,
                operation=operation,
                status_code=response.status_code,
            ),
        )
        raise ProviderAPIError(operation, "unexpected status", response.status_code)

    try:
        payload = response.json()
    except ValueError as exc:
        raise ProviderAPIError(operation, f"malformed response: {exc}") from exc
    if not isinstance(payload, dict):
        raise ProviderAPIError(operation, "malformed response", response.status_code)
    event_id = payload.get("id")
    if not event_id:
        raise ProviderAPIError(operation, "response missing event id", response.status_code)
    return event_id
