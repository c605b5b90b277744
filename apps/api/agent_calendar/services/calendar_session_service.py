"""Calendar session service - authenticated sessions per tenant.

Loads the tenant's active connection and returns a session carrying a
currently valid access token, refreshing it first when it is expired or
about to expire. Every credential problem (no row, inactive row, failed
refresh) comes back as None so callers only have to answer "connected or
not".

Concurrent calls for the same tenant near expiry may each refresh; the last
write wins on the stored token.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agent_calendar.core.constants import (
    DEFAULT_TOKEN_LIFETIME_SECONDS,
    TOKEN_EXPIRY_MARGIN_SECONDS,
)
from agent_calendar.core.structured_logging import build_log_context
from agent_calendar.services import calendar_connection_service, google_oauth
from agent_calendar.utils.datetime_parsing import ensure_utc

logger = logging.getLogger(__name__)


@dataclass
class CalendarSession:
    """Valid credentials plus the tenant's scheduling policy."""

    tenant_id: str
    access_token: str
    refresh_token: str | None
    calendar_id: str
    default_duration_minutes: int
    buffer_minutes: int
    booking_window_days: int


def is_token_expired(expires_at: datetime | None, now: datetime) -> bool:
    """True if the token expires before now plus the safety margin.

    A missing expiry means the token is assumed valid.
    """
    if expires_at is None:
        return False
    margin = timedelta(seconds=TOKEN_EXPIRY_MARGIN_SECONDS)
    return ensure_utc(expires_at) < ensure_utc(now) + margin


async def get_session(
    db: Session,
    tenant_id: str,
    now: datetime | None = None,
) -> CalendarSession | None:
    """
    Get an authenticated calendar session for a tenant.

    Returns None if the tenant is not connected, its stored credentials
    cannot be read, or a needed refresh fails.
    """
    try:
        connection = calendar_connection_service.get_active_connection(db, tenant_id)
    except (ValueError, SQLAlchemyError) as exc:
        db.rollback()
        logger.error(
            f"Stored calendar credentials unreadable: {exc}",
            extra=build_log_context(tenant_id=tenant_id, operation="token_refresh"),
        )
        return None
    if not connection or not connection.access_token:
        return None

    now = now or datetime.now(timezone.utc)
    access_token = connection.access_token

    if is_token_expired(connection.token_expires_at, now) and connection.refresh_token:
        refreshed = await google_oauth.refresh_access_token(connection.refresh_token)
        if not refreshed:
            logger.error(
                "Calendar token refresh failed; treating tenant as disconnected",
                extra=build_log_context(tenant_id=tenant_id, operation="token_refresh"),
            )
            return None

        access_token = refreshed["access_token"]
        expires_in = refreshed.get("expires_in") or DEFAULT_TOKEN_LIFETIME_SECONDS
        try:
            calendar_connection_service.update_tokens(
                db,
                connection,
                access_token=access_token,
                token_expires_at=ensure_utc(now) + timedelta(seconds=int(expires_in)),
            )
        except (ValueError, SQLAlchemyError) as exc:
            db.rollback()
            logger.error(
                f"Refreshed calendar token could not be saved: {exc}",
                extra=build_log_context(tenant_id=tenant_id, operation="token_refresh"),
            )
            return None
        logger.info(
            "Calendar token refreshed",
            extra=build_log_context(tenant_id=tenant_id, operation="token_refresh"),
        )

    return CalendarSession(
        tenant_id=tenant_id,
        access_token=access_token,
        refresh_token=connection.refresh_token,
        calendar_id=connection.calendar_id,
        default_duration_minutes=connection.default_duration_minutes,
        buffer_minutes=connection.buffer_minutes,
        booking_window_days=connection.booking_window_days,
    )
