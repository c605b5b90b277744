"""Calendar connection service - per-tenant credential store.

Point reads and writes on the single `calendar_connections` row per tenant.
The session service is the only writer of the access token and expiry;
everything else here is driven by the consent flow and tenant settings.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from agent_calendar.core.constants import PRIMARY_CALENDAR_ID
from agent_calendar.db.models import CalendarConnection
from agent_calendar.schemas.calendar import CalendarConnectionStatus, CalendarSettingsUpdate

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    """Timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


# ============================================================================
# Reads
# ============================================================================


def get_connection(db: Session, tenant_id: str) -> CalendarConnection | None:
    """Get a tenant's connection row, active or not."""
    return (
        db.query(CalendarConnection)
        .filter(CalendarConnection.tenant_id == tenant_id)
        .first()
    )


def get_active_connection(db: Session, tenant_id: str) -> CalendarConnection | None:
    """Get a tenant's active connection, or None if not connected."""
    return (
        db.query(CalendarConnection)
        .filter(
            CalendarConnection.tenant_id == tenant_id,
            CalendarConnection.is_active.is_(True),
        )
        .first()
    )


def get_status(db: Session, tenant_id: str) -> CalendarConnectionStatus:
    """Connection status and policy for display (no token material)."""
    connection = get_connection(db, tenant_id)
    if not connection:
        return CalendarConnectionStatus(tenant_id=tenant_id, connected=False)
    return CalendarConnectionStatus(
        tenant_id=tenant_id,
        connected=connection.is_active,
        connected_at=connection.connected_at,
        calendar_id=connection.calendar_id,
        default_duration_minutes=connection.default_duration_minutes,
        buffer_minutes=connection.buffer_minutes,
        booking_window_days=connection.booking_window_days,
    )


# ============================================================================
# Writes
# ============================================================================


def save_connection(
    db: Session,
    tenant_id: str,
    access_token: str,
    refresh_token: str | None = None,
    expires_in: int | None = None,
    calendar_id: str = PRIMARY_CALENDAR_ID,
) -> CalendarConnection:
    """Upsert a tenant's connection after a completed consent flow.

    Reactivates a previously disconnected row. Policy fields are preserved.
    """
    connection = get_connection(db, tenant_id)
    now = _now_utc()

    token_expires_at = None
    if expires_in:
        token_expires_at = now + timedelta(seconds=expires_in)

    if connection:
        connection.access_token = access_token
        if refresh_token:
            connection.refresh_token = refresh_token
        connection.token_expires_at = token_expires_at
        connection.calendar_id = calendar_id
        connection.is_active = True
        connection.connected_at = now
        connection.updated_at = now
    else:
        connection = CalendarConnection(
            tenant_id=tenant_id,
            access_token=access_token,
            refresh_token=refresh_token,
            token_expires_at=token_expires_at,
            calendar_id=calendar_id,
            is_active=True,
            connected_at=now,
        )
        db.add(connection)

    db.commit()
    db.refresh(connection)
    logger.info("Calendar connected", extra={"tenant_id": tenant_id})
    return connection


def update_tokens(
    db: Session,
    connection: CalendarConnection,
    access_token: str,
    token_expires_at: datetime | None,
) -> CalendarConnection:
    """Persist a refreshed access token. The refresh token is left unchanged."""
    connection.access_token = access_token
    connection.token_expires_at = token_expires_at
    connection.updated_at = _now_utc()
    db.commit()
    return connection


def disconnect(db: Session, tenant_id: str) -> bool:
    """Soft-delete a tenant's connection. Returns False if there is none."""
    connection = get_connection(db, tenant_id)
    if not connection:
        return False

    connection.is_active = False
    connection.access_token = None
    connection.refresh_token = None
    connection.token_expires_at = None
    connection.updated_at = _now_utc()
    db.commit()
    logger.info("Calendar disconnected", extra={"tenant_id": tenant_id})
    return True


def update_settings(
    db: Session,
    tenant_id: str,
    data: CalendarSettingsUpdate,
) -> CalendarConnection | None:
    """Update scheduling policy fields. Returns None if the tenant has no row."""
    connection = get_connection(db, tenant_id)
    if not connection:
        return None

    for field, value in data.model_dump(exclude_none=True).items():
        setattr(connection, field, value)
    connection.updated_at = _now_utc()

    db.commit()
    db.refresh(connection)
    return connection
