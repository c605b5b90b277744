"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Integer, String, Uuid, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from agent_calendar.core.constants import (
    DEFAULT_BOOKING_WINDOW_DAYS,
    DEFAULT_BUFFER_MINUTES,
    DEFAULT_DURATION_MINUTES,
    PRIMARY_CALENDAR_ID,
)
from agent_calendar.db.base import Base
from agent_calendar.db.types import EncryptedToken


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class CalendarConnection(Base):
    """
    Per-tenant Google Calendar connection.

    One row per tenant, upserted on consent. Tokens are encrypted at rest.
    Disconnecting deactivates the row and nulls the tokens; rows are never
    hard-deleted.
    """

    __tablename__ = "calendar_connections"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    access_token: Mapped[str | None] = mapped_column(EncryptedToken, nullable=True)
    refresh_token: Mapped[str | None] = mapped_column(EncryptedToken, nullable=True)
    calendar_id: Mapped[str] = mapped_column(
        String(255),
        default=PRIMARY_CALENDAR_ID,
        server_default=text(f"'{PRIMARY_CALENDAR_ID}'"),
        nullable=False,
    )
    # NULL means "assume valid, do not proactively refresh"
    token_expires_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Scheduling policy (owned by tenant settings)
    default_duration_minutes: Mapped[int] = mapped_column(
        Integer,
        default=DEFAULT_DURATION_MINUTES,
        server_default=text(str(DEFAULT_DURATION_MINUTES)),
        nullable=False,
    )
    buffer_minutes: Mapped[int] = mapped_column(
        Integer,
        default=DEFAULT_BUFFER_MINUTES,
        server_default=text(str(DEFAULT_BUFFER_MINUTES)),
        nullable=False,
    )
    booking_window_days: Mapped[int] = mapped_column(
        Integer,
        default=DEFAULT_BOOKING_WINDOW_DAYS,
        server_default=text(str(DEFAULT_BOOKING_WINDOW_DAYS)),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )
    connected_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=_now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=_now_utc, onupdate=_now_utc, nullable=False
    )

    __table_args__ = (UniqueConstraint("tenant_id", name="uq_calendar_connections_tenant_id"),)
