"""Calendar schemas - Pydantic models for availability, booking and settings."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


# =============================================================================
# Provider Data
# =============================================================================

class BusyInterval(BaseModel):
    """A [start, end) range the provider reports as occupied."""
    start: datetime
    end: datetime


# =============================================================================
# Availability
# =============================================================================

class AvailabilityResult(BaseModel):
    """Bookable candidate slots for a tenant."""
    slots: list[str]  # ISO-8601, chronological
    formatted: str  # Spoken rendering, never empty


# =============================================================================
# Booking
# =============================================================================

class BookingError(str, Enum):
    """Typed booking failures."""

    NOT_CONNECTED = "NotConnected"
    PROVIDER_API_ERROR = "ProviderAPIError"
    INVALID_REQUEST = "InvalidRequest"


class BookingRequest(BaseModel):
    """A confirmed slot the agent wants to book."""
    tenant_id: str
    preferred_date: str  # YYYY-MM-DD
    preferred_time: str  # HH:MM or H:MM AM/PM
    duration_minutes: int | None = None  # Ignored for the created event
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=1)
    service_type: str | None = None
    notes: str | None = None


class BookingResult(BaseModel):
    """Outcome of an event creation."""
    success: bool
    event_id: str | None = None
    formatted: str | None = None
    error: BookingError | None = None


# =============================================================================
# Connection Settings
# =============================================================================

class CalendarSettingsUpdate(BaseModel):
    """Schema for updating a tenant's scheduling policy."""
    default_duration_minutes: int | None = Field(None, ge=15, le=480)
    buffer_minutes: int | None = Field(None, ge=0, le=120)
    booking_window_days: int | None = Field(None, ge=1, le=90)
    calendar_id: str | None = Field(None, min_length=1, max_length=255)


class CalendarConnectionStatus(BaseModel):
    """Connection status for a tenant (never exposes tokens)."""
    tenant_id: str
    connected: bool
    connected_at: datetime | None = None
    calendar_id: str | None = None
    default_duration_minutes: int | None = None
    buffer_minutes: int | None = None
    booking_window_days: int | None = None


# =============================================================================
# Voice Tool Webhook
# =============================================================================

class ToolCallResult(BaseModel):
    """A single spoken tool result."""
    toolCallId: str | None = None
    result: str


class ToolCallResponse(BaseModel):
    """Envelope the voice platform expects back."""
    results: list[ToolCallResult]


class ToolCall(BaseModel):
    """Normalized tool invocation extracted from the webhook payload."""
    id: str | None = None
    name: str | None = None
    arguments: dict[str, Any] = Field(default_factory=dict)
