"""Tenant calendar settings router.

Connection status, scheduling policy and disconnect for one tenant.
Caller authentication is handled by the host application in front of
this service.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from agent_calendar.core.deps import get_db
from agent_calendar.schemas.calendar import CalendarConnectionStatus, CalendarSettingsUpdate
from agent_calendar.services import calendar_connection_service

router = APIRouter(prefix="/tenants", tags=["calendar-settings"])


@router.get("/{tenant_id}/calendar", response_model=CalendarConnectionStatus)
def get_calendar_status(tenant_id: str, db: Session = Depends(get_db)):
    """Get the tenant's calendar connection status and policy."""
    return calendar_connection_service.get_status(db, tenant_id)


@router.patch("/{tenant_id}/calendar", response_model=CalendarConnectionStatus)
def update_calendar_settings(
    tenant_id: str,
    data: CalendarSettingsUpdate,
    db: Session = Depends(get_db),
):
    """Update duration, buffer, booking window or calendar id."""
    connection = calendar_connection_service.update_settings(db, tenant_id, data)
    if not connection:
        raise HTTPException(status_code=404, detail="Calendar not connected")
    return calendar_connection_service.get_status(db, tenant_id)


@router.delete("/{tenant_id}/calendar")
def disconnect_calendar(tenant_id: str, db: Session = Depends(get_db)):
    """Disconnect the tenant's calendar (soft delete, credentials cleared)."""
    if not calendar_connection_service.disconnect(db, tenant_id):
        raise HTTPException(status_code=404, detail="Calendar not connected")
    return {"success": True}
