"""Voice agent tool router - calendar functions invoked mid-call.

The voice platform posts tool calls here and speaks the returned `result`
verbatim, so every branch answers 200 with a complete sentence.

POST /tools/calendar?tenant_id=xxx
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from agent_calendar.core.deps import get_db, verify_tool_secret
from agent_calendar.core.structured_logging import build_log_context
from agent_calendar.schemas.calendar import (
    BookingError,
    BookingRequest,
    ToolCall,
    ToolCallResponse,
    ToolCallResult,
)
from agent_calendar.services import availability_service, booking_service
from agent_calendar.services.availability_service import InvalidRequestError
from agent_calendar.services.calendar_service import ProviderAPIError

router = APIRouter(prefix="/tools", tags=["tools"])
logger = logging.getLogger(__name__)

CHECK_AVAILABILITY = "check_availability"
BOOK_APPOINTMENT = "book_appointment"

MSG_MISSING_TENANT = "Configuration error. Unable to access the calendar."
MSG_CANNOT_CHECK = (
    "I'm unable to check our schedule right now. Let me take your information "
    "and have someone call you back to schedule."
)
MSG_NO_SLOTS = (
    "I wasn't able to find any available slots in that time range. "
    "Would you like me to check a different date?"
)
MSG_BAD_DATE = "I didn't catch that date. Could you tell me the day you'd like again?"
MSG_MISSING_BOOKING_FIELDS = (
    "I need the date, time, your name, and phone number to book the appointment. "
    "Could you provide those details?"
)
MSG_CANNOT_BOOK = (
    "I'm unable to book appointments online right now. Let me take your information "
    "and have someone call you back to confirm the appointment."
)
MSG_BAD_TIME = "I didn't catch that date and time. Could you repeat when you'd like to come in?"
MSG_BOOKING_FAILED = (
    "There was an issue booking the appointment. Let me take your information "
    "and have someone confirm with you."
)
MSG_UNKNOWN_FUNCTION = "I'm not sure how to help with that. Let me connect you with someone."
MSG_UNEXPECTED_ERROR = (
    "I'm having trouble with our scheduling system right now. Let me take your "
    "information and have someone follow up with you."
)


# ============================================================================
# Helpers
# ============================================================================

def _reply(tool_call_id: str | None, result: str) -> ToolCallResponse:
    return ToolCallResponse(results=[ToolCallResult(toolCallId=tool_call_id, result=result)])


def _coerce_arguments(raw: Any) -> dict[str, Any]:
    """Arguments arrive as a dict or as a JSON-encoded string."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw) if raw.strip() else {}
        except ValueError:
            return {}
    return raw if isinstance(raw, dict) else {}


def parse_tool_call(body: dict[str, Any]) -> ToolCall:
    """Extract the first tool call from the webhook payload."""
    message = body.get("message") or {}
    tool_calls = message.get("toolCallList") or []
    call = tool_calls[0] if tool_calls else message
    if not isinstance(call, dict):
        return ToolCall()

    function = call.get("function") or {}
    function_call = call.get("functionCall") or {}
    name = function_call.get("name") or function.get("name") or call.get("name")
    raw_args = (
        function_call.get("parameters")
        or function.get("arguments")
        or call.get("parameters")
        or {}
    )
    return ToolCall(id=call.get("id"), name=name, arguments=_coerce_arguments(raw_args))


def _optional_positive_int(value: Any) -> int | None:
    try:
        number = int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None
    return number if number and number > 0 else None


# ============================================================================
# Tool Handlers
# ============================================================================

async def _check_availability(db: Session, tenant_id: str, call: ToolCall) -> str:
    args = call.arguments
    try:
        result = await availability_service.find_slots(
            db,
            tenant_id,
            preferred_date=args.get("preferred_date") or None,
            duration_minutes=_optional_positive_int(args.get("duration_minutes")),
        )
    except InvalidRequestError:
        return MSG_BAD_DATE
    except ProviderAPIError as exc:
        logger.warning(
            f"Availability lookup failed: {exc}",
            extra=build_log_context(tenant_id=tenant_id, operation=CHECK_AVAILABILITY),
        )
        return MSG_CANNOT_CHECK

    if result is None:
        return MSG_CANNOT_CHECK
    if not result.slots:
        return MSG_NO_SLOTS
    return f"Available slots: {result.formatted}. Which time works best for you?"


async def _book_appointment(db: Session, tenant_id: str, call: ToolCall) -> str:
    args = call.arguments
    required = ("date", "time", "customer_name", "customer_phone")
    if not all(args.get(key) for key in required):
        return MSG_MISSING_BOOKING_FIELDS

    try:
        request = BookingRequest(
            tenant_id=tenant_id,
            preferred_date=str(args["date"]),
            preferred_time=str(args["time"]),
            customer_name=str(args["customer_name"]),
            customer_phone=str(args["customer_phone"]),
            service_type=args.get("service_type") or None,
            notes=args.get("notes") or None,
        )
    except ValidationError:
        return MSG_MISSING_BOOKING_FIELDS

    result = await booking_service.create_event(db, tenant_id, request)
    if result.success:
        return f"Your appointment has been booked for {result.formatted}. You're all set!"
    if result.error == BookingError.NOT_CONNECTED:
        return MSG_CANNOT_BOOK
    if result.error == BookingError.INVALID_REQUEST:
        return MSG_BAD_TIME
    return MSG_BOOKING_FAILED


# ============================================================================
# Endpoint
# ============================================================================

@router.post(
    "/calendar",
    response_model=ToolCallResponse,
    dependencies=[Depends(verify_tool_secret)],
)
async def calendar_tool(
    request: Request,
    tenant_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    """Dispatch check_availability / book_appointment tool calls."""
    call = ToolCall()
    try:
        if not tenant_id:
            return _reply(None, MSG_MISSING_TENANT)

        body = await request.json()
        call = parse_tool_call(body if isinstance(body, dict) else {})

        if call.name == CHECK_AVAILABILITY:
            return _reply(call.id, await _check_availability(db, tenant_id, call))
        if call.name == BOOK_APPOINTMENT:
            return _reply(call.id, await _book_appointment(db, tenant_id, call))
        return _reply(call.id, MSG_UNKNOWN_FUNCTION)
    except Exception:
        logger.exception(
            "Calendar tool call failed",
            extra=build_log_context(tenant_id=tenant_id, operation=call.name),
        )
        return _reply(call.id, MSG_UNEXPECTED_ERROR)
