"""Structured logging helpers (token- and PII-safe)."""

from typing import Any


def build_log_context(
    *,
    tenant_id: str | None = None,
    calendar_id: str | None = None,
    operation: str | None = None,
    status_code: int | None = None,
) -> dict[str, Any]:
    """Return a log context dict that never carries credentials or customer data."""
    context: dict[str, Any] = {}
    if tenant_id:
        context["tenant_id"] = tenant_id
    if calendar_id:
        context["calendar_id"] = calendar_id
    if operation:
        context["operation"] = operation
    if status_code is not None:
        context["status_code"] = status_code
    return context
