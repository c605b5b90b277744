"""Security helpers for shared secrets and OAuth state."""

import hmac
from datetime import datetime, timedelta, timezone

import jwt

from agent_calendar.core.config import settings

OAUTH_STATE_MAX_AGE = timedelta(minutes=10)
OAUTH_STATE_AUDIENCE = "google-calendar-consent"


def verify_secret(provided: str | None, expected: str | None) -> bool:
    """Constant-time comparison that rejects empty values."""
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())


def create_oauth_state(tenant_id: str) -> str:
    """Sign a short-lived state value binding the consent round-trip to a tenant."""
    now = datetime.now(timezone.utc)
    payload = {
        "tenant_id": tenant_id,
        "aud": OAUTH_STATE_AUDIENCE,
        "iat": now,
        "exp": now + OAUTH_STATE_MAX_AGE,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def parse_oauth_state(state: str) -> str | None:
    """Return the tenant id from a valid state value, or None."""
    try:
        payload = jwt.decode(
            state,
            settings.JWT_SECRET,
            algorithms=["HS256"],
            audience=OAUTH_STATE_AUDIENCE,
        )
    except jwt.PyJWTError:
        return None
    tenant_id = payload.get("tenant_id")
    return tenant_id if isinstance(tenant_id, str) and tenant_id else None
