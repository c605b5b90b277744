"""Google Calendar OAuth - consent URL, code exchange and token refresh."""

import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from agent_calendar.core.config import settings
from agent_calendar.services.http_service import provider_client, request_with_retries

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CALENDAR_SCOPES = [
    "https://www.googleapis.com/auth/calendar.readonly",
    "https://www.googleapis.com/auth/calendar.events",
]


def get_authorization_url(state: str) -> str:
    """Generate the Google consent URL (offline access, forced consent)."""
    params = {
        "client_id": settings.GOOGLE_CALENDAR_CLIENT_ID,
        "redirect_uri": settings.GOOGLE_CALENDAR_REDIRECT_URI,
        "response_type": "code",
        "scope": " ".join(GOOGLE_CALENDAR_SCOPES),
        "access_type": "offline",
        "prompt": "consent",
        "state": state,
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


async def exchange_code_for_tokens(code: str) -> dict[str, Any]:
    """
    Exchange authorization code for tokens.

    Raises:
        httpx.HTTPStatusError: If token exchange fails
    """
    async with provider_client() as client:
        response = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "client_id": settings.GOOGLE_CALENDAR_CLIENT_ID,
                "client_secret": settings.GOOGLE_CALENDAR_CLIENT_SECRET,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": settings.GOOGLE_CALENDAR_REDIRECT_URI,
            },
        )
        response.raise_for_status()
        return response.json()


async def refresh_access_token(refresh_token: str) -> dict[str, Any] | None:
    """Refresh a Google access token. Returns None on any failure."""
    try:
        async with provider_client() as client:
            response = await request_with_retries(
                lambda: client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "client_id": settings.GOOGLE_CALENDAR_CLIENT_ID,
                        "client_secret": settings.GOOGLE_CALENDAR_CLIENT_SECRET,
                        "refresh_token": refresh_token,
                        "grant_type": "refresh_token",
                    },
                ),
                operation="token_refresh",
            )
            response.raise_for_status()
            payload = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Google Calendar token refresh failed: {e}")
        return None

    if not isinstance(payload, dict) or not payload.get("access_token"):
        logger.error("Google Calendar token refresh returned no access token")
        return None
    return payload
