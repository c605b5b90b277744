"""Google Calendar consent flow router.

GET /integrations/google-calendar/authorize?tenant_id=xxx
GET /integrations/google-calendar/callback?code=xxx&state=yyy
"""
import logging
from urllib.parse import quote

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from agent_calendar.core.config import settings
from agent_calendar.core.deps import get_db
from agent_calendar.core.security import create_oauth_state, parse_oauth_state
from agent_calendar.core.structured_logging import build_log_context
from agent_calendar.services import calendar_connection_service, google_oauth

router = APIRouter(prefix="/integrations", tags=["Integrations"])
logger = logging.getLogger(__name__)


def _settings_redirect(tenant_id: str | None, query: str) -> RedirectResponse:
    base = settings.FRONTEND_URL.rstrip("/")
    if tenant_id:
        url = f"{base}/client/{quote(tenant_id, safe='')}/settings/integrations?{query}"
    else:
        url = f"{base}/?{query}"
    return RedirectResponse(url=url, status_code=302)


@router.get("/google-calendar/authorize")
def authorize_google_calendar(tenant_id: str = Query(..., min_length=1)):
    """Redirect the tenant admin to Google's consent screen."""
    if not settings.GOOGLE_CALENDAR_CLIENT_ID:
        raise HTTPException(status_code=501, detail="Google Calendar OAuth not configured")
    state = create_oauth_state(tenant_id)
    return RedirectResponse(url=google_oauth.get_authorization_url(state), status_code=302)


@router.get("/google-calendar/callback")
async def google_calendar_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
):
    """Exchange the authorization code and store the tenant's connection."""
    tenant_id = parse_oauth_state(state) if state else None

    if error:
        # User denied access
        return _settings_redirect(tenant_id, "error=denied")

    if not tenant_id:
        return _settings_redirect(None, "error=invalid_state")

    if not code:
        raise HTTPException(status_code=400, detail="Missing authorization code")

    try:
        tokens = await google_oauth.exchange_code_for_tokens(code)
        calendar_connection_service.save_connection(
            db,
            tenant_id=tenant_id,
            access_token=tokens["access_token"],
            refresh_token=tokens.get("refresh_token"),
            expires_in=tokens.get("expires_in"),
        )
    except (httpx.HTTPError, KeyError) as exc:
        logger.error(
            f"Google Calendar callback failed: {exc}",
            extra=build_log_context(tenant_id=tenant_id, operation="oauth_callback"),
        )
        return _settings_redirect(tenant_id, "error=failed")

    return _settings_redirect(tenant_id, "success=calendar")
