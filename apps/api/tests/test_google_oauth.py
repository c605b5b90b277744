"""Tests for Google Calendar OAuth helpers."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from agent_calendar.services import google_oauth


def _use_transport(monkeypatch, handler):
    def factory():
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    monkeypatch.setattr(google_oauth, "provider_client", factory)


def test_authorization_url_requests_offline_calendar_access():
    url = google_oauth.get_authorization_url("state-123")

    parsed = urlparse(url)
    qs = parse_qs(parsed.query)
    assert parsed.netloc == "accounts.google.com"
    assert qs["state"] == ["state-123"]
    assert qs["access_type"] == ["offline"]
    assert qs["prompt"] == ["consent"]
    assert qs["client_id"] == ["test-client-id"]
    scopes = qs["scope"][0].split(" ")
    assert "https://www.googleapis.com/auth/calendar.readonly" in scopes
    assert "https://www.googleapis.com/auth/calendar.events" in scopes


@pytest.mark.asyncio
async def test_refresh_access_token_posts_refresh_grant(monkeypatch):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["form"] = parse_qs(request.content.decode())
        return httpx.Response(200, json={"access_token": "new-token", "expires_in": 3599})

    _use_transport(monkeypatch, handler)

    result = await google_oauth.refresh_access_token("refresh-1")

    assert result == {"access_token": "new-token", "expires_in": 3599}
    assert seen["form"]["grant_type"] == ["refresh_token"]
    assert seen["form"]["refresh_token"] == ["refresh-1"]
    assert seen["form"]["client_secret"] == ["test-client-secret"]


@pytest.mark.asyncio
async def test_refresh_access_token_rejected_returns_none(monkeypatch):
    _use_transport(
        monkeypatch,
        lambda request: httpx.Response(400, json={"error": "invalid_grant"}),
    )

    assert await google_oauth.refresh_access_token("revoked") is None


@pytest.mark.asyncio
async def test_refresh_access_token_missing_token_returns_none(monkeypatch):
    _use_transport(monkeypatch, lambda request: httpx.Response(200, json={"expires_in": 3600}))

    assert await google_oauth.refresh_access_token("refresh-1") is None


@pytest.mark.asyncio
async def test_exchange_code_for_tokens_raises_on_failure(monkeypatch):
    _use_transport(monkeypatch, lambda request: httpx.Response(400, json={"error": "bad_code"}))

    with pytest.raises(httpx.HTTPStatusError):
        await google_oauth.exchange_code_for_tokens("bad")
