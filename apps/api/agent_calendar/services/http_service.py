"""HTTP helpers with retry/backoff for calendar provider calls."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable

import httpx

from agent_calendar.core.config import settings

logger = logging.getLogger(__name__)

DEFAULT_RETRY_STATUSES = {429, 500, 502, 503, 504}


def provider_client() -> httpx.AsyncClient:
    """AsyncClient with the configured provider timeout."""
    return httpx.AsyncClient(timeout=settings.PROVIDER_TIMEOUT_SECONDS)


def _backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    delay = min(max_delay, base_delay * (2**attempt))
    if delay:
        delay = delay + random.uniform(0, delay / 2)
    return delay


async def request_with_retries(
    request_fn: Callable[[], Awaitable[httpx.Response]],
    *,
    operation: str = "request",
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 4.0,
    retry_statuses: set[int] | None = None,
) -> httpx.Response:
    """Execute a provider request with exponential backoff retries.

    Transport errors are re-raised after the final attempt; a retryable
    status on the final attempt is returned to the caller as-is.
    """
    statuses = retry_statuses or DEFAULT_RETRY_STATUSES

    for attempt in range(max_attempts):
        try:
            response = await request_fn()
        except httpx.RequestError as exc:
            if attempt >= max_attempts - 1:
                raise
            delay = _backoff_delay(attempt, base_delay, max_delay)
            logger.warning(
                "Calendar provider %s failed, retrying",
                operation,
                exc_info=exc,
                extra={"operation": operation, "attempt": attempt + 1},
            )
            if delay:
                await asyncio.sleep(delay)
            continue

        if response.status_code in statuses and attempt < max_attempts - 1:
            delay = _backoff_delay(attempt, base_delay, max_delay)
            logger.warning(
                "Calendar provider %s returned %s, retrying",
                operation,
                response.status_code,
                extra={"operation": operation, "attempt": attempt + 1},
            )
            if delay:
                await asyncio.sleep(delay)
            continue

        return response

    return response
