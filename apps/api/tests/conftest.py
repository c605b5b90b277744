"""
Test configuration and fixtures.

Provides:
- In-memory SQLite session with a fresh schema per test
- Calendar connection factory
- HTTPX AsyncClient bound to the app with the test session
"""
import os
from datetime import datetime
from typing import AsyncGenerator, Callable, Generator

import pytest
from cryptography.fernet import Fernet
from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import Session

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["FERNET_KEY"] = Fernet.generate_key().decode()
os.environ["TOOL_SECRET"] = "tool-secret"
os.environ["BUSINESS_TIMEZONE"] = "UTC"
os.environ["GOOGLE_CALENDAR_CLIENT_ID"] = "test-client-id"
os.environ["GOOGLE_CALENDAR_CLIENT_SECRET"] = "test-client-secret"
os.environ["JWT_SECRET"] = "test-jwt-secret"

from agent_calendar.main import app
from agent_calendar.core.deps import get_db
from agent_calendar.db.base import Base
from agent_calendar.db.models import CalendarConnection
from agent_calendar.db.session import engine, SessionLocal


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Creates a database session on a fresh schema.

    App code may call commit(); the schema is dropped after each test.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    
    yield session
    
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def make_connection(db: Session) -> Callable[..., CalendarConnection]:
    """Factory for calendar connections (active, non-expiring token by default)."""

    def _make(
        tenant_id: str = "tenant-1",
        access_token: str | None = "access-token",
        refresh_token: str | None = "refresh-token",
        token_expires_at: datetime | None = None,
        **overrides,
    ) -> CalendarConnection:
        connection = CalendarConnection(
            tenant_id=tenant_id,
            access_token=access_token,
            refresh_token=refresh_token,
            token_expires_at=token_expires_at,
            **overrides,
        )
        db.add(connection)
        db.commit()
        db.refresh(connection)
        return connection

    return _make


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    Create AsyncClient for testing endpoints against the test session.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    
    async with AsyncClient(
        transport=ASGITransport(app=app), 
        base_url="http://test"
    ) as c:
        yield c
    
    app.dependency_overrides.clear()
