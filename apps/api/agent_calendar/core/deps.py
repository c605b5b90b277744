"""FastAPI dependencies for database access and tool authentication."""

from typing import Generator

from fastapi import Header, HTTPException
from sqlalchemy.orm import Session

from agent_calendar.core.config import settings
from agent_calendar.core.security import verify_secret
from agent_calendar.db.session import SessionLocal


TOOL_SECRET_HEADER = "X-Tool-Secret"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.
    
    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def verify_tool_secret(
    x_tool_secret: str | None = Header(default=None, alias=TOOL_SECRET_HEADER),
) -> None:
    """
    Verify the shared secret sent by the voice platform.

    Open when TOOL_SECRET is not configured (local development).
    """
    if not settings.TOOL_SECRET:
        return
    if not verify_secret(x_tool_secret, settings.TOOL_SECRET):
        raise HTTPException(status_code=403, detail="Invalid tool secret")
