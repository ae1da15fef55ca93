from collections.abc import Generator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import get_engine_config, get_settings
from app.db.session import SessionLocal
from app.services.session_resolver import SessionResolver
from app.services.timetable_model import EngineConfig


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_actor_id(x_actor_id: str | None = Header(default=None)) -> str:
    """Identity of the caller as asserted by the upstream application."""
    actor_id = (x_actor_id or "").strip()
    if not actor_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="X-Actor-Id header is required")
    return actor_id


def get_config() -> EngineConfig:
    return get_engine_config()


def get_session_resolver(config: EngineConfig = Depends(get_config)) -> SessionResolver:
    return SessionResolver(config, get_settings().school_timezone)
