from __future__ import annotations

from collections.abc import Generator
from datetime import datetime, timezone

from fastapi import Depends

from better_contacts.core.config import Settings, get_settings
from better_contacts.core.security import api_secret_header, current_user_id, verify_api_secret
from better_contacts.db.pg.session import SessionLocal


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_settings_dep() -> Settings:
    return get_settings()


def get_now() -> datetime:
    return datetime.now(timezone.utc)


def get_user_id(
    settings: Settings = Depends(get_settings_dep),
    x_api_secret: str | None = Depends(api_secret_header),
    user_id: str = Depends(current_user_id),
) -> str:
    verify_api_secret(settings, x_api_secret)
    return user_id
