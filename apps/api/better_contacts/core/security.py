from __future__ import annotations

from fastapi import Header, HTTPException, status

from better_contacts.core.config import Settings


def verify_api_secret(settings: Settings, secret_header: str | None) -> None:
    if not settings.api_shared_secret:
        return
    if not secret_header:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API secret",
        )
    if secret_header != settings.api_shared_secret:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API secret",
        )


def api_secret_header(x_api_secret: str | None = Header(default=None)) -> str | None:
    return x_api_secret


def current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    # Identity is established upstream by the hosted auth provider.
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return user_id
