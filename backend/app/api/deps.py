from __future__ import annotations

from fastapi import Header, HTTPException, status

from app.core.config import get_settings
from app.db.session import get_db

__all__ = ["get_db", "require_admin"]


def require_admin(x_admin_token: str | None = Header(default=None)) -> None:
    settings = get_settings()
    if not x_admin_token or x_admin_token != settings.ADMIN_TOKEN:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_admin_token")
