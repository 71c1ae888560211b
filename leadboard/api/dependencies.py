"""Shared API dependencies."""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from leadboard.backend.client import BackendClient
from leadboard.core.exceptions import SessionNotFoundError
from leadboard.pages.sessions import PageSession, PageSessionManager

AUTH_SCHEME = HTTPBearer(auto_error=False)


def get_backend(request: Request) -> BackendClient:
    return request.app.state.backend


def get_page_manager(request: Request) -> PageSessionManager:
    return request.app.state.page_manager


def get_access_token(
    creds: HTTPAuthorizationCredentials | None = Depends(AUTH_SCHEME),
) -> Optional[str]:
    """Caller's bearer token, forwarded as-is. Row policies in the database decide access."""
    if creds is None or not creds.credentials:
        return None
    return creds.credentials


def get_user_backend(
    backend: BackendClient = Depends(get_backend),
    access_token: Optional[str] = Depends(get_access_token),
) -> BackendClient:
    return backend.for_access_token(access_token)


def get_page_session(
    session_id: str,
    access_token: Optional[str] = Depends(get_access_token),
    manager: PageSessionManager = Depends(get_page_manager),
) -> PageSession:
    """Page session addressed by the path, usable only with the token that opened it."""
    try:
        session = manager.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Page session not found")
    if not session.opened_by(access_token):
        if access_token is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Missing authorization token",
            )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Page session belongs to another caller",
        )
    session.touch()
    return session


__all__ = [
    "get_access_token",
    "get_backend",
    "get_page_manager",
    "get_page_session",
    "get_user_backend",
]
