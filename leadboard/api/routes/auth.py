from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from leadboard.api.dependencies import get_access_token, get_backend, get_user_backend
from leadboard.backend.client import BackendClient
from leadboard.core.exceptions import BackendError
from leadboard.schemas.auth import LoginRequest, LoginResponse, SessionPayload, UserOut
from leadboard.schemas.user import UserRole

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, backend: BackendClient = Depends(get_backend)) -> LoginResponse:
    try:
        raw = await backend.sign_in_with_password(payload.email.strip().lower(), payload.password)
    except BackendError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    session = SessionPayload.model_validate(raw)
    user = await _describe_user(backend.for_access_token(session.access_token), session.user)
    return LoginResponse(
        access_token=session.access_token,
        token_type=session.token_type,
        expires_in=session.expires_in,
        refresh_token=session.refresh_token,
        user=user,
    )


@router.post("/logout")
async def logout(
    access_token: Optional[str] = Depends(get_access_token),
    backend: BackendClient = Depends(get_user_backend),
) -> dict:
    if access_token:
        try:
            await backend.sign_out()
        except BackendError as exc:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return {"success": True}


@router.get("/me", response_model=UserOut)
async def me(
    access_token: Optional[str] = Depends(get_access_token),
    backend: BackendClient = Depends(get_user_backend),
) -> UserOut:
    if not access_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization token",
        )
    try:
        auth_user = await backend.get_user()
    except BackendError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token"
        )
    return await _describe_user(backend, auth_user)


async def _describe_user(backend: BackendClient, auth_user: dict) -> UserOut:
    """Combine the auth identity with the caller's role from the users table, when visible."""
    user_id = str(auth_user.get("id", ""))
    role = None
    if user_id:
        try:
            rows = await backend.select_all("users", order_by=None, match={"id": user_id})
        except BackendError:
            rows = []
        if rows and rows[0].get("role") in {r.value for r in UserRole}:
            role = UserRole(rows[0]["role"])
    return UserOut(id=user_id, email=auth_user.get("email"), role=role)
