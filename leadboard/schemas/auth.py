from typing import Any, Optional

from pydantic import BaseModel

from leadboard.schemas.user import UserRole


class LoginRequest(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    id: str
    email: Optional[str] = None
    role: Optional[UserRole] = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    refresh_token: Optional[str] = None
    user: UserOut


class SessionPayload(BaseModel):
    """Raw session returned by the auth service."""

    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    refresh_token: Optional[str] = None
    user: dict[str, Any] = {}
