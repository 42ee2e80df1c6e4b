"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AuthResponse,
    CurrentUser,
    LoginRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    RegisterRequest,
)
from app.schemas.health import HealthResponse
from app.schemas.rbac import (
    MessageResponse,
    PermissionResponse,
    RoleResponse,
)
from app.schemas.updates import SetCompany, SetEmail, SetName, SetPhone, UserFieldUpdate

__all__ = [
    "AuthResponse",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "PermissionResponse",
    "ProfileResponse",
    "ProfileUpdateRequest",
    "RegisterRequest",
    "RoleResponse",
    "SetCompany",
    "SetEmail",
    "SetName",
    "SetPhone",
    "UserFieldUpdate",
]
