"""Request/response schemas for admin user management."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator

from app.schemas.auth import ProfileResponse
from app.schemas.rbac import PermissionResponse
from app.schemas.updates import SetCompany, SetEmail, SetName, SetPhone, UserFieldUpdate

UserSortField = Literal["created_at", "updated_at", "email", "name"]


class AdminUserCreate(BaseModel):
    """Admin-created account; roles default to ['user'] when omitted or empty."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    company: str | None = Field(default=None, max_length=255)
    roles: list[str] | None = None


class AdminUserUpdate(BaseModel):
    """Admin edit of a user record; only fields present are changed. Email and name cannot be cleared."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    company: str | None = Field(default=None, max_length=255)

    @field_validator("email", "name")
    @classmethod
    def not_null(cls, v: str | None, info: ValidationInfo) -> str:
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    def to_updates(self) -> list[UserFieldUpdate]:
        fields = self.model_fields_set
        updates: list[UserFieldUpdate] = []
        if "email" in fields and self.email is not None:
            updates.append(SetEmail(self.email))
        if "name" in fields and self.name is not None:
            updates.append(SetName(self.name))
        if "phone" in fields:
            updates.append(SetPhone(self.phone or None))
        if "company" in fields:
            updates.append(SetCompany(self.company or None))
        return updates


class UserRolesUpdate(BaseModel):
    """Complete new role set for a user (replaces all current grants)."""

    roles: list[str] = Field(..., min_length=1)


class UserListQuery(BaseModel):
    """Pagination, search and sort for GET /admin/users."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    search: str | None = Field(default=None, max_length=255)
    sort_by: UserSortField = "created_at"
    sort_desc: bool = False


class PaginatedUsersResponse(BaseModel):
    users: list[ProfileResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class UserPermissionsResponse(BaseModel):
    permissions: list[PermissionResponse]
    total: int
