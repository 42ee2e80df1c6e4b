"""Request/response schemas for roles, permissions and permission checks."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PermissionCreate(BaseModel):
    """Body for POST /admin/permissions."""

    name: str = Field(..., min_length=3, max_length=100, description="Unique name, e.g. 'users.read'")
    resource: str = Field(..., min_length=2, max_length=100)
    action: str = Field(..., min_length=2, max_length=50)
    description: str | None = None


class PermissionUpdate(BaseModel):
    """Body for PUT /admin/permissions/{id}; only fields present are changed."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=3, max_length=100)
    resource: str | None = Field(default=None, min_length=2, max_length=100)
    action: str | None = Field(default=None, min_length=2, max_length=50)
    description: str | None = None


class PermissionResponse(BaseModel):
    """Permission as returned to admins."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    resource: str
    action: str
    description: str | None
    created_at: datetime
    updated_at: datetime


class PermissionsListResponse(BaseModel):
    permissions: list[PermissionResponse]
    total: int


class RoleCreate(BaseModel):
    """Body for POST /admin/roles. New roles start with no permissions."""

    name: str = Field(..., min_length=2, max_length=50)
    description: str | None = None


class RoleUpdate(BaseModel):
    """Body for PUT /admin/roles/{id}; only fields present are changed."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=2, max_length=50)
    description: str | None = None


class RoleResponse(BaseModel):
    """Role with its permissions."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    permissions: list[PermissionResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class RolesListResponse(BaseModel):
    roles: list[RoleResponse]
    total: int


class RolePermissionsUpdate(BaseModel):
    """Body for PUT /admin/roles/{id}/permissions: the complete new permission set."""

    permission_ids: list[UUID] = Field(..., min_length=1)


class PermissionCheckResponse(BaseModel):
    """Answer to 'does user U hold permission P?'."""

    user_id: UUID
    permission: str
    has_permission: bool


class MessageResponse(BaseModel):
    message: str
