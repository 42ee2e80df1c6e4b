"""Admin role catalog endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.auth import require_admin
from app.core.database import get_db
from app.schemas.auth import CurrentUser
from app.schemas.rbac import (
    MessageResponse,
    PermissionResponse,
    PermissionsListResponse,
    RoleCreate,
    RolePermissionsUpdate,
    RoleResponse,
    RolesListResponse,
    RoleUpdate,
)
from app.services import catalog

router = APIRouter()


@router.get("/roles", response_model=RolesListResponse)
def list_roles(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> RolesListResponse:
    roles = [RoleResponse.model_validate(r) for r in catalog.list_roles(db)]
    return RolesListResponse(roles=roles, total=len(roles))


@router.post("/roles", response_model=RoleResponse, status_code=201)
def create_role(
    body: RoleCreate,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> RoleResponse:
    return RoleResponse.model_validate(catalog.create_role(db, body))


@router.get("/roles/{role_id}", response_model=RoleResponse)
def get_role(
    role_id: UUID,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> RoleResponse:
    return RoleResponse.model_validate(catalog.get_role(db, role_id))


@router.put("/roles/{role_id}", response_model=RoleResponse)
def update_role(
    role_id: UUID,
    body: RoleUpdate,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> RoleResponse:
    return RoleResponse.model_validate(catalog.update_role(db, role_id, body))


@router.delete("/roles/{role_id}", response_model=MessageResponse)
def delete_role(
    role_id: UUID,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Delete a role with its grants and permission links. 'admin' and 'user' cannot be deleted."""
    catalog.delete_role(db, role_id)
    return MessageResponse(message="Role deleted successfully")


@router.get("/roles/{role_id}/permissions", response_model=PermissionsListResponse)
def get_role_permissions(
    role_id: UUID,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> PermissionsListResponse:
    _, permissions = catalog.get_role_with_permissions(db, role_id)
    return PermissionsListResponse(
        permissions=[PermissionResponse.model_validate(p) for p in permissions],
        total=len(permissions),
    )


@router.put("/roles/{role_id}/permissions", response_model=RoleResponse)
def update_role_permissions(
    role_id: UUID,
    body: RolePermissionsUpdate,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> RoleResponse:
    """Replace the role's permission set with exactly permission_ids."""
    role = catalog.set_role_permissions(db, role_id, body.permission_ids)
    return RoleResponse.model_validate(role)
