"""Admin permission catalog endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.auth import require_admin
from app.core.database import get_db
from app.schemas.auth import CurrentUser
from app.schemas.rbac import (
    MessageResponse,
    PermissionCreate,
    PermissionResponse,
    PermissionsListResponse,
    PermissionUpdate,
)
from app.services import catalog

router = APIRouter()


@router.get("/permissions", response_model=PermissionsListResponse)
def list_permissions(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> PermissionsListResponse:
    permissions = [PermissionResponse.model_validate(p) for p in catalog.list_permissions(db)]
    return PermissionsListResponse(permissions=permissions, total=len(permissions))


@router.post("/permissions", response_model=PermissionResponse, status_code=201)
def create_permission(
    body: PermissionCreate,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> PermissionResponse:
    return PermissionResponse.model_validate(catalog.create_permission(db, body))


@router.get("/permissions/{permission_id}", response_model=PermissionResponse)
def get_permission(
    permission_id: UUID,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> PermissionResponse:
    return PermissionResponse.model_validate(catalog.get_permission(db, permission_id))


@router.put("/permissions/{permission_id}", response_model=PermissionResponse)
def update_permission(
    permission_id: UUID,
    body: PermissionUpdate,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> PermissionResponse:
    return PermissionResponse.model_validate(
        catalog.update_permission(db, permission_id, body)
    )


@router.delete("/permissions/{permission_id}", response_model=MessageResponse)
def delete_permission(
    permission_id: UUID,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    catalog.delete_permission(db, permission_id)
    return MessageResponse(message="Permission deleted successfully")
