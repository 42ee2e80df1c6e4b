"""Admin user management: list, create, edit, delete, roles and resolved permissions."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.v1.auth import get_credential_rules, require_admin
from app.core.database import get_db
from app.core.validation import CredentialRules
from app.schemas.auth import CurrentUser, ProfileResponse
from app.schemas.rbac import MessageResponse, PermissionCheckResponse, PermissionResponse
from app.schemas.users import (
    AdminUserCreate,
    AdminUserUpdate,
    PaginatedUsersResponse,
    UserListQuery,
    UserPermissionsResponse,
    UserRolesUpdate,
    UserSortField,
)
from app.services import users as user_service
from app.services.guards import check_role_update
from app.services.resolver import (
    get_permissions_for_user,
    has_permission,
    set_roles_for_user,
)

router = APIRouter()


@router.get("/users", response_model=PaginatedUsersResponse)
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    search: Annotated[str | None, Query(max_length=255)] = None,
    sort_by: UserSortField = "created_at",
    sort_desc: bool = False,
) -> PaginatedUsersResponse:
    """Page through active users; search matches email or name, case-insensitively."""
    params = UserListQuery(
        page=page, limit=limit, search=search, sort_by=sort_by, sort_desc=sort_desc
    )
    return user_service.list_users(db, params)


@router.post("/users", response_model=ProfileResponse, status_code=201)
def create_user(
    body: AdminUserCreate,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    rules: Annotated[CredentialRules, Depends(get_credential_rules)],
) -> ProfileResponse:
    return user_service.create_user(db, body, rules, granted_by=admin.id)


@router.put("/users/{user_id}", response_model=ProfileResponse)
def update_user(
    user_id: UUID,
    body: AdminUserUpdate,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    rules: Annotated[CredentialRules, Depends(get_credential_rules)],
) -> ProfileResponse:
    return user_service.update_user(db, user_id, body.to_updates(), rules)


@router.put("/users/{user_id}/roles", response_model=ProfileResponse)
def update_user_roles(
    user_id: UUID,
    body: UserRolesUpdate,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> ProfileResponse:
    """Replace the user's role set. Admins cannot drop their own admin role."""
    check_role_update(admin.id, admin.roles, user_id, body.roles)
    set_roles_for_user(db, user_id, body.roles, granted_by=admin.id)
    return user_service.get_profile(db, user_id)


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: UUID,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    user_service.delete_user(db, admin.id, user_id)
    return MessageResponse(message="User deleted successfully")


@router.get("/users/{user_id}/permissions", response_model=UserPermissionsResponse)
def get_user_permissions(
    user_id: UUID,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UserPermissionsResponse:
    user_service.get_user(db, user_id)
    permissions = [
        PermissionResponse.model_validate(p) for p in get_permissions_for_user(db, user_id)
    ]
    return UserPermissionsResponse(permissions=permissions, total=len(permissions))


@router.get(
    "/users/{user_id}/permissions/{permission}",
    response_model=PermissionCheckResponse,
)
def check_user_permission(
    user_id: UUID,
    permission: str,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> PermissionCheckResponse:
    user_service.get_user(db, user_id)
    return PermissionCheckResponse(
        user_id=user_id,
        permission=permission,
        has_permission=has_permission(db, user_id, permission),
    )
