"""Role/permission catalog: CRUD for roles and permissions and the role->permission links."""

import logging
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.errors import NotFoundError, ValidationFailedError
from app.models import Permission, Role, RolePermission, UserRole
from app.schemas.rbac import PermissionCreate, PermissionUpdate, RoleCreate, RoleUpdate
from app.services.guards import (
    SYSTEM_ROLES,
    check_permission_change,
    check_role_delete,
    check_role_permissions,
)

logger = logging.getLogger(__name__)

ROLE_CONFLICT = "Role name already exists"
PERMISSION_CONFLICT = "Permission name already exists"


def list_roles(db: Session) -> list[Role]:
    return db.query(Role).order_by(Role.name).all()


def get_role(db: Session, role_id: UUID) -> Role:
    role = db.query(Role).filter(Role.id == role_id).first()
    if role is None:
        raise NotFoundError("Role not found")
    return role


def get_role_by_name(db: Session, name: str) -> Role:
    role = db.query(Role).filter(Role.name == name).first()
    if role is None:
        raise NotFoundError("Role not found")
    return role


def get_role_with_permissions(db: Session, role_id: UUID) -> tuple[Role, list[Permission]]:
    role = get_role(db, role_id)
    return role, list(role.permissions)


def create_role(db: Session, body: RoleCreate) -> Role:
    role = Role(name=body.name.strip(), description=body.description)
    with transaction(db, "create role", conflict_message=ROLE_CONFLICT):
        db.add(role)
    logger.info("Role created", extra={"role": role.name})
    return role


def update_role(db: Session, role_id: UUID, body: RoleUpdate) -> Role:
    """Apply the fields present in body. System roles keep their names."""
    fields = body.model_fields_set
    if not fields:
        raise ValidationFailedError("No fields to update")
    with transaction(db, "update role", conflict_message=ROLE_CONFLICT):
        role = get_role(db, role_id)
        if "name" in fields and body.name is not None:
            new_name = body.name.strip()
            if role.name in SYSTEM_ROLES and new_name != role.name:
                raise ValidationFailedError(f"cannot rename system role: {role.name}")
            role.name = new_name
        if "description" in fields:
            role.description = body.description
    logger.info("Role updated", extra={"role_id": str(role_id)})
    return role


def delete_role(db: Session, role_id: UUID) -> None:
    """Delete a role with its grants and permission links. System roles are refused."""
    with transaction(db, "delete role"):
        role = get_role(db, role_id)
        check_role_delete(role.name)
        db.query(RolePermission).filter(RolePermission.role_id == role.id).delete()
        db.query(UserRole).filter(UserRole.role_id == role.id).delete()
        db.delete(role)
    logger.info("Role deleted", extra={"role_id": str(role_id)})


def set_role_permissions(db: Session, role_id: UUID, permission_ids: Iterable[UUID]) -> Role:
    """
    Replace the role's permission set with exactly permission_ids, atomically.

    Unknown ids and the admin.access guard are checked before any row changes.
    """
    wanted = list(dict.fromkeys(permission_ids))
    with transaction(db, "update role permissions"):
        role = get_role(db, role_id)
        permissions: list[Permission] = []
        if wanted:
            permissions = db.query(Permission).filter(Permission.id.in_(wanted)).all()
        found = {p.id for p in permissions}
        for permission_id in wanted:
            if permission_id not in found:
                raise ValidationFailedError(f"permission not found: {permission_id}")
        check_role_permissions(role.name, [p.name for p in permissions])

        linked = set()
        for link in db.query(RolePermission).filter(RolePermission.role_id == role.id).all():
            if link.permission_id in found:
                linked.add(link.permission_id)
            else:
                db.delete(link)
        for permission in permissions:
            if permission.id not in linked:
                db.add(RolePermission(role_id=role.id, permission_id=permission.id))
    logger.info(
        "Role permissions replaced",
        extra={"role_id": str(role_id), "permission_count": len(permissions)},
    )
    db.refresh(role)
    return role


def list_permissions(db: Session) -> list[Permission]:
    return db.query(Permission).order_by(Permission.resource, Permission.action).all()


def get_permission(db: Session, permission_id: UUID) -> Permission:
    permission = db.query(Permission).filter(Permission.id == permission_id).first()
    if permission is None:
        raise NotFoundError("Permission not found")
    return permission


def create_permission(db: Session, body: PermissionCreate) -> Permission:
    permission = Permission(
        name=body.name.strip(),
        resource=body.resource.strip(),
        action=body.action.strip(),
        description=body.description,
    )
    with transaction(db, "create permission", conflict_message=PERMISSION_CONFLICT):
        db.add(permission)
    logger.info("Permission created", extra={"permission": permission.name})
    return permission


def update_permission(db: Session, permission_id: UUID, body: PermissionUpdate) -> Permission:
    fields = body.model_fields_set
    if not fields:
        raise ValidationFailedError("No fields to update")
    with transaction(db, "update permission", conflict_message=PERMISSION_CONFLICT):
        permission = get_permission(db, permission_id)
        if "name" in fields and body.name is not None:
            check_permission_change(permission.name, body.name.strip())
            permission.name = body.name.strip()
        if "resource" in fields and body.resource is not None:
            permission.resource = body.resource.strip()
        if "action" in fields and body.action is not None:
            permission.action = body.action.strip()
        if "description" in fields:
            permission.description = body.description
    logger.info("Permission updated", extra={"permission_id": str(permission_id)})
    return permission


def delete_permission(db: Session, permission_id: UUID) -> None:
    """Delete a permission and every role link to it in one transaction."""
    with transaction(db, "delete permission"):
        permission = get_permission(db, permission_id)
        check_permission_change(permission.name)
        db.query(RolePermission).filter(
            RolePermission.permission_id == permission.id
        ).delete()
        db.delete(permission)
    logger.info("Permission deleted", extra={"permission_id": str(permission_id)})