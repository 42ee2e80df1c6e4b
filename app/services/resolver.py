"""
Authorization resolver: a user's current roles and permissions, read from the catalog.

Nothing here trusts token claims. Every call queries user_roles -> roles ->
role_permissions -> permissions, so a grant change is visible on the next request.
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import or_, true
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from app.core.config import get_settings
from app.core.database import transaction
from app.core.errors import ConflictError, NotFoundError, ValidationFailedError
from app.models import Permission, Role, RolePermission, User, UserRole

logger = logging.getLogger(__name__)


def _active_grant_clause(now: datetime | None = None) -> ColumnElement[bool]:
    """Filter for grants that count right now. Expired grants are dropped only when configured."""
    if not get_settings().RBAC_HONOR_GRANT_EXPIRY:
        return true()
    current = now or datetime.now(UTC)
    return or_(UserRole.expires_at.is_(None), UserRole.expires_at > current)


def _require_active_user(db: Session, user_id: UUID) -> None:
    found = (
        db.query(User.id)
        .filter(User.id == user_id, User.deleted_at.is_(None))
        .first()
    )
    if found is None:
        raise NotFoundError("User not found")


def _renew_grant(
    grant: UserRole,
    granted_by: UUID | None,
    expires_at: datetime | None,
    now: datetime | None = None,
) -> None:
    grant.granted_at = now or datetime.now(UTC)
    grant.granted_by = granted_by
    grant.expires_at = expires_at


def get_roles_for_user(db: Session, user_id: UUID) -> list[str]:
    """Names of the roles currently granted to user_id, sorted."""
    rows = (
        db.query(Role.name)
        .join(UserRole, UserRole.role_id == Role.id)
        .filter(UserRole.user_id == user_id, _active_grant_clause())
        .order_by(Role.name)
        .all()
    )
    return [name for (name,) in rows]


def get_roles_for_users(db: Session, user_ids: Iterable[UUID]) -> dict[UUID, list[str]]:
    """Bulk variant of get_roles_for_user for listings; every requested id gets a key."""
    ids = list(user_ids)
    result: dict[UUID, list[str]] = {uid: [] for uid in ids}
    if not ids:
        return result
    rows = (
        db.query(UserRole.user_id, Role.name)
        .join(Role, Role.id == UserRole.role_id)
        .filter(UserRole.user_id.in_(ids), _active_grant_clause())
        .order_by(Role.name)
        .all()
    )
    for user_id, name in rows:
        result[user_id].append(name)
    return result


def get_permissions_for_user(db: Session, user_id: UUID) -> list[Permission]:
    """
    Union of the permissions of every role granted to user_id.

    A permission reachable through several roles appears once.
    """
    return (
        db.query(Permission)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .join(UserRole, UserRole.role_id == RolePermission.role_id)
        .filter(UserRole.user_id == user_id, _active_grant_clause())
        .distinct()
        .order_by(Permission.name)
        .all()
    )


def has_permission(db: Session, user_id: UUID, permission_name: str) -> bool:
    """Single EXISTS query; same answer as permission_name in get_permissions_for_user()."""
    subquery = (
        db.query(Permission.id)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .join(UserRole, UserRole.role_id == RolePermission.role_id)
        .filter(
            UserRole.user_id == user_id,
            Permission.name == permission_name,
            _active_grant_clause(),
        )
    )
    return bool(db.query(subquery.exists()).scalar())


def stage_role_grants(
    db: Session,
    user_id: UUID,
    role_names: Iterable[str],
    granted_by: UUID | None = None,
) -> list[str]:
    """
    Make the user's grants exactly role_names, without committing.

    Callers own the transaction (set_roles_for_user, user creation). Names are
    deduplicated and all resolved before any grant changes; grants the user
    already holds are kept with their original metadata unless they have
    expired, in which case they are renewed without an expiry. Returns the
    names staged.
    """
    wanted = list(dict.fromkeys(name.strip() for name in role_names))
    roles_by_name: dict[str, Role] = {}
    if wanted:
        roles_by_name = {
            role.name: role
            for role in db.query(Role).filter(Role.name.in_(wanted)).all()
        }
    for name in wanted:
        if name not in roles_by_name:
            raise ValidationFailedError(f"role not found: {name}")

    wanted_ids = {roles_by_name[name].id for name in wanted}
    now = datetime.now(UTC)
    held_ids = set()
    for grant in db.query(UserRole).filter(UserRole.user_id == user_id).all():
        if grant.role_id in wanted_ids:
            held_ids.add(grant.role_id)
            if grant.is_expired(now):
                _renew_grant(grant, granted_by, None, now)
        else:
            db.delete(grant)
    for name in wanted:
        role_id = roles_by_name[name].id
        if role_id not in held_ids:
            db.add(UserRole(user_id=user_id, role_id=role_id, granted_by=granted_by))
    return wanted


def set_roles_for_user(
    db: Session,
    user_id: UUID,
    role_names: Iterable[str],
    granted_by: UUID | None = None,
) -> list[str]:
    """
    Replace every grant of user_id with exactly role_names, atomically.

    All names are resolved before anything is written; an unknown name raises
    ValidationFailedError("role not found: <name>") and leaves the grants untouched.
    The delete and the inserts commit together. An empty list is legal.
    Returns the resulting role names.
    """
    with transaction(db, "update user roles"):
        _require_active_user(db, user_id)
        wanted = stage_role_grants(db, user_id, role_names, granted_by)
    logger.info(
        "User roles replaced",
        extra={
            "user_id": str(user_id),
            "granted_by": str(granted_by) if granted_by else None,
            "roles": ",".join(wanted),
        },
    )
    return get_roles_for_user(db, user_id)


def assign_role(
    db: Session,
    user_id: UUID,
    role_name: str,
    granted_by: UUID | None = None,
    expires_at: datetime | None = None,
) -> None:
    """
    Add one grant. Unknown role or user -> NotFoundError; an existing live grant
    -> ConflictError. An expired grant for the same role is renewed in place.
    """
    with transaction(db, "assign role"):
        role = db.query(Role).filter(Role.name == role_name).first()
        if role is None:
            raise NotFoundError("role not found")
        _require_active_user(db, user_id)
        existing = (
            db.query(UserRole)
            .filter(UserRole.user_id == user_id, UserRole.role_id == role.id)
            .first()
        )
        if existing is None:
            db.add(
                UserRole(
                    user_id=user_id,
                    role_id=role.id,
                    granted_by=granted_by,
                    expires_at=expires_at,
                )
            )
        elif existing.is_expired():
            _renew_grant(existing, granted_by, expires_at)
        else:
            raise ConflictError("user already has this role")
    logger.info(
        "Role assigned",
        extra={"user_id": str(user_id), "role": role_name},
    )


def remove_role(db: Session, user_id: UUID, role_name: str) -> None:
    """Remove one grant. Unknown role or missing grant -> NotFoundError."""
    with transaction(db, "remove role"):
        role = db.query(Role).filter(Role.name == role_name).first()
        if role is None:
            raise NotFoundError("role not found")
        deleted = (
            db.query(UserRole)
            .filter(UserRole.user_id == user_id, UserRole.role_id == role.id)
            .delete()
        )
        if deleted == 0:
            raise NotFoundError("user does not have this role")
    logger.info(
        "Role removed",
        extra={"user_id": str(user_id), "role": role_name},
    )
