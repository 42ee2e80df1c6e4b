"""
Credential store: user lookup, profile updates and admin user management.

Soft-deleted users are invisible to every lookup here.
"""

import logging
import math
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.errors import NotFoundError
from app.core.security import hash_password
from app.core.validation import (
    CredentialRules,
    normalize_email,
    normalize_optional_text,
    normalize_phone,
)
from app.models import PasswordResetToken, User, UserRole
from app.schemas.auth import ProfileResponse
from app.schemas.updates import SetCompany, SetEmail, SetName, SetPhone, UserFieldUpdate
from app.schemas.users import AdminUserCreate, PaginatedUsersResponse, UserListQuery
from app.services.guards import DEFAULT_ROLE, check_user_delete
from app.services.resolver import get_roles_for_user, get_roles_for_users, stage_role_grants

logger = logging.getLogger(__name__)

EMAIL_CONFLICT = "Email already exists"

_SORT_COLUMNS = {
    "created_at": User.created_at,
    "updated_at": User.updated_at,
    "email": User.email,
    "name": User.name,
}


def _active_users(db: Session):
    return db.query(User).filter(User.deleted_at.is_(None))


def get_user(db: Session, user_id: UUID) -> User:
    user = _active_users(db).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    return user


def get_user_by_email(db: Session, email: str) -> User | None:
    return _active_users(db).filter(User.email == normalize_email(email)).first()


def to_profile(user: User, roles: Sequence[str]) -> ProfileResponse:
    return ProfileResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        phone=user.phone,
        company=user.company,
        roles=list(roles),
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def get_profile(db: Session, user_id: UUID) -> ProfileResponse:
    user = get_user(db, user_id)
    return to_profile(user, get_roles_for_user(db, user.id))


def _optional_phone(value: str | None, rules: CredentialRules) -> str | None:
    value = normalize_optional_text(value)
    return normalize_phone(value, rules.phone_region) if value is not None else None


def _apply_update(user: User, update: UserFieldUpdate, rules: CredentialRules) -> None:
    match update:
        case SetName(value):
            user.name = rules.check_name(value)
        case SetEmail(value):
            user.email = normalize_email(value)
        case SetPhone(value):
            user.phone = _optional_phone(value, rules)
        case SetCompany(value):
            user.company = normalize_optional_text(value)


def update_user(
    db: Session,
    user_id: UUID,
    updates: Iterable[UserFieldUpdate],
    rules: CredentialRules,
) -> ProfileResponse:
    """
    Apply the given field updates in one transaction and return the fresh profile.

    An empty update list is a no-op. A taken email raises ConflictError.
    """
    updates = list(updates)
    with transaction(db, "update user", conflict_message=EMAIL_CONFLICT):
        user = get_user(db, user_id)
        for update in updates:
            _apply_update(user, update, rules)
    if updates:
        logger.info(
            "User updated",
            extra={
                "user_id": str(user_id),
                "fields": ",".join(type(u).__name__ for u in updates),
            },
        )
    db.refresh(user)
    return to_profile(user, get_roles_for_user(db, user.id))


def build_user(
    email: str,
    password: str,
    name: str,
    rules: CredentialRules,
    phone: str | None = None,
    company: str | None = None,
) -> User:
    """Validate and normalise the fields of a new account; nothing is persisted."""
    rules.check_password(password)
    return User(
        email=normalize_email(email),
        password_hash=hash_password(password),
        name=rules.check_name(name),
        phone=_optional_phone(phone, rules),
        company=normalize_optional_text(company),
    )


def create_user(
    db: Session,
    body: AdminUserCreate,
    rules: CredentialRules,
    granted_by: UUID | None = None,
) -> ProfileResponse:
    """Create a user with the requested roles (default ['user']); user and grants commit together."""
    role_names = body.roles or [DEFAULT_ROLE]
    user = build_user(
        body.email,
        body.password,
        body.name,
        rules,
        phone=body.phone,
        company=body.company,
    )
    with transaction(db, "create user", conflict_message=EMAIL_CONFLICT):
        db.add(user)
        db.flush()
        stage_role_grants(db, user.id, role_names, granted_by=granted_by)
    logger.info(
        "User created",
        extra={
            "user_id": str(user.id),
            "granted_by": str(granted_by) if granted_by else None,
        },
    )
    return to_profile(user, get_roles_for_user(db, user.id))


def delete_user(db: Session, actor_id: UUID, user_id: UUID) -> None:
    """
    Soft-delete a user: set deleted_at and drop their grants and reset tokens.
    An account cannot delete itself.
    """
    check_user_delete(actor_id, user_id)
    with transaction(db, "delete user"):
        user = get_user(db, user_id)
        user.deleted_at = datetime.now(UTC)
        db.query(UserRole).filter(UserRole.user_id == user.id).delete()
        db.query(PasswordResetToken).filter(
            PasswordResetToken.user_id == user.id
        ).delete()
    logger.info(
        "User deleted",
        extra={"user_id": str(user_id), "actor_id": str(actor_id)},
    )


def list_users(db: Session, params: UserListQuery) -> PaginatedUsersResponse:
    """Page through active users with optional case-insensitive search on email and name."""
    query = _active_users(db)
    if params.search and params.search.strip():
        pattern = f"%{params.search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(User.email).like(pattern),
                func.lower(User.name).like(pattern),
            )
        )

    total = query.count()
    column = _SORT_COLUMNS[params.sort_by]
    order = column.desc() if params.sort_desc else column.asc()
    users = (
        query.order_by(order, User.id)
        .offset((params.page - 1) * params.limit)
        .limit(params.limit)
        .all()
    )
    roles = get_roles_for_users(db, [u.id for u in users])
    return PaginatedUsersResponse(
        users=[to_profile(u, roles[u.id]) for u in users],
        total=total,
        page=params.page,
        limit=params.limit,
        total_pages=math.ceil(total / params.limit) if total else 0,
    )
