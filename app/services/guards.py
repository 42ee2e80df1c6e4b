"""
Guard policy: pre-flight checks in front of catalog mutations that would lock admins out.

Every check raises ValidationFailedError before any row is written.
"""

import logging
from collections.abc import Iterable
from uuid import UUID

from app.core.errors import ValidationFailedError

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"
DEFAULT_ROLE = "user"
# Reserved names exempt from deletion.
SYSTEM_ROLES = frozenset({ADMIN_ROLE, DEFAULT_ROLE})
# Permission the admin role must always keep.
ADMIN_ACCESS_PERMISSION = "admin.access"


def _reject(message: str, **fields: str) -> None:
    logger.warning("Guard rejected request: %s", message, extra=fields)
    raise ValidationFailedError(message)


def check_role_update(
    actor_id: UUID,
    actor_roles: Iterable[str],
    target_user_id: UUID,
    new_roles: Iterable[str],
) -> None:
    """
    Refuse an admin dropping the admin role from their own role set.

    Only the actor's own grant is considered. Another admin demoting this one is
    allowed, even if that leaves no admin in the system.
    """
    if actor_id != target_user_id:
        return
    if ADMIN_ROLE in set(new_roles):
        return
    if ADMIN_ROLE in set(actor_roles):
        _reject("Cannot remove admin role from yourself", actor_id=str(actor_id))


def check_user_delete(actor_id: UUID, target_user_id: UUID) -> None:
    """Nobody may delete their own account, whatever their roles."""
    if actor_id == target_user_id:
        _reject("Cannot delete yourself", actor_id=str(actor_id))


def check_role_delete(role_name: str) -> None:
    """System roles cannot be deleted, with or without grants."""
    if role_name in SYSTEM_ROLES:
        _reject(f"cannot delete system role: {role_name}", role=role_name)


def check_role_permissions(role_name: str, requested_permission_names: Iterable[str]) -> None:
    """The admin role's requested permission set must still contain admin.access."""
    if role_name != ADMIN_ROLE:
        return
    if ADMIN_ACCESS_PERMISSION not in set(requested_permission_names):
        _reject(
            f"cannot remove {ADMIN_ACCESS_PERMISSION} permission from {ADMIN_ROLE} role",
            role=role_name,
        )


def check_permission_change(permission_name: str, new_name: str | None = None) -> None:
    """
    admin.access may not be deleted (new_name None) or renamed, since either would
    strip it from the admin role.
    """
    if permission_name != ADMIN_ACCESS_PERMISSION:
        return
    if new_name is None:
        _reject(f"cannot delete {ADMIN_ACCESS_PERMISSION} permission", permission=permission_name)
    elif new_name != permission_name:
        _reject(f"cannot rename {ADMIN_ACCESS_PERMISSION} permission", permission=permission_name)
