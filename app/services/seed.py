"""
Default catalog: roles, permissions, role bundles and the password_reset template.

seed_catalog() is idempotent. Existing rows are left as they are, and a role's
default bundle is linked only when the role itself is created by the run, so
an admin's later edits to a bundle survive re-seeding.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.core.database import transaction
from app.models import EmailTemplate, Permission, Role, RolePermission
from app.services.templates import (
    BUILTIN_TEMPLATES,
    PASSWORD_RESET_TEMPLATE,
    PASSWORD_RESET_VARIABLES,
)

logger = logging.getLogger(__name__)

DEFAULT_ROLES: dict[str, str] = {
    "user": "Basic user access - can view and edit own profile",
    "admin": "Full administrative access - can manage all users and system settings",
    "moderator": "Content moderation access - can moderate user content",
    "premium": "Premium features access - can access premium functionality",
}

# name -> (resource, action, description)
DEFAULT_PERMISSIONS: dict[str, tuple[str, str, str]] = {
    "profile.read": ("profile", "read", "View own profile"),
    "profile.write": ("profile", "write", "Edit own profile"),
    "users.read": ("users", "read", "View user profiles"),
    "users.write": ("users", "write", "Edit user profiles"),
    "users.delete": ("users", "delete", "Delete users"),
    "users.roles.manage": ("users", "roles", "Manage user roles"),
    "admin.access": ("admin", "access", "Access admin panel"),
    "admin.settings": ("admin", "settings", "Manage system settings"),
    "content.moderate": ("content", "moderate", "Moderate user content"),
    "content.delete": ("content", "delete", "Delete user content"),
    "premium.access": ("premium", "access", "Access premium features"),
}

DEFAULT_BUNDLES: dict[str, tuple[str, ...]] = {
    "user": ("profile.read", "profile.write"),
    "admin": tuple(DEFAULT_PERMISSIONS),
    "moderator": (
        "profile.read",
        "profile.write",
        "users.read",
        "content.moderate",
        "content.delete",
    ),
    "premium": ("profile.read", "profile.write", "premium.access"),
}


@dataclass
class SeedResult:
    roles_created: int = 0
    permissions_created: int = 0
    links_created: int = 0
    templates_created: int = 0


def seed_catalog(db: Session) -> SeedResult:
    """Insert whatever part of the default catalog is missing, in one transaction."""
    result = SeedResult()
    with transaction(db, "seed catalog"):
        permissions = {p.name: p for p in db.query(Permission).all()}
        for name, (resource, action, description) in DEFAULT_PERMISSIONS.items():
            if name not in permissions:
                permission = Permission(
                    name=name, resource=resource, action=action, description=description
                )
                db.add(permission)
                permissions[name] = permission
                result.permissions_created += 1

        roles = {r.name: r for r in db.query(Role).all()}
        new_roles: list[Role] = []
        for name, description in DEFAULT_ROLES.items():
            if name not in roles:
                role = Role(name=name, description=description)
                db.add(role)
                roles[name] = role
                new_roles.append(role)
                result.roles_created += 1
        db.flush()

        for role in new_roles:
            for permission_name in DEFAULT_BUNDLES[role.name]:
                db.add(
                    RolePermission(
                        role_id=role.id,
                        permission_id=permissions[permission_name].id,
                    )
                )
                result.links_created += 1

        exists = (
            db.query(EmailTemplate.id)
            .filter(EmailTemplate.name == PASSWORD_RESET_TEMPLATE)
            .first()
        )
        if exists is None:
            builtin = BUILTIN_TEMPLATES[PASSWORD_RESET_TEMPLATE]
            db.add(
                EmailTemplate(
                    name=builtin.name,
                    subject=builtin.subject,
                    html_template=builtin.html_template,
                    text_template=builtin.text_template,
                    variables=list(PASSWORD_RESET_VARIABLES),
                    is_active=True,
                )
            )
            result.templates_created += 1

    logger.info(
        "Catalog seeded",
        extra={
            "roles_created": result.roles_created,
            "permissions_created": result.permissions_created,
            "links_created": result.links_created,
            "templates_created": result.templates_created,
        },
    )
    return result
