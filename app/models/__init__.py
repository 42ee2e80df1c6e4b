"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.email_template import EmailTemplate
from app.models.password_reset_token import PasswordResetToken
from app.models.rbac import Permission, Role, RolePermission, UserRole
from app.models.user import User

__all__ = [
    "Base",
    "EmailTemplate",
    "PasswordResetToken",
    "Permission",
    "Role",
    "RolePermission",
    "User",
    "UserRole",
]
