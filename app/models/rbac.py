"""ORM models for the role/permission catalog and its link tables."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.models.base import Base, utcnow


class Role(Base):
    """Named capability bundle. 'admin' and 'user' are system roles (see app.services.guards)."""

    __tablename__ = "roles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    # Read side only; writes go through RolePermission rows.
    permissions = relationship(
        "Permission",
        secondary="role_permissions",
        order_by="Permission.name",
        viewonly=True,
    )


class Permission(Base):
    """Atomic capability: (resource, action) plus a unique name, by convention 'resource.action'."""

    __tablename__ = "permissions"
    __table_args__ = (
        Index("ix_permissions_resource_action", "resource", "action"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True, index=True)
    resource = Column(String(100), nullable=False)
    action = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class RolePermission(Base):
    """One role carrying one permission."""

    __tablename__ = "role_permissions"

    role_id = Column(
        Uuid, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    permission_id = Column(
        Uuid,
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class UserRole(Base):
    """
    One user holding one role (a grant), with audit metadata.

    expires_at is optional; whether expired grants count is decided by
    RBAC_HONOR_GRANT_EXPIRY in the resolver.
    """

    __tablename__ = "user_roles"

    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    role_id = Column(
        Uuid, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    granted_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    granted_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        current = now or datetime.now(UTC)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return current >= expires_at
