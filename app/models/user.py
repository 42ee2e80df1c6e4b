"""ORM model for application users (credential store)."""

import uuid

from sqlalchemy import Column, DateTime, String, Uuid

from app.models.base import Base, utcnow


class User(Base):
    """
    User account for JWT authentication.

    Roles are not stored here; see UserRole. deleted_at marks a soft-deleted
    account, which every lookup ignores.
    """

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    company = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
