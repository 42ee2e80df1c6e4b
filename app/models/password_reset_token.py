"""ORM model for one-time password reset tokens."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid

from app.models.base import Base, utcnow


class PasswordResetToken(Base):
    """Stores only the SHA-256 hash of the emailed token."""

    __tablename__ = "password_reset_tokens"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token = Column(String(64), nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def is_expired(self, now: datetime | None = None) -> bool:
        current = now or datetime.now(UTC)
        expires_at = self.expires_at
        # SQLite hands back naive datetimes; values are always written in UTC.
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return current >= expires_at
