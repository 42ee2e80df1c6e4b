"""Data retention: purge password reset tokens that have expired."""

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.models import PasswordResetToken

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def run_retention(session: Session, settings: "Settings", now: datetime | None = None) -> int:
    """
    Delete reset tokens whose expires_at has passed. Returns the number deleted.

    Idempotent: safe to run repeatedly.
    """
    if not settings.RETENTION_ENABLED:
        logger.info("Retention is disabled (RETENTION_ENABLED=false); skipping.")
        return 0

    cutoff = now or datetime.now(UTC)
    deleted_count = (
        session.query(PasswordResetToken)
        .filter(PasswordResetToken.expires_at <= cutoff)
        .delete(synchronize_session=False)
    )
    session.commit()

    if deleted_count > 0:
        logger.info(
            "Retention run: cutoff=%s, reset_tokens_deleted=%s",
            cutoff.isoformat(),
            deleted_count,
        )
    return deleted_count
