"""PostgreSQL connection, session management and transaction scoping."""

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.core.errors import AppError, ConflictError, InternalError

logger = logging.getLogger(__name__)

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DEBUG,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False


@contextmanager
def transaction(
    db: Session,
    action: str,
    conflict_message: str | None = None,
) -> Iterator[Session]:
    """
    Commit everything done inside the block, or roll all of it back.

    AppError raised inside the block propagates unchanged after rollback.
    IntegrityError becomes ConflictError(conflict_message) when a message is given;
    any other SQLAlchemyError is logged and surfaced as InternalError("Failed to <action>")
    so no SQL or schema detail reaches the caller.
    """
    try:
        yield db
        db.commit()
    except AppError:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        if conflict_message is not None:
            raise ConflictError(conflict_message) from e
        logger.exception("Integrity error during %s", action)
        raise InternalError(f"Failed to {action}") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Database error during %s", action)
        raise InternalError(f"Failed to {action}") from e
