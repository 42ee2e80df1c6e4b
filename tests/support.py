"""Shared fixtures: in-memory SQLite database with the default catalog seeded."""

import unittest
from collections.abc import Sequence
from unittest.mock import patch

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.validation import CredentialRules
from app.models import Base, User
from app.schemas.users import AdminUserCreate
from app.services.seed import seed_catalog
from app.services.templates import RenderedTemplate
from app.services.notifications import EmailSender
from app.services.users import create_user, get_user

DEFAULT_PASSWORD = "correct-horse-42"


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class RecordingSender(EmailSender):
    """Collects messages instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, RenderedTemplate]] = []

    def send(self, to_email: str, message: RenderedTemplate) -> None:
        self.sent.append((to_email, message))


class DatabaseTestCase(unittest.TestCase):
    """Fresh seeded database per test; bcrypt cost lowered to keep tests fast."""

    seed = True

    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.db = self.SessionLocal()

        rounds = patch("app.core.security.BCRYPT_ROUNDS", 4)
        rounds.start()
        self.addCleanup(rounds.stop)

        self.rules = CredentialRules()
        if self.seed:
            seed_catalog(self.db)

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def make_user(
        self,
        email: str,
        roles: Sequence[str] = ("user",),
        name: str = "Test User",
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        profile = create_user(
            self.db,
            AdminUserCreate(email=email, password=password, name=name, roles=list(roles)),
            self.rules,
        )
        return get_user(self.db, profile.id)
