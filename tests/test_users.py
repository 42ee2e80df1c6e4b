"""Tests for app.services.users: profile updates, admin creation, soft delete and listing."""

import unittest
import uuid
from datetime import UTC, datetime, timedelta

from app.core.errors import ConflictError, NotFoundError, ValidationFailedError
from app.core.security import verify_password
from app.models import PasswordResetToken, User, UserRole
from app.schemas.auth import ProfileUpdateRequest
from app.schemas.updates import SetCompany, SetEmail, SetName, SetPhone
from app.schemas.users import AdminUserCreate, AdminUserUpdate, UserListQuery
from app.services import users
from tests.support import DEFAULT_PASSWORD, DatabaseTestCase


class TestUpdateVariants(unittest.TestCase):
    """Request schemas turn present fields into update variants."""

    def test_absent_fields_produce_nothing(self) -> None:
        self.assertEqual(ProfileUpdateRequest().to_updates(), [])

    def test_null_and_empty_clear(self) -> None:
        body = ProfileUpdateRequest.model_validate({"phone": None, "company": ""})
        self.assertEqual(body.to_updates(), [SetPhone(None), SetCompany(None)])

    def test_values_carried(self) -> None:
        body = ProfileUpdateRequest.model_validate({"name": "Alice B", "phone": "555 123 4567"})
        self.assertEqual(body.to_updates(), [SetName("Alice B"), SetPhone("555 123 4567")])

    def test_profile_rejects_unknown_keys(self) -> None:
        with self.assertRaises(ValueError):
            ProfileUpdateRequest.model_validate({"email": "x@example.com"})
        with self.assertRaises(ValueError):
            ProfileUpdateRequest.model_validate({"roles": ["admin"]})

    def test_name_cannot_be_cleared(self) -> None:
        for payload in ({"name": ""}, {"name": None}):
            with self.subTest(payload=payload):
                with self.assertRaises(ValueError):
                    ProfileUpdateRequest.model_validate(payload)
                with self.assertRaises(ValueError):
                    AdminUserUpdate.model_validate(payload)

    def test_admin_update_rejects_null_email(self) -> None:
        with self.assertRaises(ValueError):
            AdminUserUpdate.model_validate({"email": None})

    def test_admin_update_can_change_email(self) -> None:
        body = AdminUserUpdate.model_validate({"email": "new@example.com"})
        self.assertEqual(body.to_updates(), [SetEmail("new@example.com")])


class TestCreateUser(DatabaseTestCase):
    def test_defaults_to_user_role_and_normalises(self) -> None:
        profile = users.create_user(
            self.db,
            AdminUserCreate(
                email="Alice@Example.com",
                password=DEFAULT_PASSWORD,
                name="  Alice  ",
                phone="+1 (650) 253-0000",
                company="  ",
            ),
            self.rules,
        )
        self.assertEqual(profile.email, "alice@example.com")
        self.assertEqual(profile.name, "Alice")
        self.assertEqual(profile.phone, "+16502530000")
        self.assertIsNone(profile.company)
        self.assertEqual(profile.roles, ["user"])
        user = users.get_user(self.db, profile.id)
        self.assertTrue(verify_password(DEFAULT_PASSWORD, user.password_hash))

    def test_unknown_role_persists_nothing(self) -> None:
        with self.assertRaises(ValidationFailedError):
            users.create_user(
                self.db,
                AdminUserCreate(
                    email="alice@example.com",
                    password=DEFAULT_PASSWORD,
                    name="Alice",
                    roles=["wizard"],
                ),
                self.rules,
            )
        self.assertEqual(self.db.query(User).count(), 0)

    def test_duplicate_email_conflicts(self) -> None:
        self.make_user("alice@example.com")
        with self.assertRaises(ConflictError) as ctx:
            self.make_user("ALICE@example.com")
        self.assertEqual(ctx.exception.message, "Email already exists")

    def test_short_password_rejected(self) -> None:
        with self.assertRaises(ValidationFailedError):
            self.make_user("alice@example.com", password="short")


class TestUpdateUser(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.user = self.make_user("alice@example.com", name="Alice")
        users.update_user(
            self.db, self.user.id, [SetPhone("0812-3456-7890"), SetCompany("Acme")], self.rules
        )

    def test_absent_field_left_unchanged(self) -> None:
        profile = users.update_user(self.db, self.user.id, [SetName("Alice Smith")], self.rules)
        self.assertEqual(profile.name, "Alice Smith")
        self.assertEqual(profile.phone, "+6281234567890")
        self.assertEqual(profile.company, "Acme")

    def test_clear_phone(self) -> None:
        profile = users.update_user(self.db, self.user.id, [SetPhone(None)], self.rules)
        self.assertIsNone(profile.phone)
        self.assertEqual(profile.company, "Acme")

    def test_invalid_phone_changes_nothing(self) -> None:
        with self.assertRaises(ValidationFailedError):
            users.update_user(
                self.db, self.user.id, [SetName("Changed"), SetPhone("12")], self.rules
            )
        profile = users.get_profile(self.db, self.user.id)
        self.assertEqual(profile.name, "Alice")
        self.assertEqual(profile.phone, "+6281234567890")

    def test_email_conflict(self) -> None:
        self.make_user("bob@example.com")
        with self.assertRaises(ConflictError):
            users.update_user(self.db, self.user.id, [SetEmail("bob@example.com")], self.rules)

    def test_unknown_user(self) -> None:
        with self.assertRaises(NotFoundError):
            users.update_user(self.db, uuid.uuid4(), [SetName("Nobody")], self.rules)


class TestDeleteUser(DatabaseTestCase):
    def test_soft_delete_hides_user_and_drops_grants_and_tokens(self) -> None:
        admin = self.make_user("root@example.com", roles=["admin"])
        user = self.make_user("alice@example.com", roles=["user", "premium"])
        user_id = user.id
        self.db.add(
            PasswordResetToken(
                user_id=user_id,
                token="a" * 64,
                expires_at=datetime.now(UTC) + timedelta(minutes=15),
            )
        )
        self.db.commit()

        users.delete_user(self.db, admin.id, user_id)

        with self.assertRaises(NotFoundError):
            users.get_user(self.db, user_id)
        self.assertIsNone(users.get_user_by_email(self.db, "alice@example.com"))
        row = self.db.query(User).filter(User.id == user_id).one()
        self.assertIsNotNone(row.deleted_at)
        self.assertEqual(self.db.query(UserRole).filter(UserRole.user_id == user_id).count(), 0)
        self.assertEqual(
            self.db.query(PasswordResetToken)
            .filter(PasswordResetToken.user_id == user_id)
            .count(),
            0,
        )

    def test_cannot_delete_self(self) -> None:
        admin = self.make_user("root@example.com", roles=["admin"])
        with self.assertRaises(ValidationFailedError):
            users.delete_user(self.db, admin.id, admin.id)
        self.assertEqual(users.get_user(self.db, admin.id).email, "root@example.com")


class TestListUsers(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        for i in range(25):
            self.make_user(f"user{i:02d}@example.com", name=f"Person {i:02d}")
        self.make_user("carol@acme.io", name="Carol Danvers", roles=["admin"])

    def test_default_page(self) -> None:
        page = users.list_users(self.db, UserListQuery())
        self.assertEqual(page.total, 26)
        self.assertEqual(page.page, 1)
        self.assertEqual(page.limit, 20)
        self.assertEqual(page.total_pages, 2)
        self.assertEqual(len(page.users), 20)

    def test_last_page(self) -> None:
        page = users.list_users(self.db, UserListQuery(page=2, limit=20))
        self.assertEqual(len(page.users), 6)

    def test_search_is_case_insensitive_on_email_and_name(self) -> None:
        by_name = users.list_users(self.db, UserListQuery(search="DANVERS"))
        by_email = users.list_users(self.db, UserListQuery(search="acme.io"))
        self.assertEqual([u.email for u in by_name.users], ["carol@acme.io"])
        self.assertEqual([u.email for u in by_email.users], ["carol@acme.io"])
        self.assertEqual(by_name.users[0].roles, ["admin"])

    def test_sort_by_email_descending(self) -> None:
        page = users.list_users(
            self.db, UserListQuery(sort_by="email", sort_desc=True, limit=3)
        )
        self.assertEqual(
            [u.email for u in page.users],
            ["user24@example.com", "user23@example.com", "user22@example.com"],
        )

    def test_deleted_users_excluded(self) -> None:
        admin = users.get_user_by_email(self.db, "carol@acme.io")
        victim = users.get_user_by_email(self.db, "user00@example.com")
        users.delete_user(self.db, admin.id, victim.id)
        self.assertEqual(users.list_users(self.db, UserListQuery()).total, 25)

    def test_limit_bounds(self) -> None:
        with self.assertRaises(ValueError):
            UserListQuery(limit=101)
        with self.assertRaises(ValueError):
            UserListQuery(page=0)


if __name__ == "__main__":
    unittest.main()
