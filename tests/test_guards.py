"""Unit tests for app.services.guards: lock-out prevention checks."""

import unittest
import uuid

from app.core.errors import ValidationFailedError
from app.services.guards import (
    check_permission_change,
    check_role_delete,
    check_role_permissions,
    check_role_update,
    check_user_delete,
)


class TestRoleUpdateGuard(unittest.TestCase):
    def setUp(self) -> None:
        self.admin_id = uuid.uuid4()

    def test_admin_cannot_drop_own_admin_role(self) -> None:
        with self.assertRaises(ValidationFailedError) as ctx:
            check_role_update(self.admin_id, ["admin", "user"], self.admin_id, ["user"])
        self.assertEqual(ctx.exception.message, "Cannot remove admin role from yourself")

    def test_admin_may_keep_admin_while_changing_others(self) -> None:
        check_role_update(self.admin_id, ["admin"], self.admin_id, ["admin", "premium"])

    def test_demoting_another_admin_is_allowed(self) -> None:
        check_role_update(self.admin_id, ["admin"], uuid.uuid4(), ["user"])

    def test_non_admin_changing_own_roles_is_not_this_guards_concern(self) -> None:
        user_id = uuid.uuid4()
        check_role_update(user_id, ["user"], user_id, ["premium"])


class TestUserDeleteGuard(unittest.TestCase):
    def test_self_delete_refused(self) -> None:
        actor = uuid.uuid4()
        with self.assertRaises(ValidationFailedError) as ctx:
            check_user_delete(actor, actor)
        self.assertEqual(ctx.exception.message, "Cannot delete yourself")

    def test_deleting_someone_else_allowed(self) -> None:
        check_user_delete(uuid.uuid4(), uuid.uuid4())


class TestCatalogGuards(unittest.TestCase):
    def test_system_roles_cannot_be_deleted(self) -> None:
        for name in ("admin", "user"):
            with self.subTest(role=name):
                with self.assertRaises(ValidationFailedError) as ctx:
                    check_role_delete(name)
                self.assertEqual(ctx.exception.message, f"cannot delete system role: {name}")

    def test_custom_role_can_be_deleted(self) -> None:
        check_role_delete("premium")

    def test_admin_role_must_keep_admin_access(self) -> None:
        with self.assertRaises(ValidationFailedError) as ctx:
            check_role_permissions("admin", ["users.read", "users.write"])
        self.assertEqual(
            ctx.exception.message, "cannot remove admin.access permission from admin role"
        )
        check_role_permissions("admin", ["admin.access"])

    def test_other_roles_may_drop_admin_access(self) -> None:
        check_role_permissions("moderator", ["users.read"])

    def test_admin_access_cannot_be_deleted_or_renamed(self) -> None:
        with self.assertRaises(ValidationFailedError):
            check_permission_change("admin.access")
        with self.assertRaises(ValidationFailedError):
            check_permission_change("admin.access", "admin.enter")
        check_permission_change("admin.access", "admin.access")
        check_permission_change("users.read")


if __name__ == "__main__":
    unittest.main()
