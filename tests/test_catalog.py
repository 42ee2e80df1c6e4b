"""Tests for app.services.catalog and app.services.seed."""

import unittest
import uuid

from app.core.errors import ConflictError, NotFoundError, ValidationFailedError
from app.models import EmailTemplate, Permission, Role, RolePermission, UserRole
from app.schemas.rbac import PermissionCreate, PermissionUpdate, RoleCreate, RoleUpdate
from app.services import catalog
from app.services.resolver import get_roles_for_user, has_permission
from app.services.seed import DEFAULT_PERMISSIONS, DEFAULT_ROLES, seed_catalog
from tests.support import DatabaseTestCase


def _ids(db, *names: str) -> list[uuid.UUID]:
    rows = db.query(Permission).filter(Permission.name.in_(names)).all()
    return [p.id for p in rows]


class TestSeed(DatabaseTestCase):
    def test_default_catalog_present(self) -> None:
        self.assertEqual(
            sorted(r.name for r in catalog.list_roles(self.db)), sorted(DEFAULT_ROLES)
        )
        self.assertEqual(self.db.query(Permission).count(), len(DEFAULT_PERMISSIONS))
        admin = catalog.get_role_by_name(self.db, "admin")
        self.assertEqual(len(admin.permissions), len(DEFAULT_PERMISSIONS))
        self.assertEqual(
            self.db.query(EmailTemplate).filter(EmailTemplate.name == "password_reset").count(),
            1,
        )

    def test_reseeding_is_a_no_op(self) -> None:
        links = self.db.query(RolePermission).count()
        result = seed_catalog(self.db)
        self.assertEqual(
            (result.roles_created, result.permissions_created, result.links_created, result.templates_created),
            (0, 0, 0, 0),
        )
        self.assertEqual(self.db.query(RolePermission).count(), links)

    def test_reseeding_keeps_edited_bundles(self) -> None:
        moderator = catalog.get_role_by_name(self.db, "moderator")
        catalog.set_role_permissions(self.db, moderator.id, _ids(self.db, "users.read"))
        seed_catalog(self.db)
        self.db.refresh(moderator)
        self.assertEqual([p.name for p in moderator.permissions], ["users.read"])


class TestRoles(DatabaseTestCase):
    def test_create_and_duplicate(self) -> None:
        role = catalog.create_role(self.db, RoleCreate(name="editor", description="Edits"))
        self.assertEqual(catalog.get_role(self.db, role.id).name, "editor")
        with self.assertRaises(ConflictError) as ctx:
            catalog.create_role(self.db, RoleCreate(name="editor"))
        self.assertEqual(ctx.exception.message, "Role name already exists")

    def test_update_partial(self) -> None:
        role = catalog.create_role(self.db, RoleCreate(name="editor", description="Edits"))
        updated = catalog.update_role(self.db, role.id, RoleUpdate(description="Edits posts"))
        self.assertEqual(updated.name, "editor")
        self.assertEqual(updated.description, "Edits posts")

    def test_update_without_fields_rejected(self) -> None:
        role = catalog.get_role_by_name(self.db, "premium")
        with self.assertRaises(ValidationFailedError):
            catalog.update_role(self.db, role.id, RoleUpdate())

    def test_system_role_cannot_be_renamed(self) -> None:
        role = catalog.get_role_by_name(self.db, "admin")
        with self.assertRaises(ValidationFailedError):
            catalog.update_role(self.db, role.id, RoleUpdate(name="root"))
        self.assertEqual(catalog.get_role(self.db, role.id).name, "admin")

    def test_unknown_role(self) -> None:
        with self.assertRaises(NotFoundError):
            catalog.get_role(self.db, uuid.uuid4())

    def test_system_roles_cannot_be_deleted(self) -> None:
        for name in ("admin", "user"):
            role = catalog.get_role_by_name(self.db, name)
            with self.subTest(role=name):
                with self.assertRaises(ValidationFailedError):
                    catalog.delete_role(self.db, role.id)
        self.assertEqual(self.db.query(Role).count(), len(DEFAULT_ROLES))

    def test_non_system_role_without_grants_can_be_deleted(self) -> None:
        moderator_id = catalog.get_role_by_name(self.db, "moderator").id
        catalog.delete_role(self.db, moderator_id)
        with self.assertRaises(NotFoundError):
            catalog.get_role(self.db, moderator_id)

    def test_delete_removes_grants_and_links(self) -> None:
        user = self.make_user("alice@example.com", roles=["user", "premium"])
        premium_id = catalog.get_role_by_name(self.db, "premium").id
        catalog.delete_role(self.db, premium_id)
        self.assertEqual(get_roles_for_user(self.db, user.id), ["user"])
        self.assertEqual(
            self.db.query(RolePermission).filter(RolePermission.role_id == premium_id).count(),
            0,
        )
        self.assertEqual(
            self.db.query(UserRole).filter(UserRole.role_id == premium_id).count(), 0
        )


class TestRolePermissions(DatabaseTestCase):
    def test_replace_set(self) -> None:
        user = self.make_user("alice@example.com", roles=["premium"])
        premium = catalog.get_role_by_name(self.db, "premium")
        role = catalog.set_role_permissions(
            self.db, premium.id, _ids(self.db, "profile.read", "content.moderate")
        )
        self.assertEqual(
            [p.name for p in role.permissions], ["content.moderate", "profile.read"]
        )
        self.assertTrue(has_permission(self.db, user.id, "content.moderate"))
        self.assertFalse(has_permission(self.db, user.id, "premium.access"))

    def test_unknown_permission_id_changes_nothing(self) -> None:
        premium = catalog.get_role_by_name(self.db, "premium")
        missing = uuid.uuid4()
        with self.assertRaises(ValidationFailedError) as ctx:
            catalog.set_role_permissions(
                self.db, premium.id, _ids(self.db, "profile.read") + [missing]
            )
        self.assertEqual(ctx.exception.message, f"permission not found: {missing}")
        _, permissions = catalog.get_role_with_permissions(self.db, premium.id)
        self.assertEqual(
            [p.name for p in permissions], ["premium.access", "profile.read", "profile.write"]
        )

    def test_admin_keeps_admin_access(self) -> None:
        admin = catalog.get_role_by_name(self.db, "admin")
        with self.assertRaises(ValidationFailedError):
            catalog.set_role_permissions(self.db, admin.id, _ids(self.db, "users.read"))
        role = catalog.set_role_permissions(
            self.db, admin.id, _ids(self.db, "admin.access", "users.read")
        )
        self.assertEqual([p.name for p in role.permissions], ["admin.access", "users.read"])


class TestPermissions(DatabaseTestCase):
    def test_create_and_duplicate(self) -> None:
        body = PermissionCreate(name="reports.read", resource="reports", action="read")
        permission = catalog.create_permission(self.db, body)
        self.assertEqual(catalog.get_permission(self.db, permission.id).resource, "reports")
        with self.assertRaises(ConflictError) as ctx:
            catalog.create_permission(self.db, body)
        self.assertEqual(ctx.exception.message, "Permission name already exists")

    def test_list_ordered_by_resource_then_action(self) -> None:
        pairs = [(p.resource, p.action) for p in catalog.list_permissions(self.db)]
        self.assertEqual(pairs, sorted(pairs))

    def test_update(self) -> None:
        permission = catalog.get_permission(self.db, _ids(self.db, "content.delete")[0])
        updated = catalog.update_permission(
            self.db, permission.id, PermissionUpdate(description="Remove posts")
        )
        self.assertEqual(updated.description, "Remove posts")

    def test_delete_removes_links(self) -> None:
        user = self.make_user("alice@example.com", roles=["moderator"])
        permission_id = _ids(self.db, "content.delete")[0]
        catalog.delete_permission(self.db, permission_id)
        self.assertFalse(has_permission(self.db, user.id, "content.delete"))
        self.assertEqual(
            self.db.query(RolePermission)
            .filter(RolePermission.permission_id == permission_id)
            .count(),
            0,
        )

    def test_admin_access_protected(self) -> None:
        permission_id = _ids(self.db, "admin.access")[0]
        with self.assertRaises(ValidationFailedError):
            catalog.delete_permission(self.db, permission_id)
        with self.assertRaises(ValidationFailedError):
            catalog.update_permission(self.db, permission_id, PermissionUpdate(name="admin.enter"))
        self.assertEqual(catalog.get_permission(self.db, permission_id).name, "admin.access")


if __name__ == "__main__":
    unittest.main()
