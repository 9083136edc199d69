"""Tests for the user service: creation with default role, updates, preferences, deletion."""

import unittest

from sqlalchemy import func, select

from app.core.config import settings
from app.core.exceptions import (
    DuplicateEmailError,
    InvalidPreferencesError,
    PermissionNotFoundError,
    UndeletableAccountError,
    UserNotFoundError,
)
from app.core.security import verify_password
from app.models import User, UserPermission, UserRole
from app.schemas.users import UserCreate, UserUpdate
from app.services import rbac, users
from app.services.catalog import PermissionCode, RoleCode, seed_admin
from tests.support import DatabaseTestCase


def _new(email: str = "bea@example.com", **kwargs) -> UserCreate:
    return UserCreate(email=email, name="Bea Souza", password="initial-password", **kwargs)


class TestCreateUser(DatabaseTestCase):
    """New accounts receive the default role and nothing else."""

    def test_default_role_permissions(self) -> None:
        user = users.create_user(self.db, _new())
        self.assertEqual(rbac.user_roles(self.db, user.id), {"user"})
        self.assertEqual(rbac.effective_permissions(self.db, user.id), {"user:read", "user:list"})
        self.assertTrue(verify_password("initial-password", user.password_hash))
        self.assertEqual(user.locale, settings.DEFAULT_LOCALE)
        self.assertEqual(user.theme, "light")

    def test_initial_direct_permissions(self) -> None:
        user = users.create_user(self.db, _new(permissions=["user:delete"]))
        self.assertEqual(rbac.direct_permissions(self.db, user.id), {"user:delete"})

    def test_unknown_initial_permission_persists_nothing(self) -> None:
        with self.assertRaises(PermissionNotFoundError):
            users.create_user(self.db, _new(permissions=["reports:export"]))
        self.assertIsNone(users.find_by_email(self.db, "bea@example.com"))
        self.assertEqual(self.db.scalar(select(func.count()).select_from(User)), 0)

    def test_duplicate_email(self) -> None:
        users.create_user(self.db, _new())
        with self.assertRaises(DuplicateEmailError) as ctx:
            users.create_user(self.db, _new())
        self.assertEqual(ctx.exception.status_code, 409)


class TestUpdateUser(DatabaseTestCase):
    def test_partial_update(self) -> None:
        user = users.create_user(self.db, _new())
        updated = users.update_user(self.db, user.id, UserUpdate(name="Beatriz Souza", locale="pt"))
        self.assertEqual(updated.name, "Beatriz Souza")
        self.assertEqual(updated.locale, "pt")
        self.assertEqual(updated.email, "bea@example.com")

    def test_password_change(self) -> None:
        user = users.create_user(self.db, _new())
        users.update_user(self.db, user.id, UserUpdate(password="rotated-password"))
        self.db.refresh(user)
        self.assertTrue(verify_password("rotated-password", user.password_hash))

    def test_permissions_replace_direct_grants(self) -> None:
        user = users.create_user(self.db, _new(permissions=["user:delete"]))
        users.update_user(self.db, user.id, UserUpdate(permissions=["admin:access"]))
        self.assertEqual(rbac.direct_permissions(self.db, user.id), {"admin:access"})

    def test_unknown_permission_rolls_back_whole_update(self) -> None:
        user = users.create_user(self.db, _new(permissions=["user:delete"]))
        with self.assertRaises(PermissionNotFoundError):
            users.update_user(
                self.db, user.id, UserUpdate(name="Changed Name", permissions=["nope:nope"])
            )
        self.db.refresh(user)
        self.assertEqual(user.name, "Bea Souza")
        self.assertEqual(rbac.direct_permissions(self.db, user.id), {"user:delete"})

    def test_account_type_change_restores_default_role(self) -> None:
        user = users.create_user(self.db, _new())
        rbac.revoke_role(self.db, user.id, RoleCode.USER)
        users.update_user(self.db, user.id, UserUpdate(account_type="manager"))
        self.assertEqual(rbac.user_roles(self.db, user.id), {"user"})
        self.assertEqual(user.account_type, "manager")

    def test_email_taken_by_other_user(self) -> None:
        users.create_user(self.db, _new("first@example.com"))
        second = users.create_user(self.db, _new("second@example.com"))
        with self.assertRaises(DuplicateEmailError):
            users.update_user(self.db, second.id, UserUpdate(email="first@example.com"))

    def test_unknown_user(self) -> None:
        with self.assertRaises(UserNotFoundError):
            users.update_user(self.db, 404, UserUpdate(name="Nobody Here"))


class TestPreferences(DatabaseTestCase):
    def test_update_locale_and_theme(self) -> None:
        user = self.make_user()
        users.update_preferences(self.db, user.id, locale="es", theme="dark")
        self.db.refresh(user)
        self.assertEqual((user.locale, user.theme), ("es", "dark"))

    def test_invalid_values(self) -> None:
        user = self.make_user()
        for kwargs in ({}, {"locale": "fr"}, {"theme": "neon"}):
            with self.assertRaises(InvalidPreferencesError):
                users.update_preferences(self.db, user.id, **kwargs)


class TestDeleteUser(DatabaseTestCase):
    """Deletion cascades to RBAC edges; the seed admin is protected."""

    def test_delete_cascades_edges(self) -> None:
        user = self.make_user(roles=(RoleCode.MANAGER,), permissions=(PermissionCode.USER_DELETE,))
        user_id = user.id
        users.delete_user(self.db, user_id)
        self.assertIsNone(self.db.get(User, user_id))
        for model in (UserRole, UserPermission):
            count = self.db.scalar(
                select(func.count()).select_from(model).where(model.user_id == user_id)
            )
            self.assertEqual(count, 0)

    def test_seed_admin_cannot_be_deleted(self) -> None:
        admin = seed_admin(self.db, settings)
        self.assertIn("admin:access", rbac.effective_permissions(self.db, admin.id))
        with self.assertRaises(UndeletableAccountError) as ctx:
            users.delete_user(self.db, admin.id)
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertIsNotNone(self.db.get(User, admin.id))

    def test_renamed_seed_admin_still_undeletable(self) -> None:
        admin = seed_admin(self.db, settings)
        users.update_user(self.db, admin.id, UserUpdate(email="renamed@example.com"))
        with self.assertRaises(UndeletableAccountError):
            users.delete_user(self.db, admin.id)

    def test_user_taking_seed_admin_email_is_deletable(self) -> None:
        admin = seed_admin(self.db, settings)
        users.update_user(self.db, admin.id, UserUpdate(email="renamed@example.com"))
        other = users.create_user(self.db, _new())
        users.update_user(self.db, other.id, UserUpdate(email=settings.SEED_ADMIN_EMAIL))
        users.delete_user(self.db, other.id)
        self.assertIsNone(self.db.get(User, other.id))

    def test_reseeding_after_rename_keeps_one_admin(self) -> None:
        admin = seed_admin(self.db, settings)
        users.update_user(self.db, admin.id, UserUpdate(email="renamed@example.com"))
        self.assertEqual(seed_admin(self.db, settings).id, admin.id)
        self.assertIsNone(users.find_by_email(self.db, settings.SEED_ADMIN_EMAIL))

    def test_delete_unknown_user(self) -> None:
        with self.assertRaises(UserNotFoundError):
            users.delete_user(self.db, 123456)


if __name__ == "__main__":
    unittest.main()
