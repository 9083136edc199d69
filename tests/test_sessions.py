"""Tests for login and token verification."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt

from app.core.config import settings
from app.core.exceptions import InvalidCredentialsError, InvalidTokenError
from app.core.security import create_access_token, decode_access_token
from app.services import rbac
from app.services.catalog import PermissionCode, RoleCode
from app.services.sessions import login, verify_token
from tests.support import PASSWORD, DatabaseTestCase


class TestLogin(DatabaseTestCase):
    """Successful login and the three indistinguishable failure cases."""

    def test_success_returns_token_and_permissions(self) -> None:
        user = self.make_user(roles=(RoleCode.USER,), locale="es")
        result = login(self.db, user.email, PASSWORD)
        self.assertEqual(result.principal.id, user.id)
        self.assertEqual(result.principal.locale, "es")
        self.assertEqual(result.permissions, {"user:read", "user:list"})
        self.assertEqual(result.principal.permissions, ["user:list", "user:read"])
        payload = decode_access_token(result.token)
        self.assertEqual(payload["userId"], user.id)

    def test_failures_are_unified(self) -> None:
        self.make_user(email="known@example.com")
        self.make_user(email="nopass@example.com", password=None)
        attempts = [
            ("missing@example.com", PASSWORD),
            ("known@example.com", "wrong-password"),
            ("nopass@example.com", PASSWORD),
        ]
        errors = []
        for email, password in attempts:
            with self.assertRaises(InvalidCredentialsError) as ctx:
                login(self.db, email, password)
            errors.append((type(ctx.exception), ctx.exception.message, ctx.exception.status_code))
        self.assertEqual(len(set(errors)), 1)


class TestVerifyToken(DatabaseTestCase):
    """Tokens resolve to principals with live permissions."""

    def test_permissions_are_resolved_live(self) -> None:
        user = self.make_user(roles=(RoleCode.USER,))
        token = login(self.db, user.email, PASSWORD).token
        rbac.assign_permission(self.db, user.id, PermissionCode.USER_DELETE)
        principal = verify_token(self.db, token)
        self.assertIn("user:delete", principal.permissions)
        rbac.revoke_role(self.db, user.id, RoleCode.USER)
        principal = verify_token(self.db, token)
        self.assertEqual(principal.permissions, ["user:delete"])

    def test_tampered_token(self) -> None:
        user = self.make_user()
        token = login(self.db, user.email, PASSWORD).token
        head, sig = token.rsplit(".", 1)
        flipped = "A" if sig[0] != "A" else "B"
        with self.assertRaises(InvalidTokenError):
            verify_token(self.db, f"{head}.{flipped}{sig[1:]}")

    def test_garbage_token(self) -> None:
        with self.assertRaises(InvalidTokenError):
            verify_token(self.db, "not.a.jwt")

    def test_expired_token(self) -> None:
        user = self.make_user()
        issued = datetime.now(UTC) - timedelta(minutes=settings.JWT_EXPIRE_MINUTES + 5)
        token = create_access_token(user.id, user.email, user.account_type, user.locale, now=issued)
        with self.assertRaises(InvalidTokenError):
            verify_token(self.db, token)

    def test_token_without_user_id_rejected(self) -> None:
        forged = jwt.encode(
            {"email": "ana@example.com", "exp": datetime.now(UTC) + timedelta(hours=1)},
            settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
        )
        with self.assertRaises(InvalidTokenError):
            verify_token(self.db, forged)

    def test_deleted_user_token_rejected(self) -> None:
        user = self.make_user()
        token = login(self.db, user.email, PASSWORD).token
        self.db.delete(user)
        self.db.commit()
        with self.assertRaises(InvalidTokenError):
            verify_token(self.db, token)


if __name__ == "__main__":
    unittest.main()
