"""Tests for settings validation."""

import unittest

from pydantic import ValidationError

from app.core.config import Settings
from app.schemas.auth import LoginRequest


class TestSeedAdminEmail(unittest.TestCase):
    """SEED_ADMIN_EMAIL is normalized the same way login emails are."""

    def test_domain_is_lowercased(self) -> None:
        s = Settings(SEED_ADMIN_EMAIL=" Root@Example.COM ")
        self.assertEqual(s.SEED_ADMIN_EMAIL, "Root@example.com")

    def test_matches_login_normalization(self) -> None:
        configured = Settings(SEED_ADMIN_EMAIL="root@Example.Com").SEED_ADMIN_EMAIL
        login = LoginRequest(email="root@Example.Com", password="x")
        self.assertEqual(login.email, configured)

    def test_rejects_non_email(self) -> None:
        with self.assertRaises(ValidationError):
            Settings(SEED_ADMIN_EMAIL="admin")


class TestRanges(unittest.TestCase):
    def test_bcrypt_rounds_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            Settings(BCRYPT_ROUNDS=3)
        self.assertEqual(Settings(BCRYPT_ROUNDS=4).BCRYPT_ROUNDS, 4)

    def test_unsupported_default_locale(self) -> None:
        with self.assertRaises(ValidationError):
            Settings(DEFAULT_LOCALE="fr")


if __name__ == "__main__":
    unittest.main()
