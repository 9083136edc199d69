"""Tests for the password-reset token lifecycle."""

import unittest
from datetime import UTC, datetime, timedelta

from app.core.config import settings
from app.core.exceptions import InvalidResetTokenError, InvalidTokenError, UserNotFoundError
from app.core.security import verify_password
from app.services.credentials import (
    change_password,
    consume_reset_token,
    issue_reset_token,
    request_password_reset,
)
from tests.support import PASSWORD, DatabaseTestCase, RecordingMailer


class TestResetTokenLifecycle(DatabaseTestCase):
    """issue -> consume succeeds once; reuse and expiry fail the same way."""

    def test_issue_then_consume(self) -> None:
        user = self.make_user()
        token, expires_at = issue_reset_token(self.db, user.id)
        self.assertEqual(user.reset_token, token)

        consume_reset_token(self.db, token, "brand-new-password")
        self.db.refresh(user)
        self.assertIsNone(user.reset_token)
        self.assertIsNone(user.reset_token_expires_at)
        self.assertTrue(verify_password("brand-new-password", user.password_hash))
        self.assertFalse(verify_password(PASSWORD, user.password_hash))

        with self.assertRaises(InvalidResetTokenError):
            consume_reset_token(self.db, token, "another-password")

    def test_expiry_is_one_hour_by_default(self) -> None:
        user = self.make_user()
        now = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        _, expires_at = issue_reset_token(self.db, user.id, now=now)
        self.assertEqual(expires_at - now, timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES))

    def test_expired_token_fails_and_password_unchanged(self) -> None:
        user = self.make_user()
        issued = datetime.now(UTC) - timedelta(hours=2)
        token, expires_at = issue_reset_token(self.db, user.id, now=issued)
        with self.assertRaises(InvalidResetTokenError):
            consume_reset_token(self.db, token, "late-password", now=expires_at + timedelta(seconds=1))
        self.db.refresh(user)
        self.assertTrue(verify_password(PASSWORD, user.password_hash))

    def test_reissue_invalidates_previous_token(self) -> None:
        user = self.make_user()
        old, _ = issue_reset_token(self.db, user.id)
        new, _ = issue_reset_token(self.db, user.id)
        with self.assertRaises(InvalidResetTokenError):
            consume_reset_token(self.db, old, "password-one")
        consume_reset_token(self.db, new, "password-two")

    def test_unknown_and_empty_tokens(self) -> None:
        for token in ("", "f" * 64):
            with self.assertRaises(InvalidTokenError):
                consume_reset_token(self.db, token, "whatever-pw")

    def test_issue_for_unknown_user(self) -> None:
        with self.assertRaises(UserNotFoundError):
            issue_reset_token(self.db, 31337)


class TestRequestPasswordReset(DatabaseTestCase):
    """Email dispatch and silent handling of unknown addresses."""

    def test_known_email_sends_token(self) -> None:
        user = self.make_user(locale="pt")
        mailer = RecordingMailer()
        self.assertTrue(request_password_reset(self.db, user.email, mailer))
        self.assertEqual(len(mailer.resets), 1)
        recipient, token = mailer.resets[0]
        self.assertEqual(recipient.email, user.email)
        self.assertEqual(recipient.locale, "pt")
        self.assertEqual(token, user.reset_token)

    def test_unknown_email_is_silent(self) -> None:
        mailer = RecordingMailer()
        self.assertFalse(request_password_reset(self.db, "ghost@example.com", mailer))
        self.assertEqual(mailer.resets, [])

    def test_mail_failure_does_not_raise(self) -> None:
        user = self.make_user()
        self.assertTrue(request_password_reset(self.db, user.email, RecordingMailer(fail=True)))
        self.assertIsNotNone(user.reset_token)

    def test_schedule_defers_delivery(self) -> None:
        user = self.make_user()
        mailer = RecordingMailer()
        queued = []
        request_password_reset(
            self.db, user.email, mailer, schedule=lambda fn, *args: queued.append((fn, args))
        )
        self.assertEqual(mailer.resets, [])
        fn, args = queued[0]
        fn(*args)
        self.assertEqual(len(mailer.resets), 1)


class TestChangePassword(DatabaseTestCase):
    def test_change_password(self) -> None:
        user = self.make_user()
        change_password(self.db, user, "changed-password")
        self.db.refresh(user)
        self.assertTrue(verify_password("changed-password", user.password_hash))


if __name__ == "__main__":
    unittest.main()
