"""
Credential service: password hashing and the password-reset token lifecycle.

A user holds at most one reset token. Issuing a new one overwrites the old;
consuming one changes the password and clears the token in the same commit.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import InvalidResetTokenError, StorageError, UserNotFoundError
from app.core.security import generate_reset_token, hash_password, verify_password
from app.models import User
from app.services.mailer import Mailer, Recipient, dispatch

logger = logging.getLogger(__name__)

__all__ = [
    "change_password",
    "consume_reset_token",
    "hash_password",
    "issue_reset_token",
    "request_password_reset",
    "verify_password",
]


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _commit(session: Session) -> None:
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise StorageError(str(e)) from e


def issue_reset_token(
    session: Session,
    user_id: int,
    now: datetime | None = None,
) -> tuple[str, datetime]:
    """
    Generate and store a reset token for the user, replacing any previous one.

    Returns (token, expires_at). Raises UserNotFoundError for an unknown user.
    """
    user = session.scalars(
        select(User).where(User.id == user_id).with_for_update()
    ).first()
    if user is None:
        raise UserNotFoundError(f"User {user_id} not found")

    token = generate_reset_token()
    expires_at = (now or datetime.now(UTC)) + timedelta(
        minutes=settings.RESET_TOKEN_EXPIRE_MINUTES
    )
    user.reset_token = token
    user.reset_token_expires_at = expires_at
    _commit(session)
    logger.info(
        "Password reset token issued",
        extra={"user_id": user_id, "expires_at": expires_at.isoformat()},
    )
    return token, expires_at


def consume_reset_token(
    session: Session,
    token: str,
    new_password: str,
    now: datetime | None = None,
) -> User:
    """
    Set a new password using a reset token, then invalidate the token.

    Raises InvalidResetTokenError when the token is unknown, already used or
    expired; the three cases are deliberately indistinguishable.
    """
    current = now or datetime.now(UTC)
    if not token:
        raise InvalidResetTokenError("Invalid or expired reset token")

    user = session.scalars(
        select(User).where(User.reset_token == token).with_for_update()
    ).first()
    if (
        user is None
        or user.reset_token_expires_at is None
        or _as_utc(user.reset_token_expires_at) <= current
    ):
        session.rollback()
        raise InvalidResetTokenError("Invalid or expired reset token")

    user.password_hash = hash_password(new_password)
    user.reset_token = None
    user.reset_token_expires_at = None
    _commit(session)
    logger.info("Password reset completed", extra={"user_id": user.id})
    return user


def request_password_reset(
    session: Session,
    email: str,
    mailer: Mailer,
    schedule: Callable[..., Any] | None = None,
) -> bool:
    """
    Issue a reset token for email and send it to the user.

    An unknown email is a silent no-op so callers can answer identically either
    way. Delivery goes through schedule (e.g. BackgroundTasks.add_task) when
    given, otherwise runs inline; it never fails the request. Returns True if a
    token was issued.
    """
    user = session.scalars(select(User).where(User.email == email)).first()
    if user is None:
        logger.info("Password reset requested for unknown email")
        return False

    token, _ = issue_reset_token(session, user.id)
    recipient = Recipient.from_user(user)
    run = schedule or (lambda fn, *args: fn(*args))
    run(dispatch, mailer.send_password_reset, recipient, token)
    return True


def change_password(session: Session, user: User, new_password: str, commit: bool = True) -> None:
    """Store a fresh hash for new_password on user."""
    user.password_hash = hash_password(new_password)
    if commit:
        _commit(session)
    else:
        session.flush()
