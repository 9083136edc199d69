"""
User accounts: create, read, update, delete, and per-user preferences.

Multi-step changes (user row + default role + direct grants) commit as one
transaction. A duplicate email, whether caught up front or by the unique
constraint under a race, surfaces as DuplicateEmailError.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import SUPPORTED_LOCALES, SUPPORTED_THEMES, get_settings
from app.core.exceptions import (
    DuplicateEmailError,
    InvalidPreferencesError,
    StorageError,
    UndeletableAccountError,
    UserNotFoundError,
    WardenError,
)
from app.core.security import hash_password
from app.models import User
from app.services.catalog import DEFAULT_ROLE
from app.services.credentials import change_password
from app.services.rbac import assign_role, set_direct_permissions

if TYPE_CHECKING:
    from app.schemas.users import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


def list_users(session: Session) -> list[User]:
    return list(session.scalars(select(User).order_by(User.id)))


def get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise UserNotFoundError(f"User {user_id} not found")
    return user


def find_by_email(session: Session, email: str) -> User | None:
    return session.scalars(select(User).where(User.email == email)).first()


def _commit_user_change(session: Session) -> None:
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise DuplicateEmailError("Email already registered") from e
    except SQLAlchemyError as e:
        session.rollback()
        raise StorageError(str(e)) from e


def create_user(session: Session, data: UserCreate) -> User:
    """
    Create an account with the default role and optional direct permissions.

    Raises DuplicateEmailError, or PermissionNotFoundError for an unknown
    initial permission; nothing is persisted in either case.
    """
    if find_by_email(session, data.email) is not None:
        raise DuplicateEmailError("Email already registered")

    user = User(
        email=data.email,
        name=data.name,
        account_type=data.account_type,
        locale=data.locale or get_settings().DEFAULT_LOCALE,
        password_hash=hash_password(data.password),
    )
    try:
        session.add(user)
        session.flush()
        assign_role(session, user.id, DEFAULT_ROLE, commit=False)
        if data.permissions:
            set_direct_permissions(session, user.id, data.permissions, commit=False)
    except IntegrityError as e:
        session.rollback()
        raise DuplicateEmailError("Email already registered") from e
    except WardenError:
        session.rollback()
        raise
    _commit_user_change(session)
    logger.info(
        "User created",
        extra={"user_id": user.id, "account_type": user.account_type},
    )
    return user


def update_user(session: Session, user_id: int, data: UserUpdate) -> User:
    """
    Apply a partial update. permissions, when present, replace the direct grants.

    Changing the account type re-affirms the default role. If the default role
    is missing from the catalog the whole update fails with RoleNotFoundError.
    """
    user = get_user(session, user_id)
    changes = data.model_dump(exclude_unset=True)

    new_email = changes.get("email")
    if new_email and new_email != user.email and find_by_email(session, new_email) is not None:
        raise DuplicateEmailError("Email already registered")

    try:
        if new_email:
            user.email = new_email
        if changes.get("name"):
            user.name = changes["name"]
        if changes.get("account_type"):
            user.account_type = changes["account_type"]
            if assign_role(session, user.id, DEFAULT_ROLE, commit=False):
                logger.info(
                    "Default role restored on account type change",
                    extra={"user_id": user.id},
                )
        if changes.get("password"):
            change_password(session, user, changes["password"], commit=False)
        if changes.get("locale"):
            user.locale = changes["locale"]
        if changes.get("permissions") is not None:
            set_direct_permissions(session, user.id, changes["permissions"], commit=False)
        session.flush()
    except IntegrityError as e:
        session.rollback()
        raise DuplicateEmailError("Email already registered") from e
    except WardenError:
        session.rollback()
        raise
    _commit_user_change(session)
    logger.info(
        "User updated",
        extra={"user_id": user.id, "fields": ",".join(sorted(changes))},
    )
    return user


def update_preferences(
    session: Session,
    user_id: int,
    locale: str | None = None,
    theme: str | None = None,
) -> User:
    """Change the user's locale and/or UI theme; at least one is required."""
    if locale is None and theme is None:
        raise InvalidPreferencesError("At least one preference (locale or theme) must be provided")
    if locale is not None and locale not in SUPPORTED_LOCALES:
        raise InvalidPreferencesError(f"Unsupported locale {locale!r}")
    if theme is not None and theme not in SUPPORTED_THEMES:
        raise InvalidPreferencesError(f"Unsupported theme {theme!r}")

    user = get_user(session, user_id)
    if locale is not None:
        user.locale = locale
    if theme is not None:
        user.theme = theme
    _commit_user_change(session)
    return user


def delete_user(session: Session, user_id: int) -> None:
    """
    Delete a user; role and permission edges go with it (ON DELETE CASCADE).

    The seed admin can never be deleted, whatever the caller's permissions or
    the account's current email.
    """
    user = get_user(session, user_id)
    if user.is_seed_admin:
        raise UndeletableAccountError("The seed admin account cannot be deleted")
    session.delete(user)
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise StorageError(str(e)) from e
    logger.info("User deleted", extra={"user_id": user_id})
