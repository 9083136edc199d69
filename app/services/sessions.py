"""
Session issuer: log users in with email + password and verify the JWTs it hands out.

Tokens carry identity and locale only. Permissions are recomputed from the
database on every verification, so a revoked permission stops working on the
next request. There is no revocation list: a token stays valid until it
expires.
"""

import logging
from dataclasses import dataclass, field

import jwt
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidCredentialsError, InvalidTokenError
from app.core.security import (
    burn_password_check,
    create_access_token,
    decode_access_token,
    verify_password,
)
from app.models import User
from app.schemas.auth import Principal
from app.services.rbac import effective_permissions

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    token: str
    principal: Principal
    permissions: set[str] = field(default_factory=set)


def _principal(user: User, permissions: set[str]) -> Principal:
    return Principal(
        id=user.id,
        email=user.email,
        name=user.name,
        account_type=user.account_type,
        locale=user.locale,
        theme=user.theme,
        permissions=sorted(permissions),
    )


def login(session: Session, email: str, password: str) -> LoginResult:
    """
    Authenticate email + password and mint a session token.

    Unknown email, an account without a password and a wrong password all
    raise the same InvalidCredentialsError.
    """
    user = session.scalars(select(User).where(User.email == email)).first()
    if user is None or not user.password_hash:
        # Keep the failure path as slow as a real bcrypt check.
        burn_password_check(password)
        raise InvalidCredentialsError("Invalid email or password")
    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError("Invalid email or password")

    token = create_access_token(
        user_id=user.id,
        email=user.email,
        account_type=user.account_type,
        locale=user.locale,
    )
    permissions = effective_permissions(session, user.id)
    logger.info(
        "Login succeeded",
        extra={"user_id": user.id, "permission_count": len(permissions)},
    )
    return LoginResult(
        token=token,
        principal=_principal(user, permissions),
        permissions=permissions,
    )


def verify_token(session: Session, token: str) -> Principal:
    """
    Verify a session token and return the principal with live permissions.

    Bad signature, malformed token, elapsed expiry, a non-numeric userId claim and a
    user deleted since issuance all raise InvalidTokenError.
    """
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError as e:
        raise InvalidTokenError("Invalid or expired token") from e
    try:
        user_id = int(payload["userId"])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidTokenError("Invalid token payload") from e

    user = session.get(User, user_id)
    if user is None:
        raise InvalidTokenError("Invalid token subject")
    return _principal(user, effective_permissions(session, user.id))
