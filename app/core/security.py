"""Password hashing, reset-token generation and JWT creation/verification."""

import secrets
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

import bcrypt
import jwt

from app.core.config import settings

# Min/max lengths for password and name validation.
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128
NAME_MIN_LEN = 2
NAME_MAX_LEN = 100

# 32 random bytes, hex-encoded (64 chars).
RESET_TOKEN_BYTES = 32


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Every call uses a fresh salt."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    cost = rounds if rounds is not None else settings.BCRYPT_ROUNDS
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash. A missing or malformed hash never matches."""
    if not hashed:
        return False
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache
def _dummy_hash() -> str:
    return hash_password(secrets.token_hex(16))


def burn_password_check(plain_password: str) -> None:
    """Run a throwaway bcrypt check so a login without a stored hash costs the same as one with."""
    verify_password(plain_password, _dummy_hash())


def generate_reset_token() -> str:
    """Return a high-entropy, URL-safe password reset token."""
    return secrets.token_hex(RESET_TOKEN_BYTES)


def create_access_token(
    user_id: int,
    email: str,
    account_type: str,
    locale: str,
    now: datetime | None = None,
) -> str:
    """Create a signed JWT carrying identity and locale claims only (never permissions)."""
    issued_at = now or datetime.now(UTC)
    expire = issued_at + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "userId": user_id,
        "email": email,
        "accountType": account_type,
        "locale": locale,
        "exp": expire,
        "iat": issued_at,
    }
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.encode(
        payload,
        secret,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate JWT; return payload (userId, email, accountType, locale, exp, iat).
    Raises jwt.PyJWTError on invalid or expired token.
    """
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["exp", "userId"]},
    )
