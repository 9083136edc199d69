"""ORM model for user accounts (credentials, preferences, reset-token state)."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, false, func

from app.models.base import Base


class User(Base):
    """
    User account for JWT authentication.

    account_type: 'admin', 'manager' or 'user'. Informational only; authorization
    is decided by roles and direct permissions.
    password_hash: bcrypt hash, never exposed. NULL means the account cannot log in.
    reset_token / reset_token_expires_at: at most one active reset token per user.
    is_seed_admin: set once by seeding; that account can never be deleted, whatever its email.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    account_type = Column(String(32), nullable=False, default="user", server_default="user")
    locale = Column(String(8), nullable=False, default="en", server_default="en")
    theme = Column(String(16), nullable=False, default="light", server_default="light")
    password_hash = Column(String(255), nullable=True)
    reset_token = Column(String(128), nullable=True, index=True)
    reset_token_expires_at = Column(DateTime(timezone=True), nullable=True)
    is_seed_admin = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
