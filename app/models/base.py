"""SQLAlchemy declarative Base shared by the user and RBAC models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base; Base.metadata holds every Warden table (used by create_all and alembic)."""
