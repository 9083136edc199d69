"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.rbac import Permission, Role, RolePermission, UserPermission, UserRole
from app.models.user import User

__all__ = [
    "Base",
    "Permission",
    "Role",
    "RolePermission",
    "User",
    "UserPermission",
    "UserRole",
]
