"""
Permission catalog: the known permission and role codes, their seed data, and lookups.

PermissionCode and RoleCode list the codes the application itself relies on.
Codes assigned administratively at runtime are validated against the live
catalog tables with is_known_permission / get_role, so the two stay in step.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.security import hash_password
from app.models import Permission, Role, RolePermission, User, UserRole

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


class PermissionCode(str, Enum):
    USER_CREATE = "user:create"
    USER_READ = "user:read"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"
    USER_LIST = "user:list"
    EMAIL_BLOCK_DUPLICATE = "email:block_duplicate"
    ADMIN_ACCESS = "admin:access"


class RoleCode(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


# Role assigned to every new account.
DEFAULT_ROLE = RoleCode.USER

# code -> (name, description)
SEED_PERMISSIONS: dict[PermissionCode, tuple[str, str]] = {
    PermissionCode.USER_CREATE: ("Create User", "Permission to create new users"),
    PermissionCode.USER_READ: ("Read User", "Permission to read user information"),
    PermissionCode.USER_UPDATE: ("Update User", "Permission to update user information"),
    PermissionCode.USER_DELETE: ("Delete User", "Permission to delete users"),
    PermissionCode.USER_LIST: ("List Users", "Permission to list all users"),
    PermissionCode.EMAIL_BLOCK_DUPLICATE: (
        "Block Duplicate Email",
        "Permission to block duplicate email registration",
    ),
    PermissionCode.ADMIN_ACCESS: ("Admin Access", "Full administrative access"),
}

SEED_ROLES: dict[RoleCode, tuple[str, str]] = {
    RoleCode.ADMIN: ("Administrator", "Full access to all features"),
    RoleCode.MANAGER: ("Manager", "Management access with limited permissions"),
    RoleCode.USER: ("User", "Basic user access"),
}

SEED_ROLE_PERMISSIONS: dict[RoleCode, tuple[PermissionCode, ...]] = {
    RoleCode.ADMIN: tuple(PermissionCode),
    RoleCode.MANAGER: (
        PermissionCode.USER_CREATE,
        PermissionCode.USER_READ,
        PermissionCode.USER_UPDATE,
        PermissionCode.USER_LIST,
        PermissionCode.EMAIL_BLOCK_DUPLICATE,
    ),
    RoleCode.USER: (
        PermissionCode.USER_READ,
        PermissionCode.USER_LIST,
    ),
}


def code_value(value: str | Enum) -> str:
    """Plain string form of a permission or role code, whether given as an enum member or a str."""
    return value.value if isinstance(value, Enum) else value


def list_permissions(session: Session) -> list[Permission]:
    return list(session.scalars(select(Permission).order_by(Permission.code)))


def list_roles(session: Session) -> list[Role]:
    return list(session.scalars(select(Role).order_by(Role.code)))


def get_permission(session: Session, code: str | Enum) -> Permission | None:
    return session.scalars(
        select(Permission).where(Permission.code == code_value(code))
    ).first()


def get_role(session: Session, code: str | Enum) -> Role | None:
    return session.scalars(select(Role).where(Role.code == code_value(code))).first()


def is_known_permission(session: Session, code: str | Enum) -> bool:
    """True if code exists in the live catalog (not just in PermissionCode)."""
    return get_permission(session, code) is not None


def role_permissions(session: Session, role_code: str | Enum) -> set[str]:
    """Permission codes granted by one role; empty for an unknown role."""
    stmt = (
        select(Permission.code)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .join(Role, Role.id == RolePermission.role_id)
        .where(Role.code == code_value(role_code))
    )
    return set(session.scalars(stmt))


def seed_catalog(session: Session) -> tuple[int, int, int]:
    """
    Insert the seed permissions, roles and role-permission edges that are missing.

    Idempotent: safe to run on every start. Returns counts of rows inserted
    (permissions, roles, role_permissions).
    """
    perms_added = 0
    for code, (name, description) in SEED_PERMISSIONS.items():
        if get_permission(session, code) is None:
            session.add(Permission(code=code.value, name=name, description=description))
            perms_added += 1

    roles_added = 0
    for code, (name, description) in SEED_ROLES.items():
        if get_role(session, code) is None:
            session.add(Role(code=code.value, name=name, description=description))
            roles_added += 1
    session.flush()

    edges_added = 0
    for role_code, perm_codes in SEED_ROLE_PERMISSIONS.items():
        role = get_role(session, role_code)
        existing = role_permissions(session, role_code)
        for perm_code in perm_codes:
            if perm_code.value in existing:
                continue
            perm = get_permission(session, perm_code)
            session.add(RolePermission(role_id=role.id, permission_id=perm.id))
            edges_added += 1
    session.commit()

    if perms_added or roles_added or edges_added:
        logger.info(
            "Permission catalog seeded",
            extra={
                "permissions_added": perms_added,
                "roles_added": roles_added,
                "role_permissions_added": edges_added,
            },
        )
    return (perms_added, roles_added, edges_added)


def seed_admin(session: Session, settings: Settings) -> User:
    """
    Create the seed admin account if missing and make sure it holds the admin role.

    The account is found by its is_seed_admin flag first, so a renamed admin is
    not duplicated; an existing user at SEED_ADMIN_EMAIL is adopted.
    """
    admin = session.scalars(select(User).where(User.is_seed_admin.is_(True))).first()
    if admin is None:
        admin = session.scalars(
            select(User).where(User.email == settings.SEED_ADMIN_EMAIL)
        ).first()
        if admin is not None:
            admin.is_seed_admin = True
    if admin is None:
        admin = User(
            email=settings.SEED_ADMIN_EMAIL,
            name=settings.SEED_ADMIN_NAME,
            account_type=RoleCode.ADMIN.value,
            locale=settings.DEFAULT_LOCALE,
            password_hash=hash_password(settings.SEED_ADMIN_PASSWORD.get_secret_value()),
            is_seed_admin=True,
        )
        session.add(admin)
        session.flush()
        logger.info("Seed admin created", extra={"user_id": admin.id})

    role = get_role(session, RoleCode.ADMIN)
    if role is None:
        session.rollback()
        raise RuntimeError("Admin role missing; run seed_catalog first.")
    has_role = session.get(UserRole, (admin.id, role.id)) is not None
    if not has_role:
        session.add(UserRole(user_id=admin.id, role_id=role.id))
    session.commit()
    return admin
