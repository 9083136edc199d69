"""
RBAC resolver: effective permissions and the role / direct-permission assignments behind them.

A user's effective permissions are the union of the permissions of every role
assigned to them and the permissions granted to them directly. They are
resolved from the database on every call; nothing is cached on the session
token, so a revocation applies from the next request on.

Reads never fail for an unknown user (they return empty sets). Mutations
raise RoleNotFoundError / PermissionNotFoundError for codes missing from the
catalog and UserNotFoundError for an unknown user. Each mutation commits
unless called with commit=False, in which case the caller owns the
transaction.
"""

import logging
from collections.abc import Iterable
from enum import Enum

from sqlalchemy import select, union
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    PermissionNotFoundError,
    RoleNotFoundError,
    StorageError,
    UserNotFoundError,
)
from app.models import Permission, Role, RolePermission, User, UserPermission, UserRole
from app.services.catalog import code_value, get_permission, get_role

logger = logging.getLogger(__name__)

Code = str | Enum


def _codes(values: Iterable[Code]) -> list[str]:
    # Deduplicate while keeping caller order.
    return list(dict.fromkeys(code_value(v) for v in values))


# --- reads -------------------------------------------------------------------


def role_derived_permissions(session: Session, user_id: int) -> set[str]:
    """Permission codes reachable through the user's roles only."""
    stmt = (
        select(Permission.code)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .join(UserRole, UserRole.role_id == RolePermission.role_id)
        .where(UserRole.user_id == user_id)
    )
    return set(session.scalars(stmt))


def direct_permissions(session: Session, user_id: int) -> set[str]:
    """Permission codes granted directly to the user, excluding role-derived ones."""
    stmt = (
        select(Permission.code)
        .join(UserPermission, UserPermission.permission_id == Permission.id)
        .where(UserPermission.user_id == user_id)
    )
    return set(session.scalars(stmt))


def effective_permissions(session: Session, user_id: int) -> set[str]:
    """Union of role-derived and direct permission codes. Empty set for a user with neither."""
    via_roles = (
        select(RolePermission.permission_id)
        .join(UserRole, UserRole.role_id == RolePermission.role_id)
        .where(UserRole.user_id == user_id)
    )
    direct = select(UserPermission.permission_id).where(UserPermission.user_id == user_id)
    permission_ids = union(via_roles, direct).subquery()
    stmt = select(Permission.code).where(
        Permission.id.in_(select(permission_ids.c.permission_id))
    )
    return set(session.scalars(stmt))


def user_roles(session: Session, user_id: int) -> set[str]:
    """Role codes assigned to the user (empty for an unknown user)."""
    stmt = (
        select(Role.code)
        .join(UserRole, UserRole.role_id == Role.id)
        .where(UserRole.user_id == user_id)
    )
    return set(session.scalars(stmt))


def has_permission(session: Session, user_id: int, code: Code) -> bool:
    return code_value(code) in effective_permissions(session, user_id)


def has_all(session: Session, user_id: int, codes: Iterable[Code]) -> bool:
    """True if the user holds every code. Vacuously true for no codes."""
    wanted = _codes(codes)
    if not wanted:
        return True
    held = effective_permissions(session, user_id)
    return all(c in held for c in wanted)


def has_any(session: Session, user_id: int, codes: Iterable[Code]) -> bool:
    """True if the user holds at least one code. False for no codes."""
    wanted = _codes(codes)
    if not wanted:
        return False
    held = effective_permissions(session, user_id)
    return any(c in held for c in wanted)


# --- mutations ---------------------------------------------------------------


def _require_user(session: Session, user_id: int, lock: bool = False) -> User:
    stmt = select(User).where(User.id == user_id)
    if lock:
        # Serializes concurrent multi-step mutations of the same user (no-op on SQLite).
        stmt = stmt.with_for_update()
    user = session.scalars(stmt).first()
    if user is None:
        raise UserNotFoundError(f"User {user_id} not found")
    return user


def _require_role(session: Session, code: Code) -> Role:
    role = get_role(session, code)
    if role is None:
        raise RoleNotFoundError(f"Role '{code_value(code)}' not found", role=code_value(code))
    return role


def _require_permission(session: Session, code: Code) -> Permission:
    perm = get_permission(session, code)
    if perm is None:
        raise PermissionNotFoundError(
            f"Permission '{code_value(code)}' not found", permission=code_value(code)
        )
    return perm


def _finish(session: Session, commit: bool) -> None:
    if not commit:
        session.flush()
        return
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise StorageError(str(e)) from e


def _add_edge(session: Session, edge: UserRole | UserPermission, commit: bool) -> None:
    session.add(edge)
    if not commit:
        session.flush()
        return
    model = type(edge)
    key = (edge.user_id, edge.role_id if model is UserRole else edge.permission_id)
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        # A concurrent request may have inserted the same edge first; that is still success.
        if session.get(model, key) is None:
            raise StorageError(str(e)) from e


def assign_role(session: Session, user_id: int, role_code: Code, commit: bool = True) -> bool:
    """Give the user a role. Idempotent; returns False if the user already had it."""
    role = _require_role(session, role_code)
    _require_user(session, user_id)
    if session.get(UserRole, (user_id, role.id)) is not None:
        return False
    _add_edge(session, UserRole(user_id=user_id, role_id=role.id), commit)
    logger.info("Role assigned", extra={"user_id": user_id, "role": role.code})
    return True


def revoke_role(session: Session, user_id: int, role_code: Code, commit: bool = True) -> bool:
    """Remove a role from the user. Not holding it is a no-op; an unknown role code is an error."""
    role = _require_role(session, role_code)
    edge = session.get(UserRole, (user_id, role.id))
    if edge is None:
        return False
    session.delete(edge)
    _finish(session, commit)
    logger.info("Role revoked", extra={"user_id": user_id, "role": role.code})
    return True


def assign_permission(session: Session, user_id: int, code: Code, commit: bool = True) -> bool:
    """Grant a permission directly. Idempotent; returns False if already granted."""
    perm = _require_permission(session, code)
    _require_user(session, user_id)
    if session.get(UserPermission, (user_id, perm.id)) is not None:
        return False
    _add_edge(session, UserPermission(user_id=user_id, permission_id=perm.id), commit)
    logger.info("Permission granted", extra={"user_id": user_id, "permission": perm.code})
    return True


def revoke_permission(session: Session, user_id: int, code: Code, commit: bool = True) -> bool:
    """Remove a direct grant. Not holding it is a no-op; an unknown code is an error."""
    perm = _require_permission(session, code)
    edge = session.get(UserPermission, (user_id, perm.id))
    if edge is None:
        return False
    session.delete(edge)
    _finish(session, commit)
    logger.info("Permission revoked", extra={"user_id": user_id, "permission": perm.code})
    return True


def set_direct_permissions(
    session: Session,
    user_id: int,
    codes: Iterable[Code],
    commit: bool = True,
) -> set[str]:
    """
    Replace the user's direct grants with exactly codes.

    All-or-nothing: every code is checked against the catalog before anything
    changes, and the removal and insertion commit together. On any failure the
    previous grant set is left untouched. Returns the new direct grant set.
    """
    wanted = _codes(codes)
    perms = session.scalars(select(Permission).where(Permission.code.in_(wanted))).all()
    ids_by_code = {p.code: p.id for p in perms}
    for code in wanted:
        if code not in ids_by_code:
            raise PermissionNotFoundError(
                f"Permission '{code}' not found", permission=code
            )

    _require_user(session, user_id, lock=True)
    target_ids = set(ids_by_code.values())
    try:
        current = session.scalars(
            select(UserPermission).where(UserPermission.user_id == user_id)
        ).all()
        current_ids = set()
        for grant in current:
            current_ids.add(grant.permission_id)
            if grant.permission_id not in target_ids:
                session.delete(grant)
        session.add_all(
            UserPermission(user_id=user_id, permission_id=pid)
            for pid in target_ids - current_ids
        )
        if commit:
            session.commit()
        else:
            session.flush()
    except SQLAlchemyError as e:
        session.rollback()
        raise StorageError(str(e)) from e

    logger.info(
        "Direct permissions replaced",
        extra={"user_id": user_id, "permission_count": len(wanted)},
    )
    return set(wanted)
