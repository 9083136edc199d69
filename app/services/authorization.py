"""Authorization gate: permission checks that guard route handlers. Pure checks, no writes."""

from collections.abc import Iterable
from enum import Enum

from sqlalchemy.orm import Session

from app.core.exceptions import AccessDeniedError, NotAuthenticatedError
from app.services.catalog import code_value
from app.services.rbac import has_all, has_any, has_permission


def _authenticated(user_id: int | None) -> int:
    if user_id is None:
        raise NotAuthenticatedError("Not authenticated")
    return user_id


def require_permission(session: Session, user_id: int | None, code: str | Enum) -> None:
    """Raise NotAuthenticatedError without a principal, AccessDeniedError without the permission."""
    uid = _authenticated(user_id)
    if not has_permission(session, uid, code):
        raise AccessDeniedError(
            f"Missing permission {code_value(code)}", permission=code_value(code)
        )


def require_all(session: Session, user_id: int | None, codes: Iterable[str | Enum]) -> None:
    """Every code is required; an empty list always passes for an authenticated principal."""
    uid = _authenticated(user_id)
    wanted = [code_value(c) for c in codes]
    if not has_all(session, uid, wanted):
        raise AccessDeniedError(
            f"Missing one of {wanted}", permission=", ".join(wanted)
        )


def require_any(session: Session, user_id: int | None, codes: Iterable[str | Enum]) -> None:
    """At least one code is required; an empty list never passes."""
    uid = _authenticated(user_id)
    wanted = [code_value(c) for c in codes]
    if not has_any(session, uid, wanted):
        raise AccessDeniedError(
            f"Need any of {wanted}", permission=" | ".join(wanted)
        )
