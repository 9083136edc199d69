"""JWT login, password reset, and auth dependencies (get_current_user, permission guards)."""

from collections.abc import Callable
from enum import Enum
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import NotAuthenticatedError
from app.core.i18n import resolve_locale, translate
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    Principal,
)
from app.services import authorization
from app.services.credentials import consume_reset_token, request_password_reset
from app.services.mailer import Mailer, get_mailer
from app.services.sessions import login as login_user
from app.services.sessions import verify_token

router = APIRouter()
security = HTTPBearer(auto_error=False)


def request_locale(request: Request, principal: Principal | None = None) -> str:
    """Locale for response messages: the principal's preference, else ?lang=, else Accept-Language."""
    return resolve_locale(
        query_lang=request.query_params.get("lang"),
        accept_language=request.headers.get("accept-language"),
        user_locale=principal.locale if principal else None,
    )


def get_optional_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> Principal | None:
    """Dependency: principal for a valid Bearer JWT, None when no token is sent. Raises 401 on a bad token."""
    if credentials is None:
        return None
    principal = verify_token(db, credentials.credentials)
    request.state.locale = principal.locale
    return principal


def get_current_user(
    principal: Annotated[Principal | None, Depends(get_optional_user)],
) -> Principal:
    """Dependency: require valid Bearer JWT and return the current user. Raises 401 if missing or invalid."""
    if principal is None:
        raise NotAuthenticatedError("Not authenticated")
    return principal


def _guard(
    check: Callable[[Session, int | None], None],
) -> Callable[..., Principal]:
    def dependency(
        principal: Annotated[Principal | None, Depends(get_optional_user)],
        db: Annotated[Session, Depends(get_db)],
    ) -> Principal:
        check(db, principal.id if principal else None)
        return principal

    return dependency


def require_permission(code: str | Enum) -> Callable[..., Principal]:
    """Dependency factory: 401 without a principal, 403 unless it holds code."""
    return _guard(lambda db, uid: authorization.require_permission(db, uid, code))


def require_all_permissions(codes: list[str | Enum]) -> Callable[..., Principal]:
    """Dependency factory: 403 unless the principal holds every code."""
    return _guard(lambda db, uid: authorization.require_all(db, uid, codes))


def require_any_permission(codes: list[str | Enum]) -> Callable[..., Principal]:
    """Dependency factory: 403 unless the principal holds at least one code (never for an empty list)."""
    return _guard(lambda db, uid: authorization.require_any(db, uid, codes))


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> LoginResponse:
    """
    Authenticate with email and password; returns a JWT access token valid for 24 hours.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    result = login_user(db, body.email, body.password)
    return LoginResponse(access_token=result.token, token_type="bearer", user=result.principal)


@router.get("/me", response_model=Principal)
def me(current_user: Annotated[Principal, Depends(get_current_user)]) -> Principal:
    """Current principal with permissions resolved for this request."""
    return current_user


@router.post("/password-reset/request", response_model=MessageResponse)
def password_reset_request(
    body: PasswordResetRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Annotated[Session, Depends(get_db)],
    mailer: Annotated[Mailer, Depends(get_mailer)],
) -> MessageResponse:
    """Send a reset link if the email is registered. The response is the same either way."""
    request_password_reset(db, body.email, mailer, schedule=background_tasks.add_task)
    return MessageResponse(
        message=translate(request_locale(request), "auth.password_reset.email_sent")
    )


@router.post("/password-reset/confirm", response_model=MessageResponse)
def password_reset_confirm(
    body: PasswordResetConfirm,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Set a new password with a reset token. 400 if the token is unknown, used or expired."""
    consume_reset_token(db, body.token, body.password)
    return MessageResponse(
        message=translate(request_locale(request), "auth.password_reset.success")
    )
