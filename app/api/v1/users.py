"""User management endpoints: CRUD, preferences, and per-user role/permission administration."""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user, request_locale, require_permission
from app.core.database import get_db
from app.core.i18n import translate
from app.schemas.auth import MessageResponse, Principal
from app.schemas.permissions import (
    DirectPermissionsSet,
    PermissionGrant,
    RoleAssignment,
    UserAccessResponse,
)
from app.schemas.users import (
    PreferencesUpdate,
    UserCreate,
    UserDetail,
    UserMutationResponse,
    UserOut,
    UserUpdate,
)
from app.services import rbac, users
from app.services.catalog import PermissionCode
from app.services.mailer import Mailer, Recipient, dispatch, get_mailer

router = APIRouter()


def _access(db: Session, user_id: int) -> UserAccessResponse:
    return UserAccessResponse(
        user_id=user_id,
        roles=sorted(rbac.user_roles(db, user_id)),
        direct_permissions=sorted(rbac.direct_permissions(db, user_id)),
        effective_permissions=sorted(rbac.effective_permissions(db, user_id)),
    )


@router.get("", response_model=list[UserOut])
def list_users(
    _user: Annotated[Principal, Depends(require_permission(PermissionCode.USER_LIST))],
    db: Annotated[Session, Depends(get_db)],
) -> list[UserOut]:
    return [UserOut.model_validate(u) for u in users.list_users(db)]


@router.post("", response_model=UserMutationResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    current: Annotated[Principal, Depends(require_permission(PermissionCode.USER_CREATE))],
    db: Annotated[Session, Depends(get_db)],
    mailer: Annotated[Mailer, Depends(get_mailer)],
) -> UserMutationResponse:
    """Create a user with the default 'user' role and send a welcome email (best-effort)."""
    user = users.create_user(db, body)
    background_tasks.add_task(dispatch, mailer.send_welcome, Recipient.from_user(user))
    return UserMutationResponse(
        message=translate(request_locale(request, current), "success.user_created"),
        user=UserOut.model_validate(user),
    )


@router.patch("/me/preferences", response_model=UserMutationResponse)
def update_my_preferences(
    body: PreferencesUpdate,
    current: Annotated[Principal, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserMutationResponse:
    """Change the caller's own locale and/or theme."""
    user = users.update_preferences(db, current.id, locale=body.locale, theme=body.theme)
    return UserMutationResponse(
        message=translate(user.locale, "success.preferences_updated"),
        user=UserOut.model_validate(user),
    )


@router.get("/{user_id}", response_model=UserDetail)
def get_user(
    user_id: int,
    _user: Annotated[Principal, Depends(require_permission(PermissionCode.USER_READ))],
    db: Annotated[Session, Depends(get_db)],
) -> UserDetail:
    """One user with roles and effective permissions."""
    user = users.get_user(db, user_id)
    detail = UserDetail.model_validate(user)
    detail.roles = sorted(rbac.user_roles(db, user.id))
    detail.permissions = sorted(rbac.effective_permissions(db, user.id))
    return detail


@router.put("/{user_id}", response_model=UserMutationResponse)
def update_user(
    user_id: int,
    body: UserUpdate,
    request: Request,
    current: Annotated[Principal, Depends(require_permission(PermissionCode.USER_UPDATE))],
    db: Annotated[Session, Depends(get_db)],
) -> UserMutationResponse:
    user = users.update_user(db, user_id, body)
    return UserMutationResponse(
        message=translate(request_locale(request, current), "success.user_updated"),
        user=UserOut.model_validate(user),
    )


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    request: Request,
    current: Annotated[Principal, Depends(require_permission(PermissionCode.USER_DELETE))],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Delete a user. The seed admin account is refused with 403."""
    users.delete_user(db, user_id)
    return MessageResponse(
        message=translate(request_locale(request, current), "success.user_deleted")
    )


@router.get("/{user_id}/access", response_model=UserAccessResponse)
def get_user_access(
    user_id: int,
    _admin: Annotated[Principal, Depends(require_permission(PermissionCode.ADMIN_ACCESS))],
    db: Annotated[Session, Depends(get_db)],
) -> UserAccessResponse:
    """Roles, direct grants and effective permissions of a user."""
    users.get_user(db, user_id)
    return _access(db, user_id)


@router.post("/{user_id}/roles", response_model=UserAccessResponse)
def assign_role(
    user_id: int,
    body: RoleAssignment,
    _admin: Annotated[Principal, Depends(require_permission(PermissionCode.ADMIN_ACCESS))],
    db: Annotated[Session, Depends(get_db)],
) -> UserAccessResponse:
    rbac.assign_role(db, user_id, body.role)
    return _access(db, user_id)


@router.delete("/{user_id}/roles/{role_code}", response_model=UserAccessResponse)
def revoke_role(
    user_id: int,
    role_code: str,
    _admin: Annotated[Principal, Depends(require_permission(PermissionCode.ADMIN_ACCESS))],
    db: Annotated[Session, Depends(get_db)],
) -> UserAccessResponse:
    users.get_user(db, user_id)
    rbac.revoke_role(db, user_id, role_code)
    return _access(db, user_id)


@router.post("/{user_id}/permissions", response_model=UserAccessResponse)
def grant_permission(
    user_id: int,
    body: PermissionGrant,
    _admin: Annotated[Principal, Depends(require_permission(PermissionCode.ADMIN_ACCESS))],
    db: Annotated[Session, Depends(get_db)],
) -> UserAccessResponse:
    rbac.assign_permission(db, user_id, body.permission)
    return _access(db, user_id)


@router.put("/{user_id}/permissions", response_model=UserAccessResponse)
def set_permissions(
    user_id: int,
    body: DirectPermissionsSet,
    _admin: Annotated[Principal, Depends(require_permission(PermissionCode.ADMIN_ACCESS))],
    db: Annotated[Session, Depends(get_db)],
) -> UserAccessResponse:
    """Replace the user's direct grants; an unknown code leaves the previous grants in place."""
    rbac.set_direct_permissions(db, user_id, body.permissions)
    return _access(db, user_id)


@router.delete("/{user_id}/permissions/{permission_code}", response_model=UserAccessResponse)
def revoke_permission(
    user_id: int,
    permission_code: str,
    _admin: Annotated[Principal, Depends(require_permission(PermissionCode.ADMIN_ACCESS))],
    db: Annotated[Session, Depends(get_db)],
) -> UserAccessResponse:
    users.get_user(db, user_id)
    rbac.revoke_permission(db, user_id, permission_code)
    return _access(db, user_id)
