"""Pydantic request/response schemas."""

from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    Principal,
)
from app.schemas.health import HealthResponse
from app.schemas.permissions import (
    DirectPermissionsSet,
    PermissionGrant,
    PermissionOut,
    RoleAssignment,
    RoleOut,
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

__all__ = [
    "DirectPermissionsSet",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "PasswordResetConfirm",
    "PasswordResetRequest",
    "PermissionGrant",
    "PermissionOut",
    "PreferencesUpdate",
    "Principal",
    "RoleAssignment",
    "RoleOut",
    "UserAccessResponse",
    "UserCreate",
    "UserDetail",
    "UserMutationResponse",
    "UserOut",
    "UserUpdate",
]
