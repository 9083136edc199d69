"""Schemas for the permission catalog and per-user role/permission administration."""

from pydantic import BaseModel, ConfigDict, Field


class PermissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    description: str | None = None


class RoleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    description: str | None = None
    permissions: list[str] = Field(default_factory=list)


class RoleAssignment(BaseModel):
    role: str = Field(..., min_length=1, max_length=100, description="Role code, e.g. 'manager'.")


class PermissionGrant(BaseModel):
    permission: str = Field(..., min_length=1, max_length=100, description="Permission code.")


class DirectPermissionsSet(BaseModel):
    permissions: list[str] = Field(
        default_factory=list, description="Replaces every direct grant of the user."
    )


class UserAccessResponse(BaseModel):
    """Roles, direct grants and the resulting effective permissions of one user."""

    user_id: int
    roles: list[str]
    direct_permissions: list[str]
    effective_permissions: list[str]
