"""Request/response schemas for user management endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from app.core.security import NAME_MAX_LEN, NAME_MIN_LEN, PASSWORD_MAX_LEN, PASSWORD_MIN_LEN

AccountType = Literal["admin", "manager", "user"]
Locale = Literal["pt", "en", "es"]
Theme = Literal["light", "dark", "system"]


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    account_type: AccountType = "user"
    locale: Locale | None = None
    permissions: list[str] | None = Field(
        default=None, description="Initial direct permission codes."
    )


class UserUpdate(BaseModel):
    """Partial update; permissions, when given, replace the direct grants entirely."""

    email: EmailStr | None = None
    name: str | None = Field(default=None, min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    password: str | None = Field(
        default=None, min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )
    account_type: AccountType | None = None
    locale: Locale | None = None
    permissions: list[str] | None = None

    @model_validator(mode="after")
    def at_least_one_field(self) -> "UserUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class PreferencesUpdate(BaseModel):
    locale: Locale | None = None
    theme: Theme | None = None

    @model_validator(mode="after")
    def at_least_one_preference(self) -> "PreferencesUpdate":
        if self.locale is None and self.theme is None:
            raise ValueError("At least one preference (locale or theme) must be provided")
        return self


class UserOut(BaseModel):
    """Public view of a user (never the password hash or reset token)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    account_type: str
    locale: str
    theme: str
    created_at: datetime | None = None


class UserDetail(UserOut):
    roles: list[str] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list, description="Effective permissions.")


class UserMutationResponse(BaseModel):
    message: str
    user: UserOut
