"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: EmailStr = Field(..., description="Account email")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class Principal(BaseModel):
    """Authenticated user for dependency injection; permissions are resolved live per request."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    account_type: str
    locale: str
    theme: str = "light"
    permissions: list[str] = Field(default_factory=list)


class LoginResponse(BaseModel):
    """JWT access token plus the user's public profile and effective permissions."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: Principal


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class MessageResponse(BaseModel):
    """Localized confirmation message."""

    message: str
