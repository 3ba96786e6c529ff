"""Authentication schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from campuscore.modules.users.models import AccountStatus, UserRole

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128


class RegisterRequest(BaseModel):
    """Registration request schema."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    tenant_id: UUID
    # Free-form so unknown roles fall back to the default instead of failing
    role: str | None = Field(None, max_length=50)
    school_id: UUID | None = None
    phone: str | None = Field(None, max_length=20)


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LENGTH)
    tenant_slug: str | None = Field(None, max_length=50)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LENGTH)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)

    @model_validator(mode="after")
    def validate_new_password_differs(self) -> "ChangePasswordRequest":
        if self.current_password == self.new_password:
            raise ValueError("New password must be different from the current password")
        return self


class ForgotPasswordRequest(BaseModel):
    email: EmailStr
    tenant_slug: str | None = Field(None, max_length=50)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)


class AuthUser(BaseModel):
    """User profile returned by the authentication endpoints."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    role: UserRole
    tenant_id: str | None = None
    tenant_slug: str | None = None
    school_id: str | None = None
    phone: str | None = None
    account_status: AccountStatus
    email_verified: bool
    must_change_password: bool
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class TokenResponse(BaseModel):
    """Token response schema."""

    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    expires_in: int


class LoginResponse(TokenResponse):
    """Login response schema."""

    refresh_token: str
    user: AuthUser


class RegisterResponse(BaseModel):
    message: str = "User registered successfully"
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: AuthUser


class MessageResponse(BaseModel):
    message: str
