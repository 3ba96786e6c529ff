"""
User Schemas

Pydantic schemas for user management endpoints.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from campuscore.modules.shared import PaginationMeta
from campuscore.modules.users.models import AccountStatus, UserRole


class UserResponse(BaseModel):
    """Public representation of a user. Never includes credentials."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone: str | None = None
    profile_image: str | None = None
    role: UserRole
    tenant_id: str | None = None
    school_id: str | None = None
    account_status: AccountStatus
    email_verified: bool
    must_change_password: bool
    last_login_at: datetime | None = None
    preferences: dict | None = None
    created_at: datetime
    updated_at: datetime


class UserListResponse(BaseModel):
    users: list[UserResponse]
    pagination: PaginationMeta


class UserStatusUpdate(BaseModel):
    """Request body for PATCH /users/{id}/status."""

    account_status: AccountStatus


class UserDeleteResponse(BaseModel):
    id: str
    message: str = "User deleted successfully"
