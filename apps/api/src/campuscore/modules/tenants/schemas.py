"""
Tenant Schemas

Pydantic schemas for tenant registration and lookup.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from campuscore.modules.schools.schemas import SchoolAddress
from campuscore.modules.tenants.models import SubscriptionPlan, TenantStatus


class TenantRegisterRequest(BaseModel):
    """Request body for POST /tenants/register."""

    school_name: str = Field(..., min_length=2, max_length=200)
    school_email: EmailStr
    school_phone: str = Field(..., min_length=5, max_length=20)
    school_address: SchoolAddress | None = None

    admin_name: str = Field(..., min_length=1, max_length=200)
    admin_email: EmailStr
    admin_password: str = Field(..., min_length=8, max_length=128)

    # "2025-2026"
    academic_year: str | None = Field(None, pattern=r"^\d{4}-\d{4}$")

    @field_validator("school_name", "admin_name")
    @classmethod
    def strip_names(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class TenantSummary(BaseModel):
    id: str
    name: str
    code: str
    slug: str
    domain: str | None = None


class RegisteredSchool(BaseModel):
    id: str
    name: str
    code: str


class RegisteredAdmin(BaseModel):
    id: str
    name: str
    email: str


class TenantRegisterResponse(BaseModel):
    """Response for a completed tenant registration."""

    message: str = "Tenant registered successfully"
    tenant: TenantSummary
    school: RegisteredSchool
    admin: RegisteredAdmin
    path: str
    login_url: str


class TenantResponse(BaseModel):
    """Full tenant representation."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: str
    slug: str
    domain: str | None = None
    status: TenantStatus
    subscription_plan: SubscriptionPlan
    subscription_start: datetime | None = None
    subscription_end: datetime | None = None
    settings: dict | None = None
    created_at: datetime
    updated_at: datetime


class TenantPublicResponse(BaseModel):
    """Tenant fields safe to expose without authentication."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    status: TenantStatus
    settings: dict | None = None


class TenantListResponse(BaseModel):
    tenants: list[TenantResponse]
    total: int
