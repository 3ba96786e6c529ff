"""
School Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from campuscore.modules.schools.models import SchoolBoard, SchoolStatus, SchoolType
from campuscore.modules.shared import PaginationMeta


class SchoolAddress(BaseModel):
    """Postal address of a school."""

    street: str = Field("", max_length=200)
    city: str = Field("", max_length=100)
    state: str = Field("", max_length=100)
    country: str = Field("", max_length=100)
    pincode: str = Field("", max_length=20)


class SchoolContactInfo(BaseModel):
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=20)
    alternate_phone: str | None = Field(None, max_length=20)
    website: str | None = Field(None, max_length=255)


class SchoolPrincipal(BaseModel):
    name: str | None = Field(None, max_length=200)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=20)
    user_id: str | None = None


class SchoolConfigurationUpdate(BaseModel):
    """
    Fields a school admin may change through the configuration endpoint.

    Anything else in the request body is ignored.
    """

    name: str | None = Field(None, min_length=2, max_length=200)
    logo_url: str | None = Field(None, max_length=500)
    banner_url: str | None = Field(None, max_length=500)
    contact_info: SchoolContactInfo | None = None
    address: SchoolAddress | None = None
    principal: SchoolPrincipal | None = None
    settings: dict | None = None
    features_enabled: dict | None = None
    establishment_year: int | None = Field(None, ge=1800, le=2100)
    school_type: SchoolType | None = None
    board: SchoolBoard | None = None
    affiliation_number: str | None = Field(None, max_length=100)

    @field_validator("name", "school_type", "board")
    @classmethod
    def reject_null(cls, value):
        # Omit a field to leave it unchanged; these columns are NOT NULL
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class SchoolUpdate(SchoolConfigurationUpdate):
    """Request body for PUT /schools/{id}."""

    code: str | None = Field(None, min_length=2, max_length=50)
    status: SchoolStatus | None = None

    @field_validator("code", "status")
    @classmethod
    def reject_null_identity(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class SchoolCreate(BaseModel):
    """Request body for POST /schools."""

    name: str = Field(..., min_length=2, max_length=200)
    code: str = Field(..., min_length=2, max_length=50)
    # Required for super admins; other callers create within their own tenant
    tenant_id: UUID | None = None

    address: SchoolAddress | None = None
    contact_info: SchoolContactInfo | None = None
    principal: SchoolPrincipal | None = None
    establishment_year: int | None = Field(None, ge=1800, le=2100)
    school_type: SchoolType = SchoolType.SECONDARY
    board: SchoolBoard = SchoolBoard.CBSE
    affiliation_number: str | None = Field(None, max_length=100)
    logo_url: str | None = Field(None, max_length=500)
    banner_url: str | None = Field(None, max_length=500)
    status: SchoolStatus = SchoolStatus.ACTIVE
    settings: dict | None = None
    features_enabled: dict | None = None


class SchoolResponse(BaseModel):
    """Full school representation."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    name: str
    code: str
    address: dict | None = None
    contact_info: dict | None = None
    principal: dict | None = None
    establishment_year: int | None = None
    school_type: SchoolType
    board: SchoolBoard
    affiliation_number: str | None = None
    logo_url: str | None = None
    banner_url: str | None = None
    status: SchoolStatus
    settings: dict | None = None
    features_enabled: dict | None = None
    is_active: bool
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime


class SchoolPublicResponse(BaseModel):
    """Branding and contact fields returned by the public code lookup."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: str
    logo_url: str | None = None
    banner_url: str | None = None
    contact_info: dict | None = None
    address: dict | None = None
    status: SchoolStatus


class SchoolListResponse(BaseModel):
    schools: list[SchoolResponse]
    pagination: PaginationMeta


class SchoolDeleteResponse(BaseModel):
    id: str
    message: str = "School deleted successfully"
