"""
School Models

A tenant owns one or more schools. Schools are tenant-scoped and soft
deleted.
"""

from enum import Enum

from sqlalchemy import ForeignKey, Index, Integer, String, text
from sqlalchemy.dialects.postgresql import ENUM, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from campuscore.modules.shared import AuditMixin, BaseModel


class SchoolStatus(str, Enum):
    """Status of a school."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class SchoolType(str, Enum):
    """Kinds of schools."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    HIGH_SCHOOL = "high_school"
    COLLEGE = "college"
    UNIVERSITY = "university"
    OTHER = "other"


class SchoolBoard(str, Enum):
    """Examination board a school is affiliated with."""

    CBSE = "CBSE"
    ICSE = "ICSE"
    STATE_BOARD = "State Board"
    IB = "IB"
    IGCSE = "IGCSE"
    OTHER = "Other"


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class School(AuditMixin, BaseModel):
    """
    School model.

    ``code`` is stored upper-cased and is unique within a tenant. Nested
    groups (address, contact info, principal, settings, features) are stored
    as JSONB documents.
    """

    __tablename__ = "schools"
    __table_args__ = (
        Index(
            "uq_schools_tenant_code",
            "tenant_id",
            "code",
            unique=True,
            postgresql_where=text("NOT is_deleted"),
        ),
    )

    tenant_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Basic information
    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        index=True,
    )
    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    establishment_year: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )
    school_type: Mapped[SchoolType] = mapped_column(
        ENUM(SchoolType, name="school_type", values_callable=_enum_values),
        nullable=False,
        default=SchoolType.SECONDARY,
    )
    board: Mapped[SchoolBoard] = mapped_column(
        ENUM(SchoolBoard, name="school_board", values_callable=_enum_values),
        nullable=False,
        default=SchoolBoard.CBSE,
    )
    affiliation_number: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    # {street, city, state, country, pincode}
    address: Mapped[dict | None] = mapped_column(
        JSONB,
        nullable=True,
    )
    # {email, phone, alternate_phone, website}
    contact_info: Mapped[dict | None] = mapped_column(
        JSONB,
        nullable=True,
    )
    # {name, email, phone, user_id}
    principal: Mapped[dict | None] = mapped_column(
        JSONB,
        nullable=True,
    )

    # Branding
    logo_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )
    banner_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    status: Mapped[SchoolStatus] = mapped_column(
        ENUM(SchoolStatus, name="school_status", values_callable=_enum_values),
        nullable=False,
        default=SchoolStatus.ACTIVE,
        index=True,
    )

    # Academic configuration and feature toggles
    settings: Mapped[dict | None] = mapped_column(
        JSONB,
        nullable=True,
    )
    features_enabled: Mapped[dict | None] = mapped_column(
        JSONB,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<School(id={self.id}, code={self.code}, status={self.status.value})>"
