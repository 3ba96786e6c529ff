"""
User Models

Database models for user management and authentication.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import ENUM, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from campuscore.modules.shared import AuditMixin, BaseModel


class UserRole(str, Enum):
    """User roles in the system."""

    SUPER_ADMIN = "super_admin"
    SCHOOL_ADMIN = "school_admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"
    ACCOUNTANT = "accountant"
    LIBRARIAN = "librarian"
    RECEPTIONIST = "receptionist"
    TRANSPORT_MANAGER = "transport_manager"


ADMIN_ROLES = frozenset({UserRole.SUPER_ADMIN, UserRole.SCHOOL_ADMIN})


class AccountStatus(str, Enum):
    """Account status. Only ACTIVE accounts may log in."""

    ACTIVE = "active"
    PENDING = "pending"
    SUSPENDED = "suspended"
    INACTIVE = "inactive"


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


DEFAULT_PREFERENCES = {
    "language": "en",
    "theme": "light",
    "notifications": {"email": True, "sms": False, "app": True},
}


class User(AuditMixin, BaseModel):
    """
    User model for authentication and authorization.

    Multi-tenant: tenant_id is required for every role except SUPER_ADMIN,
    which is platform-level. Email addresses are unique within a tenant.
    """

    __tablename__ = "users"
    # Soft-deleted rows free their email for reuse
    __table_args__ = (
        Index(
            "uq_users_tenant_email",
            "tenant_id",
            "email",
            unique=True,
            postgresql_where=text("NOT is_deleted"),
        ),
        Index(
            "uq_users_platform_email",
            "email",
            unique=True,
            postgresql_where=text("tenant_id IS NULL AND NOT is_deleted"),
        ),
    )

    # Multi-tenant: NULL only for platform super admins
    tenant_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    # ON DELETE SET NULL: users outlive the school they were attached to
    school_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("schools.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Authentication fields
    email: Mapped[str] = mapped_column(
        String(255),
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # Profile fields
    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    phone: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
    )
    profile_image: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    # Role and permissions
    role: Mapped[UserRole] = mapped_column(
        ENUM(UserRole, name="user_role", values_callable=_enum_values),
        nullable=False,
        default=UserRole.STUDENT,
        index=True,
    )
    permissions: Mapped[list | None] = mapped_column(
        JSONB,
        nullable=True,
    )
    preferences: Mapped[dict | None] = mapped_column(
        JSONB,
        nullable=True,
    )

    # Account status
    account_status: Mapped[AccountStatus] = mapped_column(
        ENUM(AccountStatus, name="account_status", values_callable=_enum_values),
        nullable=False,
        default=AccountStatus.ACTIVE,
        index=True,
    )
    email_verified: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Password management
    must_change_password: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    reset_password_token_hash: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )
    reset_password_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"

    @property
    def full_name(self) -> str:
        """Return user's full name."""
        return f"{self.first_name} {self.last_name}"

    @property
    def can_log_in(self) -> bool:
        return self.account_status == AccountStatus.ACTIVE and not self.is_deleted
