"""
Tenant Models

A tenant is the top-level customer boundary. Every school-owned record
carries a tenant_id so queries can be confined to a single tenant.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, String
from sqlalchemy.dialects.postgresql import ENUM, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from campuscore.modules.shared import BaseModel


class TenantStatus(str, Enum):
    """Lifecycle status of a tenant."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class SubscriptionPlan(str, Enum):
    """Subscription tiers."""

    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


DEFAULT_TENANT_SETTINGS = {
    "theme": "default",
    "logo": None,
    "timezone": "UTC",
    "locale": "en",
}


class Tenant(BaseModel):
    """
    Tenant organization.

    Created through tenant registration together with its first school and
    school admin. ``slug`` appears in tenant-specific URLs such as
    ``/schools/<slug>/login``.
    """

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    code: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    slug: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    domain: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    status: Mapped[TenantStatus] = mapped_column(
        ENUM(TenantStatus, name="tenant_status", values_callable=_enum_values),
        nullable=False,
        default=TenantStatus.ACTIVE,
    )

    # Subscription
    subscription_plan: Mapped[SubscriptionPlan] = mapped_column(
        ENUM(SubscriptionPlan, name="subscription_plan", values_callable=_enum_values),
        nullable=False,
        default=SubscriptionPlan.FREE,
    )
    subscription_start: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    subscription_end: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Branding and locale ({theme, logo, timezone, locale})
    settings: Mapped[dict | None] = mapped_column(
        JSONB,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, slug={self.slug}, status={self.status.value})>"

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE
