"""
Tenant Repository

Database operations for tenant management.
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from campuscore.modules.shared import flush_or_conflict
from campuscore.modules.tenants.models import SubscriptionPlan, Tenant, TenantStatus

logger = logging.getLogger(__name__)


class TenantRepository:
    """Repository for tenant database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        name: str,
        code: str,
        slug: str,
        domain: str | None = None,
        status: TenantStatus = TenantStatus.ACTIVE,
        subscription_plan: SubscriptionPlan = SubscriptionPlan.FREE,
        subscription_start: datetime | None = None,
        subscription_end: datetime | None = None,
        settings: dict | None = None,
    ) -> Tenant:
        """
        Create a new tenant record.

        Args:
            db: Database session
            name: Display name (usually the school name)
            code: Unique tenant code
            slug: Unique URL slug
            domain: Tenant domain (optional)
            status: Initial status
            subscription_plan: Subscription tier
            subscription_start: Subscription start (optional)
            subscription_end: Subscription end (optional)
            settings: Theme/locale settings (optional)

        Returns:
            Created Tenant instance
        """
        tenant = Tenant(
            name=name,
            code=code,
            slug=slug.lower(),
            domain=domain.lower() if domain else None,
            status=status,
            subscription_plan=subscription_plan,
            subscription_start=subscription_start,
            subscription_end=subscription_end,
            settings=settings,
        )

        db.add(tenant)
        await flush_or_conflict(db, "A school with this name already exists", "TENANT_EXISTS")
        await db.refresh(tenant)

        logger.info(f"Created tenant: {tenant.id} - {tenant.slug}")
        return tenant

    @staticmethod
    async def get_by_id(db: AsyncSession, tenant_id: str | UUID) -> Tenant | None:
        """Get a tenant by ID."""
        result = await db.execute(select(Tenant).where(Tenant.id == str(tenant_id)))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_slug(db: AsyncSession, slug: str) -> Tenant | None:
        """Get a tenant by its URL slug (case-insensitive)."""
        result = await db.execute(select(Tenant).where(Tenant.slug == slug.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_code(db: AsyncSession, code: str) -> Tenant | None:
        """Get a tenant by its unique code."""
        result = await db.execute(select(Tenant).where(Tenant.code == code))
        return result.scalar_one_or_none()

    @staticmethod
    async def list_all(db: AsyncSession) -> list[Tenant]:
        """All tenants ordered by name."""
        result = await db.execute(select(Tenant).order_by(Tenant.name.asc()))
        return list(result.scalars().all())
