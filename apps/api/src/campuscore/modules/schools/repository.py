"""
School Repository

Database operations for school management.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from campuscore.modules.schools.models import School, SchoolStatus
from campuscore.modules.shared import flush_or_conflict

logger = logging.getLogger(__name__)

DUPLICATE_CODE_MESSAGE = "A school with this code already exists in the tenant"

SCHOOL_SORT_COLUMNS = {
    "name": School.name,
    "code": School.code,
    "created_at": School.created_at,
    "status": School.status,
}


class SchoolRepository:
    """Repository for school database operations."""

    @staticmethod
    async def create(db: AsyncSession, *, tenant_id: str, **fields: Any) -> School:
        """
        Create a new school record.

        Args:
            db: Database session
            tenant_id: Owning tenant
            **fields: School columns (name, code, address, contact_info, ...)

        Returns:
            Created School instance
        """
        school = School(tenant_id=tenant_id, is_deleted=False, is_active=True, **fields)
        school.code = school.code.upper()

        db.add(school)
        await flush_or_conflict(db, DUPLICATE_CODE_MESSAGE, "DUPLICATE_SCHOOL_CODE")
        await db.refresh(school)

        logger.info(f"Created school: {school.id} - {school.code} (tenant {tenant_id})")
        return school

    @staticmethod
    async def get_by_id(db: AsyncSession, school_id: str | UUID) -> School | None:
        """
        Get a school by ID.

        Args:
            db: Database session
            school_id: School UUID

        Returns:
            School instance or None if not found or deleted
        """
        result = await db.execute(
            select(School).where(School.id == str(school_id), School.is_deleted.is_(False))
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_code(
        db: AsyncSession,
        code: str,
        tenant_id: str | None = None,
    ) -> School | None:
        """
        Get a school by code, optionally within a tenant.

        Codes are unique per tenant; without a tenant the first match wins.
        """
        query = select(School).where(School.code == code.upper(), School.is_deleted.is_(False))
        if tenant_id is not None:
            query = query.where(School.tenant_id == tenant_id)
        result = await db.execute(query.order_by(School.created_at.asc()).limit(1))
        return result.scalar_one_or_none()

    @staticmethod
    async def code_exists(
        db: AsyncSession,
        code: str,
        tenant_id: str,
        exclude_id: str | None = None,
    ) -> bool:
        """Check whether a code is taken within a tenant."""
        query = select(School.id).where(
            School.code == code.upper(),
            School.tenant_id == tenant_id,
            School.is_deleted.is_(False),
        )
        if exclude_id is not None:
            query = query.where(School.id != exclude_id)
        result = await db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def list_schools(
        db: AsyncSession,
        *,
        tenant_id: str | None = None,
        status: SchoolStatus | None = None,
        search: str | None = None,
        sort_by: str = "name",
        sort_order: str = "asc",
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[School], int]:
        """
        List schools with filters and pagination.

        Search matches name, code, city and state.

        Returns:
            Tuple of (schools on the page, total matching schools)
        """
        conditions: list[Any] = [School.is_deleted.is_(False)]
        if tenant_id is not None:
            conditions.append(School.tenant_id == tenant_id)
        if status is not None:
            conditions.append(School.status == status)
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    School.name.ilike(pattern),
                    School.code.ilike(pattern),
                    School.address["city"].astext.ilike(pattern),
                    School.address["state"].astext.ilike(pattern),
                )
            )

        sort_column = SCHOOL_SORT_COLUMNS.get(sort_by, School.name)
        order = sort_column.desc() if sort_order == "desc" else sort_column.asc()

        total = await db.scalar(select(func.count()).select_from(School).where(*conditions))
        result = await db.execute(
            select(School).where(*conditions).order_by(order).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total or 0

    @staticmethod
    async def update(db: AsyncSession, school: School, **fields: Any) -> School:
        """Apply field updates to a school and flush."""
        for key, value in fields.items():
            if hasattr(school, key):
                setattr(school, key, value)
        if "code" in fields and school.code:
            school.code = school.code.upper()

        await flush_or_conflict(db, DUPLICATE_CODE_MESSAGE, "DUPLICATE_SCHOOL_CODE")
        await db.refresh(school)
        return school

    @staticmethod
    async def soft_delete(db: AsyncSession, school: School, deleted_by: str | None = None) -> School:
        """Mark a school as deleted; the row is kept."""
        school.mark_deleted(deleted_by)
        await db.flush()
        await db.refresh(school)

        logger.info(f"Soft deleted school {school.id}")
        return school
