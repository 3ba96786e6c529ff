"""
User Repository

Database operations for user management. Soft-deleted users are excluded
from every lookup.
"""

import copy
import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from campuscore.modules.shared import flush_or_conflict
from campuscore.modules.users.models import DEFAULT_PREFERENCES, AccountStatus, User, UserRole

logger = logging.getLogger(__name__)

USER_SORT_COLUMNS = {
    "created_at": User.created_at,
    "email": User.email,
    "first_name": User.first_name,
    "last_name": User.last_name,
    "role": User.role,
}


def normalize_email(email: str) -> str:
    """Emails are stored trimmed and lowercased."""
    return email.strip().lower()


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: UserRole,
        tenant_id: str | None,
        school_id: str | None = None,
        phone: str | None = None,
        account_status: AccountStatus = AccountStatus.ACTIVE,
        email_verified: bool = False,
        must_change_password: bool = False,
        preferences: dict | None = None,
        created_by: str | None = None,
    ) -> User:
        """
        Create a new user record.

        Args:
            db: Database session
            email: User's email address (unique within the tenant)
            password_hash: Hashed password
            first_name: User's first name
            last_name: User's last name
            role: User's role
            tenant_id: Owning tenant (None only for super admins)
            school_id: School the user belongs to (optional)
            phone: Phone number (optional)
            account_status: Initial account status
            email_verified: Whether email is verified
            must_change_password: Whether user must change password on next login
            preferences: UI and notification preferences (defaults to DEFAULT_PREFERENCES)
            created_by: ID of the user performing the creation (optional)

        Returns:
            Created User instance
        """
        user = User(
            email=normalize_email(email),
            password_hash=password_hash,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            role=role,
            tenant_id=tenant_id,
            school_id=school_id,
            phone=phone,
            account_status=account_status,
            email_verified=email_verified,
            must_change_password=must_change_password,
            preferences=(
                preferences if preferences is not None else copy.deepcopy(DEFAULT_PREFERENCES)
            ),
            created_by=created_by,
            is_active=account_status == AccountStatus.ACTIVE,
            is_deleted=False,
        )

        db.add(user)
        await flush_or_conflict(db, "User with this email already exists", "EMAIL_EXISTS")
        await db.refresh(user)

        logger.info(f"Created user: {user.id} ({user.role.value}) in tenant {tenant_id}")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: str | UUID) -> User | None:
        """
        Get a user by ID.

        Args:
            db: Database session
            user_id: User UUID

        Returns:
            User instance or None if not found or deleted
        """
        result = await db.execute(
            select(User).where(User.id == str(user_id), User.is_deleted.is_(False))
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(
        db: AsyncSession,
        email: str,
        tenant_id: str | None = None,
    ) -> User | None:
        """
        Get a user by email address within a tenant.

        With ``tenant_id=None`` only platform-level users (super admins) match.
        """
        tenant_clause = User.tenant_id.is_(None) if tenant_id is None else User.tenant_id == tenant_id
        result = await db.execute(
            select(User).where(
                User.email == normalize_email(email),
                tenant_clause,
                User.is_deleted.is_(False),
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_by_email(db: AsyncSession, email: str) -> list[User]:
        """All non-deleted accounts using an email address, across tenants."""
        result = await db.execute(
            select(User).where(
                User.email == normalize_email(email),
                User.is_deleted.is_(False),
            )
        )
        return list(result.scalars().all())

    @staticmethod
    async def email_exists(db: AsyncSession, email: str, tenant_id: str | None = None) -> bool:
        """Check if an email address is already registered in a tenant."""
        user = await UserRepository.get_by_email(db, email, tenant_id)
        return user is not None

    @staticmethod
    async def get_by_reset_token_hash(db: AsyncSession, token_hash: str) -> User | None:
        """Find the user holding a password reset token."""
        result = await db.execute(
            select(User).where(
                User.reset_password_token_hash == token_hash,
                User.is_deleted.is_(False),
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_users(
        db: AsyncSession,
        *,
        tenant_id: str | None = None,
        role: UserRole | None = None,
        account_status: AccountStatus | None = None,
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[User], int]:
        """
        List users with filters and pagination.

        Returns:
            Tuple of (users on the page, total matching users)
        """
        conditions: list[Any] = [User.is_deleted.is_(False)]
        if tenant_id is not None:
            conditions.append(User.tenant_id == tenant_id)
        if role is not None:
            conditions.append(User.role == role)
        if account_status is not None:
            conditions.append(User.account_status == account_status)
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    User.email.ilike(pattern),
                    User.first_name.ilike(pattern),
                    User.last_name.ilike(pattern),
                )
            )

        sort_column = USER_SORT_COLUMNS.get(sort_by, User.created_at)
        order = sort_column.desc() if sort_order == "desc" else sort_column.asc()

        total = await db.scalar(select(func.count()).select_from(User).where(*conditions))
        result = await db.execute(
            select(User).where(*conditions).order_by(order).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total or 0

    @staticmethod
    async def update(db: AsyncSession, user: User, **fields: Any) -> User:
        """Apply field updates to a user and flush."""
        for key, value in fields.items():
            if hasattr(user, key):
                setattr(user, key, value)

        await flush_or_conflict(db, "User with this email already exists", "EMAIL_EXISTS")
        await db.refresh(user)
        return user

    @staticmethod
    async def record_login(db: AsyncSession, user: User, when: datetime) -> None:
        """Stamp the last successful login."""
        user.last_login_at = when
        await db.flush()

    @staticmethod
    async def soft_delete(db: AsyncSession, user: User, deleted_by: str | None = None) -> User:
        """Mark a user as deleted; the row is kept."""
        user.mark_deleted(deleted_by)
        await db.flush()
        await db.refresh(user)

        logger.info(f"Soft deleted user {user.id}")
        return user
