"""
Shared Model Bases

Common columns for every table plus the audit/soft-delete columns carried by
tenant-owned records.
"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from campuscore.core.database import Base
from campuscore.modules.shared.exceptions import ConflictError

logger = logging.getLogger(__name__)


class BaseModel(Base):
    """Abstract base with a UUID primary key and timestamps."""

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class AuditMixin:
    """
    Audit and soft-delete columns.

    Rows are never removed by the API; deleting sets ``is_deleted``.
    """

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    created_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        nullable=True,
    )
    updated_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        nullable=True,
    )

    def mark_deleted(self, deleted_by: str | None = None) -> None:
        """Soft delete the record."""
        self.is_deleted = True
        self.is_active = False
        self.updated_by = deleted_by


async def flush_or_conflict(db: AsyncSession, message: str, error_code: str = "CONFLICT") -> None:
    """
    Flush pending changes.

    A unique index violation raced past the service's existence checks is
    reported as a ConflictError instead of surfacing as a server error.
    """
    try:
        await db.flush()
    except IntegrityError as e:
        logger.warning(f"Integrity error on flush ({error_code}): {e.orig}")
        raise ConflictError(message, error_code=error_code) from e
