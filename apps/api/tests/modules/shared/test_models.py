"""
Tests for the shared persistence helpers and unique indexes.
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError

from campuscore.modules.schools.models import School
from campuscore.modules.schools.repository import SchoolRepository
from campuscore.modules.shared import ConflictError, flush_or_conflict
from campuscore.modules.tenants.repository import TenantRepository
from campuscore.modules.users.models import User, UserRole
from campuscore.modules.users.repository import UserRepository


def _unique_violation() -> IntegrityError:
    return IntegrityError("INSERT", {}, Exception("duplicate key value violates unique constraint"))


def _index(model, name: str):
    return next(index for index in model.__table__.indexes if index.name == name)


class TestFlushOrConflict:
    """Unique violations become 409 conflicts."""

    @pytest.mark.asyncio
    async def test_clean_flush(self, mock_db):
        await flush_or_conflict(mock_db, "taken", "TAKEN")
        mock_db.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_integrity_error_is_conflict(self, mock_db):
        mock_db.flush = AsyncMock(side_effect=_unique_violation())
        with pytest.raises(ConflictError) as exc_info:
            await flush_or_conflict(mock_db, "taken", "TAKEN")
        assert exc_info.value.status_code == 409
        assert exc_info.value.error_code == "TAKEN"


class TestRepositoryConflicts:
    """Repositories report unique violations at flush as conflicts."""

    @pytest.mark.asyncio
    async def test_user_create_with_taken_email(self, mock_db, tenant):
        mock_db.flush = AsyncMock(side_effect=_unique_violation())
        with pytest.raises(ConflictError) as exc_info:
            await UserRepository.create(
                mock_db,
                email="ravi@gvs.example.com",
                password_hash="x",
                first_name="Ravi",
                last_name="Kumar",
                role=UserRole.STUDENT,
                tenant_id=tenant.id,
            )
        assert exc_info.value.error_code == "EMAIL_EXISTS"
        mock_db.refresh.assert_not_called()

    @pytest.mark.asyncio
    async def test_school_update_with_taken_code(self, mock_db, school):
        mock_db.flush = AsyncMock(side_effect=_unique_violation())
        with pytest.raises(ConflictError) as exc_info:
            await SchoolRepository.update(mock_db, school, code="hta")
        assert exc_info.value.error_code == "DUPLICATE_SCHOOL_CODE"

    @pytest.mark.asyncio
    async def test_tenant_create_with_taken_slug(self, mock_db):
        mock_db.flush = AsyncMock(side_effect=_unique_violation())
        with pytest.raises(ConflictError) as exc_info:
            await TenantRepository.create(
                mock_db, name="Default", code="default", slug="default"
            )
        assert exc_info.value.error_code == "TENANT_EXISTS"


class TestUniqueIndexes:
    """Soft-deleted rows do not hold on to emails or school codes."""

    @pytest.mark.parametrize(
        ("model", "name", "columns", "where"),
        [
            (User, "uq_users_tenant_email", ["tenant_id", "email"], "NOT is_deleted"),
            (User, "uq_users_platform_email", ["email"], "tenant_id IS NULL AND NOT is_deleted"),
            (School, "uq_schools_tenant_code", ["tenant_id", "code"], "NOT is_deleted"),
        ],
    )
    def test_partial_unique_index(self, model, name, columns, where):
        index = _index(model, name)
        assert index.unique
        assert [column.name for column in index.columns] == columns
        assert str(index.dialect_options["postgresql"]["where"]) == where
