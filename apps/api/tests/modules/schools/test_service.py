"""
Unit tests for the school service.

Covers tenant scoping, duplicate codes, soft delete and the configuration
allow-list.
"""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from campuscore.modules.schools import service
from campuscore.modules.schools.models import SchoolBoard, SchoolStatus, SchoolType
from campuscore.modules.schools.schemas import (
    SchoolConfigurationUpdate,
    SchoolCreate,
    SchoolUpdate,
)
from campuscore.modules.schools.service import DuplicateSchoolCodeError, SchoolNotFoundError
from campuscore.modules.shared import NotFoundError, ValidationFailedError
from tests.factories import current_user_for, make_school

SERVICE = "campuscore.modules.schools.service"


class TestCreateSchool:
    """Tests for create_school."""

    @pytest.mark.asyncio
    async def test_admin_creates_in_own_tenant(self, mock_db, tenant, school_admin, school):
        data = SchoolCreate(name="Green Valley Junior", code="gvj", board=SchoolBoard.ICSE)

        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.code_exists = AsyncMock(return_value=False)
            school_repo.create = AsyncMock(return_value=school)

            await service.create_school(mock_db, data, current_user_for(school_admin, tenant))

        fields = school_repo.create.call_args.kwargs
        assert fields["tenant_id"] == tenant.id
        assert fields["created_by"] == school_admin.id
        assert fields["board"] == SchoolBoard.ICSE
        assert fields["school_type"] == SchoolType.SECONDARY

    @pytest.mark.asyncio
    async def test_admin_cannot_target_other_tenant(
        self, mock_db, tenant, other_tenant, school_admin
    ):
        data = SchoolCreate(name="Sneaky School", code="SNK", tenant_id=other_tenant.id)

        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.create = AsyncMock()
            with pytest.raises(HTTPException) as exc_info:
                await service.create_school(mock_db, data, current_user_for(school_admin, tenant))

        assert exc_info.value.status_code == 403
        school_repo.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_code_in_tenant(self, mock_db, tenant, school_admin):
        data = SchoolCreate(name="Green Valley School", code="green-valley-school")

        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.code_exists = AsyncMock(return_value=True)
            school_repo.create = AsyncMock()
            with pytest.raises(DuplicateSchoolCodeError) as exc_info:
                await service.create_school(mock_db, data, current_user_for(school_admin, tenant))

        assert exc_info.value.status_code == 409
        assert "GREEN-VALLEY-SCHOOL" in exc_info.value.message
        school_repo.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_super_admin_must_name_tenant(self, mock_db, super_admin):
        data = SchoolCreate(name="Orphan School", code="ORP")
        with pytest.raises(ValidationFailedError) as exc_info:
            await service.create_school(mock_db, data, current_user_for(super_admin))
        assert exc_info.value.error_code == "TENANT_REQUIRED"

    @pytest.mark.asyncio
    async def test_super_admin_unknown_tenant(self, mock_db, super_admin):
        data = SchoolCreate(name="Orphan School", code="ORP", tenant_id=str(uuid4()))
        with patch(f"{SERVICE}.TenantRepository") as tenant_repo:
            tenant_repo.get_by_id = AsyncMock(return_value=None)
            with pytest.raises(NotFoundError):
                await service.create_school(mock_db, data, current_user_for(super_admin))

    @pytest.mark.asyncio
    async def test_super_admin_creates_in_named_tenant(
        self, mock_db, other_tenant, super_admin
    ):
        data = SchoolCreate(name="Hill Top Primary", code="HTP", tenant_id=other_tenant.id)
        created = make_school(other_tenant.id, code="HTP")

        with (
            patch(f"{SERVICE}.TenantRepository") as tenant_repo,
            patch(f"{SERVICE}.SchoolRepository") as school_repo,
        ):
            tenant_repo.get_by_id = AsyncMock(return_value=other_tenant)
            school_repo.code_exists = AsyncMock(return_value=False)
            school_repo.create = AsyncMock(return_value=created)

            result = await service.create_school(mock_db, data, current_user_for(super_admin))

        assert result is created
        assert school_repo.create.call_args.kwargs["tenant_id"] == other_tenant.id


class TestListSchools:
    """Tests for list_schools."""

    @pytest.mark.asyncio
    async def test_non_super_admin_forced_to_own_tenant(
        self, mock_db, tenant, other_tenant, teacher, school
    ):
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.list_schools = AsyncMock(return_value=([school], 1))

            await service.list_schools(
                mock_db, current_user_for(teacher, tenant), tenant_id=other_tenant.id
            )

        assert school_repo.list_schools.call_args.kwargs["tenant_id"] == tenant.id

    @pytest.mark.asyncio
    async def test_super_admin_sees_all_tenants(self, mock_db, super_admin):
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.list_schools = AsyncMock(return_value=([], 0))
            await service.list_schools(mock_db, current_user_for(super_admin))

        assert school_repo.list_schools.call_args.kwargs["tenant_id"] is None

    @pytest.mark.asyncio
    async def test_pagination_meta(self, mock_db, tenant, school_admin):
        schools = [make_school(tenant.id, code=f"S{i}") for i in range(10)]
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.list_schools = AsyncMock(return_value=(schools, 25))

            result = await service.list_schools(
                mock_db,
                current_user_for(school_admin, tenant),
                status=SchoolStatus.ACTIVE,
                search="green",
                page=3,
                limit=10,
            )

        kwargs = school_repo.list_schools.call_args.kwargs
        assert kwargs["offset"] == 20
        assert kwargs["limit"] == 10
        assert kwargs["status"] == SchoolStatus.ACTIVE
        assert kwargs["search"] == "green"
        assert result.pagination.model_dump() == {"total": 25, "page": 3, "limit": 10, "pages": 3}
        assert len(result.schools) == 10

    @pytest.mark.asyncio
    async def test_limit_is_capped(self, mock_db, tenant, school_admin):
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.list_schools = AsyncMock(return_value=([], 0))
            result = await service.list_schools(
                mock_db, current_user_for(school_admin, tenant), page=0, limit=500
            )

        assert school_repo.list_schools.call_args.kwargs["limit"] == 100
        assert result.pagination.page == 1
        assert result.pagination.pages == 0


class TestGetSchool:
    """Single school lookups."""

    @pytest.mark.asyncio
    async def test_same_tenant(self, mock_db, tenant, teacher, school):
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.get_by_id = AsyncMock(return_value=school)
            result = await service.get_school(mock_db, school.id, current_user_for(teacher, tenant))
        assert result is school

    @pytest.mark.asyncio
    async def test_other_tenant_is_forbidden(self, mock_db, other_tenant, teacher, tenant):
        foreign = make_school(other_tenant.id)
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.get_by_id = AsyncMock(return_value=foreign)
            with pytest.raises(HTTPException) as exc_info:
                await service.get_school(mock_db, foreign.id, current_user_for(teacher, tenant))
        assert exc_info.value.status_code == 403
        assert exc_info.value.detail["error"] == "TENANT_ACCESS_DENIED"

    @pytest.mark.asyncio
    async def test_super_admin_any_tenant(self, mock_db, other_tenant, super_admin):
        foreign = make_school(other_tenant.id)
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.get_by_id = AsyncMock(return_value=foreign)
            result = await service.get_school(mock_db, foreign.id, current_user_for(super_admin))
        assert result is foreign

    @pytest.mark.asyncio
    async def test_missing_or_deleted(self, mock_db, tenant, teacher):
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.get_by_id = AsyncMock(return_value=None)
            with pytest.raises(SchoolNotFoundError) as exc_info:
                await service.get_school(mock_db, "gone", current_user_for(teacher, tenant))
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_public_lookup_by_code(self, mock_db, school):
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.get_by_code = AsyncMock(return_value=school)
            assert await service.get_school_by_code(mock_db, school.code) is school
        assert school_repo.get_by_code.call_args.kwargs["tenant_id"] is None

    @pytest.mark.asyncio
    async def test_lookup_by_code_scoped_to_signed_in_tenant(
        self, mock_db, tenant, teacher, school
    ):
        user = current_user_for(teacher, tenant)
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.get_by_code = AsyncMock(return_value=school)
            await service.get_school_by_code(mock_db, school.code, user)
        assert school_repo.get_by_code.call_args.kwargs["tenant_id"] == tenant.id

    @pytest.mark.asyncio
    async def test_lookup_by_code_unscoped_for_super_admin(self, mock_db, super_admin, school):
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.get_by_code = AsyncMock(return_value=school)
            await service.get_school_by_code(mock_db, school.code, current_user_for(super_admin))
        assert school_repo.get_by_code.call_args.kwargs["tenant_id"] is None

    @pytest.mark.asyncio
    async def test_public_lookup_missing(self, mock_db):
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.get_by_code = AsyncMock(return_value=None)
            with pytest.raises(SchoolNotFoundError):
                await service.get_school_by_code(mock_db, "NOPE")


class TestUpdateSchool:
    """Updates and configuration."""

    @pytest.mark.asyncio
    async def test_configuration_ignores_fields_outside_allow_list(
        self, mock_db, tenant, school_admin, school
    ):
        data = SchoolConfigurationUpdate.model_validate(
            {
                "name": "Green Valley International",
                "board": "IB",
                "code": "HIJACK",
                "status": "inactive",
                "tenant_id": "someone-else",
            }
        )

        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.get_by_code = AsyncMock(return_value=school)
            school_repo.update = AsyncMock(return_value=school)

            await service.update_school_configuration(
                mock_db, school.code, data, current_user_for(school_admin, tenant)
            )

        assert school_repo.get_by_code.call_args.kwargs["tenant_id"] == tenant.id
        fields = school_repo.update.call_args.kwargs
        assert fields["name"] == "Green Valley International"
        assert fields["board"] == SchoolBoard.IB
        assert fields["updated_by"] == school_admin.id
        assert not {"code", "status", "tenant_id"} & set(fields)

    @pytest.mark.asyncio
    async def test_configuration_unknown_code(self, mock_db, tenant, school_admin):
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.get_by_code = AsyncMock(return_value=None)
            with pytest.raises(SchoolNotFoundError):
                await service.update_school_configuration(
                    mock_db,
                    "NOPE",
                    SchoolConfigurationUpdate(name="Whatever"),
                    current_user_for(school_admin, tenant),
                )

    @pytest.mark.asyncio
    async def test_code_clash_on_update(self, mock_db, tenant, school_admin, school):
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.get_by_id = AsyncMock(return_value=school)
            school_repo.code_exists = AsyncMock(return_value=True)
            school_repo.update = AsyncMock()

            with pytest.raises(DuplicateSchoolCodeError):
                await service.update_school(
                    mock_db,
                    school.id,
                    SchoolUpdate(code="taken"),
                    current_user_for(school_admin, tenant),
                )

        school_repo.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_unchanged_code_skips_clash_check(self, mock_db, tenant, school_admin, school):
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.get_by_id = AsyncMock(return_value=school)
            school_repo.code_exists = AsyncMock()
            school_repo.update = AsyncMock(return_value=school)

            await service.update_school(
                mock_db,
                school.id,
                SchoolUpdate(code=school.code.lower(), status=SchoolStatus.INACTIVE),
                current_user_for(school_admin, tenant),
            )

        school_repo.code_exists.assert_not_called()
        assert school_repo.update.call_args.kwargs["status"] == SchoolStatus.INACTIVE

    @pytest.mark.parametrize(
        "body",
        [{"name": None}, {"school_type": None}, {"board": None}, {"code": None}, {"status": None}],
    )
    def test_null_for_required_column_is_rejected(self, body):
        with pytest.raises(ValidationError):
            SchoolUpdate.model_validate(body)

    def test_omitted_fields_stay_unset(self):
        data = SchoolUpdate.model_validate({"logo_url": None})
        assert data.model_dump(exclude_unset=True) == {"logo_url": None}


class TestDeleteSchool:
    """Soft delete."""

    @pytest.mark.asyncio
    async def test_soft_delete(self, mock_db, tenant, school_admin, school):
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.get_by_id = AsyncMock(return_value=school)
            school_repo.soft_delete = AsyncMock(return_value=school)

            await service.delete_school(mock_db, school.id, current_user_for(school_admin, tenant))

        school_repo.soft_delete.assert_awaited_once_with(mock_db, school, deleted_by=school_admin.id)

    @pytest.mark.asyncio
    async def test_other_tenant_cannot_delete(self, mock_db, tenant, other_tenant, school_admin):
        foreign = make_school(other_tenant.id)
        with patch(f"{SERVICE}.SchoolRepository") as school_repo:
            school_repo.get_by_id = AsyncMock(return_value=foreign)
            school_repo.soft_delete = AsyncMock()
            with pytest.raises(HTTPException):
                await service.delete_school(
                    mock_db, foreign.id, current_user_for(school_admin, tenant)
                )
        school_repo.soft_delete.assert_not_called()
