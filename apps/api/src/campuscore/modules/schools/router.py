"""
Schools Router

API endpoints for tenant-scoped school management.

Endpoints:
- POST /schools - Create a school (super_admin, school_admin)
- GET /schools - List schools (super_admin, school_admin)
- GET /schools/code/{code} - Public lookup by school code
- PUT /schools/code/{code}/configuration - Update school configuration
- GET /schools/{id} - Get a school (super_admin, school_admin, teacher)
- PUT /schools/{id} - Update a school (super_admin, school_admin)
- DELETE /schools/{id} - Soft delete a school (super_admin)

Security:
- Non-super-admins are confined to schools of their own tenant
"""

import logging
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campuscore.core.auth import CurrentUser, get_optional_user, require_roles
from campuscore.core.database import get_db
from campuscore.modules.schools import service
from campuscore.modules.schools.models import SchoolStatus
from campuscore.modules.schools.schemas import (
    SchoolConfigurationUpdate,
    SchoolCreate,
    SchoolDeleteResponse,
    SchoolListResponse,
    SchoolPublicResponse,
    SchoolResponse,
    SchoolUpdate,
)
from campuscore.modules.shared import ServiceError, internal_error, to_http_exception
from campuscore.modules.shared.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from campuscore.modules.users.models import UserRole

logger = logging.getLogger(__name__)

router = APIRouter()

school_admins = require_roles(UserRole.SUPER_ADMIN, UserRole.SCHOOL_ADMIN)
school_staff = require_roles(UserRole.SUPER_ADMIN, UserRole.SCHOOL_ADMIN, UserRole.TEACHER)
super_admins = require_roles(UserRole.SUPER_ADMIN)


@router.post(
    "",
    response_model=SchoolResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create School",
    responses={
        409: {"description": "School code already used in the tenant"},
    },
)
async def create_school(
    data: SchoolCreate,
    user: CurrentUser = Depends(school_admins),
    db: AsyncSession = Depends(get_db),
) -> SchoolResponse:
    """Create a school in the caller's tenant (super admins name the tenant)."""
    try:
        school = await service.create_school(db, data, user)
        return SchoolResponse.model_validate(school)
    except ServiceError as e:
        logger.warning(f"Create school rejected: {e.message}")
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error creating school: {e}")
        raise internal_error() from e


@router.get(
    "",
    response_model=SchoolListResponse,
    summary="List Schools",
    description="""
Paginated list of schools.

**Filters:** status, search (name, code, city, state).

School admins only ever see schools of their own tenant.
""",
)
async def list_schools(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    status_filter: SchoolStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=100),
    sort_by: str = Query("name"),
    sort_order: Literal["asc", "desc"] = Query("asc"),
    tenant_id: UUID | None = Query(None, description="Super admins only: restrict to a tenant"),
    user: CurrentUser = Depends(school_admins),
    db: AsyncSession = Depends(get_db),
) -> SchoolListResponse:
    try:
        return await service.list_schools(
            db,
            user,
            status=status_filter,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
            tenant_id=str(tenant_id) if tenant_id else None,
        )
    except ServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error listing schools: {e}")
        raise internal_error() from e


@router.get(
    "/code/{code}",
    response_model=SchoolPublicResponse,
    summary="Get School By Code",
    description="""
Public lookup used by login pages to show school branding.

A token is optional; signed-in tenant users resolve the code within their
own tenant.
""",
)
async def get_school_by_code(
    code: str,
    user: CurrentUser | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
) -> SchoolPublicResponse:
    try:
        school = await service.get_school_by_code(db, code, user)
        return SchoolPublicResponse.model_validate(school)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error fetching school by code: {e}")
        raise internal_error() from e


@router.put(
    "/code/{code}/configuration",
    response_model=SchoolResponse,
    summary="Update School Configuration",
    description="""
Update branding, contact and academic configuration of a school.

Only these fields are applied: name, logo_url, banner_url, contact_info,
address, principal, settings, features_enabled, establishment_year,
school_type, board, affiliation_number.
""",
)
async def update_school_configuration(
    code: str,
    data: SchoolConfigurationUpdate,
    user: CurrentUser = Depends(school_admins),
    db: AsyncSession = Depends(get_db),
) -> SchoolResponse:
    try:
        school = await service.update_school_configuration(db, code, data, user)
        return SchoolResponse.model_validate(school)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error updating school configuration: {e}")
        raise internal_error() from e


@router.get(
    "/{school_id}",
    response_model=SchoolResponse,
    summary="Get School",
    responses={
        403: {"description": "School belongs to another tenant"},
        404: {"description": "School not found or deleted"},
    },
)
async def get_school(
    school_id: UUID,
    user: CurrentUser = Depends(school_staff),
    db: AsyncSession = Depends(get_db),
) -> SchoolResponse:
    try:
        school = await service.get_school(db, str(school_id), user)
        return SchoolResponse.model_validate(school)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error fetching school {school_id}: {e}")
        raise internal_error() from e


@router.put(
    "/{school_id}",
    response_model=SchoolResponse,
    summary="Update School",
)
async def update_school(
    school_id: UUID,
    data: SchoolUpdate,
    user: CurrentUser = Depends(school_admins),
    db: AsyncSession = Depends(get_db),
) -> SchoolResponse:
    try:
        school = await service.update_school(db, str(school_id), data, user)
        return SchoolResponse.model_validate(school)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error updating school {school_id}: {e}")
        raise internal_error() from e


@router.delete(
    "/{school_id}",
    response_model=SchoolDeleteResponse,
    summary="Delete School",
    description="Soft delete: the school is hidden from every lookup but kept in storage.",
)
async def delete_school(
    school_id: UUID,
    user: CurrentUser = Depends(super_admins),
    db: AsyncSession = Depends(get_db),
) -> SchoolDeleteResponse:
    try:
        school = await service.delete_school(db, str(school_id), user)
        return SchoolDeleteResponse(id=school.id)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error deleting school {school_id}: {e}")
        raise internal_error() from e
