"""
Tenants Router

Endpoints:
- POST /tenants/register - Register a school organisation (public)
- GET /tenants - List tenants (super_admin)
- GET /tenants/slug/{slug} - Public tenant lookup for login pages
- GET /tenants/{slug}/schools - Schools of a tenant (members of that tenant)
- GET /tenants/{id} - Get a tenant (super_admin)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campuscore.core.auth import CurrentUser, get_current_user, require_roles
from campuscore.core.database import get_db
from campuscore.modules.schools.schemas import SchoolListResponse
from campuscore.modules.shared import ServiceError, internal_error, to_http_exception
from campuscore.modules.shared.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from campuscore.modules.tenants import service
from campuscore.modules.tenants.schemas import (
    TenantListResponse,
    TenantPublicResponse,
    TenantRegisterRequest,
    TenantRegisterResponse,
    TenantResponse,
)
from campuscore.modules.users.models import UserRole

logger = logging.getLogger(__name__)

router = APIRouter()

super_admins = require_roles(UserRole.SUPER_ADMIN)


@router.post(
    "/register",
    response_model=TenantRegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register Tenant",
    description="""
Register a new school organisation.

Creates the tenant, its first school and a school admin account, then sends
a welcome email to the admin. The response contains the tenant's public path
and login URL (`/schools/<slug>/login`).
""",
    responses={
        409: {
            "description": "School name or admin email already registered",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "TENANT_EXISTS",
                            "message": "A school with this name already exists",
                        }
                    }
                }
            },
        },
    },
)
async def register_tenant(
    data: TenantRegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> TenantRegisterResponse:
    try:
        response = await service.register_tenant(db, data)
        logger.info(f"Tenant registered successfully: slug={response.tenant.slug}")
        return response
    except ServiceError as e:
        logger.warning(f"Tenant registration rejected: {e.message}")
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error registering tenant: {e}")
        raise internal_error() from e


@router.get(
    "",
    response_model=TenantListResponse,
    summary="List Tenants",
)
async def list_tenants(
    _admin: CurrentUser = Depends(super_admins),
    db: AsyncSession = Depends(get_db),
) -> TenantListResponse:
    try:
        tenants = await service.list_tenants(db)
        return TenantListResponse(
            tenants=[TenantResponse.model_validate(tenant) for tenant in tenants],
            total=len(tenants),
        )
    except Exception as e:
        logger.exception(f"Unexpected error listing tenants: {e}")
        raise internal_error() from e


@router.get(
    "/slug/{slug}",
    response_model=TenantPublicResponse,
    summary="Get Tenant By Slug",
)
async def get_tenant_by_slug(
    slug: str,
    db: AsyncSession = Depends(get_db),
) -> TenantPublicResponse:
    try:
        tenant = await service.get_tenant_by_slug(db, slug)
        return TenantPublicResponse.model_validate(tenant)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error fetching tenant {slug}: {e}")
        raise internal_error() from e


@router.get(
    "/{slug}/schools",
    response_model=SchoolListResponse,
    summary="List Tenant Schools",
    responses={403: {"description": "Caller belongs to another tenant"}},
)
async def list_tenant_schools(
    slug: str,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SchoolListResponse:
    try:
        return await service.list_tenant_schools(db, slug, user, page=page, limit=limit)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error listing schools of tenant {slug}: {e}")
        raise internal_error() from e


@router.get(
    "/{tenant_id}",
    response_model=TenantResponse,
    summary="Get Tenant",
)
async def get_tenant(
    tenant_id: UUID,
    _admin: CurrentUser = Depends(super_admins),
    db: AsyncSession = Depends(get_db),
) -> TenantResponse:
    try:
        tenant = await service.get_tenant(db, str(tenant_id))
        return TenantResponse.model_validate(tenant)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error fetching tenant {tenant_id}: {e}")
        raise internal_error() from e
