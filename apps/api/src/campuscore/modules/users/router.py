"""
Users Router

Endpoints:
- GET /users - List users (admins)
- GET /users/{id} - Get a user (self or admin)
- PATCH /users/{id}/status - Change account status (admins)
- DELETE /users/{id} - Soft delete a user (admins)

Security:
- School admins are confined to users of their own tenant
"""

import logging
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from campuscore.core.auth import CurrentUser, get_current_user, require_admin
from campuscore.core.database import get_db
from campuscore.modules.shared import ServiceError, internal_error, to_http_exception
from campuscore.modules.shared.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from campuscore.modules.users import service
from campuscore.modules.users.models import AccountStatus, UserRole
from campuscore.modules.users.schemas import (
    UserDeleteResponse,
    UserListResponse,
    UserResponse,
    UserStatusUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=UserListResponse,
    summary="List Users",
)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    role: UserRole | None = Query(None),
    account_status: AccountStatus | None = Query(None),
    search: str | None = Query(None, max_length=100),
    sort_by: str = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    tenant_id: UUID | None = Query(None, description="Super admins only: restrict to a tenant"),
    caller: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> UserListResponse:
    try:
        return await service.list_users(
            db,
            caller,
            role=role,
            account_status=account_status,
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
        logger.exception(f"Unexpected error listing users: {e}")
        raise internal_error() from e


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get User",
)
async def get_user(
    user_id: UUID,
    caller: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    try:
        user = await service.get_user(db, str(user_id), caller)
        return UserResponse.model_validate(user)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error fetching user {user_id}: {e}")
        raise internal_error() from e


@router.patch(
    "/{user_id}/status",
    response_model=UserResponse,
    summary="Update Account Status",
    description="Accounts that are not `active` can no longer log in.",
)
async def update_user_status(
    user_id: UUID,
    data: UserStatusUpdate,
    caller: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    try:
        user = await service.update_user_status(db, str(user_id), data.account_status, caller)
        return UserResponse.model_validate(user)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error updating status of user {user_id}: {e}")
        raise internal_error() from e


@router.delete(
    "/{user_id}",
    response_model=UserDeleteResponse,
    summary="Delete User",
)
async def delete_user(
    user_id: UUID,
    caller: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> UserDeleteResponse:
    try:
        user = await service.delete_user(db, str(user_id), caller)
        return UserDeleteResponse(id=user.id)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error deleting user {user_id}: {e}")
        raise internal_error() from e
