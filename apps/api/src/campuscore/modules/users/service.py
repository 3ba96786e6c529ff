"""
User Service Layer

Business logic for user administration within a tenant.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from campuscore.core.auth import CurrentUser, ensure_self_or_admin, ensure_tenant_access
from campuscore.modules.shared import (
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
    build_meta,
    page_offset,
)
from campuscore.modules.shared.pagination import MAX_PAGE_SIZE
from campuscore.modules.users.models import AccountStatus, User, UserRole
from campuscore.modules.users.repository import UserRepository
from campuscore.modules.users.schemas import UserListResponse, UserResponse

logger = logging.getLogger(__name__)


class UserNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("User", error_code="USER_NOT_FOUND")


async def _get_user_in_scope(db: AsyncSession, user_id: str, caller: CurrentUser) -> User:
    user = await UserRepository.get_by_id(db, user_id)
    if not user:
        raise UserNotFoundError()
    ensure_tenant_access(caller, user.tenant_id)
    return user


def _ensure_can_manage(caller: CurrentUser, target: User) -> None:
    # School admins may not manage platform super admins
    if target.role == UserRole.SUPER_ADMIN and not caller.is_super_admin:
        raise PermissionDeniedError(
            "Only a super admin can manage this account", error_code="INSUFFICIENT_PERMISSIONS"
        )


async def list_users(
    db: AsyncSession,
    caller: CurrentUser,
    *,
    role: UserRole | None = None,
    account_status: AccountStatus | None = None,
    search: str | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    page: int = 1,
    limit: int = 10,
    tenant_id: str | None = None,
) -> UserListResponse:
    """
    Paginated user list.

    Non-super-admins only ever see users of their own tenant.
    """
    page = max(1, page)
    limit = min(max(1, limit), MAX_PAGE_SIZE)

    if not caller.is_super_admin:
        tenant_id = caller.tenant_id

    users, total = await UserRepository.list_users(
        db,
        tenant_id=tenant_id,
        role=role,
        account_status=account_status,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        offset=page_offset(page, limit),
        limit=limit,
    )

    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in users],
        pagination=build_meta(total, page, limit),
    )


async def get_user(db: AsyncSession, user_id: str, caller: CurrentUser) -> User:
    """
    Get a user; non-admins may only read themselves.

    Raises:
        HTTPException 403: Not self/admin, or another tenant
        UserNotFoundError: Missing or soft deleted
    """
    ensure_self_or_admin(caller, user_id)
    return await _get_user_in_scope(db, user_id, caller)


async def update_user_status(
    db: AsyncSession,
    user_id: str,
    account_status: AccountStatus,
    caller: CurrentUser,
) -> User:
    """
    Change a user's account status.

    Any status other than ACTIVE blocks further logins.
    """
    if user_id == caller.id and account_status != AccountStatus.ACTIVE:
        raise ValidationFailedError(
            "You cannot deactivate your own account", error_code="CANNOT_MODIFY_SELF"
        )

    user = await _get_user_in_scope(db, user_id, caller)
    _ensure_can_manage(caller, user)

    user = await UserRepository.update(
        db,
        user,
        account_status=account_status,
        is_active=account_status == AccountStatus.ACTIVE,
        updated_by=caller.id,
    )
    logger.info(f"User {caller.id} set account status of {user.id} to {account_status.value}")
    return user


async def delete_user(db: AsyncSession, user_id: str, caller: CurrentUser) -> User:
    """Soft delete a user. Callers cannot delete themselves."""
    if user_id == caller.id:
        raise ValidationFailedError(
            "You cannot delete your own account", error_code="CANNOT_DELETE_SELF"
        )

    user = await _get_user_in_scope(db, user_id, caller)
    _ensure_can_manage(caller, user)

    user = await UserRepository.soft_delete(db, user, deleted_by=caller.id)
    logger.info(f"User {caller.id} deleted user {user.id}")
    return user
