"""
School Service Layer

Business logic for tenant-scoped school management.

Every lookup that addresses a single school is followed by a tenant check:
callers only see schools of their own tenant unless they are super admins.
Deletes are soft; deleted schools behave as missing.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from campuscore.core.auth import CurrentUser, ensure_tenant_access
from campuscore.modules.schools.models import School, SchoolStatus
from campuscore.modules.schools.repository import SchoolRepository
from campuscore.modules.schools.schemas import (
    SchoolConfigurationUpdate,
    SchoolCreate,
    SchoolListResponse,
    SchoolResponse,
    SchoolUpdate,
)
from campuscore.modules.shared import (
    ConflictError,
    NotFoundError,
    ValidationFailedError,
    build_meta,
    page_offset,
)
from campuscore.modules.shared.pagination import MAX_PAGE_SIZE
from campuscore.modules.tenants.repository import TenantRepository

logger = logging.getLogger(__name__)

# Fields the configuration endpoint may change
CONFIGURATION_FIELDS = frozenset(
    {
        "name",
        "logo_url",
        "banner_url",
        "contact_info",
        "address",
        "principal",
        "settings",
        "features_enabled",
        "establishment_year",
        "school_type",
        "board",
        "affiliation_number",
    }
)


class SchoolNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("School", error_code="SCHOOL_NOT_FOUND")


class DuplicateSchoolCodeError(ConflictError):
    def __init__(self, code: str):
        super().__init__(
            message=f"School with code {code.upper()} already exists",
            error_code="DUPLICATE_SCHOOL_CODE",
        )


async def _get_school_for_user(db: AsyncSession, school_id: str, user: CurrentUser) -> School:
    school = await SchoolRepository.get_by_id(db, school_id)
    if not school:
        raise SchoolNotFoundError()
    ensure_tenant_access(user, school.tenant_id)
    return school


async def create_school(db: AsyncSession, data: SchoolCreate, user: CurrentUser) -> School:
    """
    Create a school in the caller's tenant.

    Super admins have no tenant of their own and must name one.

    Raises:
        ValidationFailedError: Super admin did not provide tenant_id
        NotFoundError: The named tenant does not exist
        DuplicateSchoolCodeError: Code already used in the tenant
    """
    if user.is_super_admin:
        tenant_id = str(data.tenant_id) if data.tenant_id else user.tenant_id
        if not tenant_id:
            raise ValidationFailedError(
                "tenant_id is required when creating a school as super admin",
                error_code="TENANT_REQUIRED",
            )
        if not await TenantRepository.get_by_id(db, tenant_id):
            raise NotFoundError("Tenant")
    else:
        tenant_id = user.tenant_id
        if data.tenant_id:
            ensure_tenant_access(user, data.tenant_id)

    if await SchoolRepository.code_exists(db, data.code, tenant_id):
        logger.warning(f"Duplicate school code {data.code} in tenant {tenant_id}")
        raise DuplicateSchoolCodeError(data.code)

    fields = data.model_dump(exclude={"tenant_id"}, mode="json")
    fields["school_type"] = data.school_type
    fields["board"] = data.board
    fields["status"] = data.status

    school = await SchoolRepository.create(
        db,
        tenant_id=tenant_id,
        created_by=user.id,
        **fields,
    )
    logger.info(f"User {user.id} created school {school.id} in tenant {tenant_id}")
    return school


async def list_schools(
    db: AsyncSession,
    user: CurrentUser,
    *,
    status: SchoolStatus | None = None,
    search: str | None = None,
    sort_by: str = "name",
    sort_order: str = "asc",
    page: int = 1,
    limit: int = 10,
    tenant_id: str | None = None,
) -> SchoolListResponse:
    """
    Paginated school list.

    Non-super-admins are always confined to their own tenant; super admins
    see every tenant unless ``tenant_id`` narrows the list.
    """
    page = max(1, page)
    limit = min(max(1, limit), MAX_PAGE_SIZE)

    if not user.is_super_admin:
        tenant_id = user.tenant_id

    logger.info(
        f"Listing schools: tenant={tenant_id}, status={status}, search={search}, "
        f"sort={sort_by}:{sort_order}, page={page}, limit={limit}"
    )

    schools, total = await SchoolRepository.list_schools(
        db,
        tenant_id=tenant_id,
        status=status,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        offset=page_offset(page, limit),
        limit=limit,
    )

    return SchoolListResponse(
        schools=[SchoolResponse.model_validate(school) for school in schools],
        pagination=build_meta(total, page, limit),
    )


async def get_school(db: AsyncSession, school_id: str, user: CurrentUser) -> School:
    """
    Get a school by ID.

    Raises:
        SchoolNotFoundError: Missing or soft deleted
        HTTPException 403: School belongs to another tenant
    """
    return await _get_school_for_user(db, school_id, user)


async def get_school_by_code(
    db: AsyncSession,
    code: str,
    user: CurrentUser | None = None,
) -> School:
    """
    Public lookup by school code.

    Codes are unique per tenant, so a signed-in tenant user resolves the code
    within their own tenant.
    """
    tenant_id = user.tenant_id if user and not user.is_super_admin else None
    school = await SchoolRepository.get_by_code(db, code, tenant_id=tenant_id)
    if not school:
        raise SchoolNotFoundError()
    return school


async def update_school_configuration(
    db: AsyncSession,
    code: str,
    data: SchoolConfigurationUpdate,
    user: CurrentUser,
) -> School:
    """
    Apply configuration changes to the school with ``code``.

    Only fields in CONFIGURATION_FIELDS are written.
    """
    tenant_id = None if user.is_super_admin else user.tenant_id
    school = await SchoolRepository.get_by_code(db, code, tenant_id=tenant_id)
    if not school:
        raise SchoolNotFoundError()
    ensure_tenant_access(user, school.tenant_id)

    changes = {
        key: value
        for key, value in data.model_dump(exclude_unset=True, mode="json").items()
        if key in CONFIGURATION_FIELDS
    }
    if "school_type" in changes:
        changes["school_type"] = data.school_type
    if "board" in changes:
        changes["board"] = data.board

    school = await SchoolRepository.update(db, school, updated_by=user.id, **changes)
    logger.info(f"User {user.id} updated configuration of school {school.code}: {sorted(changes)}")
    return school


async def update_school(
    db: AsyncSession,
    school_id: str,
    data: SchoolUpdate,
    user: CurrentUser,
) -> School:
    """
    Update a school.

    Raises:
        SchoolNotFoundError: Missing or soft deleted
        DuplicateSchoolCodeError: New code already used in the tenant
    """
    school = await _get_school_for_user(db, school_id, user)

    changes = data.model_dump(exclude_unset=True, mode="json")
    for enum_field in ("school_type", "board", "status"):
        if enum_field in changes:
            changes[enum_field] = getattr(data, enum_field)

    new_code = changes.get("code")
    if new_code and new_code.upper() != school.code:
        if await SchoolRepository.code_exists(db, new_code, school.tenant_id, exclude_id=school.id):
            raise DuplicateSchoolCodeError(new_code)

    school = await SchoolRepository.update(db, school, updated_by=user.id, **changes)
    logger.info(f"User {user.id} updated school {school.id}")
    return school


async def delete_school(db: AsyncSession, school_id: str, user: CurrentUser) -> School:
    """Soft delete a school."""
    school = await _get_school_for_user(db, school_id, user)
    school = await SchoolRepository.soft_delete(db, school, deleted_by=user.id)
    logger.info(f"User {user.id} deleted school {school.id}")
    return school
