"""
Tenant Service Layer

Business logic for tenant onboarding and lookup.

Tenant registration provisions, in one transaction:
1. The tenant (free plan, one-year subscription)
2. Its first school
3. The school admin account

The welcome email is sent after the records exist and never fails the
registration.
"""

import logging
import re
import unicodedata
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from campuscore.core.auth import CurrentUser, ensure_tenant_slug_access
from campuscore.core.config import settings
from campuscore.core.email import send_tenant_welcome
from campuscore.core.security import hash_password
from campuscore.modules.schools.models import SchoolStatus
from campuscore.modules.schools.repository import SchoolRepository
from campuscore.modules.schools.schemas import SchoolListResponse, SchoolResponse
from campuscore.modules.shared import (
    ConflictError,
    NotFoundError,
    ValidationFailedError,
    build_meta,
    page_offset,
)
from campuscore.modules.shared.pagination import MAX_PAGE_SIZE
from campuscore.modules.tenants.models import (
    DEFAULT_TENANT_SETTINGS,
    SubscriptionPlan,
    Tenant,
    TenantStatus,
)
from campuscore.modules.tenants.repository import TenantRepository
from campuscore.modules.tenants.schemas import (
    RegisteredAdmin,
    RegisteredSchool,
    TenantRegisterRequest,
    TenantRegisterResponse,
    TenantSummary,
)
from campuscore.modules.users.models import AccountStatus, UserRole
from campuscore.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

SLUG_MAX_LENGTH = 30
DEFAULT_TENANT_CODE = "DEFAULT"


class TenantNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Tenant", error_code="TENANT_NOT_FOUND")


def slugify(value: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """
    Lowercase ASCII slug: letters and digits joined by single hyphens.

    "St. Mary's High School" -> "st-marys-high-school"
    """
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    normalized = re.sub(r"[*+~.()'\"!:@]", "", normalized.lower())
    slug = re.sub(r"[^a-z0-9]+", "-", normalized).strip("-")
    return slug[:max_length].rstrip("-")


def current_academic_year(now: datetime | None = None) -> str:
    year = (now or datetime.now(UTC)).year
    return f"{year}-{year + 1}"


def split_name(full_name: str) -> tuple[str, str]:
    """Split a display name into first and last name."""
    parts = full_name.strip().split(" ", 1)
    first_name = parts[0]
    last_name = parts[1].strip() if len(parts) > 1 else ""
    return first_name, last_name


def tenant_paths(slug: str) -> tuple[str, str]:
    """Public path and login URL of a tenant."""
    return f"/schools/{slug}", f"/schools/{slug}/login"


async def register_tenant(db: AsyncSession, data: TenantRegisterRequest) -> TenantRegisterResponse:
    """
    Register a new school organisation.

    Args:
        db: Database session
        data: Registration request

    Returns:
        Summaries of the tenant, school and admin plus the tenant's URLs

    Raises:
        ValidationFailedError: The school name has no usable characters
        ConflictError: Tenant code or admin email already taken
    """
    slug = slugify(data.school_name)
    if not slug:
        raise ValidationFailedError(
            "School name must contain letters or digits", error_code="INVALID_SCHOOL_NAME"
        )

    logger.info(f"Processing tenant registration for school: {data.school_name} ({slug})")

    # Codes and slugs are both unique; the default tenant's code differs from its slug
    if await TenantRepository.get_by_code(db, slug) or await TenantRepository.get_by_slug(db, slug):
        logger.warning(f"Tenant code or slug already exists: {slug}")
        raise ConflictError("A school with this name already exists", error_code="TENANT_EXISTS")

    # The admin email must be unused on the whole platform so the first login
    # without a tenant slug is never ambiguous.
    if await UserRepository.list_by_email(db, data.admin_email):
        logger.warning("Tenant registration rejected: admin email already registered")
        raise ConflictError("This email is already registered", error_code="EMAIL_EXISTS")

    now = datetime.now(UTC)
    try:
        subscription_end = now.replace(year=now.year + 1)
    except ValueError:
        # Feb 29
        subscription_end = now.replace(year=now.year + 1, day=28)

    tenant = await TenantRepository.create(
        db,
        name=data.school_name,
        code=slug,
        slug=slug,
        domain=f"{slug}.{settings.tenant_domain_suffix}",
        status=TenantStatus.ACTIVE,
        subscription_plan=SubscriptionPlan.FREE,
        subscription_start=now,
        subscription_end=subscription_end,
        settings=dict(DEFAULT_TENANT_SETTINGS),
    )

    address = data.school_address.model_dump() if data.school_address else None
    school = await SchoolRepository.create(
        db,
        tenant_id=tenant.id,
        name=data.school_name,
        code=slug.upper(),
        address=address,
        contact_info={"email": data.school_email, "phone": data.school_phone, "website": ""},
        status=SchoolStatus.ACTIVE,
        settings={"academic_year": data.academic_year or current_academic_year(now)},
    )

    first_name, last_name = split_name(data.admin_name)
    admin = await UserRepository.create(
        db,
        email=data.admin_email,
        password_hash=hash_password(data.admin_password),
        first_name=first_name,
        last_name=last_name,
        role=UserRole.SCHOOL_ADMIN,
        tenant_id=tenant.id,
        school_id=school.id,
        account_status=AccountStatus.ACTIVE,
        email_verified=True,
    )

    logger.info(
        f"Tenant {tenant.id} registered. School ID: {school.id}, Admin User ID: {admin.id}"
    )

    path, login_url = tenant_paths(tenant.slug)

    try:
        email_sent = await send_tenant_welcome(
            to_email=admin.email,
            admin_name=admin.full_name,
            school_name=school.name,
            login_url=login_url,
        )
        if not email_sent:
            logger.error(f"Failed to send welcome email for tenant {tenant.id}")
    except Exception as e:
        logger.error(f"Exception sending welcome email for tenant {tenant.id}: {e}")

    return TenantRegisterResponse(
        tenant=TenantSummary(
            id=tenant.id,
            name=tenant.name,
            code=tenant.code,
            slug=tenant.slug,
            domain=tenant.domain,
        ),
        school=RegisteredSchool(id=school.id, name=school.name, code=school.code),
        admin=RegisteredAdmin(id=admin.id, name=admin.full_name, email=admin.email),
        path=path,
        login_url=login_url,
    )


async def list_tenants(db: AsyncSession) -> list[Tenant]:
    return await TenantRepository.list_all(db)


async def get_tenant(db: AsyncSession, tenant_id: str) -> Tenant:
    tenant = await TenantRepository.get_by_id(db, tenant_id)
    if not tenant:
        raise TenantNotFoundError()
    return tenant


async def get_tenant_by_slug(db: AsyncSession, slug: str) -> Tenant:
    tenant = await TenantRepository.get_by_slug(db, slug)
    if not tenant:
        raise TenantNotFoundError()
    return tenant


async def get_or_create_default_tenant(db: AsyncSession) -> Tenant:
    """
    Platform default tenant used by seeded super admins.

    Created on first use with the enterprise plan.
    """
    tenant = await TenantRepository.get_by_code(db, DEFAULT_TENANT_CODE)
    if tenant:
        return tenant

    tenant = await TenantRepository.create(
        db,
        name="Default Tenant",
        code=DEFAULT_TENANT_CODE,
        slug="default",
        domain=f"default.{settings.tenant_domain_suffix}",
        status=TenantStatus.ACTIVE,
        subscription_plan=SubscriptionPlan.ENTERPRISE,
        subscription_start=datetime.now(UTC),
        settings=dict(DEFAULT_TENANT_SETTINGS),
    )
    logger.info(f"Created default tenant {tenant.id}")
    return tenant


async def list_tenant_schools(
    db: AsyncSession,
    slug: str,
    user: CurrentUser,
    *,
    page: int = 1,
    limit: int = 10,
) -> SchoolListResponse:
    """
    Schools of the tenant named by ``slug``.

    Raises:
        HTTPException 403: Caller belongs to another tenant
        TenantNotFoundError: Unknown slug
    """
    ensure_tenant_slug_access(user, slug)
    tenant = await get_tenant_by_slug(db, slug)

    page = max(1, page)
    limit = min(max(1, limit), MAX_PAGE_SIZE)
    schools, total = await SchoolRepository.list_schools(
        db,
        tenant_id=tenant.id,
        offset=page_offset(page, limit),
        limit=limit,
    )
    return SchoolListResponse(
        schools=[SchoolResponse.model_validate(school) for school in schools],
        pagination=build_meta(total, page, limit),
    )
