"""
Test data factories.

Real ORM instances that are never attached to a session.
"""

from datetime import UTC, datetime
from uuid import uuid4

from campuscore.core.auth import CurrentUser
from campuscore.core.security import create_access_token, hash_password
from campuscore.modules.schools.models import School, SchoolBoard, SchoolStatus, SchoolType
from campuscore.modules.tenants.models import SubscriptionPlan, Tenant, TenantStatus
from campuscore.modules.users.models import AccountStatus, User, UserRole

TEST_PASSWORD = "CorrectHorse9!"


def make_tenant(**overrides) -> Tenant:
    now = datetime.now(UTC)
    fields = {
        "id": str(uuid4()),
        "name": "Green Valley School",
        "code": "green-valley-school",
        "slug": "green-valley-school",
        "domain": "green-valley-school.campuscore.edu",
        "status": TenantStatus.ACTIVE,
        "subscription_plan": SubscriptionPlan.FREE,
        "subscription_start": now,
        "subscription_end": None,
        "settings": {"theme": "default", "logo": None, "timezone": "UTC", "locale": "en"},
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    return Tenant(**fields)


def make_school(tenant_id: str, **overrides) -> School:
    now = datetime.now(UTC)
    fields = {
        "id": str(uuid4()),
        "tenant_id": tenant_id,
        "name": "Green Valley School",
        "code": "GREEN-VALLEY-SCHOOL",
        "address": {"street": "1 Main Rd", "city": "Pune", "state": "MH", "country": "India"},
        "contact_info": {"email": "office@gvs.example.com", "phone": "+911234567"},
        "principal": None,
        "establishment_year": 1998,
        "school_type": SchoolType.SECONDARY,
        "board": SchoolBoard.CBSE,
        "affiliation_number": None,
        "logo_url": None,
        "banner_url": None,
        "status": SchoolStatus.ACTIVE,
        "settings": {"academic_year": "2026-2027"},
        "features_enabled": None,
        "is_deleted": False,
        "is_active": True,
        "created_by": None,
        "updated_by": None,
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    return School(**fields)


def make_user(tenant_id: str | None, **overrides) -> User:
    now = datetime.now(UTC)
    fields = {
        "id": str(uuid4()),
        "tenant_id": tenant_id,
        "school_id": None,
        "email": "teacher@gvs.example.com",
        "password_hash": hash_password(TEST_PASSWORD),
        "first_name": "Asha",
        "last_name": "Rao",
        "phone": None,
        "profile_image": None,
        "role": UserRole.TEACHER,
        "permissions": None,
        "preferences": None,
        "account_status": AccountStatus.ACTIVE,
        "email_verified": True,
        "last_login_at": None,
        "must_change_password": False,
        "reset_password_token_hash": None,
        "reset_password_expires_at": None,
        "is_deleted": False,
        "is_active": True,
        "created_by": None,
        "updated_by": None,
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    return User(**fields)


def current_user_for(user: User, tenant: Tenant | None = None) -> CurrentUser:
    return CurrentUser(
        id=user.id,
        email=user.email,
        role=user.role.value,
        tenant_id=user.tenant_id,
        tenant_slug=tenant.slug if tenant else None,
        school_id=user.school_id,
        name=user.full_name,
    )


def bearer_for(user: User, tenant: Tenant | None = None) -> dict[str, str]:
    token = create_access_token(
        subject=user.id,
        additional_claims={
            "email": user.email,
            "role": user.role.value,
            "tenant_id": user.tenant_id,
            "tenant_slug": tenant.slug if tenant else None,
        },
    )
    return {"Authorization": f"Bearer {token}"}

