"""
Authentication Service Layer

Registration, login, token refresh and password management.

Security considerations:
- Passwords are bcrypt hashed; plain passwords are never stored or logged
- Unknown accounts and wrong passwords produce the same error
- Reset tokens are SHA-256 hashed before storage and expire after
  ``settings.password_reset_expire_minutes``
- Forgot-password never reveals whether an account exists
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from campuscore.core.config import settings
from campuscore.core.email import send_password_changed, send_password_reset
from campuscore.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_reset_token,
    hash_password,
    hash_token,
    verify_password,
)
from campuscore.modules.auth.schemas import (
    AuthUser,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from campuscore.modules.schools.repository import SchoolRepository
from campuscore.modules.shared import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from campuscore.modules.tenants.models import Tenant
from campuscore.modules.tenants.repository import TenantRepository
from campuscore.modules.users.models import AccountStatus, User, UserRole
from campuscore.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

DEFAULT_ROLE = UserRole.STUDENT

# Roles that can never be obtained through public registration
NON_REGISTRABLE_ROLES = frozenset({UserRole.SUPER_ADMIN})

GENERIC_RESET_MESSAGE = "If a user with that email exists, a password reset link will be sent"


class InvalidCredentialsError(AuthenticationError):
    def __init__(self):
        super().__init__("Invalid email or password", error_code="INVALID_CREDENTIALS")


class AccountNotActiveError(AuthenticationError):
    def __init__(self, account_status: AccountStatus):
        super().__init__(
            f"Account is {account_status.value}. Please contact administrator.",
            error_code="ACCOUNT_NOT_ACTIVE",
        )


class TenantMismatchError(AuthenticationError):
    def __init__(self, tenant_slug: str):
        super().__init__(
            f"User is not authorized for tenant {tenant_slug}",
            error_code="TENANT_MISMATCH",
        )


class InvalidResetTokenError(ValidationFailedError):
    def __init__(self):
        super().__init__("Invalid or expired token", error_code="INVALID_RESET_TOKEN")


def resolve_registration_role(requested: str | None) -> UserRole:
    """
    Role granted to a self-registering user.

    Absent or unknown roles fall back to student, as do roles reserved for
    the platform.
    """
    if not requested:
        return DEFAULT_ROLE
    try:
        role = UserRole(requested.strip().lower())
    except ValueError:
        logger.info(f"Unknown role '{requested}' requested at registration; using default")
        return DEFAULT_ROLE
    if role in NON_REGISTRABLE_ROLES:
        logger.warning(f"Registration requested reserved role '{role.value}'; using default")
        return DEFAULT_ROLE
    return role


def build_token_claims(user: User, tenant: Tenant | None) -> dict[str, Any]:
    """Claims embedded in access tokens, read back by core.auth."""
    return {
        "email": user.email,
        "role": user.role.value,
        "name": user.full_name,
        "tenant_id": tenant.id if tenant else user.tenant_id,
        "tenant_slug": tenant.slug if tenant else None,
        "school_id": user.school_id,
    }


def _access_token_lifetime() -> int:
    return settings.access_token_expire_minutes * 60


def _auth_user(user: User, tenant: Tenant | None) -> AuthUser:
    return AuthUser.model_validate(user).model_copy(
        update={"tenant_slug": tenant.slug if tenant else None}
    )


async def _load_tenant(db: AsyncSession, tenant_id: str | None) -> Tenant | None:
    if not tenant_id:
        return None
    return await TenantRepository.get_by_id(db, tenant_id)


async def register_user(db: AsyncSession, data: RegisterRequest) -> RegisterResponse:
    """
    Register a user in an existing tenant.

    Raises:
        NotFoundError: Unknown tenant
        PermissionDeniedError: Tenant is not active
        ConflictError: Email already registered in the tenant
        ValidationFailedError: school_id does not belong to the tenant
    """
    tenant = await TenantRepository.get_by_id(db, str(data.tenant_id))
    if not tenant:
        raise NotFoundError("Tenant", error_code="TENANT_NOT_FOUND")
    if not tenant.is_active:
        raise PermissionDeniedError(
            f"Tenant is {tenant.status.value}", error_code="TENANT_NOT_ACTIVE"
        )

    if await UserRepository.email_exists(db, data.email, tenant.id):
        logger.warning(f"Registration rejected: email already exists in tenant {tenant.id}")
        raise ConflictError("User with this email already exists", error_code="EMAIL_EXISTS")

    school_id = str(data.school_id) if data.school_id else None
    if school_id:
        school = await SchoolRepository.get_by_id(db, school_id)
        if not school or school.tenant_id != tenant.id:
            raise ValidationFailedError(
                "School does not belong to this tenant", error_code="INVALID_SCHOOL"
            )

    role = resolve_registration_role(data.role)

    user = await UserRepository.create(
        db,
        email=data.email,
        password_hash=hash_password(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        role=role,
        tenant_id=tenant.id,
        school_id=school_id,
        phone=data.phone,
        account_status=AccountStatus.ACTIVE,
        email_verified=False,
    )
    logger.info(f"Registered user {user.id} ({role.value}) in tenant {tenant.id}")

    access_token = create_access_token(
        subject=str(user.id),
        additional_claims=build_token_claims(user, tenant),
    )
    return RegisterResponse(
        access_token=access_token,
        expires_in=_access_token_lifetime(),
        user=_auth_user(user, tenant),
    )


async def _find_login_candidate(
    db: AsyncSession,
    email: str,
    password: str,
    tenant: Tenant | None,
) -> User | None:
    """
    Pick the account a login attempt refers to.

    With a tenant, the tenant's own account wins, then a platform super
    admin, then any other account (rejected later as a tenant mismatch).
    Without a tenant the email must identify exactly one account. When it
    matches several, the password is checked first so a wrong password
    never reveals that the email is shared.
    """
    candidates = await UserRepository.list_by_email(db, email)
    if not candidates:
        return None

    if tenant is not None:
        own = [u for u in candidates if u.tenant_id == tenant.id]
        if own:
            return own[0]
        platform = [u for u in candidates if u.role == UserRole.SUPER_ADMIN]
        if platform:
            return platform[0]
        return candidates[0]

    if len(candidates) > 1:
        if not any(verify_password(password, u.password_hash) for u in candidates):
            logger.warning("Invalid password for a login without tenant")
            raise InvalidCredentialsError()
        raise ValidationFailedError(
            "This email is registered with more than one school. "
            "Sign in from your school's login page.",
            error_code="TENANT_REQUIRED",
        )
    return candidates[0]


async def login(
    db: AsyncSession,
    email: str,
    password: str,
    tenant_slug: str | None = None,
) -> LoginResponse:
    """
    Authenticate a user, optionally within a tenant.

    Args:
        db: Database session
        email: Login email
        password: Candidate password
        tenant_slug: Tenant the login page belongs to (optional)

    Returns:
        Access and refresh tokens plus the user profile

    Raises:
        NotFoundError: Unknown tenant slug
        InvalidCredentialsError: Unknown email or wrong password
        AccountNotActiveError: Account status is not active
        TenantMismatchError: Account belongs to another tenant
    """
    tenant: Tenant | None = None
    if tenant_slug:
        tenant = await TenantRepository.get_by_slug(db, tenant_slug)
        if not tenant:
            raise NotFoundError("Tenant", error_code="TENANT_NOT_FOUND")

    user = await _find_login_candidate(db, email, password, tenant)

    if not user:
        logger.warning("Login attempt for unknown email")
        raise InvalidCredentialsError()

    if not verify_password(password, user.password_hash):
        logger.warning(f"Invalid password for user {user.id}")
        raise InvalidCredentialsError()

    if user.account_status != AccountStatus.ACTIVE:
        logger.warning(f"Login attempt for {user.account_status.value} account {user.id}")
        raise AccountNotActiveError(user.account_status)

    is_super_admin = user.role == UserRole.SUPER_ADMIN
    if tenant is not None and not is_super_admin and user.tenant_id != tenant.id:
        logger.warning(f"User {user.id} attempted login to tenant {tenant.slug}")
        raise TenantMismatchError(tenant.slug)

    if tenant is None:
        tenant = await _load_tenant(db, user.tenant_id)

    if tenant is not None and not is_super_admin and not tenant.is_active:
        raise PermissionDeniedError(
            f"Tenant is {tenant.status.value}", error_code="TENANT_NOT_ACTIVE"
        )

    await UserRepository.record_login(db, user, datetime.now(UTC))

    access_token = create_access_token(
        subject=str(user.id),
        additional_claims=build_token_claims(user, tenant),
    )
    refresh_token = create_refresh_token(subject=str(user.id))

    tenant_label = tenant.slug if tenant else None
    logger.info(f"User logged in: {user.id} (role: {user.role.value}, tenant: {tenant_label})")

    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=_access_token_lifetime(),
        user=_auth_user(user, tenant),
    )


async def refresh_access_token(db: AsyncSession, refresh_token: str) -> TokenResponse:
    """
    Exchange a refresh token for a new access token.

    Raises:
        AuthenticationError: Token invalid, not a refresh token, or the user
            no longer exists or is not active
    """
    payload = decode_token(refresh_token)
    if payload is None or payload.get("type") != "refresh" or not payload.get("sub"):
        raise AuthenticationError("Invalid or expired refresh token", error_code="INVALID_TOKEN")

    user = await UserRepository.get_by_id(db, payload["sub"])
    if not user:
        raise AuthenticationError("Invalid or expired refresh token", error_code="INVALID_TOKEN")
    if user.account_status != AccountStatus.ACTIVE:
        raise AccountNotActiveError(user.account_status)

    tenant = await _load_tenant(db, user.tenant_id)
    access_token = create_access_token(
        subject=str(user.id),
        additional_claims=build_token_claims(user, tenant),
    )
    return TokenResponse(access_token=access_token, expires_in=_access_token_lifetime())


async def get_profile(db: AsyncSession, user_id: str) -> AuthUser:
    """Current user's profile."""
    user = await UserRepository.get_by_id(db, user_id)
    if not user:
        raise NotFoundError("User", error_code="USER_NOT_FOUND")
    tenant = await _load_tenant(db, user.tenant_id)
    return _auth_user(user, tenant)


async def change_password(
    db: AsyncSession,
    user_id: str,
    current_password: str,
    new_password: str,
) -> None:
    """
    Change the caller's password after verifying the current one.

    Raises:
        NotFoundError: User no longer exists
        ValidationFailedError: Current password is wrong
    """
    user = await UserRepository.get_by_id(db, user_id)
    if not user:
        raise NotFoundError("User", error_code="USER_NOT_FOUND")

    if not verify_password(current_password, user.password_hash):
        logger.warning(f"Change password rejected for user {user.id}: wrong current password")
        raise ValidationFailedError(
            "Current password is incorrect", error_code="INVALID_CURRENT_PASSWORD"
        )

    await UserRepository.update(
        db,
        user,
        password_hash=hash_password(new_password),
        must_change_password=False,
        updated_by=user.id,
    )
    logger.info(f"Password changed for user {user.id}")

    try:
        await send_password_changed(to_email=user.email, name=user.full_name)
    except Exception as e:
        logger.error(f"Exception sending password changed email to user {user.id}: {e}")


async def forgot_password(db: AsyncSession, email: str, tenant_slug: str | None = None) -> str:
    """
    Start a password reset.

    Always returns the same generic message so callers cannot tell which
    emails are registered.
    """
    tenant_id = None
    if tenant_slug:
        tenant = await TenantRepository.get_by_slug(db, tenant_slug)
        if not tenant:
            return GENERIC_RESET_MESSAGE
        tenant_id = tenant.id

    if tenant_id is not None:
        user = await UserRepository.get_by_email(db, email, tenant_id)
    else:
        candidates = await UserRepository.list_by_email(db, email)
        # Ambiguous emails need the tenant to pick an account
        user = candidates[0] if len(candidates) == 1 else None

    if not user or not user.can_log_in:
        logger.info("Password reset requested for unknown or inactive account")
        return GENERIC_RESET_MESSAGE

    token = generate_reset_token()
    expires_at = datetime.now(UTC) + timedelta(minutes=settings.password_reset_expire_minutes)
    await UserRepository.update(
        db,
        user,
        reset_password_token_hash=hash_token(token),
        reset_password_expires_at=expires_at,
    )
    logger.info(f"Password reset token issued for user {user.id}")

    try:
        email_sent = await send_password_reset(to_email=user.email, name=user.full_name, token=token)
        if not email_sent:
            logger.error(f"Failed to send password reset email to user {user.id}")
    except Exception as e:
        logger.error(f"Exception sending password reset email to user {user.id}: {e}")

    return GENERIC_RESET_MESSAGE


async def reset_password(db: AsyncSession, token: str, new_password: str) -> None:
    """
    Complete a password reset.

    Raises:
        InvalidResetTokenError: Token unknown, already used or expired
    """
    user = await UserRepository.get_by_reset_token_hash(db, hash_token(token))
    if not user or not user.reset_password_expires_at:
        raise InvalidResetTokenError()

    if user.reset_password_expires_at < datetime.now(UTC):
        logger.warning(f"Expired reset token used for user {user.id}")
        raise InvalidResetTokenError()

    await UserRepository.update(
        db,
        user,
        password_hash=hash_password(new_password),
        reset_password_token_hash=None,
        reset_password_expires_at=None,
        must_change_password=False,
    )
    logger.info(f"Password reset completed for user {user.id}")


__all__ = [
    "register_user",
    "login",
    "refresh_access_token",
    "get_profile",
    "change_password",
    "forgot_password",
    "reset_password",
    "resolve_registration_role",
]
