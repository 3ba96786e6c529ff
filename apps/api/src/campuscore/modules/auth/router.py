"""
Authentication Router

Endpoints:
- POST /auth/register - Register a user in a tenant
- POST /auth/login - Log in (tenant resolved from the account)
- POST /auth/{tenant_slug}/login - Log in through a tenant's login page
- POST /auth/refresh - Exchange a refresh token for an access token
- GET /auth/me - Current user's profile
- POST /auth/change-password - Change password (authenticated)
- POST /auth/forgot-password - Request a password reset email
- POST /auth/reset-password - Set a new password with a reset token

Security:
- Login and forgot-password are rate limited per client IP
- Credential errors never reveal whether an account exists
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from campuscore.core.auth import CurrentUser, get_current_user
from campuscore.core.config import settings
from campuscore.core.database import get_db
from campuscore.core.rate_limit import rate_limit
from campuscore.modules.auth import service
from campuscore.modules.auth.schemas import (
    AuthUser,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    TokenResponse,
)
from campuscore.modules.shared import ServiceError, internal_error, to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter()

LOGIN_RATE_LIMIT = (settings.login_rate_limit, settings.login_rate_window_seconds)
FORGOT_PASSWORD_RATE_LIMIT = (5, 3600)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register User",
    description="""
Register a user in an existing tenant.

Roles that are missing or unknown default to `student`; `super_admin` can
never be self-assigned.
""",
    responses={
        404: {"description": "Tenant not found"},
        409: {"description": "Email already registered in this tenant"},
    },
)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> RegisterResponse:
    try:
        return await service.register_user(db, data)
    except ServiceError as e:
        logger.warning(f"Registration rejected: {e.message}")
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error registering user: {e}")
        raise internal_error() from e


async def _login(db: AsyncSession, credentials: LoginRequest, tenant_slug: str | None) -> LoginResponse:
    try:
        return await service.login(
            db,
            email=credentials.email,
            password=credentials.password,
            tenant_slug=tenant_slug,
        )
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error during login: {e}")
        raise internal_error() from e


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login",
    responses={
        401: {
            "description": "Invalid credentials, inactive account or tenant mismatch",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "INVALID_CREDENTIALS",
                            "message": "Invalid email or password",
                        }
                    }
                }
            },
        },
        429: {"description": "Too many login attempts"},
    },
)
@rate_limit(*LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate user and return JWT tokens.

    ``tenant_slug`` in the body restricts the login to that tenant.
    """
    return await _login(db, credentials, credentials.tenant_slug)


@router.post(
    "/{tenant_slug}/login",
    response_model=LoginResponse,
    summary="Tenant Login",
    description="Login through a tenant's own login page. Accounts of other tenants are rejected.",
    responses={
        401: {"description": "Invalid credentials, inactive account or tenant mismatch"},
        404: {"description": "Tenant not found"},
        429: {"description": "Too many login attempts"},
    },
)
@rate_limit(*LOGIN_RATE_LIMIT)
async def tenant_login(
    request: Request,
    tenant_slug: str,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    return await _login(db, credentials, tenant_slug)


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh Access Token",
)
async def refresh(
    data: RefreshRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    try:
        return await service.refresh_access_token(db, data.refresh_token)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error refreshing token: {e}")
        raise internal_error() from e


@router.get(
    "/me",
    response_model=AuthUser,
    summary="Current User",
)
async def me(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> AuthUser:
    try:
        return await service.get_profile(db, user.id)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error loading profile of {user.id}: {e}")
        raise internal_error() from e


@router.post(
    "/change-password",
    response_model=MessageResponse,
    summary="Change Password",
    responses={400: {"description": "Current password is incorrect"}},
)
async def change_password(
    data: ChangePasswordRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    try:
        await service.change_password(db, user.id, data.current_password, data.new_password)
        return MessageResponse(message="Password changed successfully")
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error changing password of {user.id}: {e}")
        raise internal_error() from e


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="Forgot Password",
    description="Always responds with the same message whether or not the account exists.",
)
@rate_limit(*FORGOT_PASSWORD_RATE_LIMIT)
async def forgot_password(
    request: Request,
    data: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    try:
        message = await service.forgot_password(db, data.email, data.tenant_slug)
        return MessageResponse(message=message)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error processing password reset request: {e}")
        raise internal_error() from e


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Reset Password",
    responses={400: {"description": "Invalid or expired token"}},
)
async def reset_password(
    data: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    try:
        await service.reset_password(db, data.token, data.new_password)
        return MessageResponse(message="Password reset successful")
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error resetting password: {e}")
        raise internal_error() from e
