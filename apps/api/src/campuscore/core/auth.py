"""
Authentication and Authorization Module

Provides authentication dependencies for FastAPI endpoints.
This module handles JWT token validation, role-based access control and
tenant isolation using the security utilities defined in security.py.

Usage:
    @router.get("/schools")
    async def list_schools(
        user: CurrentUser = Depends(require_roles("super_admin", "school_admin")),
    ):
        ...
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from campuscore.core.security import decode_token
from campuscore.modules.users.models import ADMIN_ROLES, UserRole

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported as 401 rather than 403
security = HTTPBearer(
    auto_error=False,
    description="JWT Bearer token for authentication",
)


@dataclass
class CurrentUser:
    """
    Represents an authenticated user.

    Populated from access token claims after validation.

    Attributes:
        id: User's unique identifier
        email: User's email address
        role: User's role value (e.g. 'school_admin')
        tenant_id: Tenant the user belongs to (None for platform super admins)
        tenant_slug: Slug of that tenant, when known
        school_id: School the user is attached to (optional)
        name: Display name (optional)
    """

    id: str
    email: str
    role: str
    tenant_id: str | None = None
    tenant_slug: str | None = None
    school_id: str | None = None
    name: str | None = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN.value

    @property
    def is_admin(self) -> bool:
        return self.role in {role.value for role in ADMIN_ROLES}

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, role={self.role}, tenant={self.tenant_id})"


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _forbidden(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"error": error, "message": message},
    )


def user_from_token(token: str) -> CurrentUser:
    """
    Validate an access token and extract user claims.

    Uses decode_token from security.py, which handles signature
    verification, algorithm validation and expiration checks.

    Args:
        token: JWT token string from Authorization header

    Returns:
        CurrentUser built from the token claims

    Raises:
        HTTPException 401: If token is invalid, expired, of the wrong type or
            missing required claims
    """
    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    token_type = payload.get("type", "access")
    if token_type != "access":
        logger.warning(f"Invalid token type: {token_type}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        user_id = payload.get("sub")
        if not user_id:
            raise ValueError("Missing 'sub' claim in token")
        UUID(user_id)

        role = payload.get("role")
        if not role:
            raise ValueError("Missing 'role' claim in token")
        UserRole(role)

        return CurrentUser(
            id=user_id,
            email=payload.get("email", ""),
            role=role,
            tenant_id=payload.get("tenant_id"),
            tenant_slug=payload.get("tenant_slug"),
            school_id=payload.get("school_id"),
            name=payload.get("name"),
        )
    except (ValueError, TypeError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency that validates the bearer token and returns the user.

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("NOT_AUTHENTICATED", "Not authorized to access this route.")

    user = user_from_token(credentials.credentials)
    logger.debug(f"Authenticated user: {user}")
    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentUser | None:
    """
    Optional authentication dependency.

    Returns the user if a valid token is provided, or None otherwise.
    """
    if credentials is None or not credentials.credentials:
        return None

    try:
        return user_from_token(credentials.credentials)
    except HTTPException:
        return None


def require_roles(*roles: UserRole | str) -> Callable[..., Awaitable[CurrentUser]]:
    """
    Dependency factory restricting an endpoint to the given roles.

    Raises:
        HTTPException 403: If the caller's role is not in ``roles``
    """
    allowed = {role.value if isinstance(role, UserRole) else role for role in roles}

    async def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed:
            logger.warning(
                f"Access denied: User {user.id} has role '{user.role}', "
                f"requires one of {sorted(allowed)}"
            )
            raise _forbidden(
                "INSUFFICIENT_PERMISSIONS",
                f"User role {user.role} is not authorized to access this route.",
            )
        return user

    return dependency


require_admin = require_roles(*ADMIN_ROLES)


def ensure_tenant_access(user: CurrentUser, tenant_id: str | UUID | None) -> None:
    """
    Confine a user to resources of their own tenant.

    Super admins may access every tenant.

    Raises:
        HTTPException 403: If the resource belongs to another tenant
    """
    if user.is_super_admin:
        return
    if tenant_id is None or user.tenant_id is None or str(tenant_id) != str(user.tenant_id):
        logger.warning(f"Tenant access denied: {user} attempted tenant {tenant_id}")
        raise _forbidden("TENANT_ACCESS_DENIED", "Access denied to this tenant.")


def ensure_tenant_slug_access(user: CurrentUser, tenant_slug: str) -> None:
    """Tenant check against a slug taken from the URL."""
    if user.is_super_admin:
        return
    if not user.tenant_slug or user.tenant_slug.lower() != tenant_slug.lower():
        logger.warning(f"Tenant access denied: {user} attempted tenant slug {tenant_slug}")
        raise _forbidden("TENANT_ACCESS_DENIED", "Access denied to this tenant.")


def ensure_self_or_admin(user: CurrentUser, user_id: str | UUID) -> None:
    """
    Admins may address any user; everyone else only themselves.

    Raises:
        HTTPException 403: If a non-admin addresses another user
    """
    if user.is_admin:
        return
    if str(user_id) != user.id:
        raise _forbidden(
            "OWNERSHIP_REQUIRED", "You do not have permission to access this resource."
        )


__all__ = [
    "CurrentUser",
    "get_current_user",
    "get_optional_user",
    "require_roles",
    "require_admin",
    "ensure_tenant_access",
    "ensure_tenant_slug_access",
    "ensure_self_or_admin",
    "user_from_token",
]
