"""
Service Exceptions

Services raise these typed errors; routers convert them into HTTP responses
with ``to_http_exception``. Each error carries a machine-readable code and the
HTTP status it maps to.
"""

from fastapi import HTTPException, status


class ServiceError(Exception):
    """Base exception for service-layer errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(ServiceError):
    """Raised when a record does not exist or has been soft deleted."""

    def __init__(self, resource: str, error_code: str | None = None):
        super().__init__(
            message=f"{resource} not found",
            error_code=error_code or f"{resource.upper().replace(' ', '_')}_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
        )


class ConflictError(ServiceError):
    """Raised when a uniqueness rule would be violated."""

    def __init__(self, message: str, error_code: str = "CONFLICT"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_409_CONFLICT,
        )


class ValidationFailedError(ServiceError):
    """Raised for business-rule validation failures."""

    def __init__(self, message: str, error_code: str = "VALIDATION_FAILED"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class AuthenticationError(ServiceError):
    """Raised when credentials or tokens are not acceptable."""

    def __init__(self, message: str, error_code: str = "AUTHENTICATION_FAILED"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class PermissionDeniedError(ServiceError):
    """Raised when the caller may not act on a resource."""

    def __init__(self, message: str, error_code: str = "PERMISSION_DENIED"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_403_FORBIDDEN,
        )


def to_http_exception(error: ServiceError) -> HTTPException:
    """Convert a service error to an HTTPException."""
    headers = None
    if error.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return HTTPException(
        status_code=error.status_code,
        detail={
            "error": error.error_code,
            "message": error.message,
        },
        headers=headers,
    )


def internal_error() -> HTTPException:
    """Generic 500 response that never leaks exception details."""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )
