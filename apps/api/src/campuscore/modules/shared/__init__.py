"""
Shared module - Model bases, service errors and pagination.
"""

from campuscore.modules.shared.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ValidationFailedError,
    internal_error,
    to_http_exception,
)
from campuscore.modules.shared.models import AuditMixin, BaseModel, flush_or_conflict
from campuscore.modules.shared.pagination import (
    PaginationMeta,
    build_meta,
    page_count,
    page_offset,
)

__all__ = [
    # Models
    "BaseModel",
    "AuditMixin",
    "flush_or_conflict",
    # Errors
    "ServiceError",
    "NotFoundError",
    "ConflictError",
    "ValidationFailedError",
    "AuthenticationError",
    "PermissionDeniedError",
    "to_http_exception",
    "internal_error",
    # Pagination
    "PaginationMeta",
    "build_meta",
    "page_count",
    "page_offset",
]
