"""Pagination helpers shared by list endpoints."""

import math

from pydantic import BaseModel, Field

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class PaginationMeta(BaseModel):
    """Pagination block returned with every list response."""

    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1, le=MAX_PAGE_SIZE)
    pages: int = Field(..., ge=0)


def page_offset(page: int, limit: int) -> int:
    """Number of rows to skip for a 1-based page."""
    return (max(page, 1) - 1) * limit


def page_count(total: int, limit: int) -> int:
    """Total number of pages for ``total`` rows."""
    return math.ceil(total / limit) if limit else 0


def build_meta(total: int, page: int, limit: int) -> PaginationMeta:
    return PaginationMeta(total=total, page=page, limit=limit, pages=page_count(total, limit))
