"""
Schools module - Tenant-scoped school management.
"""

from campuscore.modules.schools.models import School, SchoolStatus, SchoolType
from campuscore.modules.schools.repository import SchoolRepository
from campuscore.modules.schools.router import router

__all__ = ["School", "SchoolStatus", "SchoolType", "SchoolRepository", "router"]
