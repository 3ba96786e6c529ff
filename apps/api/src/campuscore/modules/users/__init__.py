"""
Users module - User accounts and roles.
"""

from campuscore.modules.users.models import AccountStatus, User, UserRole
from campuscore.modules.users.repository import UserRepository

__all__ = ["User", "UserRole", "AccountStatus", "UserRepository"]
