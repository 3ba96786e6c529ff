"""
Tenants module - Tenant onboarding and lookup.
"""

from campuscore.modules.tenants.models import SubscriptionPlan, Tenant, TenantStatus
from campuscore.modules.tenants.repository import TenantRepository
from campuscore.modules.tenants.router import router

__all__ = ["Tenant", "TenantStatus", "SubscriptionPlan", "TenantRepository", "router"]
