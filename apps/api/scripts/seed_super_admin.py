"""
Seed Super Admin User

Creates the platform super admin for CampusCore. Credentials come from the
environment so none are stored in the repository.

Usage:
    cd apps/api
    SUPER_ADMIN_EMAIL=admin@example.com SUPER_ADMIN_PASSWORD=... \
        python scripts/seed_super_admin.py

Optional: SUPER_ADMIN_FIRST_NAME, SUPER_ADMIN_LAST_NAME, and
SUPER_ADMIN_USE_DEFAULT_TENANT=true to attach the admin to the default tenant.
"""

import asyncio
import logging
import os
import sys

from campuscore.core.database import async_session_maker, close_db
from campuscore.core.security import hash_password
from campuscore.modules.tenants.service import get_or_create_default_tenant
from campuscore.modules.users.models import AccountStatus, UserRole
from campuscore.modules.users.repository import UserRepository

logger = logging.getLogger("seed_super_admin")


async def seed_super_admin() -> int:
    """Create the super admin if it doesn't exist. Returns a process exit code."""
    email = os.getenv("SUPER_ADMIN_EMAIL")
    password = os.getenv("SUPER_ADMIN_PASSWORD")
    if not email or not password:
        logger.error("SUPER_ADMIN_EMAIL and SUPER_ADMIN_PASSWORD must be set")
        return 1
    if len(password) < 8:
        logger.error("SUPER_ADMIN_PASSWORD must be at least 8 characters")
        return 1

    first_name = os.getenv("SUPER_ADMIN_FIRST_NAME", "Platform")
    last_name = os.getenv("SUPER_ADMIN_LAST_NAME", "Admin")
    use_default_tenant = os.getenv("SUPER_ADMIN_USE_DEFAULT_TENANT", "false").lower() == "true"

    try:
        async with async_session_maker() as db:
            tenant_id = None
            if use_default_tenant:
                tenant = await get_or_create_default_tenant(db)
                tenant_id = tenant.id

            existing = await UserRepository.get_by_email(db, email, tenant_id)
            if existing:
                logger.info(f"Super admin already exists: {existing.id} ({existing.role.value})")
                return 0

            admin = await UserRepository.create(
                db,
                email=email,
                password_hash=hash_password(password),
                first_name=first_name,
                last_name=last_name,
                role=UserRole.SUPER_ADMIN,
                tenant_id=tenant_id,
                account_status=AccountStatus.ACTIVE,
                email_verified=True,
            )
            await db.commit()
            logger.info(f"Super admin created successfully: {admin.id} ({admin.email})")
            return 0
    finally:
        await close_db()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    sys.exit(asyncio.run(seed_super_admin()))
