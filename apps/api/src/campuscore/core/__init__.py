"""
CampusCore core: settings, database session, Redis and credential helpers.

Authentication dependencies live in ``campuscore.core.auth`` and are not
re-exported here, since they depend on the users module.
"""

from campuscore.core.config import Settings, get_settings, settings
from campuscore.core.database import Base, async_session_maker, close_db, get_db, init_db
from campuscore.core.redis import close_redis, get_redis, init_redis, is_redis_available
from campuscore.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_reset_token,
    hash_password,
    hash_token,
    verify_password,
)

__all__ = [
    "Settings",
    "settings",
    "get_settings",
    "Base",
    "async_session_maker",
    "get_db",
    "init_db",
    "close_db",
    "get_redis",
    "init_redis",
    "close_redis",
    "is_redis_available",
    "hash_password",
    "verify_password",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
    "generate_reset_token",
    "hash_token",
]
