"""
Core module - Configuration, database, security, and utilities.
"""

from admission_portal.core.config import get_settings, settings
from admission_portal.core.database import Base, Database, get_db
from admission_portal.core.redis import close_redis, connect_redis, get_redis
from admission_portal.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "Database",
    "get_db",
    # Redis
    "connect_redis",
    "get_redis",
    "close_redis",
    # Security
    "hash_password",
    "verify_password",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
]
