"""
Core module - Configuration, database, security, and external providers.
"""

from edubridge.core.config import get_settings, settings
from edubridge.core.database import Base, close_db, get_db, init_db
from edubridge.core.redis import acquire_lock, close_redis, get_redis, init_redis, release_lock
from edubridge.core.security import create_access_token, decode_token

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Redis
    "get_redis",
    "init_redis",
    "close_redis",
    "acquire_lock",
    "release_lock",
    # Security
    "create_access_token",
    "decode_token",
]
