"""
Core module - Configuration, database, identity, errors and infrastructure.
"""

from rentalcert.core.config import get_settings, settings
from rentalcert.core.database import Base, close_db, get_db, init_db
from rentalcert.core.exceptions import (
    ConflictError,
    ExhaustionError,
    ForbiddenError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from rentalcert.core.redis import close_redis, get_redis, init_redis

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
    # Errors
    "ServiceError",
    "ValidationError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "ExhaustionError",
]
