"""Database module with PostgreSQL async support."""

from .database import (
    get_db,
    get_db_session,
    get_database_url,
    init_db,
    close_db,
    get_session_factory,
    async_session_factory,
)
from .models import Base, DetectionRecord

__all__ = [
    # Database functions
    "get_db",
    "get_db_session",
    "get_database_url",
    "init_db",
    "close_db",
    "get_session_factory",
    "async_session_factory",
    # Models
    "Base",
    "DetectionRecord",
]
