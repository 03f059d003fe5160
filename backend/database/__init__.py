"""
Database package for PostgreSQL integration
"""
from .config import postgres_settings
from .connection import (
    Base,
    get_engine,
    get_session_maker,
    reset_engine,
    init_postgres_db,
    close_postgres_db
)
from .models import (
    NumberingRequest,
    AuditLog
)

__all__ = [
    # Config
    "postgres_settings",
    # Connection
    "Base",
    "get_engine",
    "get_session_maker",
    "reset_engine",
    "init_postgres_db",
    "close_postgres_db",
    # Models
    "NumberingRequest",
    "AuditLog"
]
