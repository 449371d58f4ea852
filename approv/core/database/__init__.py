"""
Persistence layer for Approv.

Structure:
- entities/: SQLModel table definitions, one module per table
- repositories/: Data access layer, one repository per entity plus a bundle
- session.py: Global engine and session factory management
- utils.py: Engine and session factory helpers
"""

from .base import Base, generate_id
from .session import (
    async_session_maker,
    engine,
    get_session,
    init_db,
    ping_database,
)
from .utils import (
    create_all,
    create_engine,
    create_sessionmaker,
)

__all__ = [
    "Base",
    "async_session_maker",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "engine",
    "generate_id",
    "get_session",
    "init_db",
    "ping_database",
]
