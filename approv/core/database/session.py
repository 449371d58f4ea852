"""
Global database session and engine management.

This module manages the global AsyncEngine and async_sessionmaker instances
that are used throughout the application for database access.
"""

from __future__ import annotations

import time
from typing import AsyncGenerator

from sqlalchemy import text
from sqlmodel.ext.asyncio.session import AsyncSession

from approv.core.logging_config import get_logger
from approv.server.core.config import settings

from .utils import create_engine, create_sessionmaker

logger = get_logger(__name__)

engine = create_engine(settings.database_url)
async_session_maker = create_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Yields:
        AsyncSession: An asynchronous SQLModel session.
    """
    async with async_session_maker() as session:
        yield session


async def ping_database(session: AsyncSession) -> float:
    """Run ``SELECT 1`` and return the round trip in milliseconds."""
    started = time.perf_counter()
    await session.execute(text("SELECT 1"))
    return (time.perf_counter() - started) * 1000


async def init_db() -> None:
    """
    Verify the database is reachable at startup.

    Tables are created by Alembic migrations, not here.
    """
    async with async_session_maker() as session:
        latency = await ping_database(session)
    logger.info(f"Database reachable ({latency:.1f}ms)")
