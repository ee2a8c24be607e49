"""
Global database session and engine management.

This module manages the global AsyncEngine and async_sessionmaker instances
that are used throughout the application for database access.
"""

from __future__ import annotations

from typing import AsyncGenerator

from sqlmodel.ext.asyncio.session import AsyncSession

from muse_ai.core.logging_config import get_logger
from muse_ai.server.core.config import settings

from .utils import create_all, create_engine, create_sessionmaker

logger = get_logger(__name__)

engine = create_engine(settings.database.url)
async_session_maker = create_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Yields:
        AsyncSession: An asynchronous SQLModel session.
    """
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """
    Initialize the database.

    Tables are created from the ORM metadata only when ``DATABASE_AUTO_CREATE``
    is enabled (the default for SQLite development databases). Production
    deployments run the Alembic migrations instead.
    """
    if not settings.database.auto_create:
        logger.info("Skipping table creation; Alembic migrations manage the schema")
        return
    await create_all(engine)
    logger.info("Database tables created")
