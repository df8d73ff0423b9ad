"""
Database session configuration.

This module handles database engine creation and session management
using SQLAlchemy with async support (asyncpg for PostgreSQL).
"""

import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from getlife.app.core.config import settings
from getlife.app.core.exceptions import PersistenceError

logger = logging.getLogger("getlife")


def _engine_options() -> dict:
    # SQLite's pool does not accept sizing arguments
    if settings.database_url.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
    }


# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    future=True,
    **_engine_options(),
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Create declarative base for models
Base = declarative_base()


async def commit_or_raise(db: AsyncSession, operation: str) -> None:
    """
    Commit the current transaction or roll it back completely.

    Raises:
        PersistenceError: If the commit failed. Nothing from the transaction
            was applied and the caller may retry.
    """
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Commit failed during %s, rolled back: %s", operation, e)
        raise PersistenceError(f"Could not save {operation}, please retry")


async def get_db():
    """
    FastAPI dependency for database sessions.

    Yields an async database session and ensures it's properly closed.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
