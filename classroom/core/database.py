"""Database configuration and session management."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from classroom.core.errors import InternalError, ServiceError
from classroom.core.settings import settings

logger = logging.getLogger(__name__)

# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.env == "dev",
    pool_pre_ping=True,
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


async def get_db() -> AsyncSession:
    """Dependency for getting database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def unit_of_work(db: AsyncSession, operation: str) -> AsyncIterator[AsyncSession]:
    """Commit everything done in the block, or nothing.

    Service errors are re-raised after rollback. Unexpected database errors
    are logged and surface as ``InternalError``.
    """
    try:
        yield db
        await db.commit()
    except ServiceError as e:
        await db.rollback()
        logger.warning(f"{operation} refused: {e.message}")
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"{operation} failed: {e}")
        logger.exception(e)
        raise InternalError() from e


async def init_db() -> None:
    """Initialize database tables."""
    # Register all models on Base.metadata
    import classroom.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
