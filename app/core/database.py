"""Async SQLAlchemy engine and session factory construction."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import Settings

logger = logging.getLogger(__name__)

SessionFactory = async_sessionmaker[AsyncSession]


def create_engine(settings: Settings) -> AsyncEngine:
    """Build the async engine for the configured database."""
    return create_async_engine(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        echo=settings.database_echo,
        pool_pre_ping=True,
        pool_recycle=300,  # Recycle connections every 5 min to avoid server-side timeouts
    )


def create_session_factory(engine: AsyncEngine) -> SessionFactory:
    """Build a session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def session_scope(factory: SessionFactory) -> AsyncGenerator[AsyncSession, None]:
    """Open a session that commits on success and rolls back on failure."""
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.warning(f"Database session error: {repr(e)}, rolling back")
            try:
                await session.rollback()
            except Exception:
                logger.warning("Rollback also failed (connection likely closed)")
            raise


async def init_db(engine: AsyncEngine) -> None:
    """Initialize database (create tables if needed)."""
    logger.info("Initializing database tables")
    from app.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    """Close database connections."""
    logger.info("Closing database connections")
    await engine.dispose()
