"""
Database configuration.

Provides async SQLAlchemy engine, session factory and the unit-of-work
helper used by every service operation.
"""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from trustledger.config.settings import settings

_ATOMIC_DEPTH_KEY = "atomic_depth"


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create async engine for the given URL.

    Pool sizing only applies to server databases; SQLite uses the
    dialect's default pool.

    Args:
        database_url: SQLAlchemy async database URL
        echo: Log emitted SQL

    Returns:
        AsyncEngine: Database engine
    """
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)

    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_timeout=30,
    )


def build_session_maker(
    bind: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create async session factory bound to an engine."""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Create async engine
engine: AsyncEngine = build_engine(
    settings.database_url, echo=settings.database_echo
)

# Create async session factory
async_session_maker = build_session_maker(engine)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get async database session.

    Yields:
        AsyncSession: Database session
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            await session.close()


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run a block as one unit of work.

    The outermost block commits on success and rolls back on any
    exception. Nested blocks join the outer unit and leave commit and
    rollback to it.

    Args:
        session: Database session

    Yields:
        AsyncSession: The same session
    """
    depth = session.info.get(_ATOMIC_DEPTH_KEY, 0)
    session.info[_ATOMIC_DEPTH_KEY] = depth + 1
    try:
        yield session
        if depth == 0:
            await session.commit()
    except BaseException:
        if depth == 0:
            await session.rollback()
        raise
    finally:
        session.info[_ATOMIC_DEPTH_KEY] = depth


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create tables if needed (use Alembic migrations in production)."""
    from trustledger.models import Base

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized")


async def close_db() -> None:
    """Close database connection."""
    await engine.dispose()
    logger.info("Database connection closed")
