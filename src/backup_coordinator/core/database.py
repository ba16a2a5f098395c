"""Database session factory setup."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import backup_coordinator.models  # noqa: F401  registers tables on SQLModel.metadata


def create_engine(db_url: str, pool_size: int = 20) -> AsyncEngine:
    """Create async engine for PostgreSQL or SQLite.

    In-memory SQLite URLs share a single connection (StaticPool) so that every
    session sees the same database.

    Args:
        db_url: Connection URL (postgresql+psycopg://... or sqlite+aiosqlite://...)
        pool_size: Maximum number of connections in the pool (ignored for SQLite)

    Returns:
        Async engine
    """
    if db_url.startswith("sqlite"):
        if db_url.endswith("://") or ":memory:" in db_url:
            return create_async_engine(
                db_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=False,
            )
        return create_async_engine(db_url, echo=False)

    return create_async_engine(
        db_url,
        pool_size=pool_size,
        max_overflow=0,  # No overflow beyond pool_size
        pool_pre_ping=True,  # Verify connections before using
        echo=False,  # Don't log SQL queries (use structlog instead)
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create async session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Returned ledger records stay readable after commit
    )


def setup_db_session(db_url: str, pool_size: int = 20) -> async_sessionmaker[AsyncSession]:
    """Create async database session factory.

    Args:
        db_url: Connection URL
        pool_size: Maximum number of connections in the pool (default: 20)

    Returns:
        Async session factory for creating database sessions
    """
    return create_session_factory(create_engine(db_url, pool_size))


async def create_tables(engine: AsyncEngine) -> None:
    """Create every ledger table that does not exist yet.

    Used for SQLite deployments and tests; PostgreSQL deployments use Alembic.
    """
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
