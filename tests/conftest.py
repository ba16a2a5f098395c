"""pytest fixtures for backup coordinator tests.

Provides:
- engine: Function-scoped in-memory SQLite engine with all ledger tables
- session_factory / session: Sessions bound to that engine
- uow_factory: Function-scoped UnitOfWork factory
- coordinator: BackupCoordinator owned by OWNER
- ctx: Helper building ExecutionContext values
"""

import os
from typing import AsyncGenerator

# Settings validation is relaxed for test environments
os.environ.setdefault("APP_ENV", "test")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession  # noqa: E402

from backup_coordinator.core.context import ExecutionContext  # noqa: E402
from backup_coordinator.core.database import (  # noqa: E402
    create_engine,
    create_session_factory,
    create_tables,
)
from backup_coordinator.services.coordinator import BackupCoordinator  # noqa: E402
from backup_coordinator.uow import create_uow_factory  # noqa: E402

OWNER = "owner"
TEST_DB_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Provide a fresh in-memory database per test."""
    engine = create_engine(TEST_DB_URL)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture(scope="function")
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide function-scoped database session for repository tests."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def uow_factory(session_factory):
    """Provide function-scoped UnitOfWork factory."""
    return create_uow_factory(session_factory)


@pytest.fixture
def coordinator(uow_factory) -> BackupCoordinator:
    """Provide a coordinator owned by OWNER with the default restore fallback."""
    return BackupCoordinator(uow_factory, owner=OWNER)


@pytest.fixture
def ctx():
    """Build an ExecutionContext: ctx("node-1", 5)."""

    def _ctx(caller: str, block_height: int = 1) -> ExecutionContext:
        return ExecutionContext(caller=caller, block_height=block_height)

    return _ctx
