"""Unit of Work pattern for the backup coordinator.

Provides transaction management with automatic commit/rollback and access to all repositories.
"""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backup_coordinator.repositories.assignment import BackupAssignmentRepository
from backup_coordinator.repositories.backup_location import FileBackupLocationRepository
from backup_coordinator.repositories.backup_request import BackupRequestRepository
from backup_coordinator.repositories.coordinator_state import CoordinatorStateRepository
from backup_coordinator.repositories.node import StorageNodeRepository
from backup_coordinator.repositories.restore_request import RestoreRequestRepository

logger = structlog.get_logger()


class UnitOfWork:
    """Unit of Work pattern implementation.

    Manages database transactions and provides access to all ledger repositories.
    Use as async context manager for automatic commit/rollback.

    Example:
        async with await uow_factory() as uow:
            node = await uow.nodes.get_for_update(node_id)
            request = await uow.backups.get_for_update(backup_id)
            request.mark_in_progress()
            # Automatically commits on successful exit
            # Automatically rolls back on exception
    """

    def __init__(self, session: AsyncSession):
        """Initialize UnitOfWork with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

        self.nodes = StorageNodeRepository(session)
        self.backups = BackupRequestRepository(session)
        self.assignments = BackupAssignmentRepository(session)
        self.locations = FileBackupLocationRepository(session)
        self.restores = RestoreRequestRepository(session)
        self.state = CoordinatorStateRepository(session)

    async def __aenter__(self):
        """Enter async context manager.

        Returns:
            self: UnitOfWork instance with all repositories available
        """
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager with automatic commit/rollback.

        Args:
            exc_type: Exception type if raised
            exc_val: Exception value if raised
            exc_tb: Exception traceback if raised

        Returns:
            False: Always re-raise exceptions after rollback
        """
        try:
            if exc_type is None:
                await self.session.commit()
                logger.debug("transaction.committed")
            else:
                await self.session.rollback()
                logger.debug("transaction.rolled_back", exc_type=exc_type.__name__)
        finally:
            await self.session.close()

        return False


def create_uow_factory(session_factory: async_sessionmaker[AsyncSession]):
    """Create a factory function that produces UnitOfWork instances.

    Args:
        session_factory: SQLAlchemy async session factory

    Returns:
        Callable that creates UnitOfWork instances from new sessions

    Example:
        session_factory = setup_db_session(db_url)
        uow_factory = create_uow_factory(session_factory)

        async with await uow_factory() as uow:
            await uow.nodes.add(node)
    """

    async def _create_uow():
        """Create a new UnitOfWork instance with a new session."""
        session = session_factory()
        return UnitOfWork(session)

    return _create_uow
