"""BackupRequest repository.

Provides data access methods for the backup request ledger.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backup_coordinator.models.backup_request import BackupRequest


class BackupRequestRepository:
    """Repository for BackupRequest entities."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get_by_id(self, backup_id: int) -> BackupRequest | None:
        """Retrieve backup request by id.

        Args:
            backup_id: Ledger id allocated at creation

        Returns:
            BackupRequest if found, None otherwise
        """
        result = await self.session.execute(
            select(BackupRequest).where(BackupRequest.id == backup_id)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, backup_id: int) -> BackupRequest | None:
        """Retrieve backup request by id with a row-level lock.

        Args:
            backup_id: Ledger id allocated at creation

        Returns:
            Locked BackupRequest if found, None otherwise
        """
        result = await self.session.execute(
            select(BackupRequest)
            .where(BackupRequest.id == backup_id)  # type: ignore[arg-type]
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def add(self, request: BackupRequest) -> BackupRequest:
        """Persist new backup request to database.

        Args:
            request: BackupRequest entity with its id already allocated

        Returns:
            Persisted backup request
        """
        self.session.add(request)
        await self.session.flush()
        return request

    async def save(self, request: BackupRequest) -> None:
        """Flush pending changes on an already-loaded request."""
        self.session.add(request)
        await self.session.flush()
