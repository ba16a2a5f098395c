"""RestoreRequest repository.

Provides data access methods for the restore request ledger.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backup_coordinator.models.restore_request import RestoreRequest


class RestoreRequestRepository:
    """Repository for RestoreRequest entities."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get_by_id(self, restore_id: int) -> RestoreRequest | None:
        """Retrieve restore request by id.

        Args:
            restore_id: Ledger id allocated at creation

        Returns:
            RestoreRequest if found, None otherwise
        """
        result = await self.session.execute(
            select(RestoreRequest).where(RestoreRequest.id == restore_id)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, restore_id: int) -> RestoreRequest | None:
        """Retrieve restore request by id with a row-level lock."""
        result = await self.session.execute(
            select(RestoreRequest)
            .where(RestoreRequest.id == restore_id)  # type: ignore[arg-type]
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def add(self, request: RestoreRequest) -> RestoreRequest:
        """Persist new restore request to database.

        Args:
            request: RestoreRequest entity with its id already allocated

        Returns:
            Persisted restore request
        """
        self.session.add(request)
        await self.session.flush()
        return request

    async def save(self, request: RestoreRequest) -> None:
        """Flush pending changes on an already-loaded request."""
        self.session.add(request)
        await self.session.flush()
