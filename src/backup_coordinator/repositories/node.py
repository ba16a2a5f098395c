"""StorageNode repository.

Provides data access methods for the node registry.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backup_coordinator.models.node import StorageNode


class StorageNodeRepository:
    """Repository for StorageNode entities.

    Rows that are about to be modified are loaded with FOR UPDATE so that
    capacity checks and counter updates on one node are serialized across
    coordinator processes (no-op on SQLite).
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get_by_id(self, node_id: str) -> StorageNode | None:
        """Retrieve node by identity.

        Args:
            node_id: Caller identity the node registered with

        Returns:
            StorageNode if found, None otherwise
        """
        result = await self.session.execute(
            select(StorageNode).where(StorageNode.node_id == node_id)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, node_id: str) -> StorageNode | None:
        """Retrieve node by identity with a row-level lock.

        Args:
            node_id: Caller identity the node registered with

        Returns:
            Locked StorageNode if found, None otherwise
        """
        result = await self.session.execute(
            select(StorageNode)
            .where(StorageNode.node_id == node_id)  # type: ignore[arg-type]
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def add(self, node: StorageNode) -> StorageNode:
        """Persist new node to database.

        Args:
            node: StorageNode entity to persist

        Returns:
            Persisted node
        """
        self.session.add(node)
        await self.session.flush()
        return node

    async def save(self, node: StorageNode) -> None:
        """Flush pending changes on an already-loaded node."""
        self.session.add(node)
        await self.session.flush()

    async def list_active(self) -> list[StorageNode]:
        """Retrieve all active nodes ordered by identity."""
        result = await self.session.execute(
            select(StorageNode)
            .where(StorageNode.active == True)  # type: ignore[arg-type]  # noqa: E712
            .order_by(StorageNode.node_id)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())
