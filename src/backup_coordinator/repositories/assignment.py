"""BackupAssignment repository.

Provides data access methods for per-node backup assignments.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backup_coordinator.models.assignment import BackupAssignment


class BackupAssignmentRepository:
    """Repository for BackupAssignment entities keyed by (backup_id, node_id)."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get(self, backup_id: int, node_id: str) -> BackupAssignment | None:
        """Retrieve the assignment of one node to one backup request.

        Args:
            backup_id: Backup request id
            node_id: Assigned node identity

        Returns:
            BackupAssignment if found, None otherwise
        """
        result = await self.session.execute(
            select(BackupAssignment).where(
                BackupAssignment.backup_id == backup_id,  # type: ignore[arg-type]
                BackupAssignment.node_id == node_id,  # type: ignore[arg-type]
            )
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, backup_id: int, node_id: str) -> BackupAssignment | None:
        """Retrieve an assignment with a row-level lock.

        Used by completion and failure reports so that two concurrent reports
        for the same pair cannot both pass the status check.

        Args:
            backup_id: Backup request id
            node_id: Assigned node identity

        Returns:
            Locked BackupAssignment if found, None otherwise
        """
        result = await self.session.execute(
            select(BackupAssignment)
            .where(
                BackupAssignment.backup_id == backup_id,  # type: ignore[arg-type]
                BackupAssignment.node_id == node_id,  # type: ignore[arg-type]
            )
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def add(self, assignment: BackupAssignment) -> BackupAssignment:
        """Persist new assignment to database.

        Args:
            assignment: BackupAssignment entity to persist

        Returns:
            Persisted assignment
        """
        self.session.add(assignment)
        await self.session.flush()
        return assignment

    async def save(self, assignment: BackupAssignment) -> None:
        """Flush pending changes on an already-loaded assignment."""
        self.session.add(assignment)
        await self.session.flush()

    async def list_for_backup(self, backup_id: int) -> list[BackupAssignment]:
        """Retrieve all assignments of a backup request.

        Args:
            backup_id: Backup request id

        Returns:
            Assignments ordered by assignment block, then node identity
        """
        result = await self.session.execute(
            select(BackupAssignment)
            .where(BackupAssignment.backup_id == backup_id)  # type: ignore[arg-type]
            .order_by(
                BackupAssignment.assigned_at_block.asc(),  # type: ignore[attr-defined]
                BackupAssignment.node_id.asc(),  # type: ignore[attr-defined]
            )
        )
        return list(result.scalars().all())
