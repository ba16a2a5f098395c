"""FileBackupLocation repository.

Provides data access methods for the backup location index.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backup_coordinator.models.backup_location import FileBackupLocation


class FileBackupLocationRepository:
    """Repository for FileBackupLocation entities keyed by (file_hash, node_id).

    Completion reports overwrite an existing entry for the same pair, so the
    index always points at the most recent verified copy on each node.
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get(self, file_hash: str, node_id: str) -> FileBackupLocation | None:
        """Retrieve the location of a file copy on one node.

        Args:
            file_hash: Content hash of the backed-up file
            node_id: Node identity holding the copy

        Returns:
            FileBackupLocation if found, None otherwise
        """
        result = await self.session.execute(
            select(FileBackupLocation).where(
                FileBackupLocation.file_hash == file_hash,  # type: ignore[arg-type]
                FileBackupLocation.node_id == node_id,  # type: ignore[arg-type]
            )
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, file_hash: str, node_id: str) -> FileBackupLocation | None:
        """Retrieve a location with a row-level lock."""
        result = await self.session.execute(
            select(FileBackupLocation)
            .where(
                FileBackupLocation.file_hash == file_hash,  # type: ignore[arg-type]
                FileBackupLocation.node_id == node_id,  # type: ignore[arg-type]
            )
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def upsert(
        self,
        file_hash: str,
        node_id: str,
        backup_id: int,
        backup_hash: str,
        block_height: int,
    ) -> FileBackupLocation:
        """Create or overwrite the location of a freshly completed copy.

        The entry is marked verified at the given block.

        Args:
            file_hash: Content hash of the backed-up file
            node_id: Node identity holding the copy
            backup_id: Backup request the copy was made for
            backup_hash: Hash reported by the node for its copy
            block_height: Block of the completion report

        Returns:
            The created or overwritten location
        """
        location = await self.get_for_update(file_hash, node_id)
        if location is None:
            location = FileBackupLocation(
                file_hash=file_hash,
                node_id=node_id,
                backup_id=backup_id,
                backup_hash=backup_hash,
                created_at_block=block_height,
                last_verified_block=block_height,
                verified=True,
            )
        else:
            location.backup_id = backup_id
            location.backup_hash = backup_hash
            location.created_at_block = block_height
            location.last_verified_block = block_height
            location.verified = True

        self.session.add(location)
        await self.session.flush()
        return location

    async def save(self, location: FileBackupLocation) -> None:
        """Flush pending changes on an already-loaded location."""
        self.session.add(location)
        await self.session.flush()

    async def list_for_file(self, file_hash: str) -> list[FileBackupLocation]:
        """Retrieve every node location recorded for a file.

        Args:
            file_hash: Content hash of the backed-up file

        Returns:
            Locations ordered by node identity
        """
        result = await self.session.execute(
            select(FileBackupLocation)
            .where(FileBackupLocation.file_hash == file_hash)  # type: ignore[arg-type]
            .order_by(FileBackupLocation.node_id.asc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())
