"""CoordinatorState repository.

Provides data access methods for id counters and policy scalars.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backup_coordinator.models.coordinator_state import CoordinatorState


class CoordinatorStateRepository:
    """Repository for the CoordinatorState key-value store.

    Missing keys read as the caller-supplied default; the row is created on
    the first write. The Alembic migration seeds the counters so that
    concurrent first writers on PostgreSQL lock an existing row.
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def _get_row(self, key: str, for_update: bool = False) -> CoordinatorState | None:
        stmt = select(CoordinatorState).where(CoordinatorState.key == key)  # type: ignore[arg-type]
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_value(self, key: str, default: int) -> int:
        """Retrieve value for a key.

        Args:
            key: State key (e.g., "next_backup_id")
            default: Value reported when the key has never been written

        Returns:
            Stored value, or default if absent
        """
        row = await self._get_row(key)
        return row.value if row else default

    async def set_value(self, key: str, value: int) -> None:
        """Set value for a key, creating the row if needed.

        Args:
            key: State key
            value: New value
        """
        row = await self._get_row(key, for_update=True)
        if row is None:
            row = CoordinatorState(key=key, value=value)
        else:
            row.value = value
        self.session.add(row)
        await self.session.flush()

    async def allocate_id(self, key: str, start: int = 1) -> int:
        """Return the current counter value and advance it by one.

        Args:
            key: Counter key (e.g., "next_restore_id")
            start: First id handed out when the counter has never been written

        Returns:
            Allocated id
        """
        row = await self._get_row(key, for_update=True)
        if row is None:
            row = CoordinatorState(key=key, value=start)
        allocated = row.value
        row.value = allocated + 1
        self.session.add(row)
        await self.session.flush()
        return allocated
