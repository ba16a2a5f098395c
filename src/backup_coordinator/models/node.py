"""StorageNode entity - storage provider with capacity and reliability counters."""

from sqlalchemy import BigInteger, Column
from sqlmodel import Field, SQLModel

INITIAL_REPUTATION = 100


class StorageNode(SQLModel, table=True):
    """StorageNode is a caller identity offering storage capacity to the pool."""

    __tablename__ = "storage_nodes"  # type: ignore[assignment]

    node_id: str = Field(primary_key=True, max_length=128)
    reputation_score: int = Field(default=INITIAL_REPUTATION, ge=0)
    total_backups: int = Field(default=0, ge=0)
    successful_backups: int = Field(default=0, ge=0)
    failed_backups: int = Field(default=0, ge=0)
    active: bool = Field(default=True)
    storage_capacity: int = Field(sa_column=Column(BigInteger, nullable=False))
    used_capacity: int = Field(default=0, sa_column=Column(BigInteger, nullable=False))
    registered_at_block: int = Field(sa_column=Column(BigInteger, nullable=False))

    @property
    def free_capacity(self) -> int:
        """Capacity not yet consumed by completed backups (negative if over-committed)."""
        return self.storage_capacity - self.used_capacity

    def record_success(self, file_size: int) -> None:
        """Account a completed backup copy held by this node.

        Usage grows by the file size without a capacity check: space is not
        reserved at assignment time, so concurrent completions may over-commit.
        """
        self.total_backups += 1
        self.successful_backups += 1
        self.used_capacity += file_size

    def record_failure(self) -> None:
        """Account a failed backup copy. Capacity is not reclaimed."""
        self.total_backups += 1
        self.failed_backups += 1
