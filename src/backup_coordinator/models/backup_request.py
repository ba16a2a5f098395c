"""BackupRequest entity - intent to replicate one file with lifecycle status tracking."""

from enum import Enum

from sqlalchemy import BigInteger, Column
from sqlmodel import Field, SQLModel

from backup_coordinator.services.exceptions import InvalidStateTransition

MIN_PRIORITY = 1
MAX_PRIORITY = 3


class BackupStatus(str, Enum):
    """Backup request lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


# Only the first successful assignment moves a request. Completion and failure
# are recorded on assignments, never on the request itself.
BACKUP_TRANSITIONS: dict[BackupStatus, frozenset[BackupStatus]] = {
    BackupStatus.PENDING: frozenset({BackupStatus.IN_PROGRESS}),
    BackupStatus.IN_PROGRESS: frozenset(),
    BackupStatus.COMPLETED: frozenset(),
    BackupStatus.FAILED: frozenset(),
}


class BackupRequest(SQLModel, table=True):
    """BackupRequest records an owner's request for a replicated backup of one file."""

    __tablename__ = "backup_requests"  # type: ignore[assignment]

    id: int = Field(primary_key=True)
    file_hash: str = Field(max_length=64, index=True)
    file_size: int = Field(sa_column=Column(BigInteger, nullable=False))
    requester: str = Field(max_length=128, index=True)
    priority: int = Field(ge=MIN_PRIORITY, le=MAX_PRIORITY)
    created_at_block: int = Field(sa_column=Column(BigInteger, nullable=False))
    status: BackupStatus = Field(default=BackupStatus.PENDING, index=True)
    required_replicas: int = Field(ge=1)
    reward_amount: int = Field(default=0, sa_column=Column(BigInteger, nullable=False))

    def mark_in_progress(self) -> None:
        """Transition from pending to in-progress.

        Raises:
            InvalidStateTransition: If current status is not pending
        """
        if BackupStatus.IN_PROGRESS not in BACKUP_TRANSITIONS[self.status]:
            raise InvalidStateTransition(
                f"Cannot mark backup {self.id} in-progress from {self.status.value}. "
                "Request must be pending."
            )
        self.status = BackupStatus.IN_PROGRESS
