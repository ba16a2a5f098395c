"""RestoreRequest entity - retrieval of one file from one selected node."""

from enum import Enum

from sqlalchemy import BigInteger, Column
from sqlmodel import Field, SQLModel

from backup_coordinator.services.exceptions import InvalidStateTransition


class RestoreStatus(str, Enum):
    """Restore request lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


# There is no restore failure report, so failed is never reached.
RESTORE_TRANSITIONS: dict[RestoreStatus, frozenset[RestoreStatus]] = {
    RestoreStatus.PENDING: frozenset({RestoreStatus.COMPLETED}),
    RestoreStatus.IN_PROGRESS: frozenset(),
    RestoreStatus.COMPLETED: frozenset(),
    RestoreStatus.FAILED: frozenset(),
}


class RestoreRequest(SQLModel, table=True):
    """RestoreRequest binds a requested file restore to a single source node."""

    __tablename__ = "restore_requests"  # type: ignore[assignment]

    id: int = Field(primary_key=True)
    file_hash: str = Field(max_length=64, index=True)
    requester: str = Field(max_length=128, index=True)
    selected_node: str = Field(max_length=128, index=True)
    created_at_block: int = Field(sa_column=Column(BigInteger, nullable=False))
    status: RestoreStatus = Field(default=RestoreStatus.PENDING, index=True)
    reward_amount: int = Field(default=0, sa_column=Column(BigInteger, nullable=False))

    def mark_completed(self) -> None:
        """Transition from pending to completed.

        Raises:
            InvalidStateTransition: If current status is not pending
        """
        if RestoreStatus.COMPLETED not in RESTORE_TRANSITIONS[self.status]:
            raise InvalidStateTransition(
                f"Cannot complete restore {self.id} from {self.status.value}. "
                "Restore must be pending."
            )
        self.status = RestoreStatus.COMPLETED
