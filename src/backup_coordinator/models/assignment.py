"""BackupAssignment entity - one node's commitment to hold one backup copy."""

from enum import Enum
from typing import Optional

from sqlalchemy import BigInteger, Column
from sqlmodel import Field, SQLModel

from backup_coordinator.services.exceptions import InvalidStateTransition


class AssignmentStatus(str, Enum):
    """Per-node backup copy status."""

    ASSIGNED = "assigned"
    BACKING_UP = "backing-up"
    COMPLETED = "completed"
    FAILED = "failed"


# Failure reports are accepted from every status, including completed and
# failed ones; completion only from assigned.
ASSIGNMENT_TRANSITIONS: dict[AssignmentStatus, frozenset[AssignmentStatus]] = {
    AssignmentStatus.ASSIGNED: frozenset({AssignmentStatus.COMPLETED, AssignmentStatus.FAILED}),
    AssignmentStatus.BACKING_UP: frozenset({AssignmentStatus.FAILED}),
    AssignmentStatus.COMPLETED: frozenset({AssignmentStatus.FAILED}),
    AssignmentStatus.FAILED: frozenset({AssignmentStatus.FAILED}),
}


class BackupAssignment(SQLModel, table=True):
    """BackupAssignment tracks a (backup request, node) pair through its copy lifecycle."""

    __tablename__ = "backup_assignments"  # type: ignore[assignment]

    backup_id: int = Field(primary_key=True, foreign_key="backup_requests.id")
    node_id: str = Field(primary_key=True, max_length=128, foreign_key="storage_nodes.node_id")
    assigned_at_block: int = Field(sa_column=Column(BigInteger, nullable=False))
    status: AssignmentStatus = Field(default=AssignmentStatus.ASSIGNED, index=True)

    # Set together by the completion report
    backup_hash: Optional[str] = Field(default=None, max_length=64)
    completed_at_block: Optional[int] = Field(
        default=None, sa_column=Column(BigInteger, nullable=True)
    )

    def _transition(self, target: AssignmentStatus) -> None:
        if target not in ASSIGNMENT_TRANSITIONS[self.status]:
            raise InvalidStateTransition(
                f"Cannot move assignment ({self.backup_id}, {self.node_id}) "
                f"from {self.status.value} to {target.value}."
            )
        self.status = target

    def mark_completed(self, backup_hash: str, block_height: int) -> None:
        """Transition from assigned to completed.

        Args:
            backup_hash: Hash of the stored copy reported by the node
            block_height: Block at which the node reported completion

        Raises:
            InvalidStateTransition: If current status is not assigned
        """
        self._transition(AssignmentStatus.COMPLETED)
        self.backup_hash = backup_hash
        self.completed_at_block = block_height

    def mark_failed(self) -> None:
        """Transition from any status to failed."""
        self._transition(AssignmentStatus.FAILED)
