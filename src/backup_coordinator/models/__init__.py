"""SQLModel database entities.

All models are imported here to ensure they're registered with SQLModel metadata
for Alembic autogenerate support and for SQLModel.metadata.create_all().
"""

from backup_coordinator.models.assignment import (
    ASSIGNMENT_TRANSITIONS,
    AssignmentStatus,
    BackupAssignment,
)
from backup_coordinator.models.backup_location import FileBackupLocation
from backup_coordinator.models.backup_request import (
    BACKUP_TRANSITIONS,
    BackupRequest,
    BackupStatus,
)
from backup_coordinator.models.coordinator_state import CoordinatorState
from backup_coordinator.models.node import INITIAL_REPUTATION, StorageNode
from backup_coordinator.models.restore_request import (
    RESTORE_TRANSITIONS,
    RestoreRequest,
    RestoreStatus,
)

__all__ = [
    "StorageNode",
    "INITIAL_REPUTATION",
    "BackupRequest",
    "BackupStatus",
    "BACKUP_TRANSITIONS",
    "BackupAssignment",
    "AssignmentStatus",
    "ASSIGNMENT_TRANSITIONS",
    "FileBackupLocation",
    "RestoreRequest",
    "RestoreStatus",
    "RESTORE_TRANSITIONS",
    "CoordinatorState",
]
