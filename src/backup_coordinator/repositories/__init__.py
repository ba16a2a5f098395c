"""Repository layer for the backup coordinator.

Provides data access abstractions for every ledger.
No base classes - each repository is self-contained.
"""

from backup_coordinator.repositories.assignment import BackupAssignmentRepository
from backup_coordinator.repositories.backup_location import FileBackupLocationRepository
from backup_coordinator.repositories.backup_request import BackupRequestRepository
from backup_coordinator.repositories.coordinator_state import CoordinatorStateRepository
from backup_coordinator.repositories.node import StorageNodeRepository
from backup_coordinator.repositories.restore_request import RestoreRequestRepository

__all__ = [
    "StorageNodeRepository",
    "BackupRequestRepository",
    "BackupAssignmentRepository",
    "FileBackupLocationRepository",
    "RestoreRequestRepository",
    "CoordinatorStateRepository",
]
