"""Coordinator error hierarchy.

Every failed operation raises exactly one of these before any ledger write:
- Unauthorized: caller lacks the required identity or role
- NotFound: referenced key absent in a ledger
- AlreadyExists: duplicate node registration
- InvalidStatus: record not in the required state, or invalid input values
- InsufficientCapacity: node lacks free storage for the file size
- BackupFailed: reserved, never raised by current logic
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure kinds exposed at the coordinator boundary."""

    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not-found"
    ALREADY_EXISTS = "already-exists"
    INVALID_STATUS = "invalid-status"
    INSUFFICIENT_CAPACITY = "insufficient-capacity"
    BACKUP_FAILED = "backup-failed"


class CoordinatorError(Exception):
    """Base exception for all coordinator errors."""

    kind: ErrorKind
    code: int

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind.value)
        self.message = message or self.kind.value


class Unauthorized(CoordinatorError):
    """Caller is not the identity the operation requires."""

    kind = ErrorKind.UNAUTHORIZED
    code = 100


class NotFound(CoordinatorError):
    """Referenced node, request, assignment or location does not exist."""

    kind = ErrorKind.NOT_FOUND
    code = 101


class AlreadyExists(CoordinatorError):
    """Node identity is already registered."""

    kind = ErrorKind.ALREADY_EXISTS
    code = 102


class InvalidStatus(CoordinatorError):
    """Record is in the wrong state, or input values are out of range."""

    kind = ErrorKind.INVALID_STATUS
    code = 103


class InsufficientCapacity(CoordinatorError):
    """Node free capacity is smaller than the requested file size."""

    kind = ErrorKind.INSUFFICIENT_CAPACITY
    code = 104


class BackupFailed(CoordinatorError):
    """Reserved for backup execution failures. Not raised by current logic."""

    kind = ErrorKind.BACKUP_FAILED
    code = 105


class InvalidStateTransition(InvalidStatus):
    """Raised when a ledger record is asked for a transition its table does not list."""

    pass
