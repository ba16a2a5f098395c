"""Backup coordination state machine.

Implements the node registry, backup request ledger, assignment tracker,
backup location index, restore request ledger and admin policy on top of the
repository layer. Every public operation is one Unit of Work: all checks run
before the first write, and any error rolls the whole transaction back.

Mutating operations are serialized through a process-wide asyncio.Lock;
repositories additionally lock modified rows (FOR UPDATE) for deployments
where several coordinator processes share one PostgreSQL database.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

import structlog

from backup_coordinator.core.config import Settings
from backup_coordinator.core.context import ExecutionContext
from backup_coordinator.models.assignment import AssignmentStatus, BackupAssignment
from backup_coordinator.models.backup_location import FileBackupLocation
from backup_coordinator.models.backup_request import (
    MAX_PRIORITY,
    MIN_PRIORITY,
    BackupRequest,
    BackupStatus,
)
from backup_coordinator.models.coordinator_state import (
    MIN_BACKUP_REPLICAS,
    NEXT_BACKUP_ID,
    NEXT_RESTORE_ID,
)
from backup_coordinator.models.node import StorageNode
from backup_coordinator.models.restore_request import RestoreRequest, RestoreStatus
from backup_coordinator.services.exceptions import (
    AlreadyExists,
    InsufficientCapacity,
    InvalidStatus,
    NotFound,
    Unauthorized,
)
from backup_coordinator.services.node_selection import FixedNodeSelector, RestoreNodeSelector
from backup_coordinator.uow import UnitOfWork

logger = structlog.get_logger()

MAX_FILE_HASH_LENGTH = 64
DEFAULT_MIN_BACKUP_REPLICAS = 3


def _validate_file_hash(file_hash: str) -> None:
    if not file_hash or len(file_hash) > MAX_FILE_HASH_LENGTH:
        raise InvalidStatus(
            f"File hash must be between 1 and {MAX_FILE_HASH_LENGTH} characters"
        )


def _validate_non_negative(name: str, value: int) -> None:
    if value < 0:
        raise InvalidStatus(f"{name} must be non-negative, got {value}")


class BackupCoordinator:
    """Coordinates replicated backups across registered storage nodes.

    Example:
        coordinator = BackupCoordinator(uow_factory, owner="owner")
        ctx = ExecutionContext(caller="node-1", block_height=10)
        await coordinator.register_node(ctx, capacity=1000)
    """

    def __init__(
        self,
        uow_factory: Callable[[], Awaitable[UnitOfWork]],
        owner: str,
        restore_selector: RestoreNodeSelector | None = None,
        default_min_backup_replicas: int = DEFAULT_MIN_BACKUP_REPLICAS,
    ):
        """Initialize coordinator.

        Args:
            uow_factory: Factory producing a fresh UnitOfWork per operation
            owner: Identity allowed to run admin operations
            restore_selector: Source node selection for restores without a
                preferred node (default: always the owner)
            default_min_backup_replicas: Policy value reported before the
                owner first sets one
        """
        if not owner:
            raise ValueError("Owner identity is required")
        self._uow_factory = uow_factory
        self.owner = owner
        self.restore_selector = restore_selector or FixedNodeSelector(owner)
        self.default_min_backup_replicas = default_min_backup_replicas
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls, settings: Settings, uow_factory: Callable[[], Awaitable[UnitOfWork]]
    ) -> "BackupCoordinator":
        """Create a coordinator with the configured owner and restore fallback."""
        return cls(
            uow_factory,
            owner=settings.owner_identity,
            restore_selector=FixedNodeSelector(settings.restore_fallback_identity),
            default_min_backup_replicas=settings.default_min_backup_replicas,
        )

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[UnitOfWork]:
        async with self._lock:
            async with await self._uow_factory() as uow:
                yield uow

    @asynccontextmanager
    async def _read(self) -> AsyncIterator[UnitOfWork]:
        async with await self._uow_factory() as uow:
            yield uow

    # Node Registry

    async def register_node(self, ctx: ExecutionContext, capacity: int) -> StorageNode:
        """Register the caller as a storage node.

        Args:
            ctx: Execution context (caller becomes the node identity)
            capacity: Storage capacity offered by the node

        Returns:
            New node with reputation 100, zero usage and counters, active

        Raises:
            AlreadyExists: If the caller already has a node record
            InvalidStatus: If capacity is negative
        """
        _validate_non_negative("Capacity", capacity)

        async with self._transaction() as uow:
            if await uow.nodes.get_for_update(ctx.caller) is not None:
                raise AlreadyExists(f"Node {ctx.caller} is already registered")

            node = StorageNode(
                node_id=ctx.caller,
                storage_capacity=capacity,
                registered_at_block=ctx.block_height,
            )
            await uow.nodes.add(node)

        logger.info(
            "node.registered",
            node_id=ctx.caller,
            capacity=capacity,
            block=ctx.block_height,
        )
        return node

    async def set_node_active(self, ctx: ExecutionContext, active: bool) -> StorageNode:
        """Set the caller's node active flag, leaving every other field untouched.

        Raises:
            NotFound: If the caller has no node record
        """
        async with self._transaction() as uow:
            node = await uow.nodes.get_for_update(ctx.caller)
            if node is None:
                raise NotFound(f"Node {ctx.caller} is not registered")

            node.active = active
            await uow.nodes.save(node)

        logger.info("node.active_changed", node_id=ctx.caller, active=active)
        return node

    # Backup Request Ledger

    async def create_backup_request(
        self,
        ctx: ExecutionContext,
        file_hash: str,
        file_size: int,
        priority: int,
        required_replicas: int,
        reward: int,
    ) -> int:
        """Create a pending backup request owned by the caller.

        The minimum-replica policy is advisory: required_replicas is only
        checked to be at least one.

        Args:
            ctx: Execution context (caller becomes the requester)
            file_hash: Content hash of the file, 1-64 characters
            file_size: File size in capacity units
            priority: 1 (lowest) to 3 (highest)
            required_replicas: Target number of copies, at least 1
            reward: Reward offered to nodes

        Returns:
            Allocated backup id

        Raises:
            InvalidStatus: If priority or replica count is out of range, or
                any other input value is invalid
        """
        if not MIN_PRIORITY <= priority <= MAX_PRIORITY:
            raise InvalidStatus(
                f"Priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}, got {priority}"
            )
        if required_replicas < 1:
            raise InvalidStatus(f"Required replicas must be at least 1, got {required_replicas}")
        _validate_file_hash(file_hash)
        _validate_non_negative("File size", file_size)
        _validate_non_negative("Reward", reward)

        async with self._transaction() as uow:
            backup_id = await uow.state.allocate_id(NEXT_BACKUP_ID)
            request = BackupRequest(
                id=backup_id,
                file_hash=file_hash,
                file_size=file_size,
                requester=ctx.caller,
                priority=priority,
                created_at_block=ctx.block_height,
                status=BackupStatus.PENDING,
                required_replicas=required_replicas,
                reward_amount=reward,
            )
            await uow.backups.add(request)

        logger.info(
            "backup.created",
            backup_id=backup_id,
            requester=ctx.caller,
            file_hash=file_hash,
            file_size=file_size,
            priority=priority,
            required_replicas=required_replicas,
        )
        return backup_id

    # Assignment Tracker

    async def assign_backup_node(
        self, ctx: ExecutionContext, backup_id: int, node_id: str
    ) -> BackupAssignment:
        """Assign one node to a pending backup request.

        Only one node can be assigned per request: the first assignment moves
        the request to in-progress. Capacity is checked, not reserved.

        Raises:
            NotFound: If the request or node does not exist
            Unauthorized: If the node is inactive
            InvalidStatus: If the request is not pending
            InsufficientCapacity: If the node's free capacity is below the file size
        """
        async with self._transaction() as uow:
            request = await uow.backups.get_for_update(backup_id)
            if request is None:
                raise NotFound(f"Backup request {backup_id} not found")
            node = await uow.nodes.get_for_update(node_id)
            if node is None:
                raise NotFound(f"Node {node_id} is not registered")

            if not node.active:
                raise Unauthorized(f"Node {node_id} is inactive")
            if request.status != BackupStatus.PENDING:
                raise InvalidStatus(
                    f"Backup request {backup_id} is {request.status.value}, expected pending"
                )
            if node.free_capacity < request.file_size:
                raise InsufficientCapacity(
                    f"Node {node_id} has {node.free_capacity} free, "
                    f"backup {backup_id} needs {request.file_size}"
                )

            assignment = BackupAssignment(
                backup_id=backup_id,
                node_id=node_id,
                assigned_at_block=ctx.block_height,
                status=AssignmentStatus.ASSIGNED,
            )
            await uow.assignments.add(assignment)
            request.mark_in_progress()
            await uow.backups.save(request)

        logger.info(
            "backup.assigned",
            backup_id=backup_id,
            node_id=node_id,
            assigned_by=ctx.caller,
            block=ctx.block_height,
        )
        return assignment

    async def report_backup_completion(
        self, ctx: ExecutionContext, backup_id: int, backup_hash: str
    ) -> BackupAssignment:
        """Record that the calling node stored its copy.

        Marks the assignment completed, overwrites the location index entry
        for (file hash, node), and charges the file size to the node.

        Raises:
            NotFound: If the caller has no assignment for the request
            InvalidStatus: If the assignment is not in the assigned state
        """
        _validate_file_hash(backup_hash)

        async with self._transaction() as uow:
            assignment = await uow.assignments.get_for_update(backup_id, ctx.caller)
            if assignment is None:
                raise NotFound(f"No assignment of backup {backup_id} to node {ctx.caller}")
            request = await uow.backups.get_by_id(backup_id)
            if request is None:
                raise NotFound(f"Backup request {backup_id} not found")
            if assignment.status != AssignmentStatus.ASSIGNED:
                raise InvalidStatus(
                    f"Assignment of backup {backup_id} to {ctx.caller} is "
                    f"{assignment.status.value}, expected assigned"
                )
            node = await uow.nodes.get_for_update(ctx.caller)
            if node is None:
                raise NotFound(f"Node {ctx.caller} is not registered")

            assignment.mark_completed(backup_hash, ctx.block_height)
            await uow.assignments.save(assignment)
            await uow.locations.upsert(
                file_hash=request.file_hash,
                node_id=ctx.caller,
                backup_id=backup_id,
                backup_hash=backup_hash,
                block_height=ctx.block_height,
            )
            node.record_success(request.file_size)
            await uow.nodes.save(node)

        logger.info(
            "backup.completed",
            backup_id=backup_id,
            node_id=ctx.caller,
            file_hash=request.file_hash,
            used_capacity=node.used_capacity,
            storage_capacity=node.storage_capacity,
        )
        return assignment

    async def report_backup_failure(
        self, ctx: ExecutionContext, backup_id: int
    ) -> BackupAssignment:
        """Record that the calling node failed to store its copy.

        Accepted from any assignment status, including already completed or
        failed assignments; each report counts as one more failed backup.

        Raises:
            NotFound: If the caller has no assignment for the request
        """
        async with self._transaction() as uow:
            assignment = await uow.assignments.get_for_update(backup_id, ctx.caller)
            if assignment is None:
                raise NotFound(f"No assignment of backup {backup_id} to node {ctx.caller}")
            node = await uow.nodes.get_for_update(ctx.caller)
            if node is None:
                raise NotFound(f"Node {ctx.caller} is not registered")

            previous = assignment.status
            assignment.mark_failed()
            await uow.assignments.save(assignment)
            node.record_failure()
            await uow.nodes.save(node)

        logger.warning(
            "backup.failed",
            backup_id=backup_id,
            node_id=ctx.caller,
            previous_status=previous.value,
            failed_backups=node.failed_backups,
        )
        return assignment

    # Backup Location Index

    async def verify_backup_integrity(
        self, ctx: ExecutionContext, file_hash: str, verified: bool
    ) -> FileBackupLocation:
        """Record the caller's integrity re-check of a copy it holds.

        Raises:
            NotFound: If the caller has no location record for the file
        """
        async with self._transaction() as uow:
            location = await uow.locations.get_for_update(file_hash, ctx.caller)
            if location is None:
                raise NotFound(f"Node {ctx.caller} holds no copy of {file_hash}")

            location.record_verification(verified, ctx.block_height)
            await uow.locations.save(location)

        logger.info(
            "location.verified",
            file_hash=file_hash,
            node_id=ctx.caller,
            verified=verified,
            block=ctx.block_height,
        )
        return location

    # Restore Request Ledger

    async def create_restore_request(
        self,
        ctx: ExecutionContext,
        file_hash: str,
        preferred_node: str | None,
        reward: int,
    ) -> RestoreRequest:
        """Create a pending restore bound to one source node.

        Args:
            ctx: Execution context (caller becomes the requester)
            file_hash: Content hash of the file to restore
            preferred_node: Source node chosen by the requester, or None to
                let the restore node selector decide
            reward: Reward offered to the source node

        Returns:
            New restore request

        Raises:
            InvalidStatus: If file hash or reward is invalid
        """
        _validate_file_hash(file_hash)
        _validate_non_negative("Reward", reward)

        async with self._transaction() as uow:
            if preferred_node:
                selected_node = preferred_node
            else:
                selected_node = await self.restore_selector.select(uow, file_hash)

            restore_id = await uow.state.allocate_id(NEXT_RESTORE_ID)
            restore = RestoreRequest(
                id=restore_id,
                file_hash=file_hash,
                requester=ctx.caller,
                selected_node=selected_node,
                created_at_block=ctx.block_height,
                status=RestoreStatus.PENDING,
                reward_amount=reward,
            )
            await uow.restores.add(restore)

        logger.info(
            "restore.created",
            restore_id=restore_id,
            requester=ctx.caller,
            file_hash=file_hash,
            selected_node=selected_node,
            preferred=bool(preferred_node),
        )
        return restore

    async def complete_restore(self, ctx: ExecutionContext, restore_id: int) -> RestoreRequest:
        """Mark a restore completed. Only the selected node may do so.

        Raises:
            NotFound: If the restore request does not exist
            Unauthorized: If the caller is not the selected node
            InvalidStatus: If the restore is not pending
        """
        async with self._transaction() as uow:
            restore = await uow.restores.get_for_update(restore_id)
            if restore is None:
                raise NotFound(f"Restore request {restore_id} not found")
            if ctx.caller != restore.selected_node:
                raise Unauthorized(
                    f"Only {restore.selected_node} may complete restore {restore_id}"
                )
            if restore.status != RestoreStatus.PENDING:
                raise InvalidStatus(
                    f"Restore request {restore_id} is {restore.status.value}, expected pending"
                )

            restore.mark_completed()
            await uow.restores.save(restore)

        logger.info("restore.completed", restore_id=restore_id, node_id=ctx.caller)
        return restore

    # Admin

    async def set_min_backup_replicas(self, ctx: ExecutionContext, new_min: int) -> int:
        """Update the minimum-replica policy value.

        Raises:
            Unauthorized: If the caller is not the owner
            InvalidStatus: If the value is negative
        """
        if ctx.caller != self.owner:
            raise Unauthorized(f"{ctx.caller} is not the coordinator owner")
        _validate_non_negative("Minimum backup replicas", new_min)

        async with self._transaction() as uow:
            await uow.state.set_value(MIN_BACKUP_REPLICAS, new_min)

        logger.info("policy.min_backup_replicas_set", value=new_min, block=ctx.block_height)
        return new_min

    # Read-only accessors

    async def get_node(self, node_id: str) -> StorageNode | None:
        async with self._read() as uow:
            return await uow.nodes.get_by_id(node_id)

    async def is_node_active(self, node_id: str) -> bool:
        """Return the node's active flag; unknown nodes are reported inactive."""
        node = await self.get_node(node_id)
        return node is not None and node.active

    async def get_backup_request(self, backup_id: int) -> BackupRequest | None:
        async with self._read() as uow:
            return await uow.backups.get_by_id(backup_id)

    async def get_assignment(self, backup_id: int, node_id: str) -> BackupAssignment | None:
        async with self._read() as uow:
            return await uow.assignments.get(backup_id, node_id)

    async def list_assignments(self, backup_id: int) -> list[BackupAssignment]:
        async with self._read() as uow:
            return await uow.assignments.list_for_backup(backup_id)

    async def get_file_backup_location(
        self, file_hash: str, node_id: str
    ) -> FileBackupLocation | None:
        async with self._read() as uow:
            return await uow.locations.get(file_hash, node_id)

    async def list_file_backup_locations(self, file_hash: str) -> list[FileBackupLocation]:
        async with self._read() as uow:
            return await uow.locations.list_for_file(file_hash)

    async def get_restore_request(self, restore_id: int) -> RestoreRequest | None:
        async with self._read() as uow:
            return await uow.restores.get_by_id(restore_id)

    async def get_next_backup_id(self) -> int:
        async with self._read() as uow:
            return await uow.state.get_value(NEXT_BACKUP_ID, 1)

    async def get_next_restore_id(self) -> int:
        async with self._read() as uow:
            return await uow.state.get_value(NEXT_RESTORE_ID, 1)

    async def get_min_backup_replicas(self) -> int:
        async with self._read() as uow:
            return await uow.state.get_value(MIN_BACKUP_REPLICAS, self.default_min_backup_replicas)

    async def list_active_nodes(self) -> list[StorageNode]:
        async with self._read() as uow:
            return await uow.nodes.list_active()
