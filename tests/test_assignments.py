"""Assignment tracker tests.

Covers assignment preconditions (existence, activity, status, capacity),
completion and failure reports, and the end-to-end backup flow.
"""

import pytest

from backup_coordinator.models.assignment import AssignmentStatus
from backup_coordinator.models.backup_request import BackupStatus
from backup_coordinator.services.exceptions import (
    InsufficientCapacity,
    InvalidStatus,
    NotFound,
    Unauthorized,
)


async def create_request(coordinator, ctx, file_hash="hash123", file_size=500, block=2):
    return await coordinator.create_backup_request(
        ctx("alice", block), file_hash, file_size=file_size, priority=2, required_replicas=3,
        reward=10,
    )


@pytest.mark.asyncio
async def test_end_to_end_backup_flow(coordinator, ctx):
    """Register, request, assign, complete, then look the copy up."""
    await coordinator.register_node(ctx("N", 1), capacity=1000)
    backup_id = await create_request(coordinator, ctx)
    assert backup_id == 1

    await coordinator.assign_backup_node(ctx("coordinator", 3), 1, "N")
    request = await coordinator.get_backup_request(1)
    assert request.status == BackupStatus.IN_PROGRESS

    await coordinator.report_backup_completion(ctx("N", 4), 1, "hash123")

    location = await coordinator.get_file_backup_location("hash123", "N")
    assert location is not None
    assert location.backup_id == 1
    assert location.verified is True
    node = await coordinator.get_node("N")
    assert node.used_capacity == 500
    assert node.successful_backups == 1


@pytest.mark.asyncio
async def test_assign_missing_request_or_node(coordinator, ctx):
    await coordinator.register_node(ctx("N"), capacity=1000)
    backup_id = await create_request(coordinator, ctx)

    with pytest.raises(NotFound):
        await coordinator.assign_backup_node(ctx("coordinator"), 99, "N")
    with pytest.raises(NotFound):
        await coordinator.assign_backup_node(ctx("coordinator"), backup_id, "ghost")

    request = await coordinator.get_backup_request(backup_id)
    assert request.status == BackupStatus.PENDING


@pytest.mark.asyncio
async def test_assign_inactive_node_is_unauthorized(coordinator, ctx):
    await coordinator.register_node(ctx("N"), capacity=1000)
    await coordinator.set_node_active(ctx("N"), active=False)
    backup_id = await create_request(coordinator, ctx)

    with pytest.raises(Unauthorized):
        await coordinator.assign_backup_node(ctx("coordinator"), backup_id, "N")

    assert await coordinator.get_assignment(backup_id, "N") is None
    request = await coordinator.get_backup_request(backup_id)
    assert request.status == BackupStatus.PENDING


@pytest.mark.asyncio
async def test_assign_node_without_free_capacity(coordinator, ctx):
    await coordinator.register_node(ctx("N"), capacity=499)
    backup_id = await create_request(coordinator, ctx, file_size=500)

    with pytest.raises(InsufficientCapacity):
        await coordinator.assign_backup_node(ctx("coordinator"), backup_id, "N")

    assert await coordinator.get_assignment(backup_id, "N") is None
    request = await coordinator.get_backup_request(backup_id)
    assert request.status == BackupStatus.PENDING
    node = await coordinator.get_node("N")
    assert node.used_capacity == 0


@pytest.mark.asyncio
async def test_assign_node_with_exactly_enough_capacity(coordinator, ctx):
    await coordinator.register_node(ctx("N"), capacity=500)
    backup_id = await create_request(coordinator, ctx, file_size=500)

    assignment = await coordinator.assign_backup_node(ctx("coordinator", 3), backup_id, "N")

    assert assignment.status == AssignmentStatus.ASSIGNED
    assert assignment.assigned_at_block == 3
    assert assignment.backup_hash is None
    assert assignment.completed_at_block is None


@pytest.mark.asyncio
async def test_second_assignment_rejected_once_in_progress(coordinator, ctx):
    await coordinator.register_node(ctx("N1"), capacity=1000)
    await coordinator.register_node(ctx("N2"), capacity=1000)
    backup_id = await create_request(coordinator, ctx)
    await coordinator.assign_backup_node(ctx("coordinator"), backup_id, "N1")

    with pytest.raises(InvalidStatus):
        await coordinator.assign_backup_node(ctx("coordinator"), backup_id, "N2")

    assert await coordinator.get_assignment(backup_id, "N2") is None
    assignments = await coordinator.list_assignments(backup_id)
    assert [a.node_id for a in assignments] == ["N1"]


@pytest.mark.asyncio
async def test_completion_updates_assignment_location_and_node(coordinator, ctx):
    await coordinator.register_node(ctx("N", 1), capacity=1000)
    backup_id = await create_request(coordinator, ctx)
    await coordinator.assign_backup_node(ctx("coordinator", 3), backup_id, "N")

    assignment = await coordinator.report_backup_completion(ctx("N", 8), backup_id, "copyhash")

    assert assignment.status == AssignmentStatus.COMPLETED
    assert assignment.backup_hash == "copyhash"
    assert assignment.completed_at_block == 8

    location = await coordinator.get_file_backup_location("hash123", "N")
    assert location.backup_id == backup_id
    assert location.backup_hash == "copyhash"
    assert location.created_at_block == 8
    assert location.last_verified_block == 8
    assert location.verified is True

    node = await coordinator.get_node("N")
    assert node.total_backups == 1
    assert node.successful_backups == 1
    assert node.failed_backups == 0
    assert node.used_capacity == 500
    assert node.reputation_score == 100


@pytest.mark.asyncio
async def test_completion_requires_assignment_to_caller(coordinator, ctx):
    await coordinator.register_node(ctx("N"), capacity=1000)
    await coordinator.register_node(ctx("M"), capacity=1000)
    backup_id = await create_request(coordinator, ctx)
    await coordinator.assign_backup_node(ctx("coordinator"), backup_id, "N")

    with pytest.raises(NotFound):
        await coordinator.report_backup_completion(ctx("M"), backup_id, "copyhash")
    with pytest.raises(NotFound):
        await coordinator.report_backup_completion(ctx("N"), 99, "copyhash")

    assert await coordinator.get_file_backup_location("hash123", "M") is None


@pytest.mark.asyncio
async def test_second_completion_rejected_without_double_counting(coordinator, ctx):
    await coordinator.register_node(ctx("N"), capacity=1000)
    backup_id = await create_request(coordinator, ctx)
    await coordinator.assign_backup_node(ctx("coordinator"), backup_id, "N")
    await coordinator.report_backup_completion(ctx("N", 4), backup_id, "copyhash")

    with pytest.raises(InvalidStatus):
        await coordinator.report_backup_completion(ctx("N", 5), backup_id, "otherhash")

    node = await coordinator.get_node("N")
    assert node.total_backups == 1
    assert node.used_capacity == 500
    location = await coordinator.get_file_backup_location("hash123", "N")
    assert location.backup_hash == "copyhash"


@pytest.mark.asyncio
async def test_failure_report_counts_failure_and_keeps_capacity(coordinator, ctx):
    await coordinator.register_node(ctx("N"), capacity=1000)
    backup_id = await create_request(coordinator, ctx)
    await coordinator.assign_backup_node(ctx("coordinator"), backup_id, "N")

    assignment = await coordinator.report_backup_failure(ctx("N", 6), backup_id)

    assert assignment.status == AssignmentStatus.FAILED
    assert assignment.backup_hash is None
    node = await coordinator.get_node("N")
    assert node.total_backups == 1
    assert node.failed_backups == 1
    assert node.successful_backups == 0
    assert node.used_capacity == 0
    assert await coordinator.get_file_backup_location("hash123", "N") is None

    # Request itself stays in-progress; outcome lives on the assignment
    request = await coordinator.get_backup_request(backup_id)
    assert request.status == BackupStatus.IN_PROGRESS


@pytest.mark.asyncio
async def test_completion_after_failure_rejected(coordinator, ctx):
    await coordinator.register_node(ctx("N"), capacity=1000)
    backup_id = await create_request(coordinator, ctx)
    await coordinator.assign_backup_node(ctx("coordinator"), backup_id, "N")
    await coordinator.report_backup_failure(ctx("N"), backup_id)

    with pytest.raises(InvalidStatus):
        await coordinator.report_backup_completion(ctx("N"), backup_id, "copyhash")


@pytest.mark.asyncio
async def test_failure_reports_are_permissive(coordinator, ctx):
    """Failing a completed assignment, then failing it again, counts each report."""
    await coordinator.register_node(ctx("N"), capacity=1000)
    backup_id = await create_request(coordinator, ctx)
    await coordinator.assign_backup_node(ctx("coordinator"), backup_id, "N")
    await coordinator.report_backup_completion(ctx("N"), backup_id, "copyhash")

    await coordinator.report_backup_failure(ctx("N"), backup_id)
    await coordinator.report_backup_failure(ctx("N"), backup_id)

    assignment = await coordinator.get_assignment(backup_id, "N")
    assert assignment.status == AssignmentStatus.FAILED
    node = await coordinator.get_node("N")
    assert node.total_backups == 3
    assert node.successful_backups == 1
    assert node.failed_backups == 2
    assert node.used_capacity == 500


@pytest.mark.asyncio
async def test_failure_without_assignment(coordinator, ctx):
    await coordinator.register_node(ctx("N"), capacity=1000)
    backup_id = await create_request(coordinator, ctx)

    with pytest.raises(NotFound):
        await coordinator.report_backup_failure(ctx("N"), backup_id)

    node = await coordinator.get_node("N")
    assert node.total_backups == 0


@pytest.mark.asyncio
async def test_completion_overwrites_location_for_same_file_and_node(coordinator, ctx):
    await coordinator.register_node(ctx("N"), capacity=1000)
    first = await create_request(coordinator, ctx, file_size=100)
    second = await create_request(coordinator, ctx, file_size=100)
    await coordinator.assign_backup_node(ctx("coordinator"), first, "N")
    await coordinator.assign_backup_node(ctx("coordinator"), second, "N")

    await coordinator.report_backup_completion(ctx("N", 10), first, "copy-1")
    await coordinator.report_backup_completion(ctx("N", 11), second, "copy-2")

    locations = await coordinator.list_file_backup_locations("hash123")
    assert len(locations) == 1
    assert locations[0].backup_id == second
    assert locations[0].backup_hash == "copy-2"
    assert locations[0].last_verified_block == 11


@pytest.mark.asyncio
async def test_capacity_is_checked_not_reserved(coordinator, ctx):
    """Two assignments may each pass the check; completions can over-commit the node."""
    await coordinator.register_node(ctx("N"), capacity=1000)
    first = await create_request(coordinator, ctx, file_hash="file-a", file_size=600)
    second = await create_request(coordinator, ctx, file_hash="file-b", file_size=600)
    await coordinator.assign_backup_node(ctx("coordinator"), first, "N")
    await coordinator.assign_backup_node(ctx("coordinator"), second, "N")

    await coordinator.report_backup_completion(ctx("N"), first, "copy-a")
    await coordinator.report_backup_completion(ctx("N"), second, "copy-b")

    node = await coordinator.get_node("N")
    assert node.used_capacity == 1200
    assert node.free_capacity == -200

    third = await create_request(coordinator, ctx, file_hash="file-c", file_size=1)
    with pytest.raises(InsufficientCapacity):
        await coordinator.assign_backup_node(ctx("coordinator"), third, "N")
