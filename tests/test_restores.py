"""Restore request ledger tests: node selection, completion gate, status."""

import pytest

from backup_coordinator.models.restore_request import RestoreStatus
from backup_coordinator.services.coordinator import BackupCoordinator
from backup_coordinator.services.exceptions import InvalidStatus, NotFound, Unauthorized

from conftest import OWNER


@pytest.mark.asyncio
async def test_restore_scenario(coordinator, ctx):
    await coordinator.register_node(ctx("N", 1), capacity=1000)

    restore = await coordinator.create_restore_request(ctx("alice", 5), "hash123", "N", 5)

    assert restore.id == 1
    assert restore.selected_node == "N"
    assert restore.status == RestoreStatus.PENDING
    assert restore.requester == "alice"
    assert restore.created_at_block == 5
    assert restore.reward_amount == 5

    with pytest.raises(Unauthorized):
        await coordinator.complete_restore(ctx("mallory", 6), 1)
    assert (await coordinator.get_restore_request(1)).status == RestoreStatus.PENDING

    completed = await coordinator.complete_restore(ctx("N", 7), 1)
    assert completed.status == RestoreStatus.COMPLETED

    with pytest.raises(InvalidStatus):
        await coordinator.complete_restore(ctx("N", 8), 1)
    assert (await coordinator.get_restore_request(1)).status == RestoreStatus.COMPLETED


@pytest.mark.asyncio
async def test_restore_without_preferred_node_falls_back_to_owner(coordinator, ctx):
    restore = await coordinator.create_restore_request(ctx("alice"), "hash123", None, 0)

    assert restore.selected_node == OWNER

    await coordinator.complete_restore(ctx(OWNER), restore.id)
    assert (await coordinator.get_restore_request(restore.id)).status == RestoreStatus.COMPLETED


@pytest.mark.asyncio
async def test_restore_uses_pluggable_selector(uow_factory, ctx):
    class FirstLocationSelector:
        async def select(self, uow, file_hash):
            locations = await uow.locations.list_for_file(file_hash)
            return locations[0].node_id if locations else OWNER

    coordinator = BackupCoordinator(uow_factory, owner=OWNER, restore_selector=FirstLocationSelector())
    await coordinator.register_node(ctx("N"), capacity=1000)
    backup_id = await coordinator.create_backup_request(
        ctx("alice"), "hash123", file_size=10, priority=1, required_replicas=1, reward=0
    )
    await coordinator.assign_backup_node(ctx("coordinator"), backup_id, "N")
    await coordinator.report_backup_completion(ctx("N"), backup_id, "copyhash")

    held = await coordinator.create_restore_request(ctx("alice"), "hash123", None, 0)
    unheld = await coordinator.create_restore_request(ctx("alice"), "nothing", None, 0)

    assert held.selected_node == "N"
    assert unheld.selected_node == OWNER


@pytest.mark.asyncio
async def test_restore_ids_increment_and_validation_allocates_nothing(coordinator, ctx):
    assert await coordinator.get_next_restore_id() == 1

    with pytest.raises(InvalidStatus):
        await coordinator.create_restore_request(ctx("alice"), "", "N", 0)
    with pytest.raises(InvalidStatus):
        await coordinator.create_restore_request(ctx("alice"), "hash123", "N", -1)
    assert await coordinator.get_next_restore_id() == 1

    first = await coordinator.create_restore_request(ctx("alice"), "hash123", "N", 0)
    second = await coordinator.create_restore_request(ctx("bob"), "hash123", "N", 0)

    assert (first.id, second.id) == (1, 2)
    assert await coordinator.get_next_restore_id() == 3


@pytest.mark.asyncio
async def test_restore_counter_is_independent_of_backup_counter(coordinator, ctx):
    await coordinator.create_backup_request(
        ctx("alice"), "hash123", file_size=1, priority=1, required_replicas=1, reward=0
    )

    restore = await coordinator.create_restore_request(ctx("alice"), "hash123", "N", 0)

    assert restore.id == 1
    assert await coordinator.get_next_backup_id() == 2


@pytest.mark.asyncio
async def test_complete_unknown_restore(coordinator, ctx):
    with pytest.raises(NotFound):
        await coordinator.complete_restore(ctx("N"), 42)
