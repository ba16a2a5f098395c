"""Admin policy tests: owner gate on the minimum-replica value."""

import pytest

from backup_coordinator.services.coordinator import BackupCoordinator
from backup_coordinator.services.exceptions import InvalidStatus, Unauthorized

from conftest import OWNER


@pytest.mark.asyncio
async def test_non_owner_cannot_set_min_replicas(coordinator, ctx):
    before = await coordinator.get_min_backup_replicas()

    with pytest.raises(Unauthorized):
        await coordinator.set_min_backup_replicas(ctx("mallory"), 7)

    assert await coordinator.get_min_backup_replicas() == before == 3


@pytest.mark.asyncio
async def test_owner_updates_min_replicas(coordinator, ctx):
    assert await coordinator.set_min_backup_replicas(ctx(OWNER), 5) == 5
    assert await coordinator.get_min_backup_replicas() == 5

    await coordinator.set_min_backup_replicas(ctx(OWNER), 2)
    assert await coordinator.get_min_backup_replicas() == 2


@pytest.mark.asyncio
async def test_negative_min_replicas_rejected(coordinator, ctx):
    with pytest.raises(InvalidStatus):
        await coordinator.set_min_backup_replicas(ctx(OWNER), -1)

    assert await coordinator.get_min_backup_replicas() == 3


@pytest.mark.asyncio
async def test_default_min_replicas_is_configurable(uow_factory):
    coordinator = BackupCoordinator(uow_factory, owner=OWNER, default_min_backup_replicas=4)

    assert await coordinator.get_min_backup_replicas() == 4


def test_owner_identity_required(uow_factory):
    with pytest.raises(ValueError):
        BackupCoordinator(uow_factory, owner="")
