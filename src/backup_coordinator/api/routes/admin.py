"""Admin policy API endpoints.

- GET /api/admin/min-backup-replicas - Current minimum-replica policy
- PUT /api/admin/min-backup-replicas - Owner updates the policy
"""

from fastapi import APIRouter, Depends

from backup_coordinator.api.dependencies import get_coordinator, get_execution_context
from backup_coordinator.api.schemas import MinReplicasResponse, MinReplicasUpdate
from backup_coordinator.core.context import ExecutionContext
from backup_coordinator.services.coordinator import BackupCoordinator

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/min-backup-replicas", response_model=MinReplicasResponse)
async def get_min_backup_replicas(
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> MinReplicasResponse:
    return MinReplicasResponse(value=await coordinator.get_min_backup_replicas())


@router.put("/min-backup-replicas", response_model=MinReplicasResponse)
async def set_min_backup_replicas(
    body: MinReplicasUpdate,
    ctx: ExecutionContext = Depends(get_execution_context),
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> MinReplicasResponse:
    """Update the minimum-replica policy. Owner only (403 otherwise)."""
    value = await coordinator.set_min_backup_replicas(ctx, body.value)
    return MinReplicasResponse(value=value)
