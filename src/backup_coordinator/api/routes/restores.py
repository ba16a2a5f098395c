"""Restore request API endpoints.

- POST /api/restores - Create a restore request
- GET /api/restores/next-id - Next restore id to be allocated
- GET /api/restores/{restore_id} - Look up a restore request
- POST /api/restores/{restore_id}/completion - Selected node completes the restore
"""

from fastapi import APIRouter, Depends, HTTPException, status

from backup_coordinator.api.dependencies import get_coordinator, get_execution_context
from backup_coordinator.api.schemas import (
    CreateRestoreRequest,
    NextIdResponse,
    RestoreRequestDTO,
)
from backup_coordinator.core.context import ExecutionContext
from backup_coordinator.services.coordinator import BackupCoordinator

router = APIRouter(prefix="/api/restores", tags=["restores"])


@router.post("", response_model=RestoreRequestDTO, status_code=status.HTTP_201_CREATED)
async def create_restore_request(
    body: CreateRestoreRequest,
    ctx: ExecutionContext = Depends(get_execution_context),
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> RestoreRequestDTO:
    """Create a pending restore request bound to one source node."""
    restore = await coordinator.create_restore_request(
        ctx,
        file_hash=body.file_hash,
        preferred_node=body.preferred_node,
        reward=body.reward,
    )
    return RestoreRequestDTO.model_validate(restore)


@router.get("/next-id", response_model=NextIdResponse)
async def get_next_restore_id(
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> NextIdResponse:
    return NextIdResponse(next_id=await coordinator.get_next_restore_id())


@router.get("/{restore_id}", response_model=RestoreRequestDTO)
async def get_restore_request(
    restore_id: int,
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> RestoreRequestDTO:
    restore = await coordinator.get_restore_request(restore_id)
    if restore is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Restore request not found"
        )
    return RestoreRequestDTO.model_validate(restore)


@router.post("/{restore_id}/completion", response_model=RestoreRequestDTO)
async def complete_restore(
    restore_id: int,
    ctx: ExecutionContext = Depends(get_execution_context),
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> RestoreRequestDTO:
    """Mark a restore completed. Only the selected node may call this."""
    restore = await coordinator.complete_restore(ctx, restore_id)
    return RestoreRequestDTO.model_validate(restore)
