"""Backup request and assignment API endpoints.

- POST /api/backups - Create a backup request
- GET /api/backups/next-id - Next backup id to be allocated
- GET /api/backups/{backup_id} - Look up a backup request
- POST /api/backups/{backup_id}/assignments - Assign a node
- GET /api/backups/{backup_id}/assignments - List assignments of a request
- GET /api/backups/{backup_id}/assignments/{node_id} - Look up one assignment
- POST /api/backups/{backup_id}/completion - Caller reports its copy stored
- POST /api/backups/{backup_id}/failure - Caller reports its copy failed
"""

from fastapi import APIRouter, Depends, HTTPException, status

from backup_coordinator.api.dependencies import get_coordinator, get_execution_context
from backup_coordinator.api.schemas import (
    AssignmentDTO,
    AssignNodeRequest,
    BackupCreatedResponse,
    BackupRequestDTO,
    CompletionReport,
    CreateBackupRequest,
    NextIdResponse,
)
from backup_coordinator.core.context import ExecutionContext
from backup_coordinator.services.coordinator import BackupCoordinator

router = APIRouter(prefix="/api/backups", tags=["backups"])


@router.post("", response_model=BackupCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_backup_request(
    body: CreateBackupRequest,
    ctx: ExecutionContext = Depends(get_execution_context),
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> BackupCreatedResponse:
    """Create a pending backup request owned by the caller."""
    backup_id = await coordinator.create_backup_request(
        ctx,
        file_hash=body.file_hash,
        file_size=body.file_size,
        priority=body.priority,
        required_replicas=body.required_replicas,
        reward=body.reward,
    )
    return BackupCreatedResponse(backup_id=backup_id)


@router.get("/next-id", response_model=NextIdResponse)
async def get_next_backup_id(
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> NextIdResponse:
    return NextIdResponse(next_id=await coordinator.get_next_backup_id())


@router.get("/{backup_id}", response_model=BackupRequestDTO)
async def get_backup_request(
    backup_id: int,
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> BackupRequestDTO:
    request = await coordinator.get_backup_request(backup_id)
    if request is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Backup request not found"
        )
    return BackupRequestDTO.model_validate(request)


@router.post(
    "/{backup_id}/assignments",
    response_model=AssignmentDTO,
    status_code=status.HTTP_201_CREATED,
)
async def assign_backup_node(
    backup_id: int,
    body: AssignNodeRequest,
    ctx: ExecutionContext = Depends(get_execution_context),
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> AssignmentDTO:
    """Assign a node to a pending backup request (one node per call)."""
    assignment = await coordinator.assign_backup_node(ctx, backup_id, body.node_id)
    return AssignmentDTO.model_validate(assignment)


@router.get("/{backup_id}/assignments", response_model=list[AssignmentDTO])
async def list_assignments(
    backup_id: int,
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> list[AssignmentDTO]:
    assignments = await coordinator.list_assignments(backup_id)
    return [AssignmentDTO.model_validate(a) for a in assignments]


@router.get("/{backup_id}/assignments/{node_id}", response_model=AssignmentDTO)
async def get_assignment(
    backup_id: int,
    node_id: str,
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> AssignmentDTO:
    assignment = await coordinator.get_assignment(backup_id, node_id)
    if assignment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    return AssignmentDTO.model_validate(assignment)


@router.post("/{backup_id}/completion", response_model=AssignmentDTO)
async def report_backup_completion(
    backup_id: int,
    body: CompletionReport,
    ctx: ExecutionContext = Depends(get_execution_context),
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> AssignmentDTO:
    """Report that the calling node stored its copy of the backup."""
    assignment = await coordinator.report_backup_completion(ctx, backup_id, body.backup_hash)
    return AssignmentDTO.model_validate(assignment)


@router.post("/{backup_id}/failure", response_model=AssignmentDTO)
async def report_backup_failure(
    backup_id: int,
    ctx: ExecutionContext = Depends(get_execution_context),
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> AssignmentDTO:
    """Report that the calling node failed to store its copy of the backup."""
    assignment = await coordinator.report_backup_failure(ctx, backup_id)
    return AssignmentDTO.model_validate(assignment)
