"""Backup location index API endpoints.

- GET /api/locations/{file_hash} - Every node holding a copy of a file
- GET /api/locations/{file_hash}/{node_id} - Copy of a file on one node
- POST /api/locations/{file_hash}/verification - Caller re-verifies its copy
"""

from fastapi import APIRouter, Depends, HTTPException, status

from backup_coordinator.api.dependencies import get_coordinator, get_execution_context
from backup_coordinator.api.schemas import LocationDTO, VerificationReport
from backup_coordinator.core.context import ExecutionContext
from backup_coordinator.services.coordinator import BackupCoordinator

router = APIRouter(prefix="/api/locations", tags=["locations"])


@router.get("/{file_hash}", response_model=list[LocationDTO])
async def list_file_backup_locations(
    file_hash: str,
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> list[LocationDTO]:
    """List recorded copies of a file. Returns an empty list if none exist."""
    locations = await coordinator.list_file_backup_locations(file_hash)
    return [LocationDTO.model_validate(loc) for loc in locations]


@router.get("/{file_hash}/{node_id}", response_model=LocationDTO)
async def get_file_backup_location(
    file_hash: str,
    node_id: str,
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> LocationDTO:
    location = await coordinator.get_file_backup_location(file_hash, node_id)
    if location is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")
    return LocationDTO.model_validate(location)


@router.post("/{file_hash}/verification", response_model=LocationDTO)
async def verify_backup_integrity(
    file_hash: str,
    body: VerificationReport,
    ctx: ExecutionContext = Depends(get_execution_context),
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> LocationDTO:
    """Record the calling node's integrity check of its copy."""
    location = await coordinator.verify_backup_integrity(ctx, file_hash, body.verified)
    return LocationDTO.model_validate(location)
