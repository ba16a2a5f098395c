"""Node registry API endpoints.

- POST /api/nodes - Register the caller as a storage node
- PUT /api/nodes/me/active - Toggle the caller's active flag
- GET /api/nodes/{node_id} - Look up a node
- GET /api/nodes/{node_id}/active - Check whether a node is active
"""

from fastapi import APIRouter, Depends, HTTPException, status

from backup_coordinator.api.dependencies import get_coordinator, get_execution_context
from backup_coordinator.api.schemas import (
    NodeActiveResponse,
    NodeDTO,
    RegisterNodeRequest,
    SetActiveRequest,
)
from backup_coordinator.core.context import ExecutionContext
from backup_coordinator.services.coordinator import BackupCoordinator

router = APIRouter(prefix="/api/nodes", tags=["nodes"])


@router.post("", response_model=NodeDTO, status_code=status.HTTP_201_CREATED)
async def register_node(
    body: RegisterNodeRequest,
    ctx: ExecutionContext = Depends(get_execution_context),
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> NodeDTO:
    """Register the calling identity as a storage node.

    Returns 409 if the identity is already registered.
    """
    node = await coordinator.register_node(ctx, body.capacity)
    return NodeDTO.model_validate(node)


@router.put("/me/active", response_model=NodeDTO)
async def set_node_active(
    body: SetActiveRequest,
    ctx: ExecutionContext = Depends(get_execution_context),
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> NodeDTO:
    """Set the caller's node active flag."""
    node = await coordinator.set_node_active(ctx, body.active)
    return NodeDTO.model_validate(node)


@router.get("/{node_id}", response_model=NodeDTO)
async def get_node(
    node_id: str,
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> NodeDTO:
    node = await coordinator.get_node(node_id)
    if node is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Node not found")
    return NodeDTO.model_validate(node)


@router.get("/{node_id}/active", response_model=NodeActiveResponse)
async def is_node_active(
    node_id: str,
    coordinator: BackupCoordinator = Depends(get_coordinator),
) -> NodeActiveResponse:
    """Report whether a node is active. Unknown nodes are reported inactive."""
    active = await coordinator.is_node_active(node_id)
    return NodeActiveResponse(node_id=node_id, active=active)
