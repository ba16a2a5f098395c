"""Request/response models for the coordinator HTTP API."""

from pydantic import BaseModel, ConfigDict, Field

from backup_coordinator.models.assignment import AssignmentStatus
from backup_coordinator.models.backup_request import BackupStatus
from backup_coordinator.models.restore_request import RestoreStatus

# Request Models


class RegisterNodeRequest(BaseModel):
    """Request model for registering the caller as a storage node."""

    capacity: int = Field(..., ge=0, description="Storage capacity offered by the node")


class SetActiveRequest(BaseModel):
    """Request model for toggling the caller's node active flag."""

    active: bool = Field(..., description="Whether the node accepts new assignments")


class CreateBackupRequest(BaseModel):
    """Request model for creating a backup request."""

    file_hash: str = Field(..., min_length=1, max_length=64, description="File content hash")
    file_size: int = Field(..., ge=0, description="File size in capacity units")
    # Range checks for priority/replicas happen in the coordinator (InvalidStatus)
    priority: int = Field(..., description="Priority 1 (lowest) to 3 (highest)")
    required_replicas: int = Field(..., description="Target number of copies (>= 1)")
    reward: int = Field(default=0, ge=0, description="Reward offered to nodes")


class AssignNodeRequest(BaseModel):
    """Request model for assigning a node to a backup request."""

    node_id: str = Field(..., min_length=1, max_length=128, description="Node identity")


class CompletionReport(BaseModel):
    """Request model for a node's backup completion report."""

    backup_hash: str = Field(..., min_length=1, max_length=64, description="Hash of stored copy")


class VerificationReport(BaseModel):
    """Request model for a node's integrity re-verification."""

    verified: bool = Field(..., description="Outcome of the integrity check")


class CreateRestoreRequest(BaseModel):
    """Request model for creating a restore request."""

    file_hash: str = Field(..., min_length=1, max_length=64, description="File content hash")
    preferred_node: str | None = Field(
        default=None, max_length=128, description="Source node chosen by the requester"
    )
    reward: int = Field(default=0, ge=0, description="Reward offered to the source node")


class MinReplicasUpdate(BaseModel):
    """Request model for updating the minimum-replica policy."""

    value: int = Field(..., ge=0, description="New minimum replica count")


# Response Models


class NodeDTO(BaseModel):
    """Storage node as exposed by the API."""

    model_config = ConfigDict(from_attributes=True)

    node_id: str
    reputation_score: int
    total_backups: int
    successful_backups: int
    failed_backups: int
    active: bool
    storage_capacity: int
    used_capacity: int
    registered_at_block: int


class NodeActiveResponse(BaseModel):
    """Response model for node activity checks."""

    node_id: str
    active: bool


class BackupCreatedResponse(BaseModel):
    """Response model for backup request creation."""

    backup_id: int


class BackupRequestDTO(BaseModel):
    """Backup request as exposed by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    file_hash: str
    file_size: int
    requester: str
    priority: int
    created_at_block: int
    status: BackupStatus
    required_replicas: int
    reward_amount: int


class AssignmentDTO(BaseModel):
    """Backup assignment as exposed by the API."""

    model_config = ConfigDict(from_attributes=True)

    backup_id: int
    node_id: str
    assigned_at_block: int
    status: AssignmentStatus
    backup_hash: str | None = Field(default=None, description="Set only on completion")
    completed_at_block: int | None = Field(default=None, description="Set only on completion")


class LocationDTO(BaseModel):
    """File backup location as exposed by the API."""

    model_config = ConfigDict(from_attributes=True)

    file_hash: str
    node_id: str
    backup_id: int
    backup_hash: str
    created_at_block: int
    last_verified_block: int
    verified: bool


class RestoreRequestDTO(BaseModel):
    """Restore request as exposed by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    file_hash: str
    requester: str
    selected_node: str
    created_at_block: int
    status: RestoreStatus
    reward_amount: int


class NextIdResponse(BaseModel):
    """Response model for counter lookups."""

    next_id: int


class MinReplicasResponse(BaseModel):
    """Response model for the minimum-replica policy."""

    value: int
