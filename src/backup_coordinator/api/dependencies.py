"""FastAPI dependencies for request context and shared services.

This module provides reusable FastAPI dependencies for:
- Caller identity and block height (execution context)
- Access to the coordinator stored in app.state
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from backup_coordinator.core.config import Settings
from backup_coordinator.core.context import BlockCounter, ExecutionContext
from backup_coordinator.services.coordinator import BackupCoordinator

CALLER_HEADER = "X-Caller-Identity"


def get_settings() -> Settings:
    """Get application settings instance.

    Returns:
        Settings instance loaded from environment variables.
    """
    return Settings()  # type: ignore[call-arg]  # Pydantic loads from env vars


def get_coordinator(request: Request) -> BackupCoordinator:
    """Get BackupCoordinator from app state.

    Args:
        request: FastAPI Request object (contains app.state)

    Returns:
        Coordinator created during application lifespan
    """
    return request.app.state.coordinator


def get_block_counter(request: Request) -> BlockCounter:
    """Get the block counter from app state."""
    return request.app.state.block_counter


async def get_caller(
    x_caller_identity: Annotated[str | None, Header()] = None,
) -> str:
    """Return the caller identity asserted by the fronting environment.

    Authentication happens upstream; this layer only requires the header.

    Raises:
        HTTPException: 401 Unauthorized if the header is missing or blank
    """
    if not x_caller_identity or not x_caller_identity.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {CALLER_HEADER} header",
        )
    return x_caller_identity.strip()


async def get_execution_context(
    caller: str = Depends(get_caller),
    block_counter: BlockCounter = Depends(get_block_counter),
) -> ExecutionContext:
    """Build the execution context for a mutating request.

    Each mutating request advances the block counter once, so writes made
    by later requests carry a strictly higher block height.
    """
    return ExecutionContext(caller=caller, block_height=block_counter.advance())
