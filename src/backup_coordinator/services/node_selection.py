"""Source node selection for restore requests without a preferred node."""

from typing import Protocol

from backup_coordinator.uow import UnitOfWork


class RestoreNodeSelector(Protocol):
    """Picks the node a restore is bound to when the requester names none.

    Implementations run inside the restore creation transaction and may read
    any ledger through the given Unit of Work.
    """

    async def select(self, uow: UnitOfWork, file_hash: str) -> str: ...


class FixedNodeSelector:
    """Always selects one configured identity (the owner by default).

    Placeholder until a capacity/reputation heuristic exists: the chosen
    identity need not hold the file or even be a registered node.
    """

    def __init__(self, identity: str):
        self.identity = identity

    async def select(self, uow: UnitOfWork, file_hash: str) -> str:
        return self.identity
