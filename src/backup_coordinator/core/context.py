"""Execution context threaded into every coordinator operation."""

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class ExecutionContext:
    """Who is calling and at which block.

    Attributes:
        caller: Identity that authorized this call (supplied by the fronting
            environment, never derived by the coordinator)
        block_height: Monotonic non-decreasing sequence number used as the
            timestamp of every ledger write made by the call
    """

    caller: str
    block_height: int


class BlockCounter:
    """Monotonic block/sequence source for deployments without an external chain.

    Every mutating request advances the counter by one. An externally observed
    height can be folded in with observe(); the counter never moves backwards.
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError("Block counter cannot start below zero")
        self._height = start
        self._lock = threading.Lock()

    @property
    def height(self) -> int:
        return self._height

    def advance(self) -> int:
        """Move to the next block and return it."""
        with self._lock:
            self._height += 1
            return self._height

    def observe(self, height: int) -> int:
        """Fold in an externally reported height and return the current height."""
        with self._lock:
            if height > self._height:
                self._height = height
            return self._height
