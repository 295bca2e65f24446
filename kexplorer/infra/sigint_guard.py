"""Shared interrupt handling helpers for pipeline runs.

Provides consistent cancellation checks for long-running pipeline work,
whether the trigger is SIGINT or a newer run superseding an older one.

Key components:
- FlowInterruptedError: Exception raised when a flow is interrupted
- InterruptGuard: Helper class to check/raise on interrupt conditions
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

__all__ = [
    "FlowInterruptedError",
    "InterruptGuard",
]


class FlowInterruptedError(Exception):
    """Raised when a flow is interrupted or superseded.

    Named to avoid shadowing Python's built-in InterruptedError
    (which is an OSError with errno.EINTR).
    """


class InterruptGuard:
    """Helper class to check and raise on interrupt conditions.

    Wraps either an asyncio.Event or a predicate. The predicate form lets
    the orchestrator check a run generation counter without allocating
    an event per run.
    """

    def __init__(
        self,
        event: asyncio.Event | None = None,
        *,
        predicate: Callable[[], bool] | None = None,
    ) -> None:
        """Initialize the interrupt guard.

        Args:
            event: The interrupt event to monitor.
            predicate: Callable returning True once the flow is interrupted.
                If both are None, is_interrupted always returns False.
        """
        self._event = event
        self._predicate = predicate

    def is_interrupted(self) -> bool:
        """Check if the flow has been interrupted."""
        if self._event is not None and self._event.is_set():
            return True
        if self._predicate is not None:
            return self._predicate()
        return False

    def raise_if_interrupted(self, message: str = "Flow interrupted") -> None:
        """Raise FlowInterruptedError if the flow has been interrupted.

        Raises:
            FlowInterruptedError: If the interrupt condition holds.
        """
        if self.is_interrupted():
            raise FlowInterruptedError(message)

