"""Permit limiter interfaces.

The dispatcher depends on this abstraction (not the concrete implementation)
so tests and alternative scheduling strategies can be plugged in.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class AbstractPermitLimiter(ABC):
    """Interface for limiters that admit one outbound call per permit."""

    @abstractmethod
    async def acquire(self) -> None:
        """Wait until a permit is granted and consume it.

        Raises:
            PermitCancelledError: If the limiter withdrew the pending request.
            asyncio.CancelledError: If the calling task was cancelled while
                waiting; no permit is consumed in that case.
        """
        raise NotImplementedError

    def start(self) -> None:
        """Start any background scheduling on the running event loop."""
        return None

    async def close(self) -> None:
        """Release background resources and reject pending waiters."""
        return None

    def stats(self) -> dict[str, Any]:
        """Return lightweight limiter metrics."""
        return {}
