"""Fixed-window permit limiter with FIFO waiters.

Notes:
- Per-process only: several processes each enforce their own budget.
- Single event loop: all state changes happen synchronously between
  suspension points, so a reset can never interleave with an acquire.
- Hard reset: unused permits are not carried into the next window. Since
  consumption and replenishment are independent, up to ``2 * capacity`` calls
  may fall into a wall-clock interval shorter than one window that straddles a
  reset.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections import deque
from datetime import timedelta
from typing import Any, Awaitable, Callable

from crpt.adapters.rate_limit.base import AbstractPermitLimiter
from crpt.core.errors import ConfigurationError, PermitCancelledError

logger = logging.getLogger(__name__)


class WindowedLimiter(AbstractPermitLimiter):
    """Grant at most ``capacity`` permits per fixed window.

    A background task fires every ``window`` seconds on a fixed-rate schedule
    and sets the available count back to ``capacity``. Blocked callers are
    served strictly in arrival order; a new caller never overtakes a queued one.

    The replenishment task starts with ``start()`` or lazily on the first
    ``acquire()``, so the first window begins at that moment.
    """

    def __init__(
        self,
        *,
        capacity: int,
        window: float | timedelta,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the limiter.

        Args:
            capacity: Permits granted per window.
            window: Window length in seconds or as a timedelta.
            clock: Monotonic time source in seconds.
            sleep: Awaitable sleep used by the replenishment schedule.

        Raises:
            ConfigurationError: If capacity or window are not positive.
        """
        window_seconds = window.total_seconds() if isinstance(window, timedelta) else float(window)

        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ConfigurationError(
                code="limiter_invalid_capacity",
                message="capacity must be an integer >= 1",
                details={"capacity": capacity},
            )
        if not math.isfinite(window_seconds) or window_seconds <= 0:
            raise ConfigurationError(
                code="limiter_invalid_window",
                message="window must be a positive, finite duration",
                details={"window_seconds": window_seconds},
            )

        self._capacity = capacity
        self._window_seconds = window_seconds
        self._clock = clock
        self._sleep = sleep

        self._available = capacity
        self._epoch = 0
        self._waiters: deque[asyncio.Future[int]] = deque()
        self._replenisher: asyncio.Task[None] | None = None
        self._closed = False

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"WindowedLimiter(capacity={self._capacity}, window_seconds={self._window_seconds}, "
            f"available={self._available}, waiting={self.waiting})"
        )

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    @property
    def available(self) -> int:
        """Permits still grantable in the current window."""
        return self._available

    @property
    def waiting(self) -> int:
        """Number of callers queued for a permit."""
        return sum(1 for waiter in self._waiters if not waiter.done())

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> "WindowedLimiter":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def start(self) -> None:
        """Start the replenishment schedule on the running event loop."""
        if self._closed:
            raise PermitCancelledError(
                code="limiter_closed",
                message="limiter has been closed",
            )

        loop = asyncio.get_running_loop()
        task = self._replenisher
        if task is not None and not task.done() and task.get_loop() is loop:
            return

        self._replenisher = loop.create_task(self._replenish_forever())
        logger.debug(
            "limiter.started",
            extra={"capacity": self._capacity, "window_s": self._window_seconds},
        )

    async def acquire(self) -> None:
        """Wait for a permit and consume it.

        Raises:
            PermitCancelledError: If the limiter is (or becomes) closed.
            asyncio.CancelledError: If the calling task is cancelled while
                waiting. The waiter is withdrawn and no permit is consumed.
        """
        self.start()

        if self._available > 0 and not self._waiters:
            self._available -= 1
            return

        waiter: asyncio.Future[int] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        logger.debug(
            "limiter.waiting",
            extra={"waiting": len(self._waiters), "available": self._available},
        )

        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled() and waiter.exception() is None:
                # Granted, but the caller went away before resuming.
                self._refund(waiter.result())
            else:
                self._discard(waiter)
            raise

    def replenish(self) -> None:
        """Start a new window: reset the available count and serve waiters.

        This is a hard reset, not a top-up. It is called by the background
        schedule and may be called directly to force a window boundary.
        """
        self._epoch += 1
        self._available = self._capacity
        self._wake_waiters()

    async def close(self) -> None:
        """Stop replenishment and reject every pending waiter."""
        if self._closed:
            return
        self._closed = True

        rejected = 0
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_exception(
                    PermitCancelledError(
                        code="limiter_closed",
                        message="limiter closed while waiting for a permit",
                    )
                )
                rejected += 1

        task = self._replenisher
        self._replenisher = None
        if task is not None and not task.done():
            task.cancel()
            if task.get_loop() is asyncio.get_running_loop():
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        logger.debug("limiter.closed", extra={"rejected_waiters": rejected})

    def stats(self) -> dict[str, Any]:
        """Return lightweight limiter metrics."""
        return {
            "capacity": self._capacity,
            "window_seconds": self._window_seconds,
            "available": self._available,
            "waiting": self.waiting,
            "window_epoch": self._epoch,
            "closed": self._closed,
        }

    async def _replenish_forever(self) -> None:
        next_tick = self._clock() + self._window_seconds
        while True:
            await self._sleep(max(0.0, next_tick - self._clock()))
            self.replenish()
            next_tick += self._window_seconds
            now = self._clock()
            if next_tick <= now:
                # Loop stalled for more than a window; realign instead of bursting.
                next_tick = now + self._window_seconds

    def _wake_waiters(self) -> None:
        while self._available > 0 and self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                continue
            self._available -= 1
            waiter.set_result(self._epoch)

    def _refund(self, epoch: int) -> None:
        # A permit from an earlier window is gone with that window.
        if epoch != self._epoch:
            return
        self._available = min(self._capacity, self._available + 1)
        self._wake_waiters()

    def _discard(self, waiter: asyncio.Future[int]) -> None:
        try:
            self._waiters.remove(waiter)
        except ValueError:
            pass
