"""In-flight request deduplication.

Concurrent callers asking for the same key share one pending task instead of
each calling the provider.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from commitgroup.config import BATCH_WINDOW_MS

logger = logging.getLogger(__name__)

Producer = Callable[[], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[Any]]


class RequestBatcher:
    """Coalesce concurrent requests for the same key into one call."""

    def __init__(self, window_ms: int = BATCH_WINDOW_MS, sleep: Sleep = asyncio.sleep):
        """Initialize the batcher.

        Args:
            window_ms: Default delay before the producer runs, letting
                near-simultaneous callers join the same task.
            sleep: Awaitable sleep taking seconds.
        """
        self.window_ms = window_ms
        self._sleep = sleep
        self._pending: dict[str, asyncio.Task] = {}

    @property
    def pending_count(self) -> int:
        """Number of keys with a registered in-flight task."""
        return len(self._pending)

    def is_pending(self, key: str) -> bool:
        """Whether a task is registered for key."""
        return key in self._pending

    async def batch(self, key: str, producer: Producer, delay_ms: Optional[int] = None) -> Any:
        """Run producer once for all concurrent callers of key.

        Every caller awaiting the same key observes the same result or the
        same exception. The registration is removed as soon as the task
        settles, so later calls start a fresh task.

        Args:
            key: Deduplication key.
            producer: Zero-argument coroutine function doing the work.
            delay_ms: Batch window for a new task. Defaults to window_ms.

        Returns:
            The producer's result.
        """
        task = self._pending.get(key)
        if task is not None:
            logger.debug("Joining in-flight request for %s", key)
        else:
            window = self.window_ms if delay_ms is None else delay_ms
            task = asyncio.ensure_future(self._run(key, producer, window))
            self._pending[key] = task

        # A cancelled caller must not cancel the shared task
        return await asyncio.shield(task)

    def clear(self) -> None:
        """Drop every registration without resolving or cancelling it.

        Tasks keep running; their results are simply no longer shared with
        new callers.
        """
        self._pending.clear()

    async def _run(self, key: str, producer: Producer, window_ms: int) -> Any:
        try:
            if window_ms > 0:
                await self._sleep(window_ms / 1000)
            return await producer()
        finally:
            # clear() may have replaced the registration with a newer task
            if self._pending.get(key) is asyncio.current_task():
                del self._pending[key]
