"""Bounded retries and request time budgets."""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from commitgroup.config import AI_BASE_TIMEOUT_MS, AI_MAX_TIMEOUT_MS

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]

# Per-request time budget components (milliseconds)
_MS_PER_10KB = 1_000
_MS_PER_CHANGED_LINE = 100
_MAX_CHANGES_MS = 30_000
_MS_PER_EXTRA_FILE = 2_000


def is_retryable(error: BaseException) -> bool:
    """Whether an error may succeed when the operation is repeated."""
    return bool(getattr(error, "retryable", False))


async def with_retry(
    operation: Callable[[], Awaitable[Any]],
    max_attempts: int = 3,
    delay_ms: int = 1000,
    sleep: Sleep = asyncio.sleep,
) -> Any:
    """Run an operation with bounded retries.

    The wait before attempt n+1 is delay_ms * n. Errors that are not
    retryable are raised at once without further attempts.

    Args:
        operation: Zero-argument coroutine function.
        max_attempts: Maximum number of attempts (at least one is made).
        delay_ms: Base delay between attempts in milliseconds.
        sleep: Awaitable sleep taking seconds.

    Returns:
        The operation's result.

    Raises:
        The last error raised by the operation.
    """
    attempts = max(1, max_attempts)

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if not is_retryable(e) or attempt == attempts:
                raise
            wait_ms = delay_ms * attempt
            logger.debug(
                "Attempt %d/%d failed (%s), retrying in %d ms", attempt, attempts, e, wait_ms
            )
            await sleep(wait_ms / 1000)


def calculate_ai_timeout(diff_size: int, file_count: int, total_changes: int) -> float:
    """Compute the time budget for one generation request.

    Args:
        diff_size: Size of the request payload in characters.
        file_count: Number of files in the request.
        total_changes: Total changed lines across all files.

    Returns:
        Timeout in seconds, between the base and maximum AI timeouts.
    """
    timeout_ms = AI_BASE_TIMEOUT_MS
    timeout_ms += (diff_size // 10_240) * _MS_PER_10KB
    timeout_ms += min(total_changes * _MS_PER_CHANGED_LINE, _MAX_CHANGES_MS)
    timeout_ms += max(0, file_count - 1) * _MS_PER_EXTRA_FILE

    timeout_ms = min(max(timeout_ms, AI_BASE_TIMEOUT_MS), AI_MAX_TIMEOUT_MS)
    return timeout_ms / 1000
