"""
Exponential backoff for async operations.

Nothing wraps the completion stream with this automatically; callers opt in
for operations they know are safe to repeat.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay_ms: int = 1000,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Await operation() up to max_attempts times.
    Waits base_delay_ms * 2**(attempt-1) between attempts; the last failure is re-raised.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= max_attempts:
                logger.error("All %d attempts failed: %s", max_attempts, e)
                raise
            delay_ms = base_delay_ms * 2 ** (attempt - 1)
            logger.warning(
                "Attempt %d/%d failed, retrying in %dms: %s",
                attempt,
                max_attempts,
                delay_ms,
                e,
            )
            await sleep(delay_ms / 1000)
            attempt += 1
