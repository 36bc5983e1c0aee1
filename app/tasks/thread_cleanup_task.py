"""Periodic pruning of idle thread contexts, run on the event loop."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, Callable, Optional

from app.infra.logging_config import get_logger
from app.services.thread_context_manager import ThreadContextManager

logger = get_logger("thread_cleanup")


async def run_thread_cleanup_once(
    context_manager: ThreadContextManager, max_age_hours: float
) -> int:
    """One cleanup pass. Failures are logged and reported as zero removed."""
    try:
        removed = await context_manager.cleanup(max_age_hours)
    except Exception:
        logger.exception("Scheduled thread cleanup failed")
        return 0
    logger.info(
        "Scheduled thread cleanup removed %d contexts older than %sh",
        removed,
        max_age_hours,
    )
    return removed


async def thread_cleanup_loop(
    context_manager: ThreadContextManager,
    interval_minutes: float,
    max_age_hours: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Sleep, clean up, repeat until cancelled. Platform threads are left alone."""
    while True:
        await sleep(interval_minutes * 60)
        await run_thread_cleanup_once(context_manager, max_age_hours)


def start_thread_cleanup(
    context_manager: ThreadContextManager,
    interval_minutes: Optional[float],
    max_age_hours: float,
) -> Optional[asyncio.Task[None]]:
    if not interval_minutes:
        return None
    logger.info(
        "Thread cleanup scheduled every %s minutes (max age %sh)",
        interval_minutes,
        max_age_hours,
    )
    return asyncio.create_task(
        thread_cleanup_loop(context_manager, interval_minutes, max_age_hours)
    )


async def stop_thread_cleanup(task: Optional[asyncio.Task[None]]) -> None:
    if task is None:
        return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
