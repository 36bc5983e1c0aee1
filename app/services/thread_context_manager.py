"""ThreadContextManager: facade for create, read, record_exchange, archive, delete and cleanup."""

from __future__ import annotations

import asyncio
import weakref
from contextlib import AbstractContextManager
from datetime import datetime, timedelta
from typing import Callable, List, Optional, TypeVar

from sqlalchemy.orm import Session as DBSession

from app.infra.logging_config import get_logger
from app.schemas.thread_context import (
    ThreadContextCreate,
    ThreadContextInDB,
    ThreadMessage,
)
from app.services.thread_context_service import ThreadContextService
from app.utils.dates import utcnow
from app.utils.db.db_session_helper import db_session

logger = get_logger("thread_context")

T = TypeVar("T")

SessionFactory = Callable[[], AbstractContextManager[DBSession]]


class ThreadContextManager:
    """
    Lifecycle rules for thread contexts.

    Store calls run in a worker thread, each in its own database session.
    Read paths never raise: a failed read is logged and reported as absent,
    inactive or empty. Writes that the caller depends on (create, record,
    cleanup) propagate store errors.
    """

    def __init__(
        self,
        session_factory: SessionFactory = db_session,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock
        # Serialises read-modify-write of one thread's transcript.
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    async def create_context(self, meta: ThreadContextCreate) -> ThreadContextInDB:
        now = self._clock()
        context = ThreadContextInDB(
            thread_id=meta.thread_id,
            user_id=meta.user_id,
            channel_id=meta.channel_id,
            guild_id=meta.guild_id,
            messages=[],
            created_at=now,
            last_activity=now,
            is_active=True,
            message_count=0,
        )
        await self._call(lambda svc: svc.insert(context))
        logger.info(
            "Thread context %s created for user %s in channel %s",
            meta.thread_id,
            meta.user_id,
            meta.channel_id,
        )
        return context

    async def get_context(self, thread_id: str) -> Optional[ThreadContextInDB]:
        try:
            return await self._call(lambda svc: svc.get(thread_id))
        except Exception:
            logger.exception("Failed to get thread context %s", thread_id)
            return None

    async def is_active(self, thread_id: str) -> bool:
        try:
            return await self._call(lambda svc: svc.is_active(thread_id))
        except Exception:
            logger.exception("Failed to check thread active status %s", thread_id)
            return False

    async def record_exchange(
        self, thread_id: str, user_text: str, assistant_text: str
    ) -> bool:
        """
        Append one user turn and one assistant turn and bump last_activity.

        Returns False (and writes nothing) when the context does not exist; a
        missing context is only ever recreated through the new-thread path.
        """
        async with self._lock_for(thread_id):
            recorded = await self._call(
                lambda svc: self._append_exchange(
                    svc, thread_id, user_text, assistant_text
                )
            )
        if not recorded:
            logger.warning(
                "Attempted to update non-existent thread context: %s", thread_id
            )
        return recorded

    async def archive(self, thread_id: str) -> None:
        try:
            found = await self._call(lambda svc: svc.set_active(thread_id, False))
        except Exception:
            logger.exception("Failed to archive thread %s", thread_id)
            return
        if found:
            logger.info("Thread %s archived", thread_id)
        else:
            logger.warning("Archive requested for unknown thread context %s", thread_id)

    async def delete_context(self, thread_id: str) -> bool:
        try:
            deleted = await self._call(lambda svc: svc.delete(thread_id))
        except Exception:
            logger.exception("Failed to delete thread %s", thread_id)
            return False
        if deleted:
            logger.info("Thread context %s deleted", thread_id)
        return deleted

    async def cleanup(self, max_age_hours: float) -> int:
        """Delete every context idle for longer than max_age_hours. Irreversible."""
        cutoff = self._clock() - timedelta(hours=max_age_hours)
        removed = await self._call(lambda svc: svc.delete_older_than(cutoff))
        if removed > 0:
            logger.info("Cleaned up %d old thread contexts", removed)
        return removed

    async def active_count(self) -> int:
        try:
            return await self._call(lambda svc: svc.count_active())
        except Exception:
            logger.exception("Failed to get active thread count")
            return 0

    async def threads_for_user(self, user_id: str) -> List[ThreadContextInDB]:
        try:
            return await self._call(lambda svc: svc.list_by_user(user_id))
        except Exception:
            logger.exception("Failed to get user threads for %s", user_id)
            return []

    def _append_exchange(
        self,
        svc: ThreadContextService,
        thread_id: str,
        user_text: str,
        assistant_text: str,
    ) -> bool:
        context = svc.get(thread_id)
        if context is None:
            return False
        user_turn = ThreadMessage(role="user", content=user_text, timestamp=self._clock())
        assistant_turn = ThreadMessage(
            role="assistant", content=assistant_text, timestamp=self._clock()
        )
        message_count = context.message_count + 2
        svc.update(
            thread_id,
            [*context.messages, user_turn, assistant_turn],
            last_activity=self._clock(),
            message_count=message_count,
        )
        logger.debug(
            "Updated thread context %s. Message count: %d", thread_id, message_count
        )
        return True

    def _lock_for(self, thread_id: str) -> asyncio.Lock:
        lock = self._locks.get(thread_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[thread_id] = lock
        return lock

    async def _call(self, fn: Callable[[ThreadContextService], T]) -> T:
        return await asyncio.to_thread(self._run, fn)

    def _run(self, fn: Callable[[ThreadContextService], T]) -> T:
        with self._session_factory() as db:
            return fn(ThreadContextService(db))
