"""ThreadContext persistence: insert, read, replace transcript, archive, delete, bulk prune."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session as DBSession

from app.exceptions import CorruptDataError, DuplicateKeyError, NotFoundError
from app.models.thread_context import ThreadContext
from app.schemas.thread_context import (
    TRANSCRIPT_ADAPTER,
    ThreadContextInDB,
    ThreadContextSummary,
    ThreadMessage,
)
from app.utils.dates import as_utc, to_naive_utc


def encode_messages(messages: List[ThreadMessage]) -> str:
    return TRANSCRIPT_ADAPTER.dump_json(messages).decode("utf-8")


def decode_messages(thread_id: str, raw: Optional[str]) -> List[ThreadMessage]:
    """Decode a stored transcript. Undecodable data is an error, never empty history."""
    if raw is None:
        raise CorruptDataError(thread_id, "transcript is NULL")
    try:
        return TRANSCRIPT_ADAPTER.validate_json(raw)
    except ValidationError as e:
        raise CorruptDataError(thread_id, str(e)) from e


class ThreadContextService:
    """Store contract over the thread_contexts table. Every write commits on its own."""

    def __init__(self, db: DBSession) -> None:
        self.db = db

    def insert(self, context: ThreadContextInDB) -> None:
        """Insert a new context. Raises DuplicateKeyError if thread_id exists."""
        if self._get_row(context.thread_id) is not None:
            raise DuplicateKeyError(context.thread_id)
        row = ThreadContext(
            thread_id=context.thread_id,
            user_id=context.user_id,
            channel_id=context.channel_id,
            guild_id=context.guild_id,
            messages=encode_messages(context.messages),
            created_at=to_naive_utc(context.created_at),
            last_activity=to_naive_utc(context.last_activity),
            is_active=context.is_active,
            message_count=context.message_count,
        )
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateKeyError(context.thread_id) from e

    def get(self, thread_id: str) -> Optional[ThreadContextInDB]:
        row = self._get_row(thread_id)
        if row is None:
            return None
        return self._to_schema(row)

    def update(
        self,
        thread_id: str,
        messages: List[ThreadMessage],
        last_activity: datetime,
        message_count: int,
    ) -> None:
        """
        Replace transcript, last_activity and message_count in one commit.
        Other columns are left untouched. Raises NotFoundError if the row is gone.
        """
        row = self._get_row(thread_id)
        if row is None:
            raise NotFoundError(thread_id)
        row.messages = encode_messages(messages)
        row.last_activity = to_naive_utc(last_activity)
        row.message_count = message_count
        self.db.commit()

    def set_active(self, thread_id: str, is_active: bool = False) -> bool:
        """
        Set is_active. Returns False when no row matched.
        Archiving is one-way: reactivating an archived context raises ValueError.
        """
        row = self._get_row(thread_id)
        if row is None:
            return False
        if is_active and not row.is_active:
            raise ValueError(f"Archived thread context {thread_id} cannot be reactivated")
        row.is_active = is_active
        self.db.commit()
        return True

    def is_active(self, thread_id: str) -> bool:
        row = self._get_row(thread_id)
        return bool(row.is_active) if row is not None else False

    def delete(self, thread_id: str) -> bool:
        deleted = (
            self.db.query(ThreadContext)
            .filter(ThreadContext.thread_id == thread_id)
            .delete(synchronize_session="fetch")
        )
        self.db.commit()
        return deleted > 0

    def count_active(self) -> int:
        return (
            self.db.query(ThreadContext)
            .filter(ThreadContext.is_active.is_(True))
            .count()
        )

    def list_by_user(self, user_id: str) -> List[ThreadContextInDB]:
        rows = self.get_user_threads_query(user_id).all()
        return [self._to_schema(row) for row in rows]

    def get_user_threads_query(self, user_id: str) -> Query:
        """Query for a user's contexts, oldest first (for pagination)."""
        return (
            self.db.query(ThreadContext)
            .filter(ThreadContext.user_id == user_id)
            .order_by(ThreadContext.created_at)
        )

    def delete_older_than(self, cutoff: datetime) -> int:
        """Delete every context whose last_activity is strictly before cutoff, active or not."""
        deleted = (
            self.db.query(ThreadContext)
            .filter(ThreadContext.last_activity < to_naive_utc(cutoff))
            .delete(synchronize_session="fetch")
        )
        self.db.commit()
        return deleted

    def _get_row(self, thread_id: str) -> Optional[ThreadContext]:
        return (
            self.db.query(ThreadContext)
            .filter(ThreadContext.thread_id == thread_id)
            .populate_existing()
            .first()
        )

    @staticmethod
    def to_summary(row: ThreadContext) -> ThreadContextSummary:
        """Row without its transcript; nothing is decoded."""
        return ThreadContextSummary(
            thread_id=row.thread_id,
            user_id=row.user_id,
            channel_id=row.channel_id,
            guild_id=row.guild_id,
            created_at=as_utc(row.created_at),
            last_activity=as_utc(row.last_activity),
            is_active=bool(row.is_active),
            message_count=row.message_count,
        )

    @staticmethod
    def _to_schema(row: ThreadContext) -> ThreadContextInDB:
        return ThreadContextInDB(
            thread_id=row.thread_id,
            user_id=row.user_id,
            channel_id=row.channel_id,
            guild_id=row.guild_id,
            messages=decode_messages(row.thread_id, row.messages),
            created_at=as_utc(row.created_at),
            last_activity=as_utc(row.last_activity),
            is_active=bool(row.is_active),
            message_count=row.message_count,
        )
