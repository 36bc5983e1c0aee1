"""ThreadContext model: one row per platform thread, transcript stored as encoded text."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text

from app.db import Base
from app.utils.dates import to_naive_utc, utcnow


def _naive_utcnow():
    return to_naive_utc(utcnow())


class ThreadContext(Base):
    """
    Conversation state for one thread. thread_id is the platform's thread id.

    messages holds the JSON-encoded transcript; message_count is maintained
    alongside it and always equals the transcript length.
    """

    __tablename__ = "thread_contexts"

    __table_args__ = (
        Index("ix_thread_contexts_user_id", "user_id"),
        Index("ix_thread_contexts_last_activity", "last_activity"),
    )

    thread_id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False)
    channel_id = Column(String(64), nullable=False)
    guild_id = Column(String(64), nullable=False, default="")
    messages = Column(Text, nullable=False, default="[]")
    created_at = Column(DateTime, nullable=False, default=_naive_utcnow)
    last_activity = Column(DateTime, nullable=False, default=_naive_utcnow)
    is_active = Column(Boolean, nullable=False, default=True)
    message_count = Column(Integer, nullable=False, default=0)
