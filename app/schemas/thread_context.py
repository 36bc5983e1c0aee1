"""Pydantic schemas for ThreadContext and its transcript."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, TypeAdapter

from app.utils.dates import utcnow

MessageRole = Literal["user", "assistant"]


class ThreadMessage(BaseModel):
    """One finalized turn of a transcript."""

    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utcnow)


TRANSCRIPT_ADAPTER = TypeAdapter(list[ThreadMessage])


class ThreadContextCreate(BaseModel):
    """Origin metadata for a new thread context."""

    thread_id: str
    user_id: str
    channel_id: str
    guild_id: str = ""


class ThreadContextBase(BaseModel):
    thread_id: str
    user_id: str
    channel_id: str
    guild_id: str
    created_at: datetime
    last_activity: datetime
    is_active: bool
    message_count: int


class ThreadContextInDB(ThreadContextBase):
    """Thread context with its decoded transcript."""

    messages: list[ThreadMessage] = Field(default_factory=list)

    @property
    def total_characters(self) -> int:
        return sum(len(m.content) for m in self.messages)

    def history(self) -> list[dict[str, str]]:
        """Transcript as ordered role/content pairs for the completion provider."""
        return [{"role": m.role, "content": m.content} for m in self.messages]


class ThreadContextRead(ThreadContextInDB):
    """Thread context for API responses."""

    pass


class ThreadContextSummary(ThreadContextBase):
    """Thread context row for list endpoints; transcript omitted."""

    pass


class ThreadStats(BaseModel):
    active_threads: int
