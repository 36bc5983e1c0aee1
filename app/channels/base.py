from __future__ import annotations

from typing import Optional, Protocol


class ChatPlatform(Protocol):
    """Narrow capability surface the router and commands need from a chat platform."""

    async def send_message(
        self, channel_id: str, text: str, reply_to: Optional[str] = None
    ) -> str:
        """Post text into a channel or thread; returns the new message id."""
        ...

    async def edit_message(self, channel_id: str, message_id: str, text: str) -> None: ...

    async def create_thread(
        self,
        channel_id: str,
        message_id: str,
        title: str,
        auto_archive_minutes: int,
    ) -> str:
        """Open a thread anchored to a message; returns the thread id."""
        ...

    async def set_thread_archived(
        self, thread_id: str, archived: bool, reason: Optional[str] = None
    ) -> None: ...


class ChannelPlugin(ChatPlatform, Protocol):
    id: str

    async def start(self) -> None: ...
    async def stop(self) -> None: ...
