from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from app.utils.dates import utcnow


class InboundMessage(BaseModel):
    """A chat message as the router sees it; channel kind is resolved by the plugin."""

    message_id: str
    author_id: str
    author_name: str = ""
    author_is_bot: bool = False
    channel_id: str
    guild_id: Optional[str] = None
    is_thread: bool = False
    content: str = ""
    mentioned_user_ids: list[str] = []
    timestamp: datetime = Field(default_factory=utcnow)


class CommandInvocation(BaseModel):
    command: str
    user_id: str
    channel_id: str
    guild_id: Optional[str] = None
    is_thread: bool = False
    is_admin: bool = False
    options: dict[str, Any] = {}


class CommandReply(BaseModel):
    content: str
    ephemeral: bool = True
