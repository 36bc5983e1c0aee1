from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.config import Settings


@dataclass
class DiscordConfig:
    bot_token: str
    dev_guild_id: Optional[str] = None  # sync slash commands to this guild only

    @classmethod
    def from_settings(cls, settings: Settings) -> "DiscordConfig":
        if not settings.discord_bot_token:
            raise ValueError("DISCORD_BOT_TOKEN is not set")
        return cls(
            bot_token=settings.discord_bot_token,
            dev_guild_id=settings.discord_dev_guild_id,
        )
