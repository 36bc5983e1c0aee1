from __future__ import annotations

from typing import Dict

from app.channels.base import ChannelPlugin
from app.infra.logging_config import get_logger

logger = get_logger("registry")


class PluginRegistry:
    def __init__(self) -> None:
        self._channels: Dict[str, ChannelPlugin] = {}

    def register_channel(self, plugin: ChannelPlugin) -> None:
        if plugin.id in self._channels:
            raise ValueError(f"Channel plugin already registered: {plugin.id}")
        self._channels[plugin.id] = plugin

    async def start_all(self) -> None:
        for plugin in self._channels.values():
            await plugin.start()
            logger.info("Channel plugin started: %s", plugin.id)

    async def stop_all(self) -> None:
        """Stop every plugin; one failing stop does not keep the others running."""
        for plugin in reversed(list(self._channels.values())):
            try:
                await plugin.stop()
            except Exception:
                logger.exception("Failed to stop channel plugin %s", plugin.id)
            else:
                logger.info("Channel plugin stopped: %s", plugin.id)
