"""Discord channel plugin using discord.py (v2)."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any, Dict, Optional

import discord
from discord import app_commands

from app.channels.envelope import CommandInvocation, InboundMessage
from app.commands.thread_commands import BaseThreadCommand
from app.core.routing import MessageRouter
from app.infra.logging_config import get_logger
from .config import DiscordConfig

logger = get_logger("discord")


class DiscordPlugin:
    id = "discord"

    def __init__(self, cfg: DiscordConfig) -> None:
        self.cfg = cfg
        intents = discord.Intents.default()
        intents.guilds = True
        intents.messages = True
        intents.message_content = True
        self._client = discord.Client(intents=intents)
        self._tree = app_commands.CommandTree(self._client)
        self._client.event(self.on_ready)
        self._client.event(self.on_message)

        self.router: Optional[MessageRouter] = None
        self.commands: Dict[str, BaseThreadCommand] = {}
        self._connect_task: Optional[asyncio.Task[None]] = None
        self._handler_tasks: set[asyncio.Task[Any]] = set()
        self._commands_synced = False

    def attach(
        self, router: MessageRouter, commands: Dict[str, BaseThreadCommand]
    ) -> None:
        self.router = router
        self.commands = commands
        self._register_commands()

    async def start(self) -> None:
        # login raises LoginFailure on a bad token, before anything is scheduled
        await self._client.login(self.cfg.bot_token)
        self._connect_task = asyncio.create_task(self._client.connect())

    async def stop(self) -> None:
        await self._client.close()
        if self._connect_task is not None:
            self._connect_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._connect_task
        for task in list(self._handler_tasks):
            task.cancel()

    # --- events ------------------------------------------------------------

    async def on_ready(self) -> None:
        user = self._client.user
        if user is None:
            return
        logger.info("Bot logged in as %s (%s)", user, user.id)
        if self.router is not None:
            self.router.bot_user_id = str(user.id)
        if not self._commands_synced:
            await self._sync_commands()
            self._commands_synced = True

    async def on_message(self, message: discord.Message) -> None:
        if self.router is None:
            return
        inbound = self._to_inbound(message)
        task = asyncio.create_task(self.router.handle_message(inbound))
        self._handler_tasks.add(task)
        task.add_done_callback(self._handler_tasks.discard)

    def _to_inbound(self, message: discord.Message) -> InboundMessage:
        return InboundMessage(
            message_id=str(message.id),
            author_id=str(message.author.id),
            author_name=message.author.name,
            author_is_bot=message.author.bot,
            channel_id=str(message.channel.id),
            guild_id=str(message.guild.id) if message.guild else None,
            is_thread=isinstance(message.channel, discord.Thread),
            content=message.content,
            mentioned_user_ids=[str(u.id) for u in message.mentions],
            timestamp=message.created_at,
        )

    # --- slash commands ------------------------------------------------------

    def _register_commands(self) -> None:
        self._tree.clear_commands(guild=None)
        for name, command in self.commands.items():
            if name == "close-thread":
                callback = self._close_thread_callback()
            else:
                callback = self._plain_callback(name)
            self._tree.add_command(
                app_commands.Command(
                    name=name, description=command.description, callback=callback
                )
            )

    def _plain_callback(self, name: str):
        async def callback(interaction: discord.Interaction) -> None:
            await self._dispatch_command(interaction, name, {})

        return callback

    def _close_thread_callback(self):
        @app_commands.describe(reason="Reason for closing the thread")
        async def callback(
            interaction: discord.Interaction, reason: Optional[str] = None
        ) -> None:
            await self._dispatch_command(interaction, "close-thread", {"reason": reason})

        return callback

    async def _sync_commands(self) -> None:
        if self.cfg.dev_guild_id:
            guild = discord.Object(id=int(self.cfg.dev_guild_id))
            self._tree.copy_global_to(guild=guild)
            synced = await self._tree.sync(guild=guild)
            logger.info(
                "Synced %d commands to dev guild %s", len(synced), self.cfg.dev_guild_id
            )
        else:
            synced = await self._tree.sync()
            logger.info("Synced %d global commands", len(synced))

    async def _dispatch_command(
        self, interaction: discord.Interaction, name: str, options: dict[str, Any]
    ) -> None:
        command = self.commands.get(name)
        if command is None:
            logger.warning("No handler registered for command %s", name)
            return
        invocation = CommandInvocation(
            command=name,
            user_id=str(interaction.user.id),
            channel_id=str(interaction.channel_id),
            guild_id=str(interaction.guild_id) if interaction.guild_id else None,
            is_thread=isinstance(interaction.channel, discord.Thread),
            is_admin=interaction.permissions.administrator,
            options={k: v for k, v in options.items() if v is not None},
        )
        reply = await command.execute(invocation)
        await interaction.response.send_message(
            reply.content, ephemeral=reply.ephemeral
        )
        await command.after_reply(invocation)

    # --- ChatPlatform --------------------------------------------------------

    async def _channel(self, channel_id: str) -> Any:
        channel = self._client.get_channel(int(channel_id))
        if channel is None:
            channel = await self._client.fetch_channel(int(channel_id))
        return channel

    async def send_message(
        self, channel_id: str, text: str, reply_to: Optional[str] = None
    ) -> str:
        channel = await self._channel(channel_id)
        if reply_to:
            sent = await channel.get_partial_message(int(reply_to)).reply(text)
        else:
            sent = await channel.send(text)
        return str(sent.id)

    async def edit_message(self, channel_id: str, message_id: str, text: str) -> None:
        channel = await self._channel(channel_id)
        await channel.get_partial_message(int(message_id)).edit(content=text)

    async def create_thread(
        self,
        channel_id: str,
        message_id: str,
        title: str,
        auto_archive_minutes: int,
    ) -> str:
        channel = await self._channel(channel_id)
        thread = await channel.get_partial_message(int(message_id)).create_thread(
            name=title, auto_archive_duration=auto_archive_minutes
        )
        logger.info("Created thread %s for message %s", thread.id, message_id)
        return str(thread.id)

    async def set_thread_archived(
        self, thread_id: str, archived: bool, reason: Optional[str] = None
    ) -> None:
        thread = await self._channel(thread_id)
        await thread.edit(archived=archived, reason=reason)
