"""
Slash commands over the thread context lifecycle.

Each command turns one CommandInvocation into one ephemeral CommandReply.
A command that fails logs the error and replies with its own failure
notice; nothing propagates to the platform plugin.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from app.channels.base import ChatPlatform
from app.channels.envelope import CommandInvocation, CommandReply
from app.config import Settings, get_settings
from app.constants.messages import BotMessages
from app.services.thread_context_manager import ThreadContextManager
from app.utils.text import estimate_tokens


class BaseThreadCommand:
    name: str = ""
    description: str = ""
    failure_message: str = BotMessages.COMMAND_FAILED

    def __init__(
        self,
        context_manager: ThreadContextManager,
        platform: Optional[ChatPlatform] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.context_manager = context_manager
        self.platform = platform
        self.settings = settings or get_settings()
        self.logger = logging.getLogger(__name__)

    async def execute(self, invocation: CommandInvocation) -> CommandReply:
        try:
            return await self.run(invocation)
        except Exception as e:
            self.logger.exception("Failed to handle %s command: %s", self.name, e)
            return CommandReply(content=self.failure_message)

    async def run(self, invocation: CommandInvocation) -> CommandReply:
        raise NotImplementedError

    async def after_reply(self, invocation: CommandInvocation) -> None:
        """Hook for work that must happen once the reply has been delivered."""
        return None


class CloseThreadCommand(BaseThreadCommand):
    name = "close-thread"
    description = "Closes the current thread and archives the conversation"
    failure_message = BotMessages.CLOSE_FAILED

    async def run(self, invocation: CommandInvocation) -> CommandReply:
        if not invocation.is_thread:
            return CommandReply(content=BotMessages.THREAD_ONLY)

        await self.context_manager.archive(invocation.channel_id)
        reason = invocation.options.get("reason")
        if reason:
            return CommandReply(
                content=BotMessages.THREAD_CLOSED_WITH_REASON.format(reason=reason)
            )
        return CommandReply(content=BotMessages.THREAD_CLOSED)

    async def after_reply(self, invocation: CommandInvocation) -> None:
        if not invocation.is_thread or self.platform is None:
            return
        reason = invocation.options.get("reason") or BotMessages.DEFAULT_CLOSE_REASON
        try:
            await self.platform.set_thread_archived(
                invocation.channel_id, True, reason
            )
        except Exception as e:
            self.logger.error(
                "Failed to archive platform thread %s: %s", invocation.channel_id, e
            )
            return
        self.logger.info(
            "Thread %s closed by user %s with reason: %s",
            invocation.channel_id,
            invocation.user_id,
            reason,
        )


class NewThreadCommand(BaseThreadCommand):
    name = "new-thread"
    description = "Explains how to start a new conversation thread"

    async def run(self, invocation: CommandInvocation) -> CommandReply:
        if invocation.is_thread:
            return CommandReply(content=BotMessages.ALREADY_IN_THREAD)
        return CommandReply(content=BotMessages.NEW_THREAD_GUIDANCE)


class ContextSizeCommand(BaseThreadCommand):
    name = "context-size"
    description = "Shows the current thread context size and statistics"
    failure_message = BotMessages.CONTEXT_SIZE_FAILED

    async def run(self, invocation: CommandInvocation) -> CommandReply:
        if not invocation.is_thread:
            return CommandReply(content=BotMessages.THREAD_ONLY)

        context = await self.context_manager.get_context(invocation.channel_id)
        if context is None:
            return CommandReply(content=BotMessages.NO_CONTEXT)

        self.logger.info(
            "Context size requested for thread %s by user %s",
            invocation.channel_id,
            invocation.user_id,
        )
        return CommandReply(
            content=BotMessages.CONTEXT_SIZE.format(
                message_count=context.message_count,
                total_characters=context.total_characters,
                estimated_tokens=estimate_tokens(context.total_characters),
                created=int(context.created_at.timestamp()),
                last_activity=int(context.last_activity.timestamp()),
                status=(
                    BotMessages.STATUS_ACTIVE
                    if context.is_active
                    else BotMessages.STATUS_INACTIVE
                ),
            )
        )


class BotStatsCommand(BaseThreadCommand):
    name = "bot-stats"
    description = "Show bot statistics and active threads"
    failure_message = BotMessages.BOT_STATS_FAILED

    async def run(self, invocation: CommandInvocation) -> CommandReply:
        active_threads = await self.context_manager.active_count()
        user_threads = await self.context_manager.threads_for_user(invocation.user_id)
        return CommandReply(
            content=BotMessages.BOT_STATS.format(
                active_threads=active_threads,
                user_threads=len(user_threads),
                user_active_threads=sum(1 for t in user_threads if t.is_active),
            )
        )


class CleanupThreadsCommand(BaseThreadCommand):
    name = "cleanup-threads"
    description = "Clean up old inactive threads (Admin only)"
    failure_message = BotMessages.CLEANUP_FAILED

    async def run(self, invocation: CommandInvocation) -> CommandReply:
        if not invocation.is_admin:
            return CommandReply(content=BotMessages.ADMIN_ONLY)

        removed = await self.context_manager.cleanup(
            self.settings.thread_cleanup_max_age_hours
        )
        self.logger.info(
            "Cleanup performed by %s: removed %d threads", invocation.user_id, removed
        )
        return CommandReply(content=BotMessages.CLEANUP_DONE.format(removed=removed))


COMMAND_CLASSES = (
    CloseThreadCommand,
    NewThreadCommand,
    ContextSizeCommand,
    BotStatsCommand,
    CleanupThreadsCommand,
)


def build_thread_commands(
    context_manager: ThreadContextManager,
    platform: Optional[ChatPlatform] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, BaseThreadCommand]:
    return {
        cls.name: cls(context_manager, platform=platform, settings=settings)
        for cls in COMMAND_CLASSES
    }
