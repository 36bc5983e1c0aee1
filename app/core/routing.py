from __future__ import annotations

import enum
import time
from typing import Callable, Optional

from app.channels.base import ChatPlatform
from app.channels.envelope import InboundMessage
from app.config import Settings, get_settings
from app.constants.messages import BotMessages
from app.core.live_edit import LiveEditor
from app.exceptions import CompletionError, ContextMissingError
from app.infra.logging_config import get_logger
from app.schemas.thread_context import ThreadContextCreate
from app.services.thread_context_manager import ThreadContextManager
from app.utils.text import thread_title
from app.workers.llm import CompletionStreamer

logger = get_logger("router")


class RouteOutcome(str, enum.Enum):
    IGNORED = "ignored"
    NEW_THREAD = "new_thread"
    CONTINUED = "continued"
    CONTEXT_MISSING = "context_missing"
    FAILED = "failed"


class MessageRouter:
    """
    Decides what an inbound message means and drives the reply.

    Top-level messages that address the bot open a new thread; messages
    inside a thread continue that thread's context. Every failure ends in
    exactly one reply to the triggering message.
    """

    def __init__(
        self,
        context_manager: ThreadContextManager,
        streamer: CompletionStreamer,
        platform: ChatPlatform,
        bot_user_id: Optional[str] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._contexts = context_manager
        self._streamer = streamer
        self._platform = platform
        # Known only once the platform client has logged in.
        self.bot_user_id = bot_user_id
        self._settings = settings or get_settings()
        self._clock = clock

    async def handle_message(self, msg: InboundMessage) -> RouteOutcome:
        if msg.author_is_bot or msg.author_id == self.bot_user_id:
            return RouteOutcome.IGNORED

        if msg.is_thread:
            return await self._continue_thread(msg)

        is_mentioned = bool(self.bot_user_id) and self.bot_user_id in msg.mentioned_user_ids
        contains_id = bool(self.bot_user_id) and self.bot_user_id in msg.content
        if not (is_mentioned and contains_id):
            logger.info(
                "Message ignored - bot not properly mentioned. Direct mention: %s, Contains ID: %s",
                is_mentioned,
                contains_id,
            )
            return RouteOutcome.IGNORED

        logger.info(
            "Processing new query from %s (%s) - bot mentioned",
            msg.author_name,
            msg.author_id,
        )
        return await self._start_thread(msg)

    async def _start_thread(self, msg: InboundMessage) -> RouteOutcome:
        started = self._clock()
        try:
            logger.info(
                "Handling new query from %s: %r", msg.author_id, msg.content[:100]
            )
            thread_id = await self._platform.create_thread(
                msg.channel_id,
                msg.message_id,
                thread_title(msg.content),
                self._settings.thread_auto_archive_minutes,
            )
            context = await self._contexts.create_context(
                ThreadContextCreate(
                    thread_id=thread_id,
                    user_id=msg.author_id,
                    channel_id=msg.channel_id,
                    guild_id=msg.guild_id or "",
                )
            )
            placeholder_id = await self._platform.send_message(
                thread_id, BotMessages.THINKING
            )
            editor = LiveEditor(self._platform, thread_id, placeholder_id)
            response = await self._streamer.stream(
                context.history(), msg.content, editor.on_delta, thread_id=thread_id
            )
            await editor.finish(response)
            if not await self._contexts.record_exchange(
                thread_id, msg.content, response
            ):
                raise ContextMissingError(thread_id)
        except Exception as e:
            logger.exception(
                "Failed to handle new query from %s - Duration: %dms, Error: %s",
                msg.author_id,
                self._elapsed_ms(started),
                e,
            )
            await self._reply_failure(msg, e, BotMessages.NEW_QUERY_FAILED)
            return RouteOutcome.FAILED

        logger.info(
            "New query handled successfully - Thread: %s, Duration: %dms, Response length: %d",
            thread_id,
            self._elapsed_ms(started),
            len(response),
        )
        return RouteOutcome.NEW_THREAD

    async def _continue_thread(self, msg: InboundMessage) -> RouteOutcome:
        thread_id = msg.channel_id
        started = self._clock()
        try:
            logger.info(
                "Handling thread message from %s in thread %s", msg.author_id, thread_id
            )
            context = None
            if await self._contexts.is_active(thread_id):
                context = await self._contexts.get_context(thread_id)
            if context is None:
                logger.warning("Thread context not found for %s", thread_id)
                await self._reply_safely(msg, BotMessages.CONTEXT_NOT_FOUND)
                return RouteOutcome.CONTEXT_MISSING

            placeholder_id = await self._platform.send_message(
                thread_id, BotMessages.PROCESSING, reply_to=msg.message_id
            )
            editor = LiveEditor(
                self._platform,
                thread_id,
                placeholder_id,
                min_interval_ms=self._settings.stream_edit_interval_ms,
                clock=self._clock,
            )
            response = await self._streamer.stream(
                context.history(), msg.content, editor.on_delta, thread_id=thread_id
            )
            await editor.finish(response)
            if not await self._contexts.record_exchange(
                thread_id, msg.content, response
            ):
                raise ContextMissingError(thread_id)
        except Exception as e:
            logger.exception(
                "Failed to handle thread message from %s in %s - Duration: %dms, Error: %s",
                msg.author_id,
                thread_id,
                self._elapsed_ms(started),
                e,
            )
            await self._reply_failure(msg, e, BotMessages.THREAD_MESSAGE_FAILED)
            return RouteOutcome.FAILED

        logger.info(
            "Thread message handled successfully - Thread: %s, Duration: %dms, Message count: %d",
            thread_id,
            self._elapsed_ms(started),
            context.message_count + 2,
        )
        return RouteOutcome.CONTINUED

    async def _reply_failure(
        self, msg: InboundMessage, error: Exception, fallback: str
    ) -> None:
        text = error.user_message if isinstance(error, CompletionError) else fallback
        await self._reply_safely(msg, text)

    async def _reply_safely(self, msg: InboundMessage, text: str) -> None:
        try:
            await self._platform.send_message(
                msg.channel_id, text, reply_to=msg.message_id
            )
        except Exception as e:
            logger.error("Failed to send error reply: %s", e)

    def _elapsed_ms(self, started: float) -> int:
        return int((self._clock() - started) * 1000)
