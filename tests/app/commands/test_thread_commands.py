"""Tests for the thread slash commands."""

import pytest

from app.channels.envelope import CommandInvocation
from app.commands.thread_commands import (
    BotStatsCommand,
    CleanupThreadsCommand,
    CloseThreadCommand,
    ContextSizeCommand,
    NewThreadCommand,
    build_thread_commands,
)
from app.constants.messages import BotMessages
from app.schemas.thread_context import ThreadMessage
from app.services.thread_context_manager import ThreadContextManager
from tests.fakes import FakePlatform


def _invocation(command, channel_id="channel-1", is_thread=False, is_admin=False, **options):
    return CommandInvocation(
        command=command,
        user_id="user-1",
        channel_id=channel_id,
        guild_id="guild-1",
        is_thread=is_thread,
        is_admin=is_admin,
        options=options,
    )


class _FailingCleanupManager(ThreadContextManager):
    async def cleanup(self, max_age_hours):
        raise RuntimeError("disk I/O error")


def test_build_thread_commands_registers_all_five(context_manager):
    commands = build_thread_commands(context_manager)
    assert set(commands) == {
        "close-thread",
        "new-thread",
        "context-size",
        "bot-stats",
        "cleanup-threads",
    }
    assert all(cmd.description for cmd in commands.values())


@pytest.mark.asyncio
async def test_close_thread_archives_context_then_platform_thread(
    context_manager, setup_thread_context
):
    platform = FakePlatform()
    command = CloseThreadCommand(context_manager, platform=platform)
    invocation = _invocation(
        "close-thread", channel_id=setup_thread_context.thread_id, is_thread=True
    )

    reply = await command.execute(invocation)
    assert reply.content == BotMessages.THREAD_CLOSED
    assert reply.ephemeral is True
    assert await context_manager.is_active(setup_thread_context.thread_id) is False
    assert platform.archived == []

    await command.after_reply(invocation)
    assert platform.archived == [
        (setup_thread_context.thread_id, True, BotMessages.DEFAULT_CLOSE_REASON)
    ]


@pytest.mark.asyncio
async def test_close_thread_with_reason(context_manager, setup_thread_context):
    platform = FakePlatform()
    command = CloseThreadCommand(context_manager, platform=platform)
    invocation = _invocation(
        "close-thread",
        channel_id=setup_thread_context.thread_id,
        is_thread=True,
        reason="done here",
    )

    reply = await command.execute(invocation)
    await command.after_reply(invocation)

    assert reply.content == "✅ Thread closed (Reason: done here)."
    assert platform.archived[0][2] == "done here"


@pytest.mark.asyncio
async def test_close_thread_outside_thread_is_rejected(context_manager):
    platform = FakePlatform()
    command = CloseThreadCommand(context_manager, platform=platform)
    invocation = _invocation("close-thread")

    reply = await command.execute(invocation)
    await command.after_reply(invocation)

    assert reply.content == BotMessages.THREAD_ONLY
    assert platform.archived == []


@pytest.mark.asyncio
async def test_new_thread_gives_guidance_only(context_manager):
    command = NewThreadCommand(context_manager)

    outside = await command.execute(_invocation("new-thread"))
    inside = await command.execute(_invocation("new-thread", is_thread=True))

    assert outside.content == BotMessages.NEW_THREAD_GUIDANCE
    assert inside.content == BotMessages.ALREADY_IN_THREAD
    assert await context_manager.active_count() == 0


@pytest.mark.asyncio
async def test_context_size_reports_transcript_totals(context_manager, make_thread_context, fixed_now):
    context = make_thread_context(
        messages=[
            ThreadMessage(role="user", content="abcde", timestamp=fixed_now),
            ThreadMessage(role="assistant", content="x" * 2001, timestamp=fixed_now),
        ]
    )
    command = ContextSizeCommand(context_manager)

    reply = await command.execute(
        _invocation("context-size", channel_id=context.thread_id, is_thread=True)
    )

    assert "• Messages: 2" in reply.content
    assert "• Total characters: 2,006" in reply.content
    assert "• Estimated tokens: 502" in reply.content
    assert f"<t:{int(context.created_at.timestamp())}:R>" in reply.content
    assert f"<t:{int(context.last_activity.timestamp())}:R>" in reply.content
    assert BotMessages.STATUS_ACTIVE in reply.content


@pytest.mark.asyncio
async def test_context_size_without_context(context_manager):
    command = ContextSizeCommand(context_manager)
    reply = await command.execute(
        _invocation("context-size", channel_id="missing", is_thread=True)
    )
    assert reply.content == BotMessages.NO_CONTEXT


@pytest.mark.asyncio
async def test_context_size_outside_thread(context_manager):
    reply = await ContextSizeCommand(context_manager).execute(_invocation("context-size"))
    assert reply.content == BotMessages.THREAD_ONLY


@pytest.mark.asyncio
async def test_bot_stats(context_manager, make_thread_context):
    make_thread_context(user_id="user-1")
    make_thread_context(user_id="user-1", is_active=False)
    make_thread_context(user_id="user-2")

    reply = await BotStatsCommand(context_manager).execute(_invocation("bot-stats"))

    assert "• Active threads: 2" in reply.content
    assert "• Your threads: 2" in reply.content
    assert "• Your active threads: 1" in reply.content


@pytest.mark.asyncio
async def test_cleanup_requires_admin(context_manager, make_thread_context):
    """A non-administrator gets the permission notice and nothing is deleted."""
    old = make_thread_context(age_hours=100)

    reply = await CleanupThreadsCommand(context_manager).execute(
        _invocation("cleanup-threads", is_admin=False)
    )

    assert reply.content == BotMessages.ADMIN_ONLY
    assert reply.ephemeral is True
    assert await context_manager.get_context(old.thread_id) is not None


@pytest.mark.asyncio
async def test_cleanup_removes_contexts_older_than_a_day(context_manager, make_thread_context):
    old = make_thread_context(age_hours=30)
    recent = make_thread_context(age_hours=2)

    reply = await CleanupThreadsCommand(context_manager).execute(
        _invocation("cleanup-threads", is_admin=True)
    )

    assert reply.content == "✅ Cleaned up 1 old thread contexts."
    assert await context_manager.get_context(old.thread_id) is None
    assert await context_manager.get_context(recent.thread_id) is not None


@pytest.mark.asyncio
async def test_cleanup_failure_replies_with_notice():
    command = CleanupThreadsCommand(_FailingCleanupManager())
    reply = await command.execute(_invocation("cleanup-threads", is_admin=True))
    assert reply.content == BotMessages.CLEANUP_FAILED
