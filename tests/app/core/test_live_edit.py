"""Tests for LiveEditor throttling and clipping."""

import pytest

from app.constants.messages import BotMessages
from app.core.live_edit import LiveEditor
from tests.fakes import FakeClock, FakePlatform


@pytest.mark.asyncio
async def test_unthrottled_editor_edits_on_every_fragment():
    platform = FakePlatform()
    editor = LiveEditor(platform, "thread-1", "msg-1")

    for fragment in ["a", "b", "c"]:
        await editor.on_delta(fragment)

    assert [text for _, _, text in platform.edits] == ["a ⏳", "ab ⏳", "abc ⏳"]


@pytest.mark.asyncio
async def test_throttled_editor_skips_edits_inside_interval():
    """Skipped edits are dropped; the next allowed edit shows the whole buffer."""
    platform = FakePlatform()
    clock = FakeClock(start=10.0)
    editor = LiveEditor(platform, "thread-1", "msg-1", min_interval_ms=50, clock=clock)

    clock.advance(0.010)
    await editor.on_delta("a")  # 10ms since start: skipped
    clock.advance(0.051)
    await editor.on_delta("b")  # 61ms: edit
    clock.advance(0.020)
    await editor.on_delta("c")  # 20ms since last edit: skipped
    clock.advance(0.020)
    await editor.on_delta("d")  # 40ms: skipped
    clock.advance(0.100)
    await editor.on_delta("e")  # 140ms: edit

    assert [text for _, _, text in platform.edits] == ["ab ⏳", "abcde ⏳"]
    assert editor.buffer == "abcde"


@pytest.mark.asyncio
async def test_progress_edit_failure_is_swallowed():
    platform = FakePlatform(fail_first_edits=2)
    editor = LiveEditor(platform, "thread-1", "msg-1")

    await editor.on_delta("a")
    await editor.on_delta("b")
    await editor.on_delta("c")

    assert editor.edit_attempts == 3
    assert [text for _, _, text in platform.edits] == ["abc ⏳"]


@pytest.mark.asyncio
async def test_progress_edit_is_clipped():
    platform = FakePlatform()
    editor = LiveEditor(platform, "thread-1", "msg-1")

    await editor.on_delta("z" * 2500)

    assert platform.edits[-1][2] == "z" * 1900 + "... ⏳"


@pytest.mark.asyncio
async def test_finish_writes_clipped_final_text():
    platform = FakePlatform()
    editor = LiveEditor(platform, "thread-1", "msg-1")

    await editor.finish("w" * 2100)

    channel_id, message_id, text = platform.edits[-1]
    assert (channel_id, message_id) == ("thread-1", "msg-1")
    assert len(text) == 2000
    assert text.endswith("...")


@pytest.mark.asyncio
async def test_finish_propagates_edit_failure():
    platform = FakePlatform(fail_first_edits=1)
    editor = LiveEditor(platform, "thread-1", "msg-1")

    with pytest.raises(RuntimeError):
        await editor.finish("done")


@pytest.mark.asyncio
async def test_finish_with_empty_reply_writes_notice():
    platform = FakePlatform()
    editor = LiveEditor(platform, "thread-1", "msg-1")

    await editor.finish("")

    assert platform.edits == [("thread-1", "msg-1", BotMessages.EMPTY_REPLY)]
