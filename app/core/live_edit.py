from __future__ import annotations

import time
from typing import Callable, Optional

from app.channels.base import ChatPlatform
from app.constants.messages import BotMessages
from app.infra.logging_config import get_logger
from app.utils.text import final_text, progress_text

logger = get_logger("live_edit")


class LiveEditor:
    """
    Mirrors a streaming reply into one placeholder message.

    Every fragment is appended to the buffer. With min_interval_ms set, a
    progress edit is only attempted once more than that many milliseconds
    have passed since the previous attempt; skipped edits are dropped, not
    queued, so the next edit shows the latest buffer. Without it every
    fragment triggers an edit. Progress edit failures are logged and never
    interrupt the stream; the final edit in finish() does propagate. An
    empty reply is finished with a fixed notice instead.
    """

    def __init__(
        self,
        platform: ChatPlatform,
        channel_id: str,
        message_id: str,
        min_interval_ms: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._platform = platform
        self._channel_id = channel_id
        self._message_id = message_id
        self._min_interval_ms = min_interval_ms
        self._clock = clock
        self._last_edit = clock()
        self.buffer = ""
        self.edit_attempts = 0

    async def on_delta(self, fragment: str) -> None:
        self.buffer += fragment
        if self._min_interval_ms is not None:
            now = self._clock()
            if (now - self._last_edit) * 1000 <= self._min_interval_ms:
                return
            self._last_edit = now
        await self._edit_progress()

    async def finish(self, full_text: str) -> None:
        # Discord rejects a message edit with empty content.
        text = final_text(full_text) if full_text else BotMessages.EMPTY_REPLY
        await self._platform.edit_message(self._channel_id, self._message_id, text)

    async def _edit_progress(self) -> None:
        self.edit_attempts += 1
        try:
            await self._platform.edit_message(
                self._channel_id, self._message_id, progress_text(self.buffer)
            )
        except Exception as e:
            logger.warning("Failed to update streaming message: %s", e)
