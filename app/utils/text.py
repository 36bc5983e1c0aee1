"""Clipping helpers for text shown on the chat platform."""

from __future__ import annotations

import math

# Hard ceiling of a Discord message.
MESSAGE_LIMIT = 2000
PROGRESS_LIMIT = 1900
TITLE_LIMIT = 50

ELLIPSIS = "..."
PROGRESS_MARKER = " ⏳"
TITLE_PREFIX = "Query: "


def clip(text: str, limit: int) -> str:
    """Return text unchanged if it fits, else its first `limit` chars plus an ellipsis."""
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


def thread_title(prompt: str) -> str:
    return TITLE_PREFIX + clip(prompt, TITLE_LIMIT)


def progress_text(buffer: str) -> str:
    if len(buffer) > PROGRESS_LIMIT:
        return buffer[:PROGRESS_LIMIT] + ELLIPSIS + PROGRESS_MARKER
    return buffer + PROGRESS_MARKER


def final_text(text: str) -> str:
    if len(text) <= MESSAGE_LIMIT:
        return text
    return text[: MESSAGE_LIMIT - len(ELLIPSIS)] + ELLIPSIS


def estimate_tokens(total_characters: int) -> int:
    """Rough token estimate: four characters per token over the whole transcript."""
    return math.ceil(total_characters / 4)
