"""
Error taxonomy.

Store errors come from the persistence layer, completion errors from the LLM
provider. Completion errors carry a fixed user-safe message; the provider's own
error text is only ever logged.
"""

from __future__ import annotations


class ThreadwiseError(Exception):
    """Base class for all application errors."""


class ConfigurationError(ThreadwiseError):
    """Required configuration is missing or invalid. Fatal at startup."""


# --- Store -------------------------------------------------------------------


class StoreError(ThreadwiseError):
    """Base class for persistence failures."""


class DuplicateKeyError(StoreError):
    def __init__(self, thread_id: str) -> None:
        super().__init__(f"Thread context already exists: {thread_id}")
        self.thread_id = thread_id


class NotFoundError(StoreError):
    def __init__(self, thread_id: str) -> None:
        super().__init__(f"Thread context not found: {thread_id}")
        self.thread_id = thread_id


class CorruptDataError(StoreError):
    """A stored transcript could not be decoded."""

    def __init__(self, thread_id: str, reason: str) -> None:
        super().__init__(f"Failed to parse thread context {thread_id}: {reason}")
        self.thread_id = thread_id


# --- Completion provider -----------------------------------------------------


class CompletionError(ThreadwiseError):
    user_message = "Failed to generate AI response. Please try again."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.user_message)
        self.detail = detail


class RateLimitedError(CompletionError):
    user_message = "Rate limit exceeded. Please try again in a moment."


class PermissionDeniedError(CompletionError):
    user_message = (
        "The language model denied access. Please contact the bot administrator."
    )


class InvalidRequestError(CompletionError):
    user_message = (
        "The request to the language model was invalid. Please rephrase and try again."
    )


class UnknownCompletionError(CompletionError):
    pass


# --- Router ------------------------------------------------------------------


class ContextMissingError(ThreadwiseError):
    """A thread message arrived for a thread with no active context."""

    def __init__(self, thread_id: str) -> None:
        super().__init__(f"No active context for thread {thread_id}")
        self.thread_id = thread_id
