from app.models.thread_context import ThreadContext

__all__ = [
    "ThreadContext",
]
