from app.services.thread_context_manager import ThreadContextManager
from app.services.thread_context_service import ThreadContextService

__all__ = [
    "ThreadContextManager",
    "ThreadContextService",
]
