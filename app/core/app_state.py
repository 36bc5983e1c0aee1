from app.core.registry import PluginRegistry
from app.services.thread_context_manager import ThreadContextManager


class AppState:
    def __init__(self) -> None:
        self.registry = PluginRegistry()
        self.context_manager = ThreadContextManager()


state = AppState()
