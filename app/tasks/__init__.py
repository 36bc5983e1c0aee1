from app.tasks.thread_cleanup_task import (
    run_thread_cleanup_once,
    start_thread_cleanup,
    stop_thread_cleanup,
    thread_cleanup_loop,
)

__all__ = [
    "run_thread_cleanup_once",
    "start_thread_cleanup",
    "stop_thread_cleanup",
    "thread_cleanup_loop",
]
