from __future__ import annotations

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from app.channels.plugins.discord.config import DiscordConfig
from app.channels.plugins.discord.plugin import DiscordPlugin
from app.commands.thread_commands import build_thread_commands
from app.config import get_settings
from app.core.app_state import state
from app.core.routing import MessageRouter
from app.db import init_db
from app.infra.logging_config import LoggingConfig, get_logger
from app.routers import system, threads_router
from app.tasks.thread_cleanup_task import start_thread_cleanup, stop_thread_cleanup
from app.workers.llm import build_completion_streamer_from_env

logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    LoggingConfig(settings.log_level)
    # Missing token or Vertex config aborts startup before anything serves.
    settings.require_runtime()
    init_db()

    streamer = build_completion_streamer_from_env(settings)
    plugin = DiscordPlugin(DiscordConfig.from_settings(settings))
    router = MessageRouter(
        state.context_manager, streamer, plugin, settings=settings
    )
    plugin.attach(
        router,
        build_thread_commands(state.context_manager, platform=plugin, settings=settings),
    )
    state.registry.register_channel(plugin)
    await state.registry.start_all()

    cleanup_task = start_thread_cleanup(
        state.context_manager,
        settings.thread_cleanup_interval_minutes,
        settings.thread_cleanup_max_age_hours,
    )
    logger.info("%s started (env=%s)", settings.app_name, settings.environment)
    try:
        yield
    finally:
        await stop_thread_cleanup(cleanup_task)
        await state.registry.stop_all()
        logger.info("%s stopped", settings.app_name)


def create_app(testing: bool = False) -> FastAPI:
    """Build the app. With testing=True the bot and model are not started."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        description="Discord thread assistant backed by Vertex AI",
        version="0.1.0",
        lifespan=None if testing else lifespan,
    )
    app.include_router(system.router)
    app.include_router(threads_router.router)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=get_settings().port)
