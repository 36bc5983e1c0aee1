"""Process-wide logging setup."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from app.config import get_settings

DEFAULT_LOGGER_NAME = "threadwise"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class LoggingConfig:
    """Configure the root logger once; later instances only adjust the level."""

    _configured = False

    def __init__(self, level: Optional[str] = None) -> None:
        level_name = (level or get_settings().log_level or "INFO").upper()
        root = logging.getLogger()
        root.setLevel(level_name)
        if not LoggingConfig._configured:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(handler)
            # discord.py is chatty at INFO (gateway heartbeats, resumes)
            logging.getLogger("discord").setLevel(logging.WARNING)
            LoggingConfig._configured = True


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Return a logger under the application namespace."""
    if name == DEFAULT_LOGGER_NAME or name.startswith(f"{DEFAULT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{DEFAULT_LOGGER_NAME}.{name}")
