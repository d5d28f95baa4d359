"""
Process-wide logging setup.

Configures the root logger once from Settings.log_level. Relayed message
contents must never be passed to these loggers; log identifiers and kinds only.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from app.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ROOT_LOGGER_NAME = "anonchat"


class LoggingConfig:
    """Install a stream handler on the root logger. Safe to instantiate more than once."""

    _configured = False

    def __init__(self, level: Optional[str] = None) -> None:
        if LoggingConfig._configured:
            return
        settings = get_settings()
        level_name = (level or settings.log_level or "INFO").upper()
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root = logging.getLogger()
        root.setLevel(getattr(logging, level_name, logging.INFO))
        root.addHandler(handler)
        # httpx logs every Bot API request URL, which embeds the bot token
        logging.getLogger("httpx").setLevel(logging.WARNING)
        LoggingConfig._configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger namespaced under the application logger."""
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
