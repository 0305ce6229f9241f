"""
Centralized logging configuration.

Modules only ever call ``get_logger(__name__)``; handlers live on the root
logger and module loggers inherit them through propagation. The library does
not touch the root logger on import. Applications call ``configure_logging``
once at startup.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from resilient_ws.config.config import Config

LOG_FORMAT = "[{asctime}] [{levelname:<8}] {name}: {message}"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for the specified module.

    Args:
        name: Usually __name__ of the calling module

    Returns:
        The logger instance; it carries no handlers of its own
    """
    return logging.getLogger(name)


def _resolve_level(value: Union[int, str]) -> int:
    if isinstance(value, str):
        return logging.getLevelName(value.upper())
    return value


def configure_logging(log_file: Optional[Union[str, Path]] = None) -> None:
    """
    Configure the root logger with a console handler and an optional file handler.

    Calling this more than once is a no-op.

    Args:
        log_file: Path of a rotating log file; defaults to ``Config.LOG_FILE``
    """
    root_logger = logging.getLogger()

    if root_logger.handlers:  # Avoid adding handlers multiple times
        return

    log_level = _resolve_level(Config.LOG_LEVEL)
    console_level = _resolve_level(Config.LOG_CONSOLE_LEVEL)
    root_logger.setLevel(min(log_level, console_level))

    formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT, style="{")

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(console_level)
    root_logger.addHandler(console_handler)

    log_file = log_file or Config.LOG_FILE
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            encoding="utf-8",
            maxBytes=Config.LOG_MAX_SIZE,
            backupCount=Config.LOG_BACKUP_COUNT,
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        root_logger.addHandler(file_handler)

    get_logger(__name__).info(
        "Root logger configured (console level %s, file %s).",
        logging.getLevelName(console_level),
        log_file or "disabled",
    )
