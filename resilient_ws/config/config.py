"""
Environment configuration module.

This module defines the Config class, which centralizes the settings a
process needs to run a client from the environment: the server URL, the
defaults for the reconnecting client, and logging. Values are loaded from
environment variables (and a ``.env`` file, if present) and validated on
import.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Tuple, Union

from dotenv import load_dotenv

from resilient_ws.exceptions import ConfigurationError

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}.", original_error=e
        ) from e


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "" or raw.strip().lower() in ("inf", "none"):
        return None  # Unbounded
    return _env_int(name, 0)


def _env_log_level(name: str, default: int) -> Union[int, str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    raw = raw.strip()
    if raw.isdigit():
        return int(raw)  # Numeric level, e.g. "10"
    return raw


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_protocols(name: str) -> Optional[Tuple[str, ...]]:
    raw = os.getenv(name)
    if not raw:
        return None
    protocols = tuple(p.strip() for p in raw.split(",") if p.strip())
    return protocols or None


class Config:
    """
    Centralized configuration settings loaded from the environment.

    The client itself never reads this class implicitly; callers opt in via
    ``ClientOptions.from_config()`` or by reading the attributes directly,
    as ``main.py`` does.
    """

    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent

    # --- Connection Settings ---
    WS_SERVER_URL: str = os.getenv("WS_SERVER_URL", "ws://localhost:8080/ws")
    WS_PROTOCOLS: Optional[Tuple[str, ...]] = _env_protocols("WS_PROTOCOLS")
    WS_AUTO_CONNECT: bool = _env_bool("WS_AUTO_CONNECT", True)
    WS_CONNECT_TIMEOUT_MS: int = _env_int("WS_CONNECT_TIMEOUT_MS", 20_000)
    WS_MAX_RECONNECT_ATTEMPTS: Optional[int] = _env_optional_int(
        "WS_MAX_RECONNECT_ATTEMPTS"
    )
    WS_RECONNECT_DELAY_MS: int = _env_int("WS_RECONNECT_DELAY_MS", 5_000)

    # --- Logging Configuration ---
    LOG_LEVEL: Union[int, str] = _env_log_level("LOG_LEVEL", logging.INFO)
    LOG_CONSOLE_LEVEL: Union[int, str] = _env_log_level("LOG_CONSOLE_LEVEL", logging.INFO)
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE")  # No file logging when unset
    LOG_MAX_SIZE: int = _env_int("LOG_MAX_SIZE", 5 * 1024 * 1024)
    LOG_BACKUP_COUNT: int = _env_int("LOG_BACKUP_COUNT", 3)

    @classmethod
    def validate_server_url(cls) -> None:
        """Validate WS_SERVER_URL.

        Only processes that connect to ``WS_SERVER_URL`` call this; the
        library itself never reads it.

        Raises:
            ConfigurationError: If the URL is not a ws:// or wss:// URL.
        """
        if not cls.WS_SERVER_URL.startswith(("ws://", "wss://")):
            raise ConfigurationError(
                f"WS_SERVER_URL must be a ws:// or wss:// URL, got {cls.WS_SERVER_URL!r}."
            )

    @classmethod
    def validate(cls) -> None:
        """Validate the client defaults and logging settings.

        Called automatically when the module is imported.

        Raises:
            ConfigurationError: If a setting is missing or invalid.
        """
        if cls.WS_CONNECT_TIMEOUT_MS < 0:
            raise ConfigurationError("WS_CONNECT_TIMEOUT_MS must not be negative.")
        if cls.WS_RECONNECT_DELAY_MS < 0:
            raise ConfigurationError("WS_RECONNECT_DELAY_MS must not be negative.")
        if (
            cls.WS_MAX_RECONNECT_ATTEMPTS is not None
            and cls.WS_MAX_RECONNECT_ATTEMPTS < 0
        ):
            raise ConfigurationError("WS_MAX_RECONNECT_ATTEMPTS must not be negative.")

        if cls.LOG_MAX_SIZE <= 0:
            raise ConfigurationError("LOG_MAX_SIZE must be a positive int.")
        if cls.LOG_BACKUP_COUNT < 0:
            raise ConfigurationError("LOG_BACKUP_COUNT must not be negative.")

        for name in ("LOG_LEVEL", "LOG_CONSOLE_LEVEL"):
            value = getattr(cls, name)
            if isinstance(value, str):
                # Check if the string is a valid log level name
                if not isinstance(logging.getLevelName(value.upper()), int):
                    raise ConfigurationError(f"Invalid log level string for {name}: '{value}'")
            elif not isinstance(value, int):
                raise ConfigurationError(
                    f"{name} must be a str or int, but got {type(value).__name__}."
                )


Config.validate()  # Validate configuration on import
