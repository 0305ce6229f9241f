"""
Client options for the reconnecting WebSocket client.

``ClientOptions`` is immutable. Callers build it by merging overrides onto
the defaults, either with Python field names or with the camelCase names used
by browser-side reconnecting clients (``autoConnect``, ``timeout``,
``reconnectionAttempts``, ``reconnectionDelay``, ...).
"""

import dataclasses
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from resilient_ws.config.config import Config
from resilient_ws.exceptions import ConfigurationError

# Alternative spellings accepted by from_overrides().
OPTION_ALIASES: Dict[str, str] = {
    "autoConnect": "auto_connect",
    "timeout": "connect_timeout_ms",
    "connectTimeoutMs": "connect_timeout_ms",
    "reconnectionAttempts": "max_reconnect_attempts",
    "maxReconnectAttempts": "max_reconnect_attempts",
    "reconnectionDelay": "reconnect_delay_ms",
    "reconnectDelay": "reconnect_delay_ms",
    "reconnectDelayMs": "reconnect_delay_ms",
}


def _normalize_protocols(
    protocols: Union[str, Iterable[str], None]
) -> Optional[Tuple[str, ...]]:
    if protocols is None:
        return None
    if isinstance(protocols, str):
        return (protocols,)
    return tuple(protocols)


@dataclass(frozen=True)
class ClientOptions:
    """
    Immutable client configuration.

    Attributes:
        auto_connect: Connect as soon as the client is constructed
        protocols: Subprotocols offered during the handshake
        connect_timeout_ms: Time a pending connection has to reach OPEN
        max_reconnect_attempts: Consecutive reconnects allowed; None is unbounded
        reconnect_delay_ms: Fixed delay between a connection loss and the next attempt
    """

    auto_connect: bool = True
    protocols: Optional[Tuple[str, ...]] = None
    connect_timeout_ms: int = 20_000
    max_reconnect_attempts: Optional[int] = None
    reconnect_delay_ms: int = 5_000

    def __post_init__(self) -> None:
        # Frozen dataclass: normalise through object.__setattr__.
        object.__setattr__(self, "protocols", _normalize_protocols(self.protocols))
        if isinstance(self.max_reconnect_attempts, float) and math.isinf(
            self.max_reconnect_attempts
        ):
            object.__setattr__(self, "max_reconnect_attempts", None)
        self.validate()

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: If any field is out of range or of the wrong type
        """
        if not isinstance(self.auto_connect, bool):
            raise ConfigurationError("auto_connect must be a bool")

        for name in ("connect_timeout_ms", "reconnect_delay_ms"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigurationError(f"{name} must be a non-negative int, got {value!r}")

        attempts = self.max_reconnect_attempts
        if attempts is not None and (
            isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 0
        ):
            raise ConfigurationError(
                f"max_reconnect_attempts must be None or a non-negative int, got {attempts!r}"
            )

        if self.protocols is not None:
            for protocol in self.protocols:
                if not isinstance(protocol, str) or not protocol:
                    raise ConfigurationError(
                        f"protocols must be non-empty strings, got {protocol!r}"
                    )

    @classmethod
    def from_overrides(
        cls, overrides: Optional[Mapping[str, Any]] = None, **kwargs: Any
    ) -> "ClientOptions":
        """
        Merge overrides onto the defaults.

        Args:
            overrides: Option names (or their aliases) mapped to values
            kwargs: More overrides; they win over ``overrides``

        Raises:
            ConfigurationError: On an unknown option name or an invalid value
        """
        merged: Dict[str, Any] = {}
        field_names = {f.name for f in dataclasses.fields(cls)}
        for key, value in {**(overrides or {}), **kwargs}.items():
            name = OPTION_ALIASES.get(key, key)
            if name not in field_names:
                raise ConfigurationError(f"Unknown client option: {key!r}")
            merged[name] = value
        return cls(**merged)

    @classmethod
    def from_config(cls, **overrides: Any) -> "ClientOptions":
        """Build options from the environment configuration, then apply overrides."""
        return cls.from_overrides(
            {
                "auto_connect": Config.WS_AUTO_CONNECT,
                "protocols": Config.WS_PROTOCOLS,
                "connect_timeout_ms": Config.WS_CONNECT_TIMEOUT_MS,
                "max_reconnect_attempts": Config.WS_MAX_RECONNECT_ATTEMPTS,
                "reconnect_delay_ms": Config.WS_RECONNECT_DELAY_MS,
            },
            **overrides,
        )

    def merge(self, **overrides: Any) -> "ClientOptions":
        """Return a copy with ``overrides`` applied."""
        current = {f.name: getattr(self, f.name) for f in dataclasses.fields(self)}
        return type(self).from_overrides(current, **overrides)
