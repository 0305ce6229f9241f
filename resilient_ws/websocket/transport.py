"""
Transport contract for the reconnecting WebSocket client.

The client never constructs sockets itself. It calls a transport factory,
which returns a handle that is already opening, and receives notifications
through ``TransportHandlers``. Notifications follow the WebSocket API's
ordering: a handshake that fails reports ``CLOSED``, then ``error``, then
``close`` with code 1006. Each handler receives the originating transport
first, so the client can tell a live handle from a superseded one.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Union

from resilient_ws.websocket.connection_state import NORMAL_CLOSURE, ReadyState

Data = Union[str, bytes]


@dataclass(frozen=True)
class TransportHandlers:
    """Callbacks a transport invokes on the event loop."""

    on_open: Callable[["Transport"], None]
    on_message: Callable[["Transport", Data], None]
    on_error: Callable[["Transport", Optional[BaseException]], None]
    on_close: Callable[["Transport", int, str], None]


class Transport(ABC):
    """A single WebSocket handle."""

    @property
    @abstractmethod
    def ready_state(self) -> ReadyState:
        """Current state of this handle."""

    @property
    def protocol(self) -> Optional[str]:
        """Subprotocol negotiated with the server, if any."""
        return None

    @abstractmethod
    def send(self, data: Data) -> None:
        """
        Queue ``data`` for transmission.

        Raises:
            NotConnectedError: If the handle is not OPEN
        """

    @abstractmethod
    def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        """Start closing the handle; a close notification follows. No-op once closing."""


TransportFactory = Callable[[str, Optional[Sequence[str]], TransportHandlers], Transport]
