"""
Resilient WebSocket client for asyncio applications.

The package keeps a logical WebSocket connection alive over an unreliable
transport: it reconnects after failures with a fixed delay and an optional
attempt cap, enforces a connect timeout, and exposes a listener-based event
model decoupled from the underlying socket library.
"""

from resilient_ws.config.options import ClientOptions
from resilient_ws.exceptions import (
    ConfigurationError,
    NotConnectedError,
    ReconnectExhaustedError,
    ResilientWSError,
    ValidationError,
)
from resilient_ws.websocket.client import ReconnectingWebSocketClient
from resilient_ws.websocket.connection_state import ConnectionState, ReadyState
from resilient_ws.websocket.event_registry import EventRegistry
from resilient_ws.websocket.events.events import (
    BaseEvent,
    CloseEvent,
    ErrorEvent,
    EventKind,
    MessageEvent,
    OpenEvent,
    ReconnectAttemptEvent,
    ReconnectFailedEvent,
)
from resilient_ws.websocket.transport import Transport, TransportFactory, TransportHandlers
from resilient_ws.websocket.websockets_transport import WebsocketsTransport

__all__ = [
    "BaseEvent",
    "ClientOptions",
    "CloseEvent",
    "ConfigurationError",
    "ConnectionState",
    "ErrorEvent",
    "EventKind",
    "EventRegistry",
    "MessageEvent",
    "NotConnectedError",
    "OpenEvent",
    "ReadyState",
    "ReconnectAttemptEvent",
    "ReconnectExhaustedError",
    "ReconnectFailedEvent",
    "ReconnectingWebSocketClient",
    "ResilientWSError",
    "Transport",
    "TransportFactory",
    "TransportHandlers",
    "ValidationError",
    "WebsocketsTransport",
]
