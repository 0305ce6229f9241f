"""
Connection state module for the reconnecting WebSocket client.

Two enums live here. ``ReadyState`` is the state of a single transport
handle, numbered as in the WebSocket API. ``ConnectionState`` is the state of
the logical connection, which outlives individual handles and adds the
reconnect bookkeeping on top.
"""

from enum import Enum, IntEnum, auto

NORMAL_CLOSURE = 1000
GOING_AWAY = 1001
ABNORMAL_CLOSURE = 1006


class ReadyState(IntEnum):
    """State of one transport handle."""

    CONNECTING = 0
    OPEN = 1
    CLOSING = 2
    CLOSED = 3


class ConnectionState(Enum):
    """
    Enumeration of possible states for the logical connection.

    States:
    - IDLE: No transport and nothing pending
    - CONNECTING: A transport is being opened
    - OPEN: The transport is open and can send
    - CLOSING: The transport is closing; the reconnect decision is pending
    - RECONNECT_SCHEDULED: Waiting for the reconnect delay to elapse
    - CLOSED: Explicitly disconnected; no reconnects until connect() is called
    - FAILED: The reconnect budget is exhausted
    """

    IDLE = auto()
    CONNECTING = auto()
    OPEN = auto()
    CLOSING = auto()
    RECONNECT_SCHEDULED = auto()
    CLOSED = auto()
    FAILED = auto()
