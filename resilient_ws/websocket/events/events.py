"""
Client event definitions.

This module provides:
- ``EventKind``, the six kinds of events a client emits
- One payload dataclass per kind
- A registration system mapping each kind to its payload class, which the
  event registry uses to reject mistyped payloads

The string values of ``EventKind`` are the names listeners are registered
under, so ``client.on("reconnectAttempt", ...)`` and
``client.on(EventKind.RECONNECT_ATTEMPT, ...)`` are equivalent.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Type, Union

from resilient_ws.exceptions import ReconnectExhaustedError
from resilient_ws.websocket.connection_state import GOING_AWAY, NORMAL_CLOSURE


class EventKind(str, Enum):
    OPEN = "open"
    CLOSE = "close"
    ERROR = "error"
    MESSAGE = "message"
    RECONNECT_ATTEMPT = "reconnectAttempt"
    RECONNECT_FAILED = "reconnectFailed"


# Registry mapping each event kind to the dataclass carried by its events.
EVENT_TYPE_MAPPING: Dict[EventKind, Type["BaseEvent"]] = {}


def register_event(kind: EventKind):
    """
    Decorator to register an event class as the payload of ``kind``.

    Args:
        kind: The event kind whose listeners receive instances of the class

    Returns:
        A decorator function that registers the class and returns it unchanged
    """

    def wrapper(cls):
        EVENT_TYPE_MAPPING[kind] = cls
        cls.kind = kind
        return cls

    return wrapper


@dataclass(frozen=True)
class BaseEvent:
    """Base class for all client events."""

    kind: ClassVar[EventKind]

    def to_dict(self) -> Dict[str, Any]:
        """Return the event fields plus its kind, for logging and inspection."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["kind"] = self.kind.value
        return data


@register_event(EventKind.OPEN)
@dataclass(frozen=True)
class OpenEvent(BaseEvent):
    """The transport reached OPEN."""

    url: str
    protocol: Optional[str] = None  # Subprotocol negotiated with the server, if any.


@register_event(EventKind.MESSAGE)
@dataclass(frozen=True)
class MessageEvent(BaseEvent):
    """A message frame received from the server."""

    data: Union[str, bytes]


@register_event(EventKind.CLOSE)
@dataclass(frozen=True)
class CloseEvent(BaseEvent):
    """The transport closed."""

    code: int
    reason: str = ""

    @property
    def was_clean(self) -> bool:
        return self.code in (NORMAL_CLOSURE, GOING_AWAY)


@register_event(EventKind.ERROR)
@dataclass(frozen=True)
class ErrorEvent(BaseEvent):
    """The transport reported an error; informational only."""

    error: Optional[BaseException] = None


@register_event(EventKind.RECONNECT_ATTEMPT)
@dataclass(frozen=True)
class ReconnectAttemptEvent(BaseEvent):
    """A reconnect has been scheduled."""

    attempt: int  # Value of the attempt counter, starting at 1.
    delay_ms: int  # Delay before the reconnect is issued.


@register_event(EventKind.RECONNECT_FAILED)
@dataclass(frozen=True)
class ReconnectFailedEvent(BaseEvent):
    """The reconnect budget is exhausted; terminal until connect() is called."""

    attempts: int
    cause: Union[CloseEvent, ErrorEvent]  # The notification that exhausted the budget.
    error: ReconnectExhaustedError
