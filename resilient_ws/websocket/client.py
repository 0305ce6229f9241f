"""
Reconnecting WebSocket client.

This module provides the ReconnectingWebSocketClient class which:
- Owns the single live transport handle and replaces it on every (re)connect
- Enforces a connect timeout on handles that never reach OPEN
- Translates transport notifications into listener events
- Consults the ReconnectPolicy after every connection loss and schedules
  delayed reconnects, or reports that the reconnect budget is exhausted

Everything runs on one event loop. There are no locks: callbacks from timers
and transports are sequenced by checking which handle they belong to.

- ``_latest`` is the handle created by the most recent connect(). Notifications
  from any other handle are ignored.
- ``_transport`` is the live handle. It is cleared once the reconnect decision
  has run for it, so a second loss notification from the same handle (close
  after error) reaches listeners but cannot schedule a second reconnect.
"""

import asyncio
from typing import Any, Dict, Mapping, Optional, Union

from resilient_ws.config.options import ClientOptions
from resilient_ws.exceptions import NotConnectedError, ReconnectExhaustedError
from resilient_ws.utils.logger import get_logger
from resilient_ws.websocket.connection_state import (
    ABNORMAL_CLOSURE,
    NORMAL_CLOSURE,
    ConnectionState,
    ReadyState,
)
from resilient_ws.websocket.event_registry import EventRegistry, Listener
from resilient_ws.websocket.events.events import (
    CloseEvent,
    ErrorEvent,
    EventKind,
    MessageEvent,
    OpenEvent,
    ReconnectAttemptEvent,
    ReconnectFailedEvent,
)
from resilient_ws.websocket.reconnect_policy import ReconnectPolicy
from resilient_ws.websocket.timers import Timer
from resilient_ws.websocket.transport import (
    Data,
    Transport,
    TransportFactory,
    TransportHandlers,
)
from resilient_ws.websocket.websockets_transport import WebsocketsTransport

log = get_logger(__name__)

_READY_TO_CONNECTION_STATE = {
    ReadyState.CONNECTING: ConnectionState.CONNECTING,
    ReadyState.OPEN: ConnectionState.OPEN,
    ReadyState.CLOSING: ConnectionState.CLOSING,
    # Closed but the reconnect decision has not run yet (waiting on close after error).
    ReadyState.CLOSED: ConnectionState.CLOSING,
}


class ReconnectingWebSocketClient:
    """
    A logical WebSocket connection that survives transport failures.

    Listeners are registered with ``on(kind, listener)`` for the kinds
    ``open``, ``close``, ``error``, ``message``, ``reconnectAttempt`` and
    ``reconnectFailed``; each receives the matching event dataclass.

    All methods must be called on the event loop thread. With
    ``auto_connect`` enabled the constructor connects immediately, so the
    client must then be created inside a running loop.
    """

    def __init__(
        self,
        url: str,
        options: Union[ClientOptions, Mapping[str, Any], None] = None,
        transport_factory: Optional[TransportFactory] = None,
        registry: Optional[EventRegistry] = None,
    ) -> None:
        """
        Args:
            url: The WebSocket server URL to connect to
            options: ClientOptions, or a mapping of overrides merged onto the defaults
            transport_factory: Creates transport handles; defaults to WebsocketsTransport
            registry: Event registry to dispatch through; a new one by default
        """
        if isinstance(options, ClientOptions):
            self._options = options
        else:
            self._options = ClientOptions.from_overrides(options)

        self._url = url
        self._transport_factory: TransportFactory = (
            transport_factory or WebsocketsTransport
        )
        self._registry = registry or EventRegistry()
        self._policy = ReconnectPolicy(
            self._options.max_reconnect_attempts, self._options.reconnect_delay_ms
        )

        self._transport: Optional[Transport] = None
        self._latest: Optional[Transport] = None
        self._connect_timer = Timer("connect-timeout")
        self._reconnect_timer = Timer("reconnect-delay")
        self._handlers = TransportHandlers(
            on_open=self._on_transport_open,
            on_message=self._on_transport_message,
            on_error=self._on_transport_error,
            on_close=self._on_transport_close,
        )

        if self._options.auto_connect:
            self.connect()

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def connect(self, reset_attempts: bool = True) -> None:
        """
        Open a new transport, discarding any previous one.

        Args:
            reset_attempts: Reset the attempt counter. Internal reconnects pass
                False so consecutive failures count toward the cap.
        """
        if reset_attempts or self._policy.suppressed:
            self._policy.reset()

        self._reconnect_timer.cancel()
        self._discard_transport()

        log.info(
            f"Connecting to {self._url} (attempt counter {self._policy.attempts})"
        )
        transport = self._transport_factory(
            self._url, self._options.protocols, self._handlers
        )
        self._transport = transport
        self._latest = transport
        self._connect_timer.start(
            self._options.connect_timeout_ms, self._on_connect_timeout, transport
        )

    def disconnect(self, code: int = NORMAL_CLOSURE, reason: str = "Normal Closure") -> None:
        """Close the connection with ``code``/``reason`` and stop reconnecting."""
        self._policy.suppress()
        self._reconnect_timer.cancel()
        self._connect_timer.cancel()

        transport = self._transport
        if transport is None:
            log.info("Disconnect requested with no live transport")
            return

        if transport.ready_state in (ReadyState.CONNECTING, ReadyState.OPEN):
            log.info(f"Disconnecting from {self._url}")
            transport.close(code, reason)
        elif transport.ready_state is ReadyState.CLOSED:
            self._transport = None

    def close(self, code: int = NORMAL_CLOSURE, reason: str = "Normal Closure") -> None:
        """Alias for disconnect() method."""
        self.disconnect(code, reason)

    def send(self, data: Data) -> None:
        """
        Send data over the open connection. Nothing is queued or retried.

        Raises:
            NotConnectedError: If the connection is not OPEN
        """
        transport = self._transport
        if transport is None or transport.ready_state is not ReadyState.OPEN:
            log.error("WebSocket is not in OPEN state; message dropped")
            raise NotConnectedError()
        transport.send(data)

    def on(self, kind: Union[EventKind, str], listener: Listener) -> None:
        """Register ``listener`` for events of ``kind``."""
        self._registry.on(kind, listener)

    def off(
        self,
        kind: Optional[Union[EventKind, str]] = None,
        listener: Optional[Listener] = None,
    ) -> None:
        """Remove one listener, all listeners of a kind, or every listener."""
        self._registry.off(kind, listener)

    async def ensure_connected(self, timeout: Optional[float] = None) -> bool:
        """
        Ensure that the connection is OPEN, connecting if nothing is in progress.

        Args:
            timeout: Maximum time to wait in seconds (None for no timeout)

        Returns:
            bool: True if the connection is OPEN, False if the wait timed out
        """
        if self.state is ConnectionState.OPEN:
            return True

        opened = asyncio.get_running_loop().create_future()

        def _on_open(event: OpenEvent) -> None:
            if not opened.done():
                opened.set_result(True)

        self.on(EventKind.OPEN, _on_open)
        try:
            if self._transport is None and not self._reconnect_timer.active:
                self.connect()
            log.info("Waiting for WebSocket connection to be established...")
            await asyncio.wait_for(opened, timeout=timeout)
            return True
        except asyncio.TimeoutError:
            log.warning(f"Failed to establish WebSocket connection within {timeout}s")
            return False
        finally:
            self.off(EventKind.OPEN, _on_open)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def url(self) -> str:
        return self._url

    @property
    def options(self) -> ClientOptions:
        return self._options

    @property
    def registry(self) -> EventRegistry:
        return self._registry

    @property
    def ready_state(self) -> Optional[ReadyState]:
        """Ready state of the live transport, or None if there is none."""
        if self._transport is None:
            return None
        return self._transport.ready_state

    @property
    def reconnect_attempts(self) -> int:
        """
        The attempt counter.

        It counts consecutive connection losses since the last caller
        connect(), and is -1 after disconnect().
        """
        return self._policy.attempts

    @property
    def state(self) -> ConnectionState:
        """The logical connection state, derived from the handle, timers and counter."""
        if self._transport is not None:
            return _READY_TO_CONNECTION_STATE[self._transport.ready_state]
        if self._reconnect_timer.active:
            return ConnectionState.RECONNECT_SCHEDULED
        if self._policy.suppressed:
            return ConnectionState.CLOSED
        if self._policy.exhausted:
            return ConnectionState.FAILED
        return ConnectionState.IDLE

    def get_health_metrics(self) -> Dict[str, Any]:
        """
        Get health metrics for the connection.

        Returns:
            dict: A dictionary containing health metrics
        """
        return {
            "state": self.state.name,
            "connected": self.state is ConnectionState.OPEN,
            "reconnect_attempts": self._policy.attempts,
            "max_reconnect_attempts": self._policy.max_attempts,
            "has_live_transport": self._transport is not None,
            "ready_state": self.ready_state.name if self.ready_state is not None else None,
            "connect_timer_active": self._connect_timer.active,
            "reconnect_timer_active": self._reconnect_timer.active,
            "listeners": {
                kind.value: self._registry.listener_count(kind) for kind in EventKind
            },
        }

    # ------------------------------------------------------------------
    # Transport callbacks
    # ------------------------------------------------------------------

    def _is_stale(self, transport: Transport, notification: str) -> bool:
        if transport is self._latest:
            return False
        log.debug(f"Ignoring '{notification}' from a superseded transport")
        return True

    def _on_transport_open(self, transport: Transport) -> None:
        if self._is_stale(transport, "open"):
            return
        self._connect_timer.cancel()
        log.info(f"WebSocket state transition: CONNECTING → OPEN ({self._url})")
        self._registry.emit(
            EventKind.OPEN, OpenEvent(url=self._url, protocol=transport.protocol)
        )

    def _on_transport_message(self, transport: Transport, data: Data) -> None:
        if self._is_stale(transport, "message"):
            return
        self._registry.emit(EventKind.MESSAGE, MessageEvent(data=data))

    def _on_transport_error(
        self, transport: Transport, error: Optional[BaseException]
    ) -> None:
        if self._is_stale(transport, "error"):
            return
        log.warning(f"Transport error on {self._url}: {error}")
        event = ErrorEvent(error=error)
        self._registry.emit(EventKind.ERROR, event)
        self._handle_connection_loss(transport, event)

    def _on_transport_close(self, transport: Transport, code: int, reason: str) -> None:
        if self._is_stale(transport, "close"):
            return
        if transport is self._transport:
            self._connect_timer.cancel()
        log.info(f"WebSocket closed: {code} {reason!r}")
        event = CloseEvent(code=code, reason=reason)
        self._registry.emit(EventKind.CLOSE, event)
        self._handle_connection_loss(transport, event)

    def _on_connect_timeout(self, transport: Transport) -> None:
        # The handle may have opened or been replaced after the timer was armed.
        if transport is not self._transport or transport.ready_state is not ReadyState.CONNECTING:
            return
        log.warning(
            f"Connection to {self._url} not open after "
            f"{self._options.connect_timeout_ms}ms; closing"
        )
        transport.close(ABNORMAL_CLOSURE, "Connect Timeout")

    # ------------------------------------------------------------------
    # Reconnect decision
    # ------------------------------------------------------------------

    def _handle_connection_loss(
        self, transport: Transport, event: Union[CloseEvent, ErrorEvent]
    ) -> None:
        if transport is not self._transport:
            return  # Decision already made for this handle

        if self._policy.suppressed:
            self._transport = None
            self._connect_timer.cancel()
            log.info("Connection closed after disconnect(); not reconnecting")
            return

        # An error does not always mean the socket is gone; wait for the close.
        if transport.ready_state is not ReadyState.CLOSED:
            log.debug(
                f"Loss reported while transport is {transport.ready_state.name}; "
                "waiting for close"
            )
            return

        self._transport = None
        self._connect_timer.cancel()
        attempt = self._policy.record_failure()

        if self._policy.should_retry():
            delay_ms = self._policy.delay_ms
            log.info(f"Reconnecting in {delay_ms}ms (attempt {attempt})")
            self._reconnect_timer.start(delay_ms, self._on_reconnect_timer)
            self._registry.emit(
                EventKind.RECONNECT_ATTEMPT,
                ReconnectAttemptEvent(attempt=attempt, delay_ms=delay_ms),
            )
            return

        max_attempts = self._policy.max_attempts
        log.warning(
            f"Reconnect budget exhausted for {self._url} ({max_attempts} attempt(s))"
        )
        self._registry.emit(
            EventKind.RECONNECT_FAILED,
            ReconnectFailedEvent(
                attempts=attempt,
                cause=event,
                error=ReconnectExhaustedError(attempt, max_attempts),
            ),
        )

    def _on_reconnect_timer(self) -> None:
        if self._policy.suppressed:
            log.info("Scheduled reconnect skipped; disconnect() was called")
            return
        self.connect(reset_attempts=False)

    def _discard_transport(self) -> None:
        previous = self._transport
        self._transport = None
        self._latest = None
        self._connect_timer.cancel()
        if previous is not None and previous.ready_state in (
            ReadyState.CONNECTING,
            ReadyState.OPEN,
        ):
            log.info("Closing superseded transport")
            previous.close(NORMAL_CLOSURE, "Normal Closure")
