"""
WebSocket transport built on the ``websockets`` asyncio client.

This module provides the WebsocketsTransport class which:
- Opens one WebSocket connection per instance, starting immediately
- Runs a background receive loop and forwards every frame to its handlers
- Reports open, message, error and close notifications on the event loop
- Cancels the opening handshake when closed before it completes

Reconnection is not handled here. A transport lives for exactly one
connection; the client replaces it after every loss.
"""

import asyncio
from typing import Any, Optional, Sequence, Set, Tuple

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, ConnectionClosedError

from resilient_ws.exceptions import NotConnectedError
from resilient_ws.utils.logger import get_logger
from resilient_ws.websocket.connection_state import (
    ABNORMAL_CLOSURE,
    NORMAL_CLOSURE,
    ReadyState,
)
from resilient_ws.websocket.transport import Data, Transport, TransportHandlers

log = get_logger(__name__)


def _sendable_close_code(code: int) -> int:
    """Map codes that may not appear in a close frame (1005, 1006, 1015, ...) to 1000."""
    if 1000 <= code <= 1003 or 1007 <= code <= 1014 or 3000 <= code <= 4999:
        return code
    return NORMAL_CLOSURE


class WebsocketsTransport(Transport):
    """
    A single WebSocket connection driven by a background task.

    The opening handshake has no timeout of its own; the client's
    connect-timeout closes the transport if it stays CONNECTING too long.
    """

    def __init__(
        self,
        url: str,
        protocols: Optional[Sequence[str]],
        handlers: TransportHandlers,
        **connect_kwargs: Any,
    ) -> None:
        """
        Start opening a connection to ``url``.

        Args:
            url: The WebSocket server URL to connect to
            protocols: Subprotocols to offer during the handshake
            handlers: Callbacks for open, message, error and close notifications
            connect_kwargs: Extra arguments for ``websockets.asyncio.client.connect``
        """
        self._url = url
        self._protocols = list(protocols) if protocols else None
        self._handlers = handlers
        self._connect_kwargs = connect_kwargs

        self._websocket: Optional[ClientConnection] = None
        self._ready_state = ReadyState.CONNECTING
        self._close_request: Optional[Tuple[int, str]] = None
        self._background_tasks: Set[asyncio.Task] = set()

        self._run_task = asyncio.get_running_loop().create_task(self._run())
        self._run_task.add_done_callback(self._on_run_done)

    @property
    def ready_state(self) -> ReadyState:
        return self._ready_state

    @property
    def protocol(self) -> Optional[str]:
        if self._websocket is None:
            return None
        return self._websocket.subprotocol

    def send(self, data: Data) -> None:
        if self._ready_state is not ReadyState.OPEN or self._websocket is None:
            raise NotConnectedError()
        self._spawn(self._send(self._websocket, data))

    def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        if self._ready_state in (ReadyState.CLOSING, ReadyState.CLOSED):
            return

        self._ready_state = ReadyState.CLOSING
        websocket = self._websocket
        if websocket is None:
            # Still in the handshake, so no frame can be sent. Abandon it;
            # _on_run_done reports the requested code locally.
            self._close_request = (code, reason)
            self._run_task.cancel()
            return

        self._spawn(websocket.close(_sendable_close_code(code), reason))

    async def _run(self) -> None:
        """Open the connection, then receive until it closes."""
        try:
            websocket = await connect(
                self._url,
                subprotocols=self._protocols,
                open_timeout=None,
                **self._connect_kwargs,
            )
        except asyncio.CancelledError:
            if self._close_request is None:
                # Cancelled by someone other than close(), e.g. loop shutdown.
                self._ready_state = ReadyState.CLOSED
            raise
        except Exception as exc:
            log.warning(f"Failed to connect to {self._url}: {exc}")
            self._ready_state = ReadyState.CLOSED
            self._handlers.on_error(self, exc)
            self._handlers.on_close(self, ABNORMAL_CLOSURE, "")
            return

        self._websocket = websocket
        self._ready_state = ReadyState.OPEN
        log.info(f"Connected to WebSocket server → {self._url}")
        self._handlers.on_open(self)

        error: Optional[BaseException] = None
        code, reason = ABNORMAL_CLOSURE, ""
        try:
            while True:
                message = await websocket.recv()
                self._handlers.on_message(self, message)
        except ConnectionClosed as e:
            if e.rcvd is not None:
                code, reason = e.rcvd.code, e.rcvd.reason
                if code == NORMAL_CLOSURE:
                    log.info(f"WebSocket connection closed normally: {e}")
                else:
                    log.warning(f"WebSocket connection closed with code {code}: {e}")
            elif isinstance(e, ConnectionClosedError):
                # No close frame from the server: the connection was lost.
                log.warning(f"WebSocket connection lost: {e}")
                error = e
        except asyncio.CancelledError:
            self._ready_state = ReadyState.CLOSED
            raise
        except Exception as e:
            log.error(f"Unexpected error in receive loop: {e}", exc_info=True)
            error = e
            await websocket.close()

        self._ready_state = ReadyState.CLOSED
        if error is not None:
            self._handlers.on_error(self, error)
        self._handlers.on_close(self, code, reason)

    def _on_run_done(self, task: asyncio.Task) -> None:
        """Report a close() issued during the handshake.

        Runs even when the task was cancelled before its first step, in which
        case no code inside _run() ever executed.
        """
        if not task.cancelled() or self._close_request is None:
            return
        if self._ready_state is ReadyState.CLOSED:
            return
        code, reason = self._close_request
        log.info(f"Handshake with {self._url} abandoned ({code} {reason})")
        self._ready_state = ReadyState.CLOSED
        self._handlers.on_close(self, code, reason)

    async def _send(self, websocket: ClientConnection, data: Data) -> None:
        try:
            await websocket.send(data)
        except ConnectionClosed as e:
            log.warning(f"Dropped outgoing message, connection closed: {e}")
        except Exception as e:
            log.error(f"Error sending message: {e}", exc_info=True)

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
