"""
Shared fixtures: an in-memory transport the tests drive by hand.

FakeTransport follows the real transport's contract. Notifications are
delivered on the event loop and never synchronously from the factory call.
Tests move a handle through its lifecycle with the ``simulate_*`` methods.
"""

import asyncio
from typing import List, Optional, Sequence, Tuple

import pytest

from resilient_ws.exceptions import NotConnectedError
from resilient_ws.websocket.connection_state import ABNORMAL_CLOSURE, ReadyState
from resilient_ws.websocket.transport import Data, Transport, TransportHandlers


class FakeTransport(Transport):
    def __init__(
        self,
        url: str,
        protocols: Optional[Sequence[str]],
        handlers: TransportHandlers,
    ) -> None:
        self.url = url
        self.protocols = protocols
        self.handlers = handlers
        self.sent: List[Data] = []
        self.close_calls: List[Tuple[int, str]] = []
        self._ready_state = ReadyState.CONNECTING

    @property
    def ready_state(self) -> ReadyState:
        return self._ready_state

    @property
    def protocol(self) -> Optional[str]:
        return self.protocols[0] if self.protocols else None

    def send(self, data: Data) -> None:
        if self._ready_state is not ReadyState.OPEN:
            raise NotConnectedError()
        self.sent.append(data)

    def close(self, code: int = 1000, reason: str = "") -> None:
        self.close_calls.append((code, reason))
        if self._ready_state in (ReadyState.CLOSING, ReadyState.CLOSED):
            return
        self._ready_state = ReadyState.CLOSING
        asyncio.get_running_loop().call_soon(self.simulate_close, code, reason)

    # --- test controls -------------------------------------------------

    def simulate_open(self) -> None:
        self._ready_state = ReadyState.OPEN
        self.handlers.on_open(self)

    def simulate_message(self, data: Data) -> None:
        self.handlers.on_message(self, data)

    def simulate_error(self, error: Optional[BaseException] = None, closed: bool = True) -> None:
        """Report an error; ``closed=False`` mimics an error while the socket survives."""
        if closed:
            self._ready_state = ReadyState.CLOSED
        self.handlers.on_error(self, error)

    def simulate_close(self, code: int = ABNORMAL_CLOSURE, reason: str = "") -> None:
        self._ready_state = ReadyState.CLOSED
        self.handlers.on_close(self, code, reason)


class FakeTransportFactory:
    """Transport factory that records every handle it creates."""

    def __init__(self) -> None:
        self.created: List[FakeTransport] = []

    def __call__(
        self,
        url: str,
        protocols: Optional[Sequence[str]],
        handlers: TransportHandlers,
    ) -> FakeTransport:
        transport = FakeTransport(url, protocols, handlers)
        self.created.append(transport)
        return transport

    @property
    def latest(self) -> FakeTransport:
        return self.created[-1]

    async def wait_for_count(self, count: int, timeout: float = 2.0) -> None:
        """Wait until ``count`` transports have been created."""

        async def _poll() -> None:
            while len(self.created) < count:
                await asyncio.sleep(0.005)

        await asyncio.wait_for(_poll(), timeout)


async def _settle() -> None:
    for _ in range(3):
        await asyncio.sleep(0)


@pytest.fixture
def transport_factory() -> FakeTransportFactory:
    """Provides a fresh FakeTransportFactory for each test."""
    return FakeTransportFactory()


@pytest.fixture
def settle():
    """Provides a coroutine function that lets callbacks scheduled with call_soon run."""
    return _settle
