"""One-shot, cancellable timers on the running event loop."""

import asyncio
from typing import Any, Callable, Optional

from resilient_ws.utils.logger import get_logger

log = get_logger(__name__)


class Timer:
    """
    A named one-shot timer backed by ``loop.call_later``.

    Starting a timer that is already pending replaces the pending firing.
    ``cancel()`` may be called any number of times, including after the timer
    has fired.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._handle: Optional[asyncio.TimerHandle] = None

    def start(self, delay_ms: int, callback: Callable[..., Any], *args: Any) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(delay_ms / 1000, self._fire, callback, args)
        log.debug(f"Timer '{self.name}' armed for {delay_ms}ms")

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            log.debug(f"Timer '{self.name}' cancelled")

    @property
    def active(self) -> bool:
        return self._handle is not None

    def _fire(self, callback: Callable[..., Any], args: tuple) -> None:
        self._handle = None
        callback(*args)
