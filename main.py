"""
Demo: keep a connection to ``Config.WS_SERVER_URL`` alive and log its events.

Client options come from the environment (see ``resilient_ws.config.config``).
A greeting is sent on every open. Stop with Ctrl+C.
"""

import asyncio
import signal

from resilient_ws import (
    ClientOptions,
    CloseEvent,
    ErrorEvent,
    EventKind,
    MessageEvent,
    OpenEvent,
    ReconnectAttemptEvent,
    ReconnectFailedEvent,
    ReconnectingWebSocketClient,
)
from resilient_ws.config.config import Config
from resilient_ws.utils.logger import configure_logging, get_logger

log = get_logger("demo")

GREETING = "Hello, WebSocket!"


async def main() -> None:
    configure_logging()
    Config.validate_server_url()

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:  # pragma: no cover - Windows
            pass

    client = ReconnectingWebSocketClient(
        Config.WS_SERVER_URL, ClientOptions.from_config(auto_connect=False)
    )

    def on_open(event: OpenEvent) -> None:
        log.info(f"WebSocket connection opened: {event.url}")
        client.send(GREETING)

    def on_message(event: MessageEvent) -> None:
        log.info(f"WebSocket message received: {event.data!r}")

    def on_close(event: CloseEvent) -> None:
        log.info(f"WebSocket connection closed: {event.code} {event.reason!r}")

    def on_error(event: ErrorEvent) -> None:
        log.info(f"WebSocket error: {event.error}")

    def on_reconnect_attempt(event: ReconnectAttemptEvent) -> None:
        log.info(f"Reconnect attempt {event.attempt} in {event.delay_ms}ms")

    def on_reconnect_failed(event: ReconnectFailedEvent) -> None:
        log.error(f"Giving up: {event.error}")
        stop.set()

    client.on(EventKind.OPEN, on_open)
    client.on(EventKind.MESSAGE, on_message)
    client.on(EventKind.CLOSE, on_close)
    client.on(EventKind.ERROR, on_error)
    client.on(EventKind.RECONNECT_ATTEMPT, on_reconnect_attempt)
    client.on(EventKind.RECONNECT_FAILED, on_reconnect_failed)

    client.connect()
    try:
        await stop.wait()
    finally:
        client.disconnect()
        # Give the closing handshake a moment to complete.
        await asyncio.sleep(0.5)
        log.info(f"Final health metrics: {client.get_health_metrics()}")


if __name__ == "__main__":
    asyncio.run(main())
