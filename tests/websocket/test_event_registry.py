"""
Unit tests for the EventRegistry.

These tests cover registration order, the three forms of off(), snapshot
semantics during dispatch, payload type checking and listener isolation.
"""

import asyncio
import logging

import pytest

from resilient_ws.exceptions import ValidationError
from resilient_ws.websocket.event_registry import EventRegistry
from resilient_ws.websocket.events.events import (
    CloseEvent,
    EventKind,
    MessageEvent,
    OpenEvent,
)


@pytest.fixture
def registry() -> EventRegistry:
    """Provides a fresh EventRegistry for each test."""
    return EventRegistry()


class Recorder:
    def __init__(self):
        self.calls = []

    def handle(self, event):
        self.calls.append(event)


class TestRegistration:
    """Test cases for on() and off()."""

    def test_on_accepts_kind_enum_and_string(self, registry: EventRegistry):
        registry.on(EventKind.OPEN, print)
        registry.on("open", print)

        assert registry.listener_count(EventKind.OPEN) == 2
        assert registry.listeners("open") == (print, print)

    def test_on_rejects_unknown_kind(self, registry: EventRegistry):
        with pytest.raises(ValidationError) as exc_info:
            registry.on("connected", print)

        assert "reconnectAttempt" in str(exc_info.value)

    def test_on_rejects_non_callable(self, registry: EventRegistry):
        with pytest.raises(ValidationError):
            registry.on("message", "not a function")

    def test_off_without_arguments_clears_everything(self, registry: EventRegistry):
        for kind in EventKind:
            registry.on(kind, print)

        registry.off()

        assert registry.listener_count() == 0

    def test_off_with_kind_clears_only_that_kind(self, registry: EventRegistry):
        registry.on("open", print)
        registry.on("open", repr)
        registry.on("close", print)

        registry.off("open")

        assert registry.listener_count("open") == 0
        assert registry.listener_count("close") == 1

    def test_off_removes_first_match_only(self, registry: EventRegistry):
        """Registering the same listener twice then calling off once leaves one registration."""
        registry.on("message", print)
        registry.on("message", repr)
        registry.on("message", print)

        registry.off("message", print)

        assert registry.listeners("message") == (repr, print)

    def test_off_matches_bound_methods(self, registry: EventRegistry):
        recorder = Recorder()
        registry.on("message", recorder.handle)

        registry.off("message", recorder.handle)

        assert registry.listener_count("message") == 0

    def test_off_unknown_listener_is_noop(self, registry: EventRegistry):
        registry.on("message", print)

        registry.off("message", repr)

        assert registry.listeners("message") == (print,)

    def test_off_listener_without_kind_is_rejected(self, registry: EventRegistry):
        registry.on("message", print)

        with pytest.raises(ValidationError):
            registry.off(listener=print)

        assert registry.listener_count() == 1


class TestEmit:
    """Test cases for emit()."""

    def test_emit_calls_listeners_in_registration_order(self, registry: EventRegistry):
        order = []
        for index in range(5):
            registry.on("message", lambda event, index=index: order.append(index))

        registry.emit(EventKind.MESSAGE, MessageEvent(data="x"))
        registry.emit(EventKind.MESSAGE, MessageEvent(data="y"))

        assert order == [0, 1, 2, 3, 4, 0, 1, 2, 3, 4]

    def test_emit_passes_payload(self, registry: EventRegistry):
        recorder = Recorder()
        registry.on("close", recorder.handle)
        event = CloseEvent(code=1000, reason="Normal Closure")

        registry.emit(EventKind.CLOSE, event)

        assert recorder.calls == [event]

    def test_emit_only_reaches_matching_kind(self, registry: EventRegistry):
        recorder = Recorder()
        registry.on("close", recorder.handle)

        registry.emit(EventKind.OPEN, OpenEvent(url="ws://x"))

        assert recorder.calls == []

    def test_emit_rejects_wrong_payload_type(self, registry: EventRegistry):
        with pytest.raises(ValidationError):
            registry.emit(EventKind.OPEN, MessageEvent(data="x"))

    def test_removal_during_dispatch_does_not_affect_current_pass(self, registry: EventRegistry):
        calls = []

        def second(event):
            calls.append("second")

        def first(event):
            calls.append("first")
            registry.off("message", second)

        registry.on("message", first)
        registry.on("message", second)

        registry.emit(EventKind.MESSAGE, MessageEvent(data="a"))
        registry.emit(EventKind.MESSAGE, MessageEvent(data="b"))

        assert calls == ["first", "second", "first"]

    def test_addition_during_dispatch_waits_for_next_pass(self, registry: EventRegistry):
        calls = []

        def late(event):
            calls.append("late")

        def first(event):
            calls.append("first")
            registry.on("message", late)

        registry.on("message", first)

        registry.emit(EventKind.MESSAGE, MessageEvent(data="a"))
        assert calls == ["first"]

        registry.off("message", first)
        registry.emit(EventKind.MESSAGE, MessageEvent(data="b"))
        assert calls == ["first", "late"]

    def test_failing_listener_is_isolated_and_logged(self, registry: EventRegistry, caplog):
        calls = []

        def broken(event):
            raise RuntimeError("kaput")

        registry.on("message", broken)
        registry.on("message", lambda event: calls.append(event.data))

        with caplog.at_level(logging.ERROR):
            registry.emit(EventKind.MESSAGE, MessageEvent(data="still delivered"))

        assert calls == ["still delivered"]
        assert "kaput" in caplog.text
        assert "Error in listener for 'message'" in caplog.text

    @pytest.mark.asyncio
    async def test_coroutine_listener_is_scheduled(self, registry: EventRegistry):
        received = asyncio.Event()

        async def listener(event):
            received.set()

        registry.on("message", listener)
        registry.emit(EventKind.MESSAGE, MessageEvent(data="async"))

        await asyncio.wait_for(received.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_coroutine_listener_failure_is_logged(self, registry: EventRegistry, caplog):
        async def listener(event):
            raise ValueError("async kaput")

        registry.on("message", listener)

        with caplog.at_level(logging.ERROR):
            registry.emit(EventKind.MESSAGE, MessageEvent(data="async"))
            for _ in range(3):
                await asyncio.sleep(0)

        assert "async kaput" in caplog.text
