"""
Event registry module for dispatching client events to listeners.

This module provides the EventRegistry class which:
- Keeps an ordered list of listeners per event kind
- Adds and removes listeners (one, all of a kind, or everything)
- Dispatches events to listeners in registration order
- Isolates listener failures so one broken listener cannot starve the others
- Runs coroutine listeners as tasks on the event loop
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple, Union

from resilient_ws.exceptions import ValidationError
from resilient_ws.utils.logger import get_logger
from resilient_ws.websocket.events.events import EVENT_TYPE_MAPPING, BaseEvent, EventKind

log = get_logger(__name__)

Listener = Callable[[Any], Union[None, Awaitable[None]]]


def _empty_listener_map() -> Dict[EventKind, List[Listener]]:
    return {kind: [] for kind in EventKind}


def _coerce_kind(kind: Union[EventKind, str]) -> EventKind:
    try:
        return EventKind(kind)
    except ValueError as e:
        valid = ", ".join(k.value for k in EventKind)
        raise ValidationError(
            f"Unknown event kind {kind!r}; expected one of: {valid}", original_error=e
        ) from e


class EventRegistry:
    """
    Maps event kinds to ordered listener lists and dispatches events to them.

    Dispatch iterates over a snapshot of the listener list, so listeners may
    add or remove listeners (including themselves) while an event is being
    delivered without affecting the pass in progress.
    """

    def __init__(self) -> None:
        self._listeners = _empty_listener_map()
        # Strong references to running coroutine listeners until they finish.
        self._pending: Set[asyncio.Future] = set()

    def on(self, kind: Union[EventKind, str], listener: Listener) -> None:
        """
        Register a listener. The same listener added twice is called twice.

        Raises:
            ValidationError: If the kind is unknown or the listener is not callable
        """
        event_kind = _coerce_kind(kind)
        if not callable(listener):
            raise ValidationError(f"Listener for '{event_kind.value}' must be callable")
        self._listeners[event_kind].append(listener)

    def off(
        self,
        kind: Optional[Union[EventKind, str]] = None,
        listener: Optional[Listener] = None,
    ) -> None:
        """
        Remove listeners.

        - ``off()`` removes every listener of every kind
        - ``off(kind)`` removes every listener of ``kind``
        - ``off(kind, listener)`` removes the first registration equal to ``listener``
        """
        if kind is None:
            if listener is not None:
                raise ValidationError("off() needs an event kind to remove a single listener")
            self._listeners = _empty_listener_map()
            return

        event_kind = _coerce_kind(kind)
        if listener is None:
            self._listeners[event_kind] = []
            return

        # Bound methods are rebuilt on every attribute access, so compare with ==
        # rather than `is`; for plain functions the two are the same.
        listeners = self._listeners[event_kind]
        for index, registered in enumerate(listeners):
            if registered == listener:
                del listeners[index]
                return

    def emit(self, kind: EventKind, payload: BaseEvent) -> None:
        """
        Deliver ``payload`` to every listener of ``kind`` in registration order.

        Args:
            kind: The event kind being dispatched
            payload: The event instance; must match the kind's payload class
        """
        expected = EVENT_TYPE_MAPPING[kind]
        if not isinstance(payload, expected):
            raise ValidationError(
                f"Payload for '{kind.value}' must be {expected.__name__}, "
                f"got {type(payload).__name__}"
            )

        snapshot = tuple(self._listeners[kind])
        log.debug(f"Dispatching '{kind.value}' to {len(snapshot)} listener(s)")
        for listener in snapshot:
            try:
                result = listener(payload)
            except Exception as e:
                log.error(f"Error in listener for '{kind.value}': {e}", exc_info=True)
                continue

            if inspect.isawaitable(result):
                self._schedule(kind, result)

    def listeners(self, kind: Union[EventKind, str]) -> Tuple[Listener, ...]:
        return tuple(self._listeners[_coerce_kind(kind)])

    def listener_count(self, kind: Optional[Union[EventKind, str]] = None) -> int:
        if kind is None:
            return sum(len(listeners) for listeners in self._listeners.values())
        return len(self._listeners[_coerce_kind(kind)])

    def _schedule(self, kind: EventKind, awaitable: Awaitable[None]) -> None:
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)

        def _done(finished: asyncio.Future) -> None:
            self._pending.discard(finished)
            if finished.cancelled():
                return
            exc = finished.exception()
            if exc is not None:
                log.error(
                    f"Error in async listener for '{kind.value}': {exc}",
                    exc_info=(type(exc), exc, exc.__traceback__),
                )

        task.add_done_callback(_done)
