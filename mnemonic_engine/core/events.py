"""
Typed event bus.

Event types are Enum members; the payload is whatever object the
publisher hands over (the combat session publishes CombatNotice
records). Handlers run in subscription order. Publishing from inside a
handler is queued until the current dispatch finishes, so every
subscriber sees notices in the order they happened.

Usage:
    bus.subscribe(CombatEvent.TURN_RESOLVED, on_turn_resolved)
    bus.publish(CombatEvent.TURN_RESOLVED, notice)
"""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], None]


class EventBus:
    """Publish/subscribe keyed by Enum event types."""

    def __init__(self):
        self._handlers: dict[Enum, list[EventHandler]] = {}
        self._pending: deque[tuple[Enum, Any]] = deque()
        self._dispatching = False

    def subscribe(self, event_type: Enum, handler: EventHandler) -> None:
        """Call handler(payload) for every event of this type."""
        self._handlers.setdefault(event_type, []).append(handler)

    def subscribe_many(self, event_types: Iterable[Enum], handler: EventHandler) -> None:
        """Subscribe one handler to several event types, e.g. a whole Enum."""
        for event_type in event_types:
            self.subscribe(event_type, handler)

    def unsubscribe(self, event_type: Enum, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def clear(self, event_type: Enum | None = None) -> None:
        """Drop the handlers of one type, or all of them."""
        if event_type is None:
            self._handlers.clear()
        else:
            self._handlers.pop(event_type, None)

    def publish(self, event_type: Enum, payload: Any = None) -> None:
        self._pending.append((event_type, payload))
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._pending:
                self._dispatch(*self._pending.popleft())
        finally:
            self._dispatching = False

    def _dispatch(self, event_type: Enum, payload: Any) -> None:
        # Copy so handlers may unsubscribe themselves mid-dispatch
        for handler in list(self._handlers.get(event_type, ())):
            try:
                handler(payload)
            except Exception:
                # A broken listener must not stall the combat loop
                logger.exception(f"Error in event handler for {event_type}")
