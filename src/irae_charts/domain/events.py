"""Lightweight event bus for chart interactions.

Each rendered chart owns an :class:`EventBus` onto which its interaction
layer publishes hover, toggle and sort events, so a host can react (sync
other panels, log usage) without touching the chart's visual tree.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)

# Canonical interaction event types
POINTER_ENTERED = "pointer.entered"
POINTER_LEFT = "pointer.left"
ELEMENT_CLICKED = "element.clicked"
SERIES_TOGGLED = "series.toggled"
TABLE_SORTED = "table.sorted"


@dataclass(frozen=True)
class Event:
    """An immutable interaction event.

    Attributes
    ----------
    type:
        A string identifier for the event category, e.g. ``"series.toggled"``.
    payload:
        Arbitrary data associated with the event.
    """

    type: str
    payload: dict[str, Any] = field(default_factory=dict)


# Type alias for subscriber callbacks.
EventHandler = Callable[[Event], None]

# Subscribing to this type receives every event published on the bus.
ANY_EVENT = "*"


class EventBus:
    """Synchronous publish/subscribe for one chart's interactions.

    Example
    -------
    >>> bus = EventBus()
    >>> seen: list[Event] = []
    >>> bus.subscribe("series.toggled", seen.append)
    >>> bus.publish("series.toggled", {"key": "Eye disorders"})
    >>> seen[0].payload["key"]
    'Eye disorders'
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Call *handler* for each *event_type* event (``"*"`` for all)."""
        with self._lock:
            self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        """Drop *handler*; a handler that was never registered is ignored."""
        with self._lock:
            registered = self._handlers.get(event_type)
            if registered and handler in registered:
                registered.remove(handler)

    def publish(self, event: Event | str, payload: dict[str, Any] | None = None) -> None:
        """Deliver *event* (or a new event of that type) on the caller's thread.

        Type-specific handlers run first, then ``"*"`` handlers, each in
        subscription order.  A handler exception propagates and stops delivery.
        """
        if isinstance(event, str):
            event = Event(type=event, payload=payload or {})
        with self._lock:
            targets = list(self._handlers.get(event.type, ()))
            if event.type != ANY_EVENT:
                targets += self._handlers.get(ANY_EVENT, [])
        logger.debug("%s -> %d handler(s)", event.type, len(targets))
        for handler in targets:
            handler(event)

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()

    def handler_count(self, event_type: str) -> int:
        return len(self._handlers.get(event_type, ()))

    @property
    def event_types(self) -> list[str]:
        """Event types that currently have subscribers, sorted."""
        return sorted(k for k, v in self._handlers.items() if v)
