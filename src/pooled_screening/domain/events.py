"""Lightweight event bus for engine milestones.

Entry points publish ``design.evaluated``, ``simulation.completed`` and
``replay.completed`` so callers (progress reporters, notebooks, audit
hooks) can observe a run without the engine depending on them.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Callable


def _now() -> datetime:
    """Return current UTC timestamp."""
    return datetime.now(UTC).replace(tzinfo=None)


DESIGN_EVALUATED = "design.evaluated"
SIMULATION_COMPLETED = "simulation.completed"
REPLAY_COMPLETED = "replay.completed"


@dataclass(frozen=True)
class Event:
    """An immutable engine event.

    Attributes
    ----------
    type:
        Event category, one of the module-level constants.
    payload:
        Summary numbers for the milestone (iterations, tests, ratios).
    timestamp:
        UTC time at which the event was created.
    """

    type: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_now)


EventHandler = Callable[[Event], None]


class EventBus:
    """A synchronous, in-process publish/subscribe event bus.

    Example
    -------
    >>> bus = EventBus()
    >>> seen: list[Event] = []
    >>> bus.subscribe(SIMULATION_COMPLETED, seen.append)
    >>> bus.publish(SIMULATION_COMPLETED, {"iterations": 10})
    >>> seen[0].payload["iterations"]
    10
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Register *handler* to be called when *event_type* is published."""
        with self._lock:
            self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        """Remove *handler*; unknown handlers are ignored."""
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

    def publish(
        self,
        event: Event | str,
        payload: dict[str, Any] | None = None,
    ) -> None:
        """Dispatch an event to all handlers registered for its type.

        Accepts an :class:`Event` or an event-type string plus payload.
        Handlers run synchronously in registration order; an exception
        raised by a handler propagates and skips the remaining handlers.
        Monte Carlo worker threads never publish, only the thread that
        started the run does.
        """
        if isinstance(event, str):
            event = Event(type=event, payload=payload or {})
        with self._lock:
            handlers = list(self._handlers.get(event.type, []))
        for handler in handlers:
            handler(event)

    def handler_count(self, event_type: str) -> int:
        """Return the number of handlers registered for *event_type*."""
        return len(self._handlers.get(event_type, []))
