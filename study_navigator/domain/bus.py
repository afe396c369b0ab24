"""Simple synchronous in-process event bus."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable


class Subscription:
    """Handle returned by ``subscribe``; ``close()`` detaches the handler."""

    def __init__(self, detach: Callable[[], None]) -> None:
        self._detach = detach
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._detach()


class EventBus:
    """Publish/subscribe bus for domain events.

    Handlers are called synchronously in registration order. A handler
    closed while an event is being delivered does not receive it.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Callable]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Callable) -> Subscription:
        self._subscribers[event_type].append(handler)

        def detach() -> None:
            handlers = self._subscribers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return Subscription(detach)

    def publish(self, event: Any) -> None:
        for handler in list(self._subscribers.get(type(event), [])):
            if handler in self._subscribers[type(event)]:
                handler(event)

    def subscriber_count(self, event_type: type) -> int:
        return len(self._subscribers.get(event_type, []))
