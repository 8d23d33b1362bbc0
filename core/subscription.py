"""Priority-ordered listener storage for a single event name."""

from __future__ import annotations

from collections.abc import Callable
from types import MethodType
from typing import Any, TypeVar

from core.types import CleanUpFn, EventCallback, SubscriberWithPriority
from diagnostics.sinks import DiagnosticSink

T = TypeVar("T")


def insert_sorted(items: list[T], item: T, key: Callable[[T], int]) -> None:
    """Insert ``item`` keeping ``items`` in descending key order.

    Items with an equal key land after the existing ones, so arrival order
    is preserved among equals.
    """
    index = 0
    value = key(item)
    while index < len(items) and key(items[index]) >= value:
        index += 1
    items.insert(index, item)


def same_callback(left: object, right: object) -> bool:
    """Whether two references name the same listener.

    Bound methods are rebuilt on every attribute access, so they match when
    they bind the same function to the same object.
    """
    if left is right:
        return True
    if isinstance(left, MethodType) and isinstance(right, MethodType):
        return left.__self__ is right.__self__ and left.__func__ is right.__func__
    return False


def remove_first(items: list[T], match: Callable[[T], bool]) -> None:
    """Remove the first item matching ``match``; no-op when nothing does."""
    for index, item in enumerate(items):
        if match(item):
            del items[index]
            return


class EventSubscription:
    """Subscribers of one event, kept in priority order."""

    def __init__(self, event: Any, max_listeners: int, sink: DiagnosticSink) -> None:
        self.event = event
        self.max_listeners = max_listeners
        self._sink = sink
        self._subscribers: list[SubscriberWithPriority] = []

    @property
    def subscribers(self) -> tuple[SubscriberWithPriority, ...]:
        """Snapshot of the subscribers in dispatch order."""
        return tuple(self._subscribers)

    @property
    def is_empty(self) -> bool:
        return not self._subscribers

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def __contains__(self, callback: object) -> bool:
        return any(same_callback(s.callback, callback) for s in self._subscribers)

    def add_subscriber(self, callback: EventCallback[Any], priority: int = 0) -> CleanUpFn:
        """Add ``callback`` and return a handle that removes it again."""
        if callback in self:
            self._sink.warn(
                "duplicate_listener",
                {
                    "event": self.event,
                    "message": (
                        f'Duplicate listener detected for "{self.event}". '
                        "Used the already existing one."
                    ),
                },
            )
            return lambda: self.remove_subscriber(callback)

        if len(self._subscribers) >= self.max_listeners:
            self._sink.warn(
                "max_listeners_exceeded",
                {
                    "event": self.event,
                    "message": (
                        "Possible memory leak detected. More than "
                        f'{self.max_listeners} listeners for event "{self.event}".'
                    ),
                },
            )

        insert_sorted(
            self._subscribers,
            SubscriberWithPriority(callback=callback, priority=int(priority)),
            lambda s: s.priority,
        )
        return lambda: self.remove_subscriber(callback)

    def remove_subscriber(self, callback: EventCallback[Any]) -> None:
        remove_first(self._subscribers, lambda s: same_callback(s.callback, callback))

    def clear(self) -> None:
        self._subscribers = []
