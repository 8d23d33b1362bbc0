"""Priority storage tests for a single event subscription."""

from __future__ import annotations

from dataclasses import dataclass
from unittest.mock import MagicMock

from core.subscription import EventSubscription, insert_sorted, remove_first, same_callback


def _callbacks(subscription: EventSubscription) -> list[object]:
    return [s.callback for s in subscription.subscribers]


def test_insert_sorted_keeps_descending_order_and_arrival_for_ties() -> None:
    items: list[tuple[str, int]] = []
    for item in [("a", 0), ("b", 2), ("c", 1), ("d", 2), ("e", 0), ("f", -5)]:
        insert_sorted(items, item, lambda pair: pair[1])

    assert [name for name, _ in items] == ["b", "d", "c", "a", "e", "f"]


def test_remove_first_only_removes_one_match() -> None:
    items = [1, 2, 3, 2]
    remove_first(items, lambda value: value == 2)
    assert items == [1, 3, 2]

    remove_first(items, lambda value: value == 99)
    assert items == [1, 3, 2]


def test_subscribers_are_stable_sorted_by_priority() -> None:
    subscription = EventSubscription("test", max_listeners=10, sink=MagicMock())
    callbacks = [MagicMock(name=f"cb{i}") for i in range(5)]
    for callback, priority in zip(callbacks, [0, 3, 0, 3, 1]):
        subscription.add_subscriber(callback, priority)

    assert _callbacks(subscription) == [
        callbacks[1],
        callbacks[3],
        callbacks[4],
        callbacks[0],
        callbacks[2],
    ]
    assert [s.priority for s in subscription.subscribers] == [3, 3, 1, 0, 0]


def test_duplicate_listener_warns_and_keeps_existing_entry() -> None:
    sink = MagicMock()
    subscription = EventSubscription("test", max_listeners=10, sink=sink)
    callback = MagicMock()

    subscription.add_subscriber(callback, 1)
    remove = subscription.add_subscriber(callback, 5)

    assert subscription.subscriber_count == 1
    assert subscription.subscribers[0].priority == 1
    sink.warn.assert_called_once()
    assert sink.warn.call_args.args[0] == "duplicate_listener"

    remove()
    assert subscription.is_empty


def test_bound_methods_are_detected_as_duplicates() -> None:
    class Handler:
        def handle(self, data: object) -> None:
            _ = data

    handler = Handler()
    sink = MagicMock()
    subscription = EventSubscription("test", max_listeners=10, sink=sink)

    subscription.add_subscriber(handler.handle)
    subscription.add_subscriber(handler.handle)
    assert subscription.subscriber_count == 1

    subscription.remove_subscriber(handler.handle)
    assert subscription.is_empty


def test_max_listeners_warning_fires_once_past_the_limit() -> None:
    sink = MagicMock()
    subscription = EventSubscription("test", max_listeners=2, sink=sink)

    subscription.add_subscriber(MagicMock())
    subscription.add_subscriber(MagicMock())
    assert sink.warn.call_count == 0

    subscription.add_subscriber(MagicMock())
    assert subscription.subscriber_count == 3
    sink.warn.assert_called_once()
    assert sink.warn.call_args.args[0] == "max_listeners_exceeded"


def test_remove_unknown_callback_is_a_noop_and_clear_empties() -> None:
    subscription = EventSubscription("test", max_listeners=10, sink=MagicMock())
    keep = MagicMock()
    subscription.add_subscriber(keep)

    subscription.remove_subscriber(MagicMock())
    assert subscription.subscriber_count == 1
    assert keep in subscription

    subscription.clear()
    assert subscription.is_empty
    assert subscription.subscriber_count == 0


def test_subscribers_view_is_a_snapshot() -> None:
    subscription = EventSubscription("test", max_listeners=10, sink=MagicMock())
    first = MagicMock()
    subscription.add_subscriber(first)
    snapshot = subscription.subscribers

    subscription.add_subscriber(MagicMock())
    subscription.remove_subscriber(first)

    assert len(snapshot) == 1
    assert snapshot[0].callback is first


def test_equal_but_distinct_callables_are_separate_listeners() -> None:
    @dataclass
    class Handler:
        name: str

        def __call__(self, data: object) -> None:
            _ = data

    first, second = Handler("a"), Handler("a")
    assert first == second
    sink = MagicMock()
    subscription = EventSubscription("test", max_listeners=10, sink=sink)

    subscription.add_subscriber(first)
    subscription.add_subscriber(second)
    assert subscription.subscriber_count == 2
    sink.warn.assert_not_called()

    subscription.remove_subscriber(second)
    assert [s.callback for s in subscription.subscribers] == [first]
    assert subscription.subscribers[0].callback is first


def test_same_callback_matches_bound_methods_by_object_and_function() -> None:
    class Handler:
        def handle(self, data: object) -> None:
            _ = data

    one, other = Handler(), Handler()
    assert same_callback(one.handle, one.handle)
    assert not same_callback(one.handle, other.handle)
    assert not same_callback(one.handle, Handler.handle)
