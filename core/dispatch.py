"""Listener invocation strategies.

Both strategies start listeners in the order they are given. ``sequential``
waits for each listener to finish before starting the next one;
``parallel`` starts them all and waits once for the whole batch. Failures
are handed to the diagnostic sink and never raised to the emitting caller.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Iterable
from typing import Any

from core.types import Strategy, SubscriberWithPriority
from diagnostics.sinks import DiagnosticSink


_start_eagerly = asyncio.create_eager_task_factory(asyncio.Task)


def _report(sink: DiagnosticSink, event: Any, exc: BaseException) -> None:
    sink.error("listener_error", {"event": event, "error": exc})


async def run_sequential(
    event: Any,
    data: Any,
    subscribers: Iterable[SubscriberWithPriority],
    sink: DiagnosticSink,
) -> None:
    """Invoke and await each listener in turn."""
    for subscriber in subscribers:
        try:
            result = subscriber.callback(data)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            _report(sink, event, exc)


async def run_parallel(
    event: Any,
    data: Any,
    subscribers: Iterable[SubscriberWithPriority],
    sink: DiagnosticSink,
) -> None:
    """Invoke every listener, then wait for all pending completions together.

    Coroutine listeners start eagerly: each runs up to its first suspension
    before the next listener is invoked, so start order is priority order
    for sync and async listeners alike.
    """
    loop = asyncio.get_running_loop()
    pending: list[asyncio.Future[Any]] = []
    for subscriber in subscribers:
        try:
            result = subscriber.callback(data)
        except Exception as exc:
            _report(sink, event, exc)
            continue
        if inspect.iscoroutine(result):
            pending.append(_start_eagerly(loop, result))
        elif inspect.isawaitable(result):
            pending.append(asyncio.ensure_future(result))

    if not pending:
        return

    outcomes = await asyncio.gather(*pending, return_exceptions=True)
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            _report(sink, event, outcome)


STRATEGIES = {
    Strategy.PARALLEL: run_parallel,
    Strategy.SEQUENTIAL: run_sequential,
}
