"""In-process event emitter with priority ordering and async dispatch."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from core.dispatch import STRATEGIES
from core.policy_runtime import EmitterSettings, build_sink, load_settings, load_yaml
from core.subscription import EventSubscription
from core.types import CleanUpFn, EmitOptions, EventCallback, EventName
from diagnostics.sinks import DiagnosticSink, LoggingDiagnosticSink


def _no_trace(operation: str, context: dict[str, Any]) -> None:
    _ = operation, context


def _emit_options(options: EmitOptions | Mapping[str, Any] | str | None) -> EmitOptions:
    if options is None:
        return EmitOptions()
    if isinstance(options, EmitOptions):
        return options
    if isinstance(options, str):
        return EmitOptions.model_validate({"strategy": options})
    return EmitOptions.model_validate(dict(options))


class _OnceListener:
    """Wrapper that forwards the first invocation and then removes itself."""

    def __init__(self, emitter: EventEmitter, event: EventName, callback: EventCallback[Any]) -> None:
        self.emitter = emitter
        self.event = event
        self.listener = callback
        self.fired = False
        self._off: CleanUpFn | None = None

    def attach(self, off: CleanUpFn) -> None:
        self._off = off

    def cancel(self) -> None:
        """Drop the subscription without ever firing."""
        self.fired = True
        self._detach()

    def __call__(self, data: Any) -> Any:
        if self.fired:
            return None
        self.fired = True
        self.emitter._trace("unsubscribe:once", {"event": self.event})
        try:
            result = self.listener(data)
        except Exception:
            self._detach()
            raise
        if inspect.isawaitable(result):
            return self._finish(result)
        self._detach()
        return None

    async def _finish(self, pending: Any) -> None:
        try:
            await pending
        finally:
            self._detach()

    def _detach(self) -> None:
        off, self._off = self._off, None
        if off is not None:
            off()


class EventEmitter:
    """Registry of event subscriptions with priority-ordered dispatch.

    Listeners registered with a higher priority are started first; equal
    priorities keep registration order. ``emit`` runs listeners either all
    at once (``parallel``, the default) or one after another
    (``sequential``), and never raises because a listener failed: failures
    go to the diagnostic sink.

    The operation log (subscribe, emit, ...) reaches the sink only with
    ``debug=True``. Duplicate and max-listener warnings and listener errors
    are always reported.
    """

    def __init__(
        self,
        *,
        max_listeners: int = 10,
        debug: bool = False,
        logger: DiagnosticSink | None = None,
    ) -> None:
        settings = EmitterSettings(max_listeners=max_listeners, debug=debug)
        self.max_listeners = settings.max_listeners
        self.debug = settings.debug
        self._sink: DiagnosticSink = logger or LoggingDiagnosticSink()
        self._trace = self._sink.log if self.debug else _no_trace
        self._subscriptions: dict[EventName, EventSubscription] = {}

    @classmethod
    def from_config(
        cls, config: dict[str, Any] | None = None, root: Path | None = None
    ) -> EventEmitter:
        """Build an emitter from a config mapping (see ``config/default.yaml``)."""
        settings = load_settings(config)
        return cls(
            max_listeners=settings.max_listeners,
            debug=settings.debug,
            logger=build_sink(settings, root=root),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> EventEmitter:
        """Build an emitter from a YAML file; relative paths resolve next to it."""
        return cls.from_config(load_yaml(path), root=path.parent)

    def has(self, event: EventName) -> bool:
        return event in self._subscriptions

    def listeners_count(self, event: EventName) -> int:
        subscription = self._subscriptions.get(event)
        return subscription.subscriber_count if subscription else 0

    def listeners(self, event: EventName) -> tuple[EventCallback[Any], ...]:
        """Callbacks for ``event`` in dispatch order; once-wrappers are unwrapped."""
        subscription = self._subscriptions.get(event)
        if subscription is None:
            return ()
        return tuple(
            s.callback.listener if isinstance(s.callback, _OnceListener) else s.callback
            for s in subscription.subscribers
        )

    @property
    def event_names(self) -> list[EventName]:
        return list(self._subscriptions)

    def is_empty(self) -> bool:
        return not self._subscriptions

    def clear(self) -> None:
        """Remove all listeners for all events."""
        self._trace("clear", {"message": f"CLEARING {len(self._subscriptions)} EVENT TYPES"})
        for subscription in self._subscriptions.values():
            subscription.clear()
        self._subscriptions.clear()

    def on(self, event: EventName, callback: EventCallback[Any], priority: int = 0) -> CleanUpFn:
        """Register ``callback`` for ``event`` and return a function removing it."""
        subscription = self._subscriptions.get(event)
        if subscription is None:
            subscription = EventSubscription(event, self.max_listeners, self._sink)
            self._subscriptions[event] = subscription

        duplicate = callback in subscription
        remove = subscription.add_subscriber(callback, priority)
        message = f"PRIORITY {priority}"
        if duplicate:
            message += " (DUPLICATE IGNORED)"
        self._trace("subscribe", {"event": event, "message": message})

        removed = False

        def off() -> None:
            nonlocal removed
            if removed:
                return
            removed = True
            self._trace("unsubscribe", {"event": event})
            remove()
            if subscription.is_empty and self._subscriptions.get(event) is subscription:
                del self._subscriptions[event]

        return off

    def once(self, event: EventName, callback: EventCallback[Any], priority: int = 0) -> None:
        """Register ``callback`` for the next emission of ``event`` only."""
        self._once(event, callback, priority)

    def _once(self, event: EventName, callback: EventCallback[Any], priority: int = 0) -> _OnceListener:
        self._trace("subscribe:once", {"event": event})
        wrapper = _OnceListener(self, event, callback)
        wrapper.attach(self.on(event, wrapper, priority))
        return wrapper

    def off(self, event: EventName | None = None, callback: EventCallback[Any] | None = None) -> None:
        """Remove one listener, every listener of ``event``, or everything.

        An ``event`` without registered listeners clears the whole emitter,
        same as calling ``off()`` with no arguments.
        """
        subscription = None if event is None else self._subscriptions.get(event)
        if subscription is None:
            self.clear()
            return

        if callback is not None:
            self._trace("unsubscribe", {"event": event})
            subscription.remove_subscriber(callback)
        else:
            self._trace(
                "unsubscribe_all",
                {"event": event, "message": f"REMOVING {subscription.subscriber_count} SUBSCRIBERS"},
            )
            subscription.clear()

        if subscription.is_empty:
            del self._subscriptions[event]

    async def emit(
        self,
        event: EventName,
        data: Any = None,
        options: EmitOptions | Mapping[str, Any] | str | None = None,
    ) -> None:
        """Deliver ``data`` to every listener of ``event``.

        Listeners present when the call starts are the ones invoked; changes
        they make to the registry apply from the next emission on.
        """
        opts = _emit_options(options)
        subscription = self._subscriptions.get(event)
        if subscription is None:
            self._trace("emit", {"event": event, "message": f'!!! NO EVENTS "{event}" FOUND !!!'})
            return

        self._trace("emit", {"event": event, "data": data, "message": f"STRATEGY: {opts.strategy.value}"})
        await STRATEGIES[opts.strategy](event, data, subscription.subscribers, self._sink)

    def to_promise(self, event: EventName) -> asyncio.Future[Any]:
        """Return a future resolved with the payload of the next ``event``.

        Must be called from a running event loop. Cancelling the future
        (for example through ``asyncio.wait_for``) drops the subscription.
        """
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

        def resolve(data: Any) -> None:
            if not future.done():
                future.set_result(data)

        wrapper = self._once(event, resolve)

        def drop_if_cancelled(fut: asyncio.Future[Any]) -> None:
            if fut.cancelled():
                wrapper.cancel()

        future.add_done_callback(drop_if_cancelled)
        return future
