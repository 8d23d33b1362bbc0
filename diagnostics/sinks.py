"""Diagnostic sinks receiving emitter operation logs, warnings and listener errors."""

from __future__ import annotations

import logging
from typing import Any, Protocol

logger = logging.getLogger("emitter.diagnostics")


class DiagnosticSink(Protocol):
    """Anything accepting ``(operation, context)`` notifications."""

    def log(self, operation: str, context: dict[str, Any]) -> None: ...

    def warn(self, operation: str, context: dict[str, Any]) -> None: ...

    def error(self, operation: str, context: dict[str, Any]) -> None: ...


def describe(operation: str, context: dict[str, Any]) -> str:
    """Render a notification as one human-readable line."""
    parts = [operation.upper()]
    if context.get("event") is not None:
        parts.append(str(context["event"]))
    if context.get("data") is not None:
        parts.append(f"DATA {context['data']!r}")
    if context.get("message"):
        parts.append(f"MESSAGE {context['message']}")
    return " ".join(parts)


class NullDiagnosticSink:
    """Discards every notification."""

    def log(self, operation: str, context: dict[str, Any]) -> None:
        _ = operation, context

    def warn(self, operation: str, context: dict[str, Any]) -> None:
        _ = operation, context

    def error(self, operation: str, context: dict[str, Any]) -> None:
        _ = operation, context


class LoggingDiagnosticSink:
    """Default sink writing through the ``emitter.diagnostics`` logger.

    Operation logs go out at DEBUG and carry the location of the code that
    called into the emitter (``stacklevel`` counts from this sink up through
    the emitter method), so ``%(filename)s:%(lineno)d`` in a formatter points
    at application code.
    """

    def __init__(self, target: logging.Logger | None = None, stacklevel: int = 3) -> None:
        self.logger = target or logger
        self.stacklevel = stacklevel

    def log(self, operation: str, context: dict[str, Any]) -> None:
        self.logger.debug("[emitter] %s", describe(operation, context), stacklevel=self.stacklevel)

    def warn(self, operation: str, context: dict[str, Any]) -> None:
        self.logger.warning("[emitter] %s", describe(operation, context))

    def error(self, operation: str, context: dict[str, Any]) -> None:
        exc = context.get("error")
        self.logger.error(
            '[emitter] Error in listener for event "%s": %s',
            context.get("event"),
            exc,
            exc_info=exc if isinstance(exc, BaseException) else None,
        )
