"""Structured JSONL diagnostic sink."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any


class JsonlDiagnosticSink:
    """Appends every emitter notification to a file as one JSON line."""

    def __init__(self, log_path: Path) -> None:
        self.log_path = log_path
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger("emitter.jsonl")
        self.logger.setLevel(logging.INFO)

    def log(self, operation: str, context: dict[str, Any]) -> None:
        self._write("debug", operation, context)

    def warn(self, operation: str, context: dict[str, Any]) -> None:
        self._write("warning", operation, context)

    def error(self, operation: str, context: dict[str, Any]) -> None:
        self._write("error", operation, context)

    def _write(self, level: str, operation: str, context: dict[str, Any]) -> None:
        record = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": level,
            "operation": operation,
            "event": _json_value(context.get("event")),
            "message": str(context.get("message", "")),
            "data": _json_value(context.get("data")),
        }
        if "error" in context:
            record["error"] = repr(context["error"])
        line = json.dumps(record, ensure_ascii=True, default=str)
        with self.log_path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")
        self.logger.info(line)


def _json_value(value: Any) -> Any:
    """Keep JSON-native values, stringify the rest."""
    if value is None or isinstance(value, (str, int, float, bool, list, dict)):
        return value
    return str(value)
