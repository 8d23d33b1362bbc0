"""Configuration loading and emitter settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from diagnostics.jsonl_sink import JsonlDiagnosticSink
from diagnostics.sinks import DiagnosticSink, LoggingDiagnosticSink, NullDiagnosticSink


class EmitterSettings(BaseModel):
    """Validated emitter configuration."""

    max_listeners: int = Field(default=10, ge=1)
    debug: bool = False
    diagnostics: Literal["logging", "null", "jsonl"] = "logging"
    diagnostics_path: Path = Path("logs/emitter.jsonl")


def load_yaml(path: Path) -> dict[str, Any]:
    """Read an emitter config file; a missing file means no overrides."""
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Emitter config must be a YAML mapping, got {type(data).__name__}: {path}")
    return data


def merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Layer ``override`` on top of ``base``; nested sections merge key by key."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        merged[key] = (
            merge_dicts(current, value)
            if isinstance(current, dict) and isinstance(value, dict)
            else value
        )
    return merged


def load_effective_config(root: Path) -> dict[str, Any]:
    """Merge ``config/default.yaml`` with an optional ``config/local.yaml``."""
    config_dir = root / "config"
    default_cfg = load_yaml(config_dir / "default.yaml")
    local_cfg = load_yaml(config_dir / "local.yaml")
    return merge_dicts(default_cfg, local_cfg)


def load_settings(config: dict[str, Any] | None = None) -> EmitterSettings:
    """Validate the ``emitter`` section of a config mapping.

    A mapping without an ``emitter`` key is treated as the section itself.
    """
    cfg = config or {}
    section = cfg.get("emitter", cfg)
    if not isinstance(section, dict):
        raise ValueError("emitter config must be a mapping.")
    return EmitterSettings.model_validate(section)


def build_sink(settings: EmitterSettings, root: Path | None = None) -> DiagnosticSink:
    """Create the diagnostic sink selected by ``settings``."""
    if settings.diagnostics == "null":
        return NullDiagnosticSink()
    if settings.diagnostics == "jsonl":
        path = settings.diagnostics_path
        if root is not None and not path.is_absolute():
            path = (root / path).resolve()
        return JsonlDiagnosticSink(path)
    return LoggingDiagnosticSink()
