"""Shared emitter types: callbacks, listener entries and emission options."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")

EventName = Hashable
EventCallback = Callable[[T], Awaitable[None] | None]
CleanUpFn = Callable[[], None]


class Strategy(str, Enum):
    """How listener callbacks of one emission are scheduled."""

    PARALLEL = "parallel"
    SEQUENTIAL = "sequential"


class EmitOptions(BaseModel):
    """Per-call emission options."""

    model_config = ConfigDict(frozen=True)

    strategy: Strategy = Strategy.PARALLEL


@dataclass(frozen=True)
class SubscriberWithPriority:
    """A registered callback and its priority (higher runs first)."""

    callback: EventCallback[Any]
    priority: int = 0
