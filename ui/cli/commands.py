"""Typer command handlers."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import typer
from pydantic import ValidationError

from core.event_bus import EventEmitter
from core.policy_runtime import load_effective_config, load_settings
from core.types import EmitOptions


def config_show(root: Path) -> None:
    """Show effective emitter settings."""
    settings = load_settings(load_effective_config(root.resolve()))
    typer.echo(json.dumps(settings.model_dump(mode="json"), indent=2))


def demo(strategy: str = "parallel", debug: bool = False) -> None:
    """Run the scripted feature walkthrough."""
    try:
        options = EmitOptions.model_validate({"strategy": strategy})
    except ValidationError as exc:
        raise typer.BadParameter(f"Unknown strategy: {strategy}") from exc
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(filename)s:%(lineno)d %(message)s",
        )
    asyncio.run(_walkthrough(EventEmitter(debug=debug), options))


async def _walkthrough(emitter: EventEmitter, options: EmitOptions) -> None:
    typer.echo("Basic event")
    emitter.on("greet", lambda name: typer.echo(f"Hello, {name}!"))
    await emitter.emit("greet", "John")

    typer.echo("Multiple listeners")
    emitter.on("data", lambda value: typer.echo(f"Listener 1 received: {value}"))
    emitter.on("data", lambda value: typer.echo(f"Listener 2 received: {value}"))
    await emitter.emit("data", 42)

    typer.echo("Once listener")
    emitter.once("one-time", lambda message: typer.echo(f"One-time event: {message}"))
    await emitter.emit("one-time", "First time")
    await emitter.emit("one-time", "Second time (not received)")

    typer.echo("Remove listener")

    def goodbye(name: str) -> None:
        typer.echo(f"Goodbye, {name}!")

    emitter.on("goodbye", goodbye)
    await emitter.emit("goodbye", "Alice")
    emitter.off("goodbye", goodbye)
    await emitter.emit("goodbye", "Bob")

    typer.echo(f"Active events: {', '.join(map(str, emitter.event_names))}")
    typer.echo(f"Is emitter empty? {emitter.is_empty()}")

    typer.echo("Priorities")
    emitter.on("ranked", lambda _: typer.echo("Default priority"), 0)
    emitter.on("ranked", lambda _: typer.echo("High priority"), 100)
    await emitter.emit("ranked", 123)

    typer.echo(f"Delayed listeners ({options.strategy.value})")

    async def slow(_: int) -> None:
        await asyncio.sleep(0.1)
        typer.echo("Slow listener finished")

    async def fast(_: int) -> None:
        await asyncio.sleep(0.05)
        typer.echo("Fast listener finished")

    emitter.on("delayed", slow)
    emitter.on("delayed", fast)
    await emitter.emit("delayed", 456, options)

    typer.echo("Awaiting an event")
    pending = emitter.to_promise("ready")
    await emitter.emit("ready", {"status": "ok"})
    typer.echo(f"Resolved with: {await pending}")
