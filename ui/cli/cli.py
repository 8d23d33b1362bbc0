"""CLI entrypoint for the event emitter."""

from __future__ import annotations

from pathlib import Path

import typer

from ui.cli import commands

app = typer.Typer(help="Priority event emitter")
config_app = typer.Typer(help="Configuration commands")


@config_app.command("show")
def config_show_cmd(
    root: Path = typer.Option(Path("."), "--root", help="Directory holding config/"),
) -> None:
    """Show effective emitter settings."""
    commands.config_show(root=root)


@app.command("demo")
def demo_cmd(
    strategy: str = typer.Option("parallel", "--strategy", help="parallel or sequential"),
    debug: bool = typer.Option(False, "--debug", help="Log every emitter operation"),
) -> None:
    """Walk through the emitter features and print what listeners receive."""
    commands.demo(strategy=strategy, debug=debug)


app.add_typer(config_app, name="config")


def main() -> None:
    """Console script entrypoint."""
    app()


if __name__ == "__main__":
    main()
