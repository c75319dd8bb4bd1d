"""
labgame.cli.config_cmd — inspect the resolved configuration.

Implements:
  - labgame config show [--config PATH]

Without ``--config`` the configuration comes from ``LABGAME_*`` environment
variables on top of the built-in defaults.
"""

from __future__ import annotations

from typing import Optional

import typer

from ..config import GameConfig, load_config

app = typer.Typer(help="Game configuration")


def resolve(config_path: Optional[str]) -> GameConfig:
    try:
        return load_config(config_path)
    except (OSError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)


@app.command()
def show(
    config: Optional[str] = typer.Option(
        None,
        "--config",
        help="JSON or YAML config file",
        envvar="LABGAME_CONFIG",
    ),
) -> None:
    """Print the resolved configuration as JSON."""
    typer.echo(resolve(config).to_json())
