"""
labgame — command line for the LabGame contracts.

Commands:
  - labgame merkle root|proof|verify   Allowlist trees
  - labgame config show                Resolved configuration
  - labgame simulate                   Local end-to-end game run

Global options:
  --log-level TEXT   DEBUG, INFO, WARNING, ERROR (default WARNING)

Examples:
  labgame merkle root whitelist.txt
  labgame merkle proof whitelist.txt 0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266
  labgame config show --config game.yaml
  labgame --log-level INFO simulate --players 4 --count 3 --days 2
"""

from __future__ import annotations

import logging

import typer

from ..version import __version__
from . import config_cmd, merkle
from .simulate import simulate

app = typer.Typer(
    name="labgame",
    help="LabGame contracts: allowlists, configuration and local simulation",
    no_args_is_help=True,
    add_completion=False,
)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Logging level",
        envvar="LABGAME_LOG_LEVEL",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Print the version and exit",
    ),
) -> None:
    _configure_logging(log_level)


app.add_typer(merkle.app, name="merkle")
app.add_typer(config_cmd.app, name="config")
app.command(name="simulate")(simulate)


def main() -> None:
    """Entry point for the labgame CLI."""
    app()


if __name__ == "__main__":
    main()
