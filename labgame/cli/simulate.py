"""
labgame.cli.simulate — play a short game on a throwaway local chain.

Deploys the full game, opens minting, lets N players mint K generation-0
tokens each (request, oracle fulfilment, reveal), advances the clock by D days
and prints every player's tokens with their pending Serum.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import typer
from prometheus_client import CollectorRegistry
from rich.console import Console
from rich.table import Table

from ..constants import SECONDS_PER_DAY, SERUM
from ..deploy import Deployment, deploy_game
from ..errors import LabGameError
from ..hashing import to_hex
from ..metrics import Metrics
from ..vm.chain import Chain
from .config_cmd import resolve

logger = logging.getLogger(__name__)


def run_simulation(deployment: Deployment, players: List[bytes], count: int, days: int) -> None:
    game = deployment.lab_game
    owner = deployment.deployer
    if game.paused():
        game.connect(owner).unpause()
    if game.whitelisted():
        game.connect(owner).disable_whitelist()
    price = game.generation_params(0).native_price
    for p in players:
        game.connect(p).mint(count, value=count * price)
    deployment.coordinator.connect(owner).fulfill_requests()
    for p in players:
        game.connect(p).reveal()
    deployment.chain.increase_time(days * SECONDS_PER_DAY)


def _table(deployment: Deployment, players: List[bytes]) -> Table:
    game = deployment.lab_game
    table = Table(title="LabGame simulation")
    table.add_column("Player")
    table.add_column("Address")
    table.add_column("Tokens")
    table.add_column("Mutants", justify="right")
    table.add_column("Pending SERUM", justify="right")
    for p in players:
        ids = game.tokens_of_owner(p)
        mutants = sum(1 for t in ids if game.token_data(t).kind_name == "mutant")
        pending = deployment.serum.pending_claim(p)
        table.add_row(
            deployment.chain.label(p),
            to_hex(p),
            ", ".join(str(t) for t in sorted(ids)),
            str(mutants),
            f"{pending / SERUM:,.2f}",
        )
    return table


def simulate(
    config: Optional[str] = typer.Option(None, "--config", help="JSON or YAML config file"),
    players: int = typer.Option(3, "--players", min=1, help="Number of players"),
    count: int = typer.Option(2, "--count", min=1, help="Tokens minted per player"),
    days: int = typer.Option(1, "--days", min=0, help="Days to advance after reveal"),
) -> None:
    """Deploy, mint, fulfil, reveal and accrue on a local chain."""
    cfg = resolve(config)
    chain = Chain(metrics=Metrics(registry=CollectorRegistry()))
    deployer = chain.account("deployer")
    accounts = chain.accounts(players, prefix="player")
    try:
        deployment = deploy_game(chain, deployer, cfg)
        run_simulation(deployment, accounts, count, days)
    except LabGameError as e:
        typer.echo(f"Error: {e.code}: {e.message}", err=True)
        raise typer.Exit(1)
    Console().print(_table(deployment, accounts))
