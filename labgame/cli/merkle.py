"""
labgame.cli.merkle — allowlist tree tooling.

Implements:
  - labgame merkle root FILE               Root of an address list
  - labgame merkle proof FILE ADDRESS      JSON proof for one address
  - labgame merkle verify ROOT ADDRESS P.. true/false (exit 1 when false)

FILE is either a JSON array of 0x-addresses or one address per line (blank
lines and ``#`` comments ignored). Order matters: it fixes the leaf order.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List

import typer

from ..hashing import to_address, to_bytes, to_hex
from ..stdlib.merkle import AllowlistTree, leaf_for, verify_proof

app = typer.Typer(help="Merkle allowlist roots and proofs")


def load_addresses(path: Path) -> List[bytes]:
    text = path.read_text(encoding="utf-8")
    stripped = text.strip()
    if stripped.startswith("["):
        items = json.loads(stripped)
    else:
        items = [ln.split("#", 1)[0].strip() for ln in text.splitlines()]
        items = [ln for ln in items if ln]
    return [to_address(a) for a in items]


def _tree(path: Path) -> AllowlistTree:
    try:
        return AllowlistTree(load_addresses(path))
    except (ValueError, json.JSONDecodeError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)


@app.command()
def root(file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Address list")) -> None:
    """Print the allowlist root."""
    typer.echo(to_hex(_tree(file).root))


@app.command()
def proof(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Address list"),
    address: str = typer.Argument(..., help="0x-address to prove"),
) -> None:
    """Print the JSON proof for ADDRESS."""
    tree = _tree(file)
    account = to_address(address)
    if account not in tree:
        typer.echo(f"Error: {address} is not in the allowlist", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps([to_hex(p) for p in tree.proof_for(account)], indent=2))


@app.command()
def verify(
    root_hex: str = typer.Argument(..., metavar="ROOT", help="0x-root"),
    address: str = typer.Argument(..., help="0x-address"),
    steps: List[str] = typer.Argument(None, metavar="PROOF...", help="Sibling hashes"),
) -> None:
    """Check a proof against a root."""
    try:
        nodes = [to_bytes(s) for s in steps or []]
        ok = verify_proof(leaf_for(to_address(address)), nodes, to_bytes(root_hex))
    except ValueError:
        ok = False
    typer.echo("true" if ok else "false")
    if not ok:
        raise typer.Exit(1)
