"""
Release flow wiring.
"""

from __future__ import annotations

from labgame.deploy import deploy_game

from . import new_chain, small_config


def test_contracts_are_wired(game):
    assert game.serum.lab_game() == game.lab_game.address
    assert game.serum.has_role(game.serum.CONTROLLER_ROLE, game.lab_game.address)
    assert game.blueprint.lab_game() == game.lab_game.address
    assert game.lab_game.blueprint() == game.blueprint.address
    assert game.lab_game.serum() == game.serum.address
    for c in (game.serum, game.lab_game, game.blueprint):
        assert c.owner() == game.deployer
    assert not game.lab_game.paused()
    assert not game.lab_game.whitelisted()


def test_addresses_are_hex_and_distinct(game):
    addrs = game.addresses()
    assert set(addrs) == {"deployer", "coordinator", "serum", "lab_game", "blueprint"}
    assert all(a.startswith("0x") and len(a) == 42 for a in addrs.values())
    assert len(set(addrs.values())) == 5


def test_same_inputs_same_addresses(chain, deployer):
    other = new_chain()
    a = deploy_game(chain, deployer, small_config())
    b = deploy_game(other, other.account("deployer"), small_config())
    assert a.addresses() == b.addresses()


def test_start_paused(chain, deployer):
    d = deploy_game(chain, deployer, small_config(start_paused=True))
    assert d.lab_game.paused()
