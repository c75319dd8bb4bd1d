# -*- coding: utf-8 -*-
"""
labgame.tests.conftest
======================

Pytest fixtures for the LabGame contracts.

- ``chain``: a fresh :class:`~labgame.vm.Chain` with a private metrics registry.
- ``deployer``, ``alice``, ``bob``, ``carol``: funded, labelled accounts.
- ``game``: the full deployment (coordinator, Serum, LabGame, Blueprint) with
  the small-caps configuration from :mod:`labgame.tests`.

Usage:
    def test_mint(game, alice):
        ids = mint_and_reveal(game, alice, 2)
        assert game.lab_game.balance_of(alice) == 2
"""
from __future__ import annotations

import os

import pytest

from labgame.deploy import deploy_game

from . import new_chain, small_config

os.environ.setdefault("PYTHONHASHSEED", "0")


@pytest.fixture
def chain():
    return new_chain()


@pytest.fixture
def deployer(chain):
    return chain.account("deployer")


@pytest.fixture
def alice(chain):
    return chain.account("alice")


@pytest.fixture
def bob(chain):
    return chain.account("bob")


@pytest.fixture
def carol(chain):
    return chain.account("carol")


@pytest.fixture
def config():
    return small_config()


@pytest.fixture
def game(chain, deployer, config):
    return deploy_game(chain, deployer, config)


@pytest.fixture(autouse=True)
def _clean_labgame_env(monkeypatch):
    for k in list(os.environ):
        if k.startswith("LABGAME_") and k != "LABGAME_HYPOTHESIS_PROFILE":
            monkeypatch.delenv(k, raising=False)
