"""
labgame.contracts — the deployed game.

- :class:`VRFCoordinator` local randomness oracle
- :class:`Serum`          ERC-20 reward token with per-token accrual
- :class:`LabGame`        generational ERC-721 minted by commit/reveal
- :class:`Blueprint`      ERC-721 earned by holding generation-3 tokens
- :class:`TraitGenerator` / :class:`RarityGenerator` pure trait assignment
"""

from .blueprint import Blueprint
from .generator import AliasTable, RarityGenerator, TraitGenerator, TraitSet
from .lab_game import LabGame
from .serum import Serum
from .vrf_coordinator import VRFCoordinator

__all__ = [
    "VRFCoordinator",
    "Serum",
    "LabGame",
    "Blueprint",
    "TraitGenerator",
    "RarityGenerator",
    "TraitSet",
    "AliasTable",
]
