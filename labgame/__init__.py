"""
LabGame package.

A generative-character game on a local deterministic chain: commit/reveal
minting against an oracle, time-accrued Serum rewards, generational
burn-to-mint, a Blueprint companion collection and Merkle allowlists.

Public surface:
- __version__
- Chain / Receipt: the local host
- GameConfig / load_config: deployment configuration
- deploy_game / Deployment: release flow
- LabGame, Serum, Blueprint, VRFCoordinator: the contracts
"""

from .config import GameConfig, load_config
from .contracts import Blueprint, LabGame, Serum, VRFCoordinator
from .deploy import Deployment, deploy_game
from .errors import LabGameError
from .version import __version__
from .vm import Chain, Receipt

__all__ = [
    "__version__",
    "Chain",
    "Receipt",
    "GameConfig",
    "load_config",
    "Deployment",
    "deploy_game",
    "LabGame",
    "Serum",
    "Blueprint",
    "VRFCoordinator",
    "LabGameError",
]
