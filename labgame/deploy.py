# -*- coding: utf-8 -*-
"""
Release flow for a LabGame deployment on a :class:`~labgame.vm.Chain`.

Steps (each a transaction sent by ``deployer``):

  1. VRF coordinator
  2. Serum      (proxy)
  3. LabGame    (proxy)
  4. Blueprint  (proxy)
  5. Serum.add_controller(LabGame), Serum.set_lab_game(LabGame)
  6. Blueprint.set_lab_game(LabGame), LabGame.set_blueprint(Blueprint)
  7. LabGame.enable_whitelist(root)     when a root is configured
  8. LabGame.pause()                    when ``start_paused`` is set

Usage:
    chain = Chain()
    d = deploy_game(chain, chain.account("deployer"), load_config())
    d.lab_game.connect(alice).mint(1, value=GEN0_PRICE)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from .config import GameConfig
from .contracts import Blueprint, LabGame, Serum, VRFCoordinator
from .hashing import to_hex
from .stdlib.upgrade import deploy_proxy
from .vm.chain import Chain

logger = logging.getLogger(__name__)


@dataclass
class Deployment:
    chain: Chain
    deployer: bytes
    config: GameConfig
    coordinator: VRFCoordinator
    serum: Serum
    lab_game: LabGame
    blueprint: Blueprint

    def addresses(self) -> Dict[str, str]:
        return {
            "deployer": to_hex(self.deployer),
            "coordinator": to_hex(self.coordinator.address),
            "serum": to_hex(self.serum.address),
            "lab_game": to_hex(self.lab_game.address),
            "blueprint": to_hex(self.blueprint.address),
        }


def deploy_game(
    chain: Chain,
    deployer: bytes,
    config: Optional[GameConfig] = None,
    *,
    coordinator_seed: Optional[bytes] = None,
) -> Deployment:
    cfg = config or GameConfig()
    cfg.validate()

    coordinator = chain.deploy(VRFCoordinator, deployer, coordinator_seed)
    serum = deploy_proxy(
        chain, Serum, deployer, "Serum", "SERUM", cfg.serum_accrual.rate, cfg.serum_accrual.period_s
    )
    lab_game = deploy_proxy(chain, LabGame, deployer, serum.address, coordinator.address, cfg)
    blueprint = deploy_proxy(chain, Blueprint, deployer, None, coordinator.address, cfg)

    serum.connect(deployer).add_controller(lab_game.address)
    serum.connect(deployer).set_lab_game(lab_game.address)
    blueprint.connect(deployer).set_lab_game(lab_game.address)
    lab_game.connect(deployer).set_blueprint(blueprint.address)

    if cfg.whitelist_root:
        lab_game.connect(deployer).enable_whitelist(cfg.whitelist_root)
    if cfg.start_paused:
        lab_game.connect(deployer).pause()

    deployment = Deployment(
        chain=chain,
        deployer=deployer,
        config=cfg,
        coordinator=coordinator,
        serum=serum,
        lab_game=lab_game,
        blueprint=blueprint,
    )
    for name, addr in deployment.addresses().items():
        if name != "deployer":
            logger.info("%s deployed to %s", name, addr)
    return deployment


__all__ = ["Deployment", "deploy_game"]
