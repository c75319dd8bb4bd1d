"""
labgame.tests helpers

- Deterministic test defaults (Hypothesis profiles "local" and "ci", picked
  with LABGAME_HYPOTHESIS_PROFILE).
- A small-caps game configuration so every generation is reachable in a few
  transactions: generation caps 4 / 8 / 10 / 12.
- Flow helpers: new_game(), mint_and_reveal(), give_serum(), climb_to_gen3()
"""

from __future__ import annotations

import os
from typing import List, Optional, Sequence

from hypothesis import HealthCheck, settings
from prometheus_client import CollectorRegistry

from labgame.config import GameConfig, GenerationParams
from labgame.constants import GEN0_PRICE, SERUM
from labgame.deploy import Deployment, deploy_game
from labgame.metrics import Metrics
from labgame.vm.chain import Chain

# ----- Hypothesis -----
settings.register_profile(
    "local",
    settings(max_examples=30, deadline=None, suppress_health_check=[HealthCheck.too_slow]),
)
settings.register_profile(
    "ci",
    settings(max_examples=150, deadline=None, suppress_health_check=[HealthCheck.too_slow]),
)
settings.load_profile(os.environ.get("LABGAME_HYPOTHESIS_PROFILE", "local"))

# ----- Small game -----
GEN1_SERUM = 2_000 * SERUM
GEN2_SERUM = 10_000 * SERUM
GEN3_SERUM = 50_000 * SERUM


def small_config(**overrides) -> GameConfig:
    params = {
        "generations": [
            GenerationParams(max_supply=4, native_price=GEN0_PRICE),
            GenerationParams(max_supply=8, serum_price=GEN1_SERUM, burns_previous=True),
            GenerationParams(max_supply=10, serum_price=GEN2_SERUM, burns_previous=True),
            GenerationParams(max_supply=12, serum_price=GEN3_SERUM),
        ],
        "blueprint_max_supply": 20,
        **overrides,
    }
    cfg = GameConfig(**params)
    cfg.validate()
    return cfg


def new_chain() -> Chain:
    """Chain with its own metrics registry so tests never share counters."""
    return Chain(metrics=Metrics(registry=CollectorRegistry()))


def new_game(config: Optional[GameConfig] = None) -> Deployment:
    chain = new_chain()
    return deploy_game(chain, chain.account("deployer"), config or small_config())


def give_serum(d: Deployment, to: bytes, amount: int) -> None:
    """Mint Serum straight to ``to``; the deployer becomes a controller once."""
    if not d.serum.has_role(d.serum.CONTROLLER_ROLE, d.deployer):
        d.serum.connect(d.deployer).add_controller(d.deployer)
    d.serum.connect(d.deployer).mint(to, amount)


def mint_and_reveal(
    d: Deployment,
    account: bytes,
    count: int,
    burn_ids: Sequence[int] = (),
) -> List[int]:
    """Request, let the coordinator answer, reveal. Returns the new token ids."""
    game = d.lab_game
    generation = game.generation_of(game.total_minted() + 1)
    value = count * game.generation_params(generation).native_price
    pending = game.connect(account).mint(count, list(burn_ids), value=value).value
    d.coordinator.connect(d.deployer).fulfill_request(pending.request_id)
    return game.connect(account).reveal().value


def climb_to_gen3(d: Deployment, account: bytes) -> List[int]:
    """
    Walk ``account`` through generations 0 to 3 of the small game.

    Returns the two generation-3 ids (11 and 12); the account ends up holding
    only those.
    """
    give_serum(d, account, 4 * GEN1_SERUM + 2 * GEN2_SERUM + 2 * GEN3_SERUM)
    gen0 = mint_and_reveal(d, account, 4)
    gen1 = mint_and_reveal(d, account, 4, burn_ids=gen0)
    gen2 = mint_and_reveal(d, account, 2, burn_ids=gen1[:2])
    # Hand everything below generation 3 to the deployer.
    for token_id in gen1[2:] + gen2:
        d.lab_game.connect(account).transfer_from(account, d.deployer, token_id)
    return mint_and_reveal(d, account, 2)
