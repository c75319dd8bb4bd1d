"""
LabGame constants.

This module centralizes:
- Domain separation tags for the oracle stand-in and the rescue fallback
- Units (native wei, 18-decimal Serum) and time units
- Default generation table, prices and accrual rates (mirrored by
  `labgame.config` defaults)
- Default rarity weights for trait and blueprint assignment

Networks override operational knobs through `labgame.config.GameConfig`;
code that needs stable compile-time defaults can import from here.
"""

from __future__ import annotations

from typing import Tuple

# -----------------------------
# Domain separation (bytes tags)
# -----------------------------
# Keep these stable; changing them changes every derived word and address.
DOMAIN_PREFIX: bytes = b"labgame."

DOMAIN_VRF_WORD: bytes = DOMAIN_PREFIX + b"vrf.word.v1"
DOMAIN_RESCUE_WORD: bytes = DOMAIN_PREFIX + b"rescue.word.v1"
DOMAIN_CONTRACT_ADDR: bytes = DOMAIN_PREFIX + b"contract.addr.v1"
DOMAIN_ACCOUNT_ADDR: bytes = DOMAIN_PREFIX + b"account.addr.v1"
DOMAIN_ROLE_ID: bytes = DOMAIN_PREFIX + b"role.v1"

# -----------------------------
# Units
# -----------------------------
WEI: int = 1
ETHER: int = 10**18
SERUM_DECIMALS: int = 18
SERUM: int = 10**SERUM_DECIMALS

SECONDS_PER_DAY: int = 86_400

U256_MAX: int = 2**256 - 1

# -----------------------------
# Mint limits and generations
# -----------------------------
MAX_MINT_PER_TX: int = 10

# Generation caps are cumulative token-id ceilings: generation g covers ids
# (cap[g-1], cap[g]].
GENERATION_CAPS: Tuple[int, ...] = (2_222, 4_444, 6_666, 8_888)
GEN0_PRICE: int = 6 * ETHER // 100  # 0.06 native units
GENERATION_SERUM_PRICES: Tuple[int, ...] = (0, 2_000 * SERUM, 10_000 * SERUM, 50_000 * SERUM)
# Generations 1 and 2 are minted by burning the same number of previous-generation tokens.
GENERATION_BURNS_PREVIOUS: Tuple[bool, ...] = (False, True, True, False)

# -----------------------------
# Accrual
# -----------------------------
SERUM_RATE: int = 1_000 * SERUM
SERUM_PERIOD_S: int = SECONDS_PER_DAY

BLUEPRINT_RATE: int = 1
BLUEPRINT_PERIOD_S: int = 2 * SECONDS_PER_DAY
BLUEPRINT_GENERATION: int = 3
BLUEPRINT_MAX_SUPPLY: int = 100_000

# -----------------------------
# Oracle defaults (local coordinator)
# -----------------------------
DEFAULT_KEY_HASH: bytes = bytes.fromhex(
    "d89b2bf150e3b9e13446986e571fb9cab24b13cea0a43ea20a6049a85cc807cc"
)
DEFAULT_SUBSCRIPTION_ID: int = 1
DEFAULT_REQUEST_CONFIRMATIONS: int = 3
DEFAULT_CALLBACK_GAS_LIMIT: int = 500_000
MAX_NUM_WORDS: int = 500

# -----------------------------
# Traits
# -----------------------------
KIND_SCIENTIST: int = 0
KIND_MUTANT: int = 1
KIND_NAMES: Tuple[str, ...] = ("scientist", "mutant")
# Out of 256.
MUTANT_THRESHOLD: int = 26

TRAIT_SLOTS: Tuple[str, ...] = (
    "background",
    "body",
    "clothes",
    "eyes",
    "mouth",
    "headwear",
    "accessory",
    "hand",
)

# Sixteen weight tables: eight slots for scientists followed by eight for mutants.
DEFAULT_TRAIT_WEIGHTS: Tuple[Tuple[int, ...], ...] = (
    (30, 25, 20, 15, 10),
    (40, 30, 20, 10),
    (20, 20, 15, 15, 10, 10, 5, 5),
    (35, 25, 20, 12, 8),
    (30, 30, 20, 15, 5),
    (50, 20, 15, 10, 5),
    (60, 15, 10, 8, 5, 2),
    (45, 25, 15, 10, 5),
    (25, 25, 25, 25),
    (50, 30, 15, 5),
    (30, 25, 20, 15, 10),
    (40, 30, 20, 10),
    (35, 35, 20, 10),
    (55, 25, 15, 5),
    (70, 20, 8, 2),
    (40, 30, 20, 8, 2),
)

BLUEPRINT_RARITIES: Tuple[str, ...] = ("common", "uncommon", "rare", "epic", "legendary")
BLUEPRINT_RARITY_WEIGHTS: Tuple[int, ...] = (60, 25, 10, 4, 1)

# -----------------------------
# Host
# -----------------------------
DEFAULT_CHAIN_ID: int = 1337
DEFAULT_GENESIS_TIMESTAMP: int = 1_700_000_000
DEFAULT_ACCOUNT_BALANCE: int = 10_000 * ETHER

__all__ = [name for name in dir() if name.isupper()]
