"""
LabGame configuration.

Typed configuration objects for a game deployment:
- Oracle (VRF) request parameters
- Generation table (cumulative caps, native / Serum prices, burn rule)
- Accrual rates for Serum and Blueprint
- Whitelist root, pending-mint rescue timeout, reveal delivery model

Provides:
- Dataclass-based configs with validation
- Loading from environment variables (prefix configurable, default ``LABGAME_``)
- Loading from a JSON or YAML file (YAML through PyYAML)
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional

from . import constants as C

# -------------------------
# Sub-configs
# -------------------------


def _is_hex32(s: str) -> bool:
    h = s[2:] if s.startswith(("0x", "0X")) else s
    if len(h) != 64:
        return False
    try:
        bytes.fromhex(h)
    except ValueError:
        return False
    return True


@dataclass
class VRFParams:
    """
    Parameters forwarded with every randomness request.

    key_hash: gas lane / proving key identifier (0x-hex, 32 bytes)
    subscription_id: billing subscription on the coordinator
    request_confirmations: blocks the coordinator waits before answering
    callback_gas_limit: gas budget for the fulfilment callback
    num_words_limit: upper bound on words per request
    """

    key_hash: str = "0x" + C.DEFAULT_KEY_HASH.hex()
    subscription_id: int = C.DEFAULT_SUBSCRIPTION_ID
    request_confirmations: int = C.DEFAULT_REQUEST_CONFIRMATIONS
    callback_gas_limit: int = C.DEFAULT_CALLBACK_GAS_LIMIT
    num_words_limit: int = C.MAX_NUM_WORDS

    def key_hash_bytes(self) -> bytes:
        return bytes.fromhex(self.key_hash[2:] if self.key_hash.startswith("0x") else self.key_hash)

    def validate(self) -> None:
        if not _is_hex32(self.key_hash):
            raise ValueError("key_hash must be 32 bytes of hex")
        if self.subscription_id < 0:
            raise ValueError("subscription_id must be >= 0")
        if self.request_confirmations < 0:
            raise ValueError("request_confirmations must be >= 0")
        if self.callback_gas_limit < 0:
            raise ValueError("callback_gas_limit must be >= 0")
        if self.num_words_limit <= 0:
            raise ValueError("num_words_limit must be > 0")


@dataclass
class GenerationParams:
    """
    One row of the generation table.

    max_supply: cumulative token-id cap; the generation covers ids up to it
    native_price: price per token in native units (0 = not paid natively)
    serum_price: Serum burned per token (0 = no Serum cost)
    burns_previous: caller must burn one previous-generation token per mint
    """

    max_supply: int
    native_price: int = 0
    serum_price: int = 0
    burns_previous: bool = False

    def validate(self) -> None:
        if self.max_supply <= 0:
            raise ValueError("max_supply must be > 0")
        if self.native_price < 0 or self.serum_price < 0:
            raise ValueError("prices must be >= 0")


def _default_generations() -> List[GenerationParams]:
    return [
        GenerationParams(
            max_supply=C.GENERATION_CAPS[g],
            native_price=C.GEN0_PRICE if g == 0 else 0,
            serum_price=C.GENERATION_SERUM_PRICES[g],
            burns_previous=C.GENERATION_BURNS_PREVIOUS[g],
        )
        for g in range(len(C.GENERATION_CAPS))
    ]


@dataclass
class AccrualParams:
    """Linear accrual: ``rate`` reward units per token every ``period_s`` seconds."""

    rate: int
    period_s: int

    def validate(self) -> None:
        if self.rate < 0:
            raise ValueError("rate must be >= 0")
        if self.period_s <= 0:
            raise ValueError("period_s must be > 0")


# -------------------------
# Top-level config
# -------------------------


@dataclass
class GameConfig:
    """
    Deployment knobs for LabGame, Serum and Blueprint.

    pending_timeout_s: seconds after which the owner may rescue an unfulfilled
                       pending mint (0 disables the rescue path)
    auto_reveal:       push delivery; the oracle callback reveals inline
    start_paused:      pause LabGame right after deployment
    """

    name: str = "LabGame"
    symbol: str = "LABGAME"
    max_mint_per_tx: int = C.MAX_MINT_PER_TX
    generations: List[GenerationParams] = field(default_factory=_default_generations)
    serum_accrual: AccrualParams = field(
        default_factory=lambda: AccrualParams(C.SERUM_RATE, C.SERUM_PERIOD_S)
    )
    blueprint_accrual: AccrualParams = field(
        default_factory=lambda: AccrualParams(C.BLUEPRINT_RATE, C.BLUEPRINT_PERIOD_S)
    )
    blueprint_max_supply: int = C.BLUEPRINT_MAX_SUPPLY
    whitelist_root: Optional[str] = None
    pending_timeout_s: int = 0
    auto_reveal: bool = False
    start_paused: bool = False
    vrf: VRFParams = field(default_factory=VRFParams)

    def max_supply(self) -> int:
        return self.generations[-1].max_supply

    def validate(self) -> None:
        if not self.name or not self.symbol:
            raise ValueError("name and symbol must be non-empty")
        if not (1 <= self.max_mint_per_tx <= self.vrf.num_words_limit):
            raise ValueError("max_mint_per_tx must be in [1, vrf.num_words_limit]")
        if not self.generations:
            raise ValueError("at least one generation is required")
        prev = 0
        for g, gen in enumerate(self.generations):
            gen.validate()
            if gen.max_supply <= prev:
                raise ValueError(f"generation {g} cap must exceed the previous cap")
            if g == 0 and gen.burns_previous:
                raise ValueError("generation 0 cannot burn a previous generation")
            prev = gen.max_supply
        self.serum_accrual.validate()
        self.blueprint_accrual.validate()
        if self.blueprint_max_supply <= 0:
            raise ValueError("blueprint_max_supply must be > 0")
        if self.whitelist_root is not None and not _is_hex32(self.whitelist_root):
            raise ValueError("whitelist_root must be 32 bytes of hex")
        if self.pending_timeout_s < 0:
            raise ValueError("pending_timeout_s must be >= 0")
        self.vrf.validate()

    # -------------------------
    # Serialization helpers
    # -------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "GameConfig":
        data = dict(data or {})
        defaults = GameConfig()
        gens_raw = data.pop("generations", None)
        serum_d = data.pop("serum_accrual", None) or {}
        bp_d = data.pop("blueprint_accrual", None) or {}
        vrf_d = data.pop("vrf", None) or {}
        unknown = set(data) - set(GameConfig.__dataclass_fields__)
        if unknown:
            raise ValueError(f"unknown config keys: {sorted(unknown)}")
        cfg = GameConfig(
            generations=(
                [GenerationParams(**g) for g in gens_raw] if gens_raw else defaults.generations
            ),
            serum_accrual=AccrualParams(
                rate=serum_d.get("rate", defaults.serum_accrual.rate),
                period_s=serum_d.get("period_s", defaults.serum_accrual.period_s),
            ),
            blueprint_accrual=AccrualParams(
                rate=bp_d.get("rate", defaults.blueprint_accrual.rate),
                period_s=bp_d.get("period_s", defaults.blueprint_accrual.period_s),
            ),
            vrf=VRFParams(**vrf_d),
            **data,
        )
        cfg.validate()
        return cfg

    # -------------------------
    # Loaders
    # -------------------------

    @staticmethod
    def from_env(prefix: str = "LABGAME_") -> "GameConfig":
        """
        Load configuration from environment variables. All variables are optional.

        Supported keys (examples):
          - LABGAME_NAME=LabGame
          - LABGAME_SYMBOL=LABGAME
          - LABGAME_MAX_MINT_PER_TX=10
          - LABGAME_GEN_CAPS=2222,4444,6666,8888
          - LABGAME_GEN0_PRICE=60000000000000000
          - LABGAME_GEN_SERUM_PRICES=0,2000e18,10000e18,50000e18   (integers)
          - LABGAME_SERUM_RATE=1000000000000000000000
          - LABGAME_SERUM_PERIOD_S=86400
          - LABGAME_BLUEPRINT_RATE=1
          - LABGAME_BLUEPRINT_PERIOD_S=172800
          - LABGAME_BLUEPRINT_MAX_SUPPLY=100000
          - LABGAME_WHITELIST_ROOT=0x…
          - LABGAME_PENDING_TIMEOUT_S=0
          - LABGAME_AUTO_REVEAL=false
          - LABGAME_START_PAUSED=false

          - LABGAME_VRF_KEY_HASH=0x…
          - LABGAME_VRF_SUBSCRIPTION_ID=1
          - LABGAME_VRF_CONFIRMATIONS=3
          - LABGAME_VRF_CALLBACK_GAS_LIMIT=500000
        """

        def _get(name: str, cast: Callable[[str], Any], default: Any) -> Any:
            key = prefix + name
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            try:
                if cast is bool:
                    return raw.lower() in {"1", "true", "yes", "on"}
                return cast(raw)
            except Exception as e:
                raise ValueError(f"Invalid value for {key}: {raw!r}") from e

        def _ints(raw: str) -> List[int]:
            return [int(x.strip()) for x in raw.split(",") if x.strip()]

        defaults = GameConfig()
        caps = _get("GEN_CAPS", _ints, [g.max_supply for g in defaults.generations])
        serum_prices = _get(
            "GEN_SERUM_PRICES", _ints, [g.serum_price for g in defaults.generations]
        )
        if len(serum_prices) != len(caps):
            raise ValueError(f"{prefix}GEN_SERUM_PRICES must list one price per generation")
        gen0_price = _get("GEN0_PRICE", int, C.GEN0_PRICE)
        generations = [
            GenerationParams(
                max_supply=cap,
                native_price=gen0_price if g == 0 else 0,
                serum_price=serum_prices[g],
                burns_previous=g in (1, 2),
            )
            for g, cap in enumerate(caps)
        ]

        cfg = GameConfig(
            name=_get("NAME", str, defaults.name),
            symbol=_get("SYMBOL", str, defaults.symbol),
            max_mint_per_tx=_get("MAX_MINT_PER_TX", int, defaults.max_mint_per_tx),
            generations=generations,
            serum_accrual=AccrualParams(
                rate=_get("SERUM_RATE", int, C.SERUM_RATE),
                period_s=_get("SERUM_PERIOD_S", int, C.SERUM_PERIOD_S),
            ),
            blueprint_accrual=AccrualParams(
                rate=_get("BLUEPRINT_RATE", int, C.BLUEPRINT_RATE),
                period_s=_get("BLUEPRINT_PERIOD_S", int, C.BLUEPRINT_PERIOD_S),
            ),
            blueprint_max_supply=_get("BLUEPRINT_MAX_SUPPLY", int, C.BLUEPRINT_MAX_SUPPLY),
            whitelist_root=_get("WHITELIST_ROOT", str, None),
            pending_timeout_s=_get("PENDING_TIMEOUT_S", int, 0),
            auto_reveal=_get("AUTO_REVEAL", bool, False),
            start_paused=_get("START_PAUSED", bool, False),
            vrf=VRFParams(
                key_hash=_get("VRF_KEY_HASH", str, defaults.vrf.key_hash),
                subscription_id=_get("VRF_SUBSCRIPTION_ID", int, C.DEFAULT_SUBSCRIPTION_ID),
                request_confirmations=_get(
                    "VRF_CONFIRMATIONS", int, C.DEFAULT_REQUEST_CONFIRMATIONS
                ),
                callback_gas_limit=_get(
                    "VRF_CALLBACK_GAS_LIMIT", int, C.DEFAULT_CALLBACK_GAS_LIMIT
                ),
            ),
        )
        cfg.validate()
        return cfg

    @staticmethod
    def from_file(path: str) -> "GameConfig":
        """
        Load configuration from a JSON or YAML file. Keys mirror the dataclass
        structure. Example (YAML):

            name: LabGame
            max_mint_per_tx: 10
            generations:
              - {max_supply: 2222, native_price: 60000000000000000}
              - {max_supply: 4444, serum_price: 2000000000000000000000, burns_previous: true}
            serum_accrual: {rate: 1000000000000000000000, period_s: 86400}
            vrf:
              subscription_id: 3265
              callback_gas_limit: 500000
        """
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        return GameConfig.from_dict(_parse_json_or_yaml(text, path))


# -------------------------
# Utilities
# -------------------------


def _parse_json_or_yaml(text: str, path_hint: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        import yaml

        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse {path_hint!r} as JSON or YAML: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path_hint!r} must contain a mapping at the top level")
    return data


def load_config(path: Optional[str] = None, *, env_prefix: str = "LABGAME_") -> GameConfig:
    """File config when ``path`` is given, otherwise environment (with defaults)."""
    if path:
        return GameConfig.from_file(path)
    return GameConfig.from_env(env_prefix)


__all__ = [
    "VRFParams",
    "GenerationParams",
    "AccrualParams",
    "GameConfig",
    "load_config",
]
