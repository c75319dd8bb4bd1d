"""
labgame.vm.context — block and call environments seen by contracts.

Both are pure data with strict validation. ``BlockEnv`` is fixed for the
duration of a transaction; ``Msg`` describes one call frame, so a contract
calling another contract produces a nested frame whose ``sender`` is the
calling contract.

There is no wall-clock access anywhere in the host: ``timestamp`` is the
chain's block timestamp, advanced only by explicit time travel.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

from ..hashing import to_bytes, to_hex


class ContextError(Exception):
    """Validation or coercion failure for BlockEnv/Msg."""


def _require_non_negative_int(name: str, v: Any) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise ContextError(f"{name} must be int, got {type(v).__name__}")
    if v < 0:
        raise ContextError(f"{name} must be non-negative, got {v}")
    return v


@dataclass(frozen=True)
class BlockEnv:
    """
    Per-block environment.

    height:    block height (0 = genesis)
    timestamp: block timestamp in seconds
    chain_id:  integer chain identifier, used for domain separation
    """

    height: int
    timestamp: int
    chain_id: int

    def __post_init__(self) -> None:
        _require_non_negative_int("height", self.height)
        _require_non_negative_int("timestamp", self.timestamp)
        _require_non_negative_int("chain_id", self.chain_id)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Msg:
    """
    One call frame.

    sender: immediate caller (account or contract address)
    value:  native value attached to this frame
    origin: account that signed the outer transaction
    """

    sender: bytes
    value: int
    origin: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "sender", to_bytes(self.sender))
        object.__setattr__(self, "origin", to_bytes(self.origin))
        _require_non_negative_int("value", self.value)

    def to_dict(self) -> Dict[str, Any]:
        return {"sender": to_hex(self.sender), "value": self.value, "origin": to_hex(self.origin)}


__all__ = ["BlockEnv", "Msg", "ContextError"]
