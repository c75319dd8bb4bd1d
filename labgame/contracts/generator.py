# -*- coding: utf-8 -*-
"""
Trait generation.

Pure, deterministic mapping from a delivered random word to a token's traits.
No storage and no side effects, so the same ``(token_id, generation, word)``
always yields the same :class:`TraitSet`.

Selection
---------
Bytes are read in order from ``keccak256(u256(word) || u256(token_id) ||
u256(block))``, block by block (:class:`Entropy`):

- the first byte chooses the kind: mutant when it is below
  ``mutant_threshold`` (26/256, about one in ten), scientist otherwise;
- each of the eight slots of that kind then picks an alias-table column,
  uniformly, by rejecting bytes from the uneven tail ``256 - 256 % n``, and
  one more byte is compared against the column's probability to keep it or
  take its alias.

Each of the sixteen weight tables (eight scientist slots, then eight mutant
slots) is turned into a Walker/Vose alias table once, with integer
arithmetic only.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple

from ..constants import (
    BLUEPRINT_RARITIES,
    BLUEPRINT_RARITY_WEIGHTS,
    DEFAULT_TRAIT_WEIGHTS,
    KIND_MUTANT,
    KIND_NAMES,
    KIND_SCIENTIST,
    MUTANT_THRESHOLD,
    TRAIT_SLOTS,
)
from ..hashing import hash_concat, u256

_BYTE = 256


@dataclass(frozen=True)
class AliasTable:
    """Walker/Vose alias table; ``prob[i]`` is out of ``total``."""

    prob: Tuple[int, ...]
    alias: Tuple[int, ...]
    total: int

    @classmethod
    def from_weights(cls, weights: Sequence[int]) -> "AliasTable":
        n = len(weights)
        if n == 0 or n > _BYTE:
            raise ValueError(f"alias table needs 1..{_BYTE} weights, got {n}")
        if any(w < 0 for w in weights) or sum(weights) == 0:
            raise ValueError("weights must be non-negative with a positive sum")
        total = sum(weights)
        scaled = [w * n for w in weights]
        prob = [0] * n
        alias = list(range(n))
        small = [i for i, s in enumerate(scaled) if s < total]
        large = [i for i, s in enumerate(scaled) if s >= total]
        while small and large:
            s = small.pop()
            l = large.pop()
            prob[s] = scaled[s]
            alias[s] = l
            scaled[l] = scaled[l] + scaled[s] - total
            (small if scaled[l] < total else large).append(l)
        for i in small + large:
            prob[i] = total
        return cls(prob=tuple(prob), alias=tuple(alias), total=total)

    def __len__(self) -> int:
        return len(self.prob)

    def sample(self, column: int, threshold_byte: int) -> int:
        if not (0 <= column < len(self.prob)):
            raise ValueError(f"column {column} outside table of {len(self.prob)}")
        # threshold_byte / 256 < prob[col] / total, in integers
        if threshold_byte * self.total < self.prob[column] * _BYTE:
            return column
        return self.alias[column]

    def draw(self, entropy: "Entropy") -> int:
        return self.sample(uniform_index(entropy.next_byte, len(self.prob)), entropy.next_byte())


def uniform_index(next_byte: Callable[[], int], n: int) -> int:
    """Unbiased index in ``[0, n)`` from a byte source, rejecting the uneven tail."""
    if not (1 <= n <= _BYTE):
        raise ValueError(f"n must be within [1, {_BYTE}]")
    limit = _BYTE - _BYTE % n
    while True:
        b = next_byte()
        if b < limit:
            return b % n


class Entropy:
    """Deterministic byte stream: ``keccak256(u256(word) || u256(token_id) || u256(block))``."""

    def __init__(self, token_id: int, word: int) -> None:
        self._prefix = u256(word) + u256(token_id)
        self._block = 0
        self._buf = b""
        self._pos = 0

    def next_byte(self) -> int:
        if self._pos == len(self._buf):
            self._buf = hash_concat(self._prefix, u256(self._block))
            self._block += 1
            self._pos = 0
        b = self._buf[self._pos]
        self._pos += 1
        return b


@dataclass(frozen=True)
class TraitSet:
    generation: int
    kind: int
    traits: Tuple[int, ...]

    @property
    def kind_name(self) -> str:
        return KIND_NAMES[self.kind]

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {"generation": self.generation, "kind": self.kind_name}
        out.update(zip(TRAIT_SLOTS, self.traits))
        return out

    def pack(self) -> bytes:
        return bytes([self.generation, self.kind, *self.traits])

    @classmethod
    def unpack(cls, raw: bytes) -> "TraitSet":
        if len(raw) != 2 + len(TRAIT_SLOTS):
            raise ValueError("bad packed trait set")
        return cls(generation=raw[0], kind=raw[1], traits=tuple(raw[2:]))


class TraitGenerator:
    def __init__(
        self,
        weights: Sequence[Sequence[int]] = DEFAULT_TRAIT_WEIGHTS,
        mutant_threshold: int = MUTANT_THRESHOLD,
    ) -> None:
        slots = len(TRAIT_SLOTS)
        if len(weights) != 2 * slots:
            raise ValueError(f"expected {2 * slots} weight tables, got {len(weights)}")
        if not (0 <= mutant_threshold <= _BYTE):
            raise ValueError("mutant_threshold must be within [0, 256]")
        self.tables: List[AliasTable] = [AliasTable.from_weights(w) for w in weights]
        self.mutant_threshold = mutant_threshold

    def tables_for(self, kind: int) -> List[AliasTable]:
        slots = len(TRAIT_SLOTS)
        return self.tables[kind * slots:(kind + 1) * slots]

    def assign(self, token_id: int, generation: int, word: int) -> TraitSet:
        entropy = Entropy(token_id, word)
        kind = KIND_MUTANT if entropy.next_byte() < self.mutant_threshold else KIND_SCIENTIST
        traits = [table.draw(entropy) for table in self.tables_for(kind)]
        return TraitSet(generation=generation, kind=kind, traits=tuple(traits))


class RarityGenerator:
    """Blueprint rarity from one word: common … legendary."""

    def __init__(self, weights: Sequence[int] = BLUEPRINT_RARITY_WEIGHTS) -> None:
        if len(weights) != len(BLUEPRINT_RARITIES):
            raise ValueError("one weight per rarity expected")
        self.table = AliasTable.from_weights(weights)

    def assign(self, token_id: int, word: int) -> int:
        return self.table.draw(Entropy(token_id, word))


__all__ = ["AliasTable", "Entropy", "uniform_index", "TraitSet", "TraitGenerator", "RarityGenerator"]
