"""
labgame.stdlib.merkle — sorted-pair keccak256 Merkle trees for allowlists

Interoperable with the common EVM allowlist convention (OpenZeppelin
``MerkleProof`` verification, merkletreejs ``sortPairs``):

• A leaf is ``keccak256(address)`` over the raw 20 address bytes.
• An inner node is ``keccak256(min(a, b) || max(a, b))``; sorting each pair
  makes proofs direction-free, so a proof is just a list of sibling hashes.
• An odd node at the end of a layer is promoted unchanged to the next layer.
• Leaves keep the order they are given in; the root depends on that order.

Key functions
-------------
- leaf_for(account)
- build_layers(leaves) / merkle_root(leaves)
- build_proof(leaves, index)
- process_proof(leaf, proof) / verify_proof(leaf, proof, root)
- AllowlistTree: convenience wrapper keyed by account
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from ..hashing import keccak256, to_address

Hash = bytes


def leaf_for(account: bytes) -> Hash:
    return keccak256(account)


def hash_pair(a: Hash, b: Hash) -> Hash:
    if len(a) != 32 or len(b) != 32:
        raise ValueError("merkle nodes must be 32 bytes")
    return keccak256(a + b) if a <= b else keccak256(b + a)


def build_layers(leaves: Sequence[Hash]) -> List[List[Hash]]:
    """All layers from the leaves (index 0) up to the root layer."""
    if not leaves:
        raise ValueError("cannot build a tree over an empty leaf set")
    layer = list(leaves)
    layers = [layer]
    while len(layer) > 1:
        nxt: List[Hash] = []
        for i in range(0, len(layer), 2):
            if i + 1 < len(layer):
                nxt.append(hash_pair(layer[i], layer[i + 1]))
            else:
                nxt.append(layer[i])
        layers.append(nxt)
        layer = nxt
    return layers


def merkle_root(leaves: Sequence[Hash]) -> Hash:
    return build_layers(leaves)[-1][0]


def _proof_from_layers(layers: Sequence[Sequence[Hash]], index: int) -> List[Hash]:
    proof: List[Hash] = []
    idx = index
    for layer in layers[:-1]:
        sibling = idx ^ 1
        # promoted nodes have no sibling
        if sibling < len(layer):
            proof.append(layer[sibling])
        idx >>= 1
    return proof


def build_proof(leaves: Sequence[Hash], index: int) -> List[Hash]:
    """Sibling hashes from the leaf layer upwards."""
    if not (0 <= index < len(leaves)):
        raise IndexError("index out of range")
    return _proof_from_layers(build_layers(leaves), index)


def process_proof(leaf: Hash, proof: Iterable[Hash]) -> Hash:
    computed = leaf
    for sibling in proof:
        computed = hash_pair(computed, sibling)
    return computed


def verify_proof(leaf: Hash, proof: Iterable[Hash], root: Hash) -> bool:
    """False for any malformed step rather than raising."""
    try:
        return process_proof(leaf, proof) == root
    except ValueError:
        return False


@dataclass
class AllowlistTree:
    """An allowlist built from accounts, with proofs addressable by account."""

    accounts: List[bytes]
    layers: List[List[Hash]] = field(init=False)
    _index: Dict[bytes, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.accounts = [to_address(a) for a in self.accounts]
        self._index = {}
        for i, a in enumerate(self.accounts):
            if a in self._index:
                raise ValueError(f"duplicate account 0x{a.hex()}")
            self._index[a] = i
        self.layers = build_layers([leaf_for(a) for a in self.accounts])

    @property
    def root(self) -> Hash:
        return self.layers[-1][0]

    def __contains__(self, account: bytes) -> bool:
        return account in self._index

    def proof_for(self, account: bytes) -> List[Hash]:
        try:
            idx = self._index[account]
        except KeyError:
            raise KeyError(f"0x{account.hex()} is not in the allowlist") from None
        return _proof_from_layers(self.layers, idx)


__all__ = [
    "leaf_for",
    "hash_pair",
    "build_layers",
    "merkle_root",
    "build_proof",
    "process_proof",
    "verify_proof",
    "AllowlistTree",
]
