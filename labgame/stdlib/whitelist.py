# -*- coding: utf-8 -*-
"""
labgame.stdlib.whitelist
========================

Two interchangeable membership gates. The mint ledger only depends on a
boolean predicate, so a contract may use either.

MerkleWhitelist
---------------
Global ``{enabled, root}`` state. Membership is a sorted-pair keccak256
inclusion proof from ``keccak256(account)`` to the stored root.

- whitelisted() -> bool
- whitelist_root() -> bytes | None
- enable(caller, root)   → WhitelistAlreadyEnabled when already on
- disable(caller)        → WhitelistNotEnabled when off
- is_whitelisted(account, proof) -> bool   (False whenever disabled)

AllowList
---------
Flat allow-set used by earlier deployments:
add(caller, account) / remove(caller, account) / contains(account).

Both are owner-administered.

Events
------
- WhitelistEnabled  {"root"}
- WhitelistDisabled {}
- AllowListAdded    {"account"}
- AllowListRemoved  {"account"}
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional, Sequence, Union

from ..errors import InvalidParameter, WhitelistAlreadyEnabled, WhitelistNotEnabled, ZeroAddress
from ..hashing import ZERO_ADDRESS, to_bytes
from ..vm.storage import key
from .merkle import leaf_for, verify_proof

if TYPE_CHECKING:  # pragma: no cover
    from ..vm.contract import Contract
    from .access import Ownable

K_WL_ENABLED: bytes = b"wl:enabled"
K_WL_ROOT: bytes = b"wl:root"
P_ALLOW: bytes = b"wl:allow:"

ProofLike = Sequence[Union[bytes, str]]


def _proof_bytes(proof: Iterable[Union[bytes, str]]) -> Optional[list]:
    out = []
    for p in proof:
        try:
            b = to_bytes(p)
        except (TypeError, ValueError):
            return None
        if len(b) != 32:
            return None
        out.append(b)
    return out


class MerkleWhitelist:
    def __init__(self, contract: "Contract", ownable: "Ownable") -> None:
        self._c = contract
        self._s = contract.storage
        self._ownable = ownable

    def whitelisted(self) -> bool:
        return self._s.get_bool(K_WL_ENABLED)

    def whitelist_root(self) -> Optional[bytes]:
        return self._s.get(K_WL_ROOT)

    def enable(self, caller: bytes, root: Union[bytes, str]) -> None:
        self._ownable.require_owner(caller)
        if self.whitelisted():
            raise WhitelistAlreadyEnabled()
        root_b = to_bytes(root)
        if len(root_b) != 32:
            raise InvalidParameter("root", root)
        self._s.set_bool(K_WL_ENABLED, True)
        self._s.set(K_WL_ROOT, root_b)
        self._c.emit(b"WhitelistEnabled", root=root_b)

    def disable(self, caller: bytes) -> None:
        self._ownable.require_owner(caller)
        if not self.whitelisted():
            raise WhitelistNotEnabled()
        self._s.set_bool(K_WL_ENABLED, False)
        self._s.delete(K_WL_ROOT)
        self._c.emit(b"WhitelistDisabled")

    def is_whitelisted(self, account: bytes, proof: ProofLike) -> bool:
        root = self.whitelist_root()
        if not self.whitelisted() or root is None:
            return False
        steps = _proof_bytes(proof)
        if steps is None:
            return False
        return verify_proof(leaf_for(account), steps, root)


class AllowList:
    def __init__(self, contract: "Contract", ownable: "Ownable") -> None:
        self._c = contract
        self._s = contract.storage
        self._ownable = ownable

    def contains(self, account: bytes) -> bool:
        return self._s.get_bool(key(P_ALLOW, account))

    def add(self, caller: bytes, account: bytes) -> None:
        self._ownable.require_owner(caller)
        if account == ZERO_ADDRESS:
            raise ZeroAddress("account")
        if not self.contains(account):
            self._s.set_bool(key(P_ALLOW, account), True)
            self._c.emit(b"AllowListAdded", account=account)

    def remove(self, caller: bytes, account: bytes) -> None:
        self._ownable.require_owner(caller)
        if self.contains(account):
            self._s.set_bool(key(P_ALLOW, account), False)
            self._c.emit(b"AllowListRemoved", account=account)


__all__ = ["MerkleWhitelist", "AllowList"]
