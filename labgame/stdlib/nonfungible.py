# -*- coding: utf-8 -*-
"""
ERC-721 style enumerable collection base
========================================

Ownership, approvals and per-owner / global enumeration kept entirely in
contract storage. LabGame and Blueprint subclass :class:`NonFungibleToken`.

Enumeration uses the swap-and-pop layout: each owner has a dense index of
token ids (``nft:owned:``) with a reverse map (``nft:owned_idx:``), and the
collection keeps a dense index of every live token (``nft:all:``). Burning or
transferring moves the last entry into the freed position, so
``token_of_owner_by_index`` order changes after removals.

Hooks
-----
``_before_token_transfer(frm, to, token_id)`` and
``_after_token_transfer(frm, to, token_id)`` run around every mint (``frm``
zero), burn (``to`` zero) and transfer.

Events
------
- b"Transfer"       {"from", "to", "token_id"}
- b"Approval"       {"owner", "approved", "token_id"}
- b"ApprovalForAll" {"owner", "operator", "approved"}
"""

from __future__ import annotations

from typing import Final, List, Optional

from ..errors import (
    InvalidParameter,
    NonexistentToken,
    NotTokenOwner,
    ZeroAddress,
)
from ..hashing import ZERO_ADDRESS
from ..vm.contract import Contract
from ..vm.storage import key

K_NAME: Final[bytes] = b"nft:meta:name"
K_SYMBOL: Final[bytes] = b"nft:meta:symbol"
K_SUPPLY: Final[bytes] = b"nft:meta:supply"
P_OWNER: Final[bytes] = b"nft:owner:"
P_BALANCE: Final[bytes] = b"nft:bal:"
P_OWNED: Final[bytes] = b"nft:owned:"
P_OWNED_IDX: Final[bytes] = b"nft:owned_idx:"
P_ALL: Final[bytes] = b"nft:all:"
P_ALL_IDX: Final[bytes] = b"nft:all_idx:"
P_APPROVED: Final[bytes] = b"nft:approved:"
P_OPERATOR: Final[bytes] = b"nft:operator:"


class NonFungibleToken(Contract):
    LABEL = "collection"

    def _init_collection(self, name: str, symbol: str) -> None:
        if not name or not symbol:
            raise InvalidParameter("name/symbol", (name, symbol))
        self.storage.set_str(K_NAME, name)
        self.storage.set_str(K_SYMBOL, symbol)

    # ---- metadata & views ----

    def name(self) -> str:
        return self.storage.get_str(K_NAME)

    def symbol(self) -> str:
        return self.storage.get_str(K_SYMBOL)

    def total_supply(self) -> int:
        return self.storage.get_int(K_SUPPLY)

    def exists(self, token_id: int) -> bool:
        return self.storage.exists(key(P_OWNER, token_id))

    def owner_of(self, token_id: int) -> bytes:
        owner = self.storage.get_address(key(P_OWNER, token_id))
        if owner is None:
            raise NonexistentToken(token_id)
        return owner

    def balance_of(self, owner: bytes) -> int:
        if owner == ZERO_ADDRESS:
            raise ZeroAddress("owner")
        return self.storage.get_int(key(P_BALANCE, owner))

    def token_of_owner_by_index(self, owner: bytes, index: int) -> int:
        if not (0 <= index < self.balance_of(owner)):
            raise InvalidParameter("index", index)
        return self.storage.get_int(key(P_OWNED, owner, index))

    def tokens_of_owner(self, owner: bytes) -> List[int]:
        return [
            self.storage.get_int(key(P_OWNED, owner, i)) for i in range(self.balance_of(owner))
        ]

    def token_by_index(self, index: int) -> int:
        if not (0 <= index < self.total_supply()):
            raise InvalidParameter("index", index)
        return self.storage.get_int(key(P_ALL, index))

    def get_approved(self, token_id: int) -> Optional[bytes]:
        self.owner_of(token_id)
        return self.storage.get_address(key(P_APPROVED, token_id))

    def is_approved_for_all(self, owner: bytes, operator: bytes) -> bool:
        return self.storage.get_bool(key(P_OPERATOR, owner, operator))

    # ---- state-changing ----

    def approve(self, to: bytes, token_id: int) -> None:
        owner = self.owner_of(token_id)
        caller = self.msg.sender
        if caller != owner and not self.is_approved_for_all(owner, caller):
            raise NotTokenOwner(caller, token_id)
        self.storage.set_address(key(P_APPROVED, token_id), to if to != ZERO_ADDRESS else None)
        self.emit(b"Approval", owner=owner, approved=to, token_id=token_id)

    def set_approval_for_all(self, operator: bytes, approved: bool) -> None:
        caller = self.msg.sender
        if operator == caller:
            raise InvalidParameter("operator", operator)
        self.storage.set_bool(key(P_OPERATOR, caller, operator), bool(approved))
        self.emit(b"ApprovalForAll", owner=caller, operator=operator, approved=bool(approved))

    def transfer_from(self, frm: bytes, to: bytes, token_id: int) -> None:
        if not self._is_approved_or_owner(self.msg.sender, token_id):
            raise NotTokenOwner(self.msg.sender, token_id)
        self._transfer(frm, to, token_id)

    # ---- hooks ----

    def _before_token_transfer(self, frm: bytes, to: bytes, token_id: int) -> None:
        pass

    def _after_token_transfer(self, frm: bytes, to: bytes, token_id: int) -> None:
        pass

    # ---- internals ----

    def _is_approved_or_owner(self, spender: bytes, token_id: int) -> bool:
        owner = self.owner_of(token_id)
        return (
            spender == owner
            or self.storage.get_address(key(P_APPROVED, token_id)) == spender
            or self.is_approved_for_all(owner, spender)
        )

    def _add_to_owner(self, owner: bytes, token_id: int) -> None:
        n = self.storage.get_int(key(P_BALANCE, owner))
        self.storage.set_int(key(P_OWNED, owner, n), token_id)
        self.storage.set_int(key(P_OWNED_IDX, token_id), n)
        self.storage.set_int(key(P_BALANCE, owner), n + 1)
        self.storage.set_address(key(P_OWNER, token_id), owner)

    def _remove_from_owner(self, owner: bytes, token_id: int) -> None:
        last = self.storage.get_int(key(P_BALANCE, owner)) - 1
        idx = self.storage.get_int(key(P_OWNED_IDX, token_id))
        if idx != last:
            moved = self.storage.get_int(key(P_OWNED, owner, last))
            self.storage.set_int(key(P_OWNED, owner, idx), moved)
            self.storage.set_int(key(P_OWNED_IDX, moved), idx)
        self.storage.delete(key(P_OWNED, owner, last))
        self.storage.delete(key(P_OWNED_IDX, token_id))
        self.storage.set_int(key(P_BALANCE, owner), last)
        self.storage.delete(key(P_APPROVED, token_id))

    def _mint(self, to: bytes, token_id: int) -> None:
        if to == ZERO_ADDRESS:
            raise ZeroAddress("to")
        if self.exists(token_id):
            raise InvalidParameter("token_id", token_id)
        self._before_token_transfer(ZERO_ADDRESS, to, token_id)
        n = self.total_supply()
        self.storage.set_int(key(P_ALL, n), token_id)
        self.storage.set_int(key(P_ALL_IDX, token_id), n)
        self.storage.set_int(K_SUPPLY, n + 1)
        self._add_to_owner(to, token_id)
        self.emit(b"Transfer", {"from": ZERO_ADDRESS, "to": to, "token_id": token_id})
        self._after_token_transfer(ZERO_ADDRESS, to, token_id)

    def _burn(self, token_id: int) -> None:
        owner = self.owner_of(token_id)
        self._before_token_transfer(owner, ZERO_ADDRESS, token_id)
        self._remove_from_owner(owner, token_id)
        self.storage.delete(key(P_OWNER, token_id))
        last = self.total_supply() - 1
        idx = self.storage.get_int(key(P_ALL_IDX, token_id))
        if idx != last:
            moved = self.storage.get_int(key(P_ALL, last))
            self.storage.set_int(key(P_ALL, idx), moved)
            self.storage.set_int(key(P_ALL_IDX, moved), idx)
        self.storage.delete(key(P_ALL, last))
        self.storage.delete(key(P_ALL_IDX, token_id))
        self.storage.set_int(K_SUPPLY, last)
        self.emit(b"Transfer", {"from": owner, "to": ZERO_ADDRESS, "token_id": token_id})
        self._after_token_transfer(owner, ZERO_ADDRESS, token_id)

    def _transfer(self, frm: bytes, to: bytes, token_id: int) -> None:
        if self.owner_of(token_id) != frm:
            raise NotTokenOwner(frm, token_id)
        if to == ZERO_ADDRESS:
            raise ZeroAddress("to")
        self._before_token_transfer(frm, to, token_id)
        self._remove_from_owner(frm, token_id)
        self._add_to_owner(to, token_id)
        self.emit(b"Transfer", {"from": frm, "to": to, "token_id": token_id})
        self._after_token_transfer(frm, to, token_id)


__all__ = ["NonFungibleToken"]
