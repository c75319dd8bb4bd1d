# -*- coding: utf-8 -*-
"""
ERC-20 style fungible token base
================================

Storage-backed balances and allowances for a :class:`~labgame.vm.Contract`.
Concrete tokens (Serum) subclass :class:`FungibleToken`, call
:meth:`_init_token` from ``initialize``, and decide who may reach the internal
``_mint`` / ``_burn``.

Public interface
----------------
name() -> str, symbol() -> str, decimals() -> int
total_supply() -> int, balance_of(addr) -> int, allowance(owner, spender) -> int
transfer(to, amount) -> bool
approve(spender, amount) -> bool
transfer_from(owner, to, amount) -> bool

Events
------
- b"Transfer" {"from", "to", "value"}   (mint: from = zero address, burn: to = zero)
- b"Approval" {"owner", "spender", "value"}

Subclasses may override ``_before_token_transfer(frm, to, amount)``; it runs
before every balance change, mints and burns included.
"""

from __future__ import annotations

from typing import Final

from ..constants import SERUM_DECIMALS, U256_MAX
from ..errors import (
    BurnExceedsBalance,
    InsufficientAllowance,
    InvalidParameter,
    TransferExceedsBalance,
    ZeroAddress,
)
from ..hashing import ZERO_ADDRESS
from ..vm.contract import Contract
from ..vm.storage import key

K_NAME: Final[bytes] = b"ft:meta:name"
K_SYMBOL: Final[bytes] = b"ft:meta:symbol"
K_TOTAL: Final[bytes] = b"ft:meta:total"
P_BALANCE: Final[bytes] = b"ft:bal:"
P_ALLOWANCE: Final[bytes] = b"ft:allow:"


def _require_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0 or amount > U256_MAX:
        raise InvalidParameter("amount", amount)


class FungibleToken(Contract):
    LABEL = "token"

    def _init_token(self, name: str, symbol: str) -> None:
        if not name or not symbol:
            raise InvalidParameter("name/symbol", (name, symbol))
        self.storage.set_str(K_NAME, name)
        self.storage.set_str(K_SYMBOL, symbol)

    # ---- metadata (pure) ----

    def name(self) -> str:
        return self.storage.get_str(K_NAME)

    def symbol(self) -> str:
        return self.storage.get_str(K_SYMBOL)

    def decimals(self) -> int:
        return SERUM_DECIMALS

    def total_supply(self) -> int:
        return self.storage.get_int(K_TOTAL)

    def balance_of(self, account: bytes) -> int:
        return self.storage.get_int(key(P_BALANCE, account))

    def allowance(self, owner: bytes, spender: bytes) -> int:
        return self.storage.get_int(key(P_ALLOWANCE, owner, spender))

    # ---- state-changing ----

    def transfer(self, to: bytes, amount: int) -> bool:
        self._transfer(self.msg.sender, to, amount)
        return True

    def approve(self, spender: bytes, amount: int) -> bool:
        self._approve(self.msg.sender, spender, amount)
        return True

    def transfer_from(self, owner: bytes, to: bytes, amount: int) -> bool:
        spender = self.msg.sender
        current = self.allowance(owner, spender)
        if current != U256_MAX:
            if current < amount:
                raise InsufficientAllowance(owner, spender, amount, current)
            self._approve(owner, spender, current - amount)
        self._transfer(owner, to, amount)
        return True

    # ---- internals ----

    def _before_token_transfer(self, frm: bytes, to: bytes, amount: int) -> None:
        pass

    def _approve(self, owner: bytes, spender: bytes, amount: int) -> None:
        _require_amount(amount)
        if spender == ZERO_ADDRESS:
            raise ZeroAddress("spender")
        self.storage.set_int(key(P_ALLOWANCE, owner, spender), amount)
        self.emit(b"Approval", owner=owner, spender=spender, value=amount)

    def _transfer(self, frm: bytes, to: bytes, amount: int) -> None:
        _require_amount(amount)
        if to == ZERO_ADDRESS:
            raise ZeroAddress("to")
        self._before_token_transfer(frm, to, amount)
        bal = self.balance_of(frm)
        if bal < amount:
            raise TransferExceedsBalance(frm, amount, bal)
        self.storage.set_int(key(P_BALANCE, frm), bal - amount)
        self.storage.add_int(key(P_BALANCE, to), amount)
        self.emit(b"Transfer", {"from": frm, "to": to, "value": amount})

    def _mint(self, to: bytes, amount: int) -> None:
        _require_amount(amount)
        if to == ZERO_ADDRESS:
            raise ZeroAddress("to")
        self._before_token_transfer(ZERO_ADDRESS, to, amount)
        total = self.total_supply() + amount
        if total > U256_MAX:
            raise InvalidParameter("total_supply", total)
        self.storage.set_int(K_TOTAL, total)
        self.storage.add_int(key(P_BALANCE, to), amount)
        self.emit(b"Transfer", {"from": ZERO_ADDRESS, "to": to, "value": amount})

    def _burn(self, frm: bytes, amount: int) -> None:
        _require_amount(amount)
        self._before_token_transfer(frm, ZERO_ADDRESS, amount)
        bal = self.balance_of(frm)
        if bal < amount:
            raise BurnExceedsBalance(frm, amount, bal)
        self.storage.set_int(key(P_BALANCE, frm), bal - amount)
        self.storage.set_int(K_TOTAL, self.total_supply() - amount)
        self.emit(b"Transfer", {"from": frm, "to": ZERO_ADDRESS, "value": amount})


__all__ = ["FungibleToken"]
