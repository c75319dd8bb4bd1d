# -*- coding: utf-8 -*-
"""
Serum — the game's fungible reward token.

ERC-20 "Serum"/"SERUM" with 18 decimals plus a time-accrual ledger over every
LabGame token: each token accrues ``rate`` Serum per ``period_s`` seconds
(1,000 SERUM per day by default) and its owner realises it with ``claim()``.

Capabilities
------------
- owner: ``add_controller`` / ``remove_controller``, pause switch,
  ``set_lab_game``, ``transfer_ownership``.
- CONTROLLER_ROLE holders (LabGame, staking, test harness): ``mint`` / ``burn``.
- the LabGame contract (``lab_game()``): ``initialize_claim`` on mint and
  ``update_claim`` on every transfer or burn of one of its tokens.

Pausing blocks token movements (mint, burn, transfer), ``claim``,
``initialize_claim`` and ``update_claim``. ``pending_claim`` stays readable.

Events
------
- Transfer / Approval (ERC-20)
- Claimed {"account", "amount"}
- RoleGranted / RoleRevoked, Paused / Unpaused, OwnershipTransferred, LabGameSet
"""
from __future__ import annotations

import logging
from typing import List, Optional

from ..constants import SERUM_PERIOD_S, SERUM_RATE
from ..errors import NoOwnedTokens
from ..hashing import to_hex
from ..ledger.accrual import TimeAccrualLedger
from ..stdlib.access import CONTROLLER_ROLE, Ownable, Roles
from ..stdlib.fungible import FungibleToken
from ..stdlib.pausable import Pausable
from ..stdlib.upgrade import Initializable

logger = logging.getLogger(__name__)


class Serum(FungibleToken):
    LABEL = "serum"
    CONTROLLER_ROLE = CONTROLLER_ROLE

    def __init__(self, chain, address: bytes) -> None:
        super().__init__(chain, address)
        self.ownable = Ownable(self)
        self.roles = Roles(self, self.ownable)
        self.pausable = Pausable(self, self.ownable)
        self.accrual = TimeAccrualLedger(self, self.ownable, self.pausable)
        self._init_guard = Initializable(self)

    def initialize(
        self,
        name: str = "Serum",
        symbol: str = "SERUM",
        rate: int = SERUM_RATE,
        period_s: int = SERUM_PERIOD_S,
        lab_game: Optional[bytes] = None,
    ) -> None:
        self._init_guard.initializer()
        self._init_token(name, symbol)
        self.ownable.init(self.msg.sender)
        self.accrual.init(rate, period_s, lab_game)

    # ---- views ----

    def owner(self) -> Optional[bytes]:
        return self.ownable.owner()

    def paused(self) -> bool:
        return self.pausable.paused()

    def has_role(self, role: bytes, account: bytes) -> bool:
        return self.roles.has_role(role, account)

    def lab_game(self) -> Optional[bytes]:
        return self.accrual.lab_game()

    def token_claims(self, token_id: int) -> int:
        return self.accrual.checkpoint(token_id)

    def pending_claim(self, account: bytes) -> int:
        return self.accrual.pending_total(self._owned_ids(account))

    def _owned_ids(self, account: bytes) -> List[int]:
        lab_game = self.accrual.lab_game()
        if lab_game is None:
            return []
        return self.at(lab_game).tokens_of_owner(account)

    # ---- admin ----

    def transfer_ownership(self, new_owner: bytes) -> None:
        self.ownable.transfer_ownership(self.msg.sender, new_owner)

    def add_controller(self, account: bytes) -> bool:
        return self.roles.grant_role(self.msg.sender, CONTROLLER_ROLE, account)

    def remove_controller(self, account: bytes) -> bool:
        return self.roles.revoke_role(self.msg.sender, CONTROLLER_ROLE, account)

    def set_paused(self, paused: bool) -> None:
        self.pausable.set_paused(self.msg.sender, paused)

    def pause(self) -> None:
        self.pausable.pause(self.msg.sender)

    def unpause(self) -> None:
        self.pausable.unpause(self.msg.sender)

    def set_lab_game(self, lab_game: bytes) -> None:
        self.accrual.set_lab_game(self.msg.sender, lab_game)

    # ---- controller ----

    def mint(self, to: bytes, amount: int) -> None:
        self.roles.require_role(CONTROLLER_ROLE, self.msg.sender)
        self._mint(to, amount)

    def burn(self, frm: bytes, amount: int) -> None:
        self.roles.require_role(CONTROLLER_ROLE, self.msg.sender)
        self._burn(frm, amount)

    def _before_token_transfer(self, frm: bytes, to: bytes, amount: int) -> None:
        self.pausable.require_not_paused()

    # ---- accrual ----

    def initialize_claim(self, token_id: int) -> None:
        self.accrual.initialize(self.msg.sender, token_id)

    def update_claim(self, account: bytes, token_id: int) -> int:
        amount = self.accrual.touch(self.msg.sender, token_id)
        if amount:
            self._mint(account, amount)
        return amount

    def claim(self) -> int:
        account = self.msg.sender
        self.pausable.require_not_paused()
        ids = self._owned_ids(account)
        if not ids:
            raise NoOwnedTokens(account)
        amount = self.accrual.settle(ids)
        if amount:
            self._mint(account, amount)
        self.emit(b"Claimed", account=account, amount=amount)
        self.chain.metrics.record_claim(self.LABEL)
        logger.info("serum claim by %s: %d over %d tokens", to_hex(account), amount, len(ids))
        return amount


__all__ = ["Serum"]
