"""
labgame.ledger.accrual — per-token time accrual with checkpoints.

For a token with checkpoint ``cp`` the pending amount is::

    rate * (now - cp) // period_s

multiplication first, so the only truncation is the final floor. A checkpoint
of zero means "never initialised" and accrues nothing. Checkpoints never move
backwards: every reset writes ``max(cp, now)``.

Only the authorised minting contract (``lab_game()``) may initialise or touch
checkpoints, and it does so while the owning contract is unpaused. Reads are
never gated. What a realised amount turns into (minted fungible balance,
banked blueprints) is decided by the owning contract.

Storage layout
--------------
- b"acc:rate"             → u256
- b"acc:period"           → u256 seconds
- b"acc:lab_game"         → address
- key(b"acc:cp:", id)     → u256 timestamp
- key(b"acc:bank:", acct) → u256 banked units
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Optional

from ..errors import InvalidParameter, Unauthorized, ZeroAddress
from ..hashing import ZERO_ADDRESS, to_hex
from ..vm.storage import key

if TYPE_CHECKING:  # pragma: no cover
    from ..stdlib.access import Ownable
    from ..stdlib.pausable import Pausable
    from ..vm.contract import Contract

logger = logging.getLogger(__name__)

K_RATE = b"acc:rate"
K_PERIOD = b"acc:period"
K_LAB_GAME = b"acc:lab_game"
P_CHECKPOINT = b"acc:cp:"
P_BANK = b"acc:bank:"


class TimeAccrualLedger:
    def __init__(self, contract: "Contract", ownable: "Ownable", pausable: "Pausable") -> None:
        self._c = contract
        self._s = contract.storage
        self._ownable = ownable
        self._pausable = pausable

    def init(self, rate: int, period_s: int, lab_game: Optional[bytes] = None) -> None:
        if rate < 0:
            raise InvalidParameter("rate", rate)
        if period_s <= 0:
            raise InvalidParameter("period_s", period_s)
        self._s.set_int(K_RATE, rate)
        self._s.set_int(K_PERIOD, period_s)
        if lab_game is not None and lab_game != ZERO_ADDRESS:
            self._s.set_address(K_LAB_GAME, lab_game)

    # ---- parameters ----

    def rate(self) -> int:
        return self._s.get_int(K_RATE)

    def period_s(self) -> int:
        return self._s.get_int(K_PERIOD)

    def lab_game(self) -> Optional[bytes]:
        return self._s.get_address(K_LAB_GAME)

    def set_lab_game(self, caller: bytes, lab_game: bytes) -> None:
        self._ownable.require_owner(caller)
        if lab_game == ZERO_ADDRESS:
            raise ZeroAddress("lab_game")
        self._s.set_address(K_LAB_GAME, lab_game)
        self._c.emit(b"LabGameSet", lab_game=lab_game)
        logger.info("%s accrual controller set to %s", self._c.LABEL, to_hex(lab_game))

    def require_lab_game(self, caller: bytes) -> None:
        lab_game = self.lab_game()
        if lab_game is None or caller != lab_game:
            raise Unauthorized(caller)

    # ---- reads ----

    def checkpoint(self, token_id: int) -> int:
        return self._s.get_int(key(P_CHECKPOINT, token_id))

    def pending_for(self, token_id: int) -> int:
        cp = self.checkpoint(token_id)
        if cp == 0 or self._c.now <= cp:
            return 0
        return self.rate() * (self._c.now - cp) // self.period_s()

    def pending_total(self, token_ids: Iterable[int]) -> int:
        return sum(self.pending_for(t) for t in token_ids)

    def banked(self, account: bytes) -> int:
        return self._s.get_int(key(P_BANK, account))

    # ---- writes ----

    def _reset(self, token_id: int) -> None:
        k = key(P_CHECKPOINT, token_id)
        self._s.set_int(k, max(self._s.get_int(k), self._c.now))

    def initialize(self, caller: bytes, token_id: int) -> None:
        self.require_lab_game(caller)
        self._pausable.require_not_paused()
        self._reset(token_id)

    def touch(self, caller: bytes, token_id: int) -> int:
        """Realise one token's accrual and restart it; returns the amount."""
        self.require_lab_game(caller)
        self._pausable.require_not_paused()
        amount = self.pending_for(token_id)
        self._reset(token_id)
        return amount

    def settle(self, token_ids: Iterable[int]) -> int:
        """Realise and restart every token in ``token_ids``; returns the sum."""
        self._pausable.require_not_paused()
        total = 0
        for token_id in token_ids:
            total += self.pending_for(token_id)
            self._reset(token_id)
        return total

    def bank(self, account: bytes, amount: int) -> None:
        if amount:
            self._s.add_int(key(P_BANK, account), amount)

    def take_bank(self, account: bytes) -> int:
        k = key(P_BANK, account)
        amount = self._s.get_int(k)
        self._s.delete(k)
        return amount


__all__ = ["TimeAccrualLedger"]
