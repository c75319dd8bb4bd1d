# -*- coding: utf-8 -*-
"""
labgame.stdlib.pausable
=======================

Global pause switch for a contract.

- The paused flag is global to the contract (single boolean).
- Only the owner changes it.
- Pausing is a capability gate: it blocks guarded mutations, never reads,
  and never clears data.

Events (on change only)
-----------------------
- ``Paused``   : {"account": bytes}
- ``Unpaused`` : {"account": bytes}
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import NotPaused, Paused

if TYPE_CHECKING:  # pragma: no cover
    from ..vm.contract import Contract
    from .access import Ownable

K_PAUSED: bytes = b"ctl:paused"


class Pausable:
    def __init__(self, contract: "Contract", ownable: "Ownable") -> None:
        self._c = contract
        self._s = contract.storage
        self._ownable = ownable

    def paused(self) -> bool:
        return self._s.get_bool(K_PAUSED)

    def require_not_paused(self) -> None:
        if self.paused():
            raise Paused()

    def require_paused(self) -> None:
        if not self.paused():
            raise NotPaused()

    def pause(self, caller: bytes) -> None:
        self._ownable.require_owner(caller)
        self.require_not_paused()
        self._s.set_bool(K_PAUSED, True)
        self._c.emit(b"Paused", account=caller)

    def unpause(self, caller: bytes) -> None:
        self._ownable.require_owner(caller)
        self.require_paused()
        self._s.set_bool(K_PAUSED, False)
        self._c.emit(b"Unpaused", account=caller)

    def set_paused(self, caller: bytes, flag: bool) -> None:
        if flag:
            self.pause(caller)
        else:
            self.unpause(caller)


__all__ = ["Pausable", "K_PAUSED"]
