"""
labgame.vm.contract — base class for contracts hosted on a :class:`Chain`.

A contract instance is a stateless facade: every piece of state lives in its
:class:`~labgame.vm.storage.Storage`, so instances can be rebuilt at any time
(proxy upgrades, snapshot restores) without losing anything.

Conventions
-----------
- Public methods (no leading underscore) are callable as transactions through
  ``chain.transact`` or ``contract.connect(sender).method(...)``.
- Read-only methods may also be called directly on the instance.
- ``initialize`` runs once, inside the deploy transaction.
- ``self.msg`` is the current call frame; contract-to-contract calls made with
  ``self.call`` see ``msg.sender == self.address``.
- ``self.try_call`` reverts only the callee's frame on a ``LabGameError`` and
  hands the error back instead of aborting the transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Tuple

from ..hashing import ZERO_ADDRESS, to_hex
from .context import BlockEnv, Msg
from .storage import Storage

if TYPE_CHECKING:  # pragma: no cover
    from .chain import Chain, Receipt


_NO_FRAME = Msg(sender=ZERO_ADDRESS, value=0, origin=ZERO_ADDRESS)


class Contract:
    """Base class; subclasses set ``LABEL`` for logs and metrics."""

    LABEL = "contract"

    def __init__(self, chain: "Chain", address: bytes) -> None:
        self.chain = chain
        self.address = address
        self.storage = Storage(chain._slots_for(address))

    def initialize(self, *args: Any) -> None:
        """Deploy-time initializer; overridden by concrete contracts."""

    # ---- environment ----

    @property
    def msg(self) -> Msg:
        return self.chain.current_msg() or _NO_FRAME

    @property
    def block(self) -> BlockEnv:
        return self.chain.block

    @property
    def now(self) -> int:
        return self.chain.block.timestamp

    # ---- effects ----

    def emit(self, name: bytes, args: Optional[Mapping[str, Any]] = None, **kw: Any) -> None:
        self.chain.events.emit(self.address, name, {**(args or {}), **kw})

    def call(self, target: bytes, method: str, *args: Any, value: int = 0) -> Any:
        return self.chain._call(self.address, target, method, args, value)

    def try_call(self, target: bytes, method: str, *args: Any, value: int = 0) -> Tuple[bool, Any]:
        """Like :meth:`call`, but a revert in the callee is returned, not raised."""
        return self.chain._try_call(self.address, target, method, args, value)

    def send_value(self, to: bytes, amount: int) -> None:
        self.chain._transfer_native(self.address, to, amount)

    def at(self, address: bytes) -> "Contract":
        """Resolve another contract for read-only calls."""
        return self.chain.contract_at(address)

    def native_balance(self) -> int:
        return self.chain.balance_of(self.address)

    # ---- client side ----

    def connect(self, sender: bytes) -> "Bound":
        return Bound(self, sender)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {to_hex(self.address)}>"


class Bound:
    """A contract seen from one sender: attribute calls become transactions."""

    def __init__(self, contract: Contract, sender: bytes) -> None:
        self._contract = contract
        self._sender = sender

    def __getattr__(self, method: str) -> Callable[..., "Receipt"]:
        if method.startswith("_"):
            raise AttributeError(method)

        def _send(*args: Any, value: int = 0) -> "Receipt":
            return self._contract.chain.transact(
                self._sender, self._contract.address, method, *args, value=value
            )

        _send.__name__ = method
        return _send


__all__ = ["Contract", "Bound"]
