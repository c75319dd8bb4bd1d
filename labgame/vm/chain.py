"""
labgame.vm.chain — a tiny deterministic host for LabGame contracts.

The chain owns every piece of mutable state: contract slot maps, native
balances, nonces, the event log and the block environment. Contracts are
stateless facades over their slot map (see :mod:`labgame.vm.contract`).

Execution model
---------------
- Fully sequential. Each transaction runs to completion before the next one.
- Every transaction mines a block (height + 1). Time does not advance on its
  own: ``increase_time`` / ``set_next_timestamp`` are the only clocks, so two
  back-to-back transactions observe the same timestamp.
- All-or-nothing: any exception raised while a transaction executes restores
  slot maps, balances, nonces, deployed contracts and the event log to their
  pre-transaction state. ``LabGameError`` subclasses are reverts; anything else
  is a host bug and is re-raised after the same rollback.

Usage
-----
    chain = Chain()
    alice = chain.account("alice")
    token = chain.deploy(Serum, alice, "Serum", "SERUM")
    receipt = token.connect(alice).add_controller(alice)
    assert receipt.names() == ["RoleGranted"]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from ..constants import (
    DEFAULT_ACCOUNT_BALANCE,
    DEFAULT_CHAIN_ID,
    DEFAULT_GENESIS_TIMESTAMP,
    DOMAIN_ACCOUNT_ADDR,
    DOMAIN_CONTRACT_ADDR,
)
from ..errors import (
    CapabilityError,
    HostError,
    LabGameError,
    PaymentError,
    StateError,
    TransferExceedsBalance,
    ValidationError,
)
from ..hashing import derive_address, to_hex, u256
from ..metrics import METRICS, Metrics
from .context import BlockEnv, Msg
from .contract import Contract
from .events import Event, EventLog

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=Contract)


@dataclass(frozen=True)
class Receipt:
    """Result of a successful transaction."""

    value: Any
    events: Tuple[Event, ...]
    block: BlockEnv

    def names(self) -> List[str]:
        return [e.name.decode("ascii") for e in self.events]

    def find(self, name: str) -> List[Event]:
        n = name.encode("ascii")
        return [e for e in self.events if e.name == n]

    def first(self, name: str) -> Event:
        found = self.find(name)
        if not found:
            raise LookupError(f"no {name} event in receipt")
        return found[0]


@dataclass
class _Snapshot:
    slots: Dict[bytes, Dict[bytes, bytes]]
    contracts: Dict[bytes, Contract]
    balances: Dict[bytes, int]
    nonces: Dict[bytes, int]
    event_mark: int
    block: BlockEnv


def _outcome(err: BaseException) -> str:
    if isinstance(err, ValidationError):
        return "validation"
    if isinstance(err, CapabilityError):
        return "capability"
    if isinstance(err, StateError):
        return "state"
    if isinstance(err, PaymentError):
        return "payment"
    return "error"


class Chain:
    def __init__(
        self,
        *,
        chain_id: int = DEFAULT_CHAIN_ID,
        genesis_timestamp: int = DEFAULT_GENESIS_TIMESTAMP,
        account_balance: int = DEFAULT_ACCOUNT_BALANCE,
        metrics: Optional[Metrics] = None,
    ) -> None:
        self._block = BlockEnv(height=0, timestamp=genesis_timestamp, chain_id=chain_id)
        self._slots: Dict[bytes, Dict[bytes, bytes]] = {}
        self._contracts: Dict[bytes, Contract] = {}
        self._balances: Dict[bytes, int] = {}
        self._nonces: Dict[bytes, int] = {}
        self._labels: Dict[bytes, str] = {}
        self._frames: List[Msg] = []
        self._snapshots: Dict[int, _Snapshot] = {}
        self._account_balance = account_balance
        self.events = EventLog()
        self.metrics = metrics or METRICS

    # ------------------------------------------------------------------
    # Accounts & balances
    # ------------------------------------------------------------------

    def account(self, label: str) -> bytes:
        """Deterministic, pre-funded externally owned account."""
        addr = derive_address(DOMAIN_ACCOUNT_ADDR, label.encode("utf-8"))
        if addr not in self._labels:
            self._labels[addr] = label
            self._balances[addr] = self._balances.get(addr, 0) + self._account_balance
        return addr

    def accounts(self, n: int, prefix: str = "account") -> List[bytes]:
        return [self.account(f"{prefix}{i}") for i in range(n)]

    def label(self, address: bytes) -> str:
        return self._labels.get(address, to_hex(address))

    def balance_of(self, address: bytes) -> int:
        return self._balances.get(address, 0)

    def set_balance(self, address: bytes, amount: int) -> None:
        if amount < 0:
            raise HostError("balance must be >= 0")
        self._balances[address] = amount

    def _transfer_native(self, frm: bytes, to: bytes, amount: int) -> None:
        if amount < 0:
            raise HostError("native transfer amount must be >= 0")
        if amount == 0:
            return
        bal = self._balances.get(frm, 0)
        if bal < amount:
            raise TransferExceedsBalance(frm, amount, bal)
        self._balances[frm] = bal - amount
        self._balances[to] = self._balances.get(to, 0) + amount

    # ------------------------------------------------------------------
    # Block environment & time travel
    # ------------------------------------------------------------------

    @property
    def block(self) -> BlockEnv:
        return self._block

    @property
    def timestamp(self) -> int:
        return self._block.timestamp

    def mine(self, blocks: int = 1) -> BlockEnv:
        self._block = replace(self._block, height=self._block.height + blocks)
        return self._block

    def increase_time(self, seconds: int) -> int:
        if seconds < 0:
            raise HostError("cannot move time backwards")
        self._block = replace(self._block, timestamp=self._block.timestamp + seconds)
        return self._block.timestamp

    def set_next_timestamp(self, timestamp: int) -> None:
        if timestamp < self._block.timestamp:
            raise HostError("cannot move time backwards")
        self._block = replace(self._block, timestamp=timestamp)

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------

    def _slots_for(self, address: bytes) -> Dict[bytes, bytes]:
        return self._slots.setdefault(address, {})

    def contract_at(self, address: bytes) -> Contract:
        try:
            return self._contracts[address]
        except KeyError:
            raise HostError(f"no contract at {to_hex(address)}") from None

    def is_contract(self, address: bytes) -> bool:
        return address in self._contracts

    def _next_contract_address(self, deployer: bytes) -> bytes:
        nonce = self._nonces.get(deployer, 0)
        self._nonces[deployer] = nonce + 1
        return derive_address(DOMAIN_CONTRACT_ADDR, deployer, u256(nonce))

    def deploy(self, cls: Type[C], deployer: bytes, *init_args: Any, value: int = 0) -> C:
        """Create ``cls`` at a fresh address and run its ``initialize``."""

        def _create() -> C:
            address = self._next_contract_address(deployer)
            contract = cls(self, address)
            self._contracts[address] = contract
            self._labels.setdefault(address, cls.LABEL)
            self._call(deployer, address, "initialize", init_args, value, origin=deployer)
            return contract

        receipt = self.execute(deployer, f"deploy:{cls.LABEL}", _create)
        logger.debug("deployed %s at %s", cls.__name__, to_hex(receipt.value.address))
        return receipt.value

    def replace_code(self, address: bytes, cls: Type[C]) -> C:
        """Swap the implementation behind ``address``; storage is untouched."""
        self.contract_at(address)
        contract = cls(self, address)
        self._contracts[address] = contract
        return contract

    # ------------------------------------------------------------------
    # Calls & transactions
    # ------------------------------------------------------------------

    def current_msg(self) -> Optional[Msg]:
        return self._frames[-1] if self._frames else None

    def _call(
        self,
        sender: bytes,
        target: bytes,
        method: str,
        args: Sequence[Any],
        value: int,
        *,
        origin: Optional[bytes] = None,
    ) -> Any:
        if origin is None:
            if not self._frames:
                raise HostError("contract calls must happen inside a transaction")
            origin = self._frames[-1].origin
        if method.startswith("_"):
            raise HostError(f"{method!r} is not callable from outside the contract")
        contract = self.contract_at(target)
        fn = getattr(contract, method, None)
        if not callable(fn):
            raise HostError(f"{type(contract).__name__} has no method {method!r}")
        self._transfer_native(sender, target, value)
        self._frames.append(Msg(sender=sender, value=value, origin=origin))
        try:
            return fn(*args)
        finally:
            self._frames.pop()

    def _try_call(
        self,
        sender: bytes,
        target: bytes,
        method: str,
        args: Sequence[Any],
        value: int,
    ) -> Tuple[bool, Any]:
        """Run a contract call whose revert only undoes its own frame.

        Returns ``(True, result)`` or ``(False, error)``. Only ``LabGameError``
        reverts are caught; host bugs still abort the whole transaction.
        """
        snap = self._take_snapshot()
        try:
            return True, self._call(sender, target, method, args, value)
        except LabGameError as e:
            self._apply_snapshot(snap)
            logger.info("call reverted: %s.%s: %s", self.label(target), method, e.code)
            return False, e

    def transact(
        self,
        sender: bytes,
        target: bytes,
        method: str,
        *args: Any,
        value: int = 0,
    ) -> Receipt:
        return self.execute(
            sender,
            method,
            lambda: self._call(sender, target, method, args, value, origin=sender),
        )

    def execute(self, sender: bytes, label: str, thunk: Callable[[], Any]) -> Receipt:
        """Run ``thunk`` as one atomic transaction sent by ``sender``."""
        if self._frames:
            raise HostError("transactions cannot be nested")
        self.mine()
        snap = self._take_snapshot()
        with self.metrics.tx_timer():
            try:
                result = thunk()
            except BaseException as e:
                self._apply_snapshot(snap)
                self._frames.clear()
                self.metrics.record_tx(label, _outcome(e))
                if isinstance(e, LabGameError):
                    logger.info(
                        "tx reverted: %s by %s: %s", label, self.label(sender), e.code
                    )
                raise
        self.metrics.record_tx(label, "ok")
        return Receipt(value=result, events=self.events.since(snap.event_mark), block=self._block)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def _take_snapshot(self) -> _Snapshot:
        return _Snapshot(
            slots={a: dict(s) for a, s in self._slots.items()},
            contracts=dict(self._contracts),
            balances=dict(self._balances),
            nonces=dict(self._nonces),
            event_mark=self.events.mark(),
            block=self._block,
        )

    def _apply_snapshot(self, snap: _Snapshot, *, restore_block: bool = False) -> None:
        # Slot maps are restored in place: contract instances hold references.
        for address in list(self._slots):
            if address not in snap.slots:
                del self._slots[address]
        for address, saved in snap.slots.items():
            live = self._slots.setdefault(address, {})
            live.clear()
            live.update(saved)
        self._contracts = dict(snap.contracts)
        self._balances = dict(snap.balances)
        self._nonces = dict(snap.nonces)
        self.events.truncate(snap.event_mark)
        if restore_block:
            self._block = snap.block

    def snapshot(self) -> int:
        """Capture the full chain state; returns an id for :meth:`restore`."""
        sid = len(self._snapshots) + 1
        self._snapshots[sid] = self._take_snapshot()
        return sid

    def restore(self, snapshot_id: int) -> None:
        """Return to a snapshot, including block height and time."""
        try:
            snap = self._snapshots[snapshot_id]
        except KeyError:
            raise HostError(f"unknown snapshot {snapshot_id}") from None
        self._apply_snapshot(snap, restore_block=True)


__all__ = ["Chain", "Receipt"]
