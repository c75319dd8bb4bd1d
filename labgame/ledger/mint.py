"""
labgame.ledger.mint — commit/reveal mint requests backed by oracle randomness.

Per account the ledger moves ``NONE → PENDING → NONE``:

1. :meth:`RandomMintLedger.open` reserves the contiguous id range
   ``total_minted + 1 .. total_minted + count``, bumps ``total_minted``, issues
   one randomness request for ``count`` words and records the PendingMint and
   the RandomnessRequest.
2. :meth:`RandomMintLedger.fulfill` (oracle callback path) stores the words,
   exactly once per request.
3. :meth:`RandomMintLedger.take_reveal` checks the request is fulfilled, clears
   both records and hands back ``(token_id, word)`` pairs in ascending id
   order for the owning contract to assign and mint.

The ledger is pure bookkeeping: capability checks, payment, burns, trait
assignment and token minting belong to the contract that owns it. Because the
host serializes transactions, ``base`` ranges of concurrent pending mints can
never overlap.

Events
------
- Requested {"account", "base", "count", "request_id"}
- Fulfilled {"request_id", "account"}
- Rescued   {"request_id", "account"}

Storage layout
--------------
- b"mint:total"                          → u256 total_minted
- key(b"mint:pending:", account)         → request_id (u256)
- key(b"mint:req:", request_id)          → requester | base | count | requested_at | fulfilled
- key(b"mint:word:", request_id, i)      → u256 word
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from ..constants import DOMAIN_RESCUE_WORD, U256_MAX
from ..errors import (
    AlreadyFulfilled,
    InvalidCount,
    InvalidParameter,
    NoPendingMint,
    PendingMintExists,
    RescueNotAvailable,
    RevealNotReady,
    SupplyExceeded,
    UnknownRequest,
)
from ..hashing import ADDRESS_LEN, hash_concat, to_hex, u256
from ..vm.storage import key

if TYPE_CHECKING:  # pragma: no cover
    from ..stdlib.vrf import VRFConsumer
    from ..vm.contract import Contract

logger = logging.getLogger(__name__)

K_TOTAL_MINTED = b"mint:total"
P_PENDING = b"mint:pending:"
P_REQUEST = b"mint:req:"
P_WORD = b"mint:word:"

_REQ_LEN = ADDRESS_LEN + 32 * 3 + 1


@dataclass(frozen=True)
class PendingMint:
    base: int
    count: int
    request_id: int

    @property
    def token_ids(self) -> range:
        return range(self.base, self.base + self.count)


@dataclass(frozen=True)
class RandomnessRequest:
    request_id: int
    requester: bytes
    base: int
    count: int
    requested_at: int
    fulfilled: bool
    random_words: Tuple[int, ...] = ()


def _pack_request(requester: bytes, base: int, count: int, requested_at: int, fulfilled: bool) -> bytes:
    return requester + u256(base) + u256(count) + u256(requested_at) + (b"\x01" if fulfilled else b"\x00")


class RandomMintLedger:
    def __init__(self, contract: "Contract", vrf: "VRFConsumer") -> None:
        self._c = contract
        self._s = contract.storage
        self._vrf = vrf

    # ---- views ----

    def total_minted(self) -> int:
        return self._s.get_int(K_TOTAL_MINTED)

    def pending_mint(self, account: bytes) -> Optional[PendingMint]:
        raw = self._s.get(key(P_PENDING, account))
        if raw is None:
            return None
        req = self.randomness_request(int.from_bytes(raw, "big"))
        if req is None:  # pragma: no cover - records are written and cleared together
            return None
        return PendingMint(base=req.base, count=req.count, request_id=req.request_id)

    def randomness_request(self, request_id: int) -> Optional[RandomnessRequest]:
        raw = self._s.get(key(P_REQUEST, request_id))
        if raw is None or len(raw) != _REQ_LEN:
            return None
        o = ADDRESS_LEN
        requester = raw[:o]
        base = int.from_bytes(raw[o:o + 32], "big")
        count = int.from_bytes(raw[o + 32:o + 64], "big")
        requested_at = int.from_bytes(raw[o + 64:o + 96], "big")
        fulfilled = raw[-1] == 1
        words: Tuple[int, ...] = ()
        if fulfilled:
            words = tuple(self._s.get_int(key(P_WORD, request_id, i)) for i in range(count))
        return RandomnessRequest(
            request_id=request_id,
            requester=requester,
            base=base,
            count=count,
            requested_at=requested_at,
            fulfilled=fulfilled,
            random_words=words,
        )

    # ---- request ----

    def check(self, account: bytes, count: int, limit: int) -> None:
        """Count range and the one-pending-mint rule, before any payment is taken."""
        if isinstance(count, bool) or not isinstance(count, int) or not (1 <= count <= limit):
            raise InvalidCount(count, limit)
        if self._s.exists(key(P_PENDING, account)):
            raise PendingMintExists(account)

    def open(self, account: bytes, count: int, *, limit: int, max_supply: int) -> PendingMint:
        self.check(account, count, limit)
        minted = self.total_minted()
        if minted + count > max_supply:
            raise SupplyExceeded(minted, count, max_supply)
        base = minted + 1
        self._s.set_int(K_TOTAL_MINTED, minted + count)

        request_id = self._vrf.request(count)
        if self._s.exists(key(P_REQUEST, request_id)):
            raise InvalidParameter("request_id", request_id)
        self._s.set(key(P_REQUEST, request_id), _pack_request(account, base, count, self._c.now, False))
        self._s.set_int(key(P_PENDING, account), request_id)

        self._c.emit(b"Requested", account=account, base=base, count=count, request_id=request_id)
        self._c.chain.metrics.record_mint_request(self._c.LABEL)
        logger.info(
            "%s mint requested: account=%s base=%d count=%d request_id=%d",
            self._c.LABEL, to_hex(account), base, count, request_id,
        )
        return PendingMint(base=base, count=count, request_id=request_id)

    # ---- fulfil ----

    def fulfill(self, request_id: int, words: Sequence[int]) -> RandomnessRequest:
        req = self.randomness_request(request_id)
        if req is None:
            raise UnknownRequest(request_id)
        if req.fulfilled:
            raise AlreadyFulfilled(request_id)
        if len(words) != req.count:
            raise InvalidParameter("random_words", len(words))
        self._store_words(req, words)
        self._c.emit(b"Fulfilled", request_id=request_id, account=req.requester)
        logger.debug("%s request %d fulfilled", self._c.LABEL, request_id)
        return self.randomness_request(request_id)  # type: ignore[return-value]

    def _store_words(self, req: RandomnessRequest, words: Sequence[int]) -> None:
        for i, w in enumerate(words):
            if isinstance(w, bool) or not isinstance(w, int) or not (0 <= w <= U256_MAX):
                raise InvalidParameter("random_word", w)
            self._s.set_int(key(P_WORD, req.request_id, i), w)
        self._s.set(
            key(P_REQUEST, req.request_id),
            _pack_request(req.requester, req.base, req.count, req.requested_at, True),
        )

    def rescue(self, account: bytes, timeout_s: int) -> RandomnessRequest:
        """Fulfil an expired request from chain state instead of the oracle."""
        raw = self._s.get(key(P_PENDING, account))
        if raw is None:
            raise NoPendingMint(account)
        request_id = int.from_bytes(raw, "big")
        req = self.randomness_request(request_id)
        if req is None:
            raise UnknownRequest(request_id)
        if timeout_s <= 0:
            raise RescueNotAvailable(account, "rescue disabled")
        if req.fulfilled:
            raise RescueNotAvailable(account, "already fulfilled")
        if self._c.now < req.requested_at + timeout_s:
            raise RescueNotAvailable(account, "timeout not reached")
        words = [
            int.from_bytes(
                hash_concat(
                    u256(req.request_id), account, u256(self._c.now), u256(self._c.block.chain_id), u256(i),
                    domain=DOMAIN_RESCUE_WORD,
                ),
                "big",
            )
            for i in range(req.count)
        ]
        self._store_words(req, words)
        self._c.emit(b"Rescued", request_id=req.request_id, account=account)
        logger.warning("%s pending mint of %s rescued after timeout", self._c.LABEL, to_hex(account))
        return self.randomness_request(req.request_id)  # type: ignore[return-value]

    # ---- reveal ----

    def take_reveal(self, account: bytes) -> List[Tuple[int, int]]:
        pending = self.pending_mint(account)
        if pending is None:
            raise NoPendingMint(account)
        req = self.randomness_request(pending.request_id)
        if req is None or not req.fulfilled:
            raise RevealNotReady(account, pending.request_id)
        for i in range(req.count):
            self._s.delete(key(P_WORD, req.request_id, i))
        self._s.delete(key(P_REQUEST, req.request_id))
        self._s.delete(key(P_PENDING, account))
        return list(zip(pending.token_ids, req.random_words))


__all__ = ["PendingMint", "RandomnessRequest", "RandomMintLedger"]
