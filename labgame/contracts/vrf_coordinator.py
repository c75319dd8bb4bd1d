# -*- coding: utf-8 -*-
"""
Local VRF coordinator.

Stands in for the external randomness oracle. Consumers call
``request_random_words`` through a contract-to-contract call; the coordinator
queues the request and, when ``fulfill_request`` / ``fulfill_requests`` is
sent (by anyone, it plays the oracle node), delivers words back through the
consumer's ``raw_fulfill_random_words``. The consumer sees
``msg.sender == coordinator``.

Words are deterministic::

    word_i = keccak256(domain=DOMAIN_VRF_WORD, seed || u256(request_id) || u256(i))

so a given seed replays the same game.

Events
------
- RandomWordsRequested {"request_id", "consumer", "num_words", "key_hash", "subscription_id"}
- RandomWordsFulfilled {"request_id", "consumer", "success"}

Storage keys
------------
- b"coord:seed"               : 32-byte seed
- b"coord:next_id"            : u256, next request id (ids start at 1)
- key(b"coord:req:", id)      : consumer address | u256 num_words
- key(b"coord:done:", id)     : b"\\x01" once fulfilled
- key(b"coord:failed:", id)   : b"\\x01" when the consumer rejected the delivery
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple, Union

from ..constants import DOMAIN_VRF_WORD, MAX_NUM_WORDS
from ..errors import AlreadyFulfilled, InvalidParameter, UnknownRequest
from ..hashing import ADDRESS_LEN, hash_concat, keccak256, to_bytes, to_hex, u256
from ..stdlib.upgrade import Initializable
from ..vm.contract import Contract
from ..vm.storage import key

logger = logging.getLogger(__name__)

K_SEED = b"coord:seed"
K_NEXT_ID = b"coord:next_id"
P_REQ = b"coord:req:"
P_DONE = b"coord:done:"
P_FAILED = b"coord:failed:"


class VRFCoordinator(Contract):
    LABEL = "vrf_coordinator"

    def __init__(self, chain, address: bytes) -> None:
        super().__init__(chain, address)
        self._init_guard = Initializable(self)

    def initialize(self, seed: Union[bytes, str, None] = None) -> None:
        self._init_guard.initializer()
        raw = to_bytes(seed) if seed else self.address
        self.storage.set(K_SEED, keccak256(raw))
        self.storage.set_int(K_NEXT_ID, 1)

    # ---- consumer side ----

    def request_random_words(
        self,
        key_hash: bytes,
        subscription_id: int,
        request_confirmations: int,
        callback_gas_limit: int,
        num_words: int,
    ) -> int:
        if not (1 <= num_words <= MAX_NUM_WORDS):
            raise InvalidParameter("num_words", num_words)
        consumer = self.msg.sender
        request_id = self.storage.get_int(K_NEXT_ID)
        self.storage.set_int(K_NEXT_ID, request_id + 1)
        self.storage.set(key(P_REQ, request_id), consumer + u256(num_words))
        self.emit(
            b"RandomWordsRequested",
            request_id=request_id,
            consumer=consumer,
            num_words=num_words,
            key_hash=bytes(key_hash),
            subscription_id=subscription_id,
        )
        logger.debug(
            "request %d from %s for %d words (confirmations=%d gas=%d)",
            request_id, to_hex(consumer), num_words, request_confirmations, callback_gas_limit,
        )
        return request_id

    # ---- reads ----

    def seed(self) -> bytes:
        return self.storage.get(K_SEED) or b""

    def request_consumer(self, request_id: int) -> Optional[bytes]:
        raw = self.storage.get(key(P_REQ, request_id))
        return raw[:ADDRESS_LEN] if raw else None

    def request_size(self, request_id: int) -> int:
        raw = self.storage.get(key(P_REQ, request_id))
        return int.from_bytes(raw[ADDRESS_LEN:], "big") if raw else 0

    def is_fulfilled(self, request_id: int) -> bool:
        return self.storage.get_bool(key(P_DONE, request_id))

    def delivery_failed(self, request_id: int) -> bool:
        return self.storage.get_bool(key(P_FAILED, request_id))

    def pending_requests(self) -> List[int]:
        last = self.storage.get_int(K_NEXT_ID)
        return [rid for rid in range(1, last) if not self.is_fulfilled(rid)]

    def words_for(self, request_id: int, num_words: int) -> List[int]:
        seed = self.seed()
        return [
            int.from_bytes(hash_concat(seed, u256(request_id), u256(i), domain=DOMAIN_VRF_WORD), "big")
            for i in range(num_words)
        ]

    # ---- oracle side ----

    def fulfill_request(self, request_id: int, words: Optional[Sequence[int]] = None) -> None:
        """Deliver one request; a revert in the consumer reverts this call too."""
        consumer, words = self._prepare(request_id, words)
        self.storage.set_bool(key(P_DONE, request_id), True)
        self.call(consumer, "raw_fulfill_random_words", request_id, words)
        self.emit(b"RandomWordsFulfilled", request_id=request_id, consumer=consumer, success=True)
        logger.debug("fulfilled request %d for %s", request_id, to_hex(consumer))

    def fulfill_requests(self) -> int:
        """
        Deliver every queued request in id order; returns how many the
        consumers accepted.

        A consumer that reverts (request rescued or already revealed, consumer
        paused, ...) only loses its own delivery: the request is marked done
        with ``success=False`` and the batch moves on.
        """
        accepted = 0
        for rid in self.pending_requests():
            consumer, words = self._prepare(rid, None)
            self.storage.set_bool(key(P_DONE, rid), True)
            ok, result = self.try_call(consumer, "raw_fulfill_random_words", rid, words)
            if ok:
                accepted += 1
            else:
                self.storage.set_bool(key(P_FAILED, rid), True)
                logger.warning("request %d: %s rejected delivery: %s", rid, to_hex(consumer), result.code)
            self.emit(b"RandomWordsFulfilled", request_id=rid, consumer=consumer, success=ok)
        return accepted

    def _prepare(self, request_id: int, words: Optional[Sequence[int]]) -> Tuple[bytes, List[int]]:
        consumer = self.request_consumer(request_id)
        if consumer is None:
            raise UnknownRequest(request_id)
        if self.is_fulfilled(request_id):
            raise AlreadyFulfilled(request_id)
        if words is None:
            words = self.words_for(request_id, self.request_size(request_id))
        return consumer, list(words)


__all__ = ["VRFCoordinator"]
