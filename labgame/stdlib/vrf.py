# -*- coding: utf-8 -*-
"""
labgame.stdlib.vrf
==================

Consumer side of a VRF-style randomness oracle.

The consumer stores the coordinator address and the request parameters, issues
requests through a contract-to-contract call, and guards the inbound
fulfilment so only the coordinator can deliver words.

Outbound:
    coordinator.request_random_words(key_hash, subscription_id,
                                     request_confirmations, callback_gas_limit,
                                     num_words) -> request_id
Inbound (on the consuming contract):
    raw_fulfill_random_words(request_id, random_words)

Admin (owner only): set_key_hash, set_subscription_id, set_callback_gas_limit,
set_request_confirmations. Each emits ``VRFParamChanged {"param", "value"}``.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Union

from ..constants import DEFAULT_REQUEST_CONFIRMATIONS, MAX_NUM_WORDS
from ..errors import InvalidParameter, OnlyCoordinator, ZeroAddress
from ..hashing import ZERO_ADDRESS, to_bytes

if TYPE_CHECKING:  # pragma: no cover
    from ..vm.contract import Contract
    from .access import Ownable

logger = logging.getLogger(__name__)

K_COORDINATOR: bytes = b"vrf:coordinator"
K_KEY_HASH: bytes = b"vrf:key_hash"
K_SUBSCRIPTION: bytes = b"vrf:subscription_id"
K_CONFIRMATIONS: bytes = b"vrf:confirmations"
K_GAS_LIMIT: bytes = b"vrf:callback_gas_limit"


class VRFConsumer:
    def __init__(self, contract: "Contract", ownable: "Ownable") -> None:
        self._c = contract
        self._s = contract.storage
        self._ownable = ownable

    def init(
        self,
        coordinator: bytes,
        key_hash: Union[bytes, str],
        subscription_id: int,
        callback_gas_limit: int,
        request_confirmations: int = DEFAULT_REQUEST_CONFIRMATIONS,
    ) -> None:
        if coordinator == ZERO_ADDRESS:
            raise ZeroAddress("coordinator")
        self._s.set_address(K_COORDINATOR, coordinator)
        self._set_key_hash(key_hash)
        self._s.set_int(K_SUBSCRIPTION, subscription_id)
        self._set_gas_limit(callback_gas_limit)
        self._s.set_int(K_CONFIRMATIONS, request_confirmations)

    # ---- views ----

    def coordinator(self) -> Optional[bytes]:
        return self._s.get_address(K_COORDINATOR)

    def key_hash(self) -> bytes:
        return self._s.get(K_KEY_HASH) or b""

    def subscription_id(self) -> int:
        return self._s.get_int(K_SUBSCRIPTION)

    def callback_gas_limit(self) -> int:
        return self._s.get_int(K_GAS_LIMIT)

    def request_confirmations(self) -> int:
        return self._s.get_int(K_CONFIRMATIONS)

    # ---- admin ----

    def set_key_hash(self, caller: bytes, key_hash: Union[bytes, str]) -> None:
        self._ownable.require_owner(caller)
        self._set_key_hash(key_hash)
        self._c.emit(b"VRFParamChanged", param="key_hash", value=self.key_hash())

    def set_subscription_id(self, caller: bytes, subscription_id: int) -> None:
        self._ownable.require_owner(caller)
        self._s.set_int(K_SUBSCRIPTION, subscription_id)
        self._c.emit(b"VRFParamChanged", param="subscription_id", value=subscription_id)

    def set_callback_gas_limit(self, caller: bytes, gas_limit: int) -> None:
        self._ownable.require_owner(caller)
        self._set_gas_limit(gas_limit)
        self._c.emit(b"VRFParamChanged", param="callback_gas_limit", value=gas_limit)

    def set_request_confirmations(self, caller: bytes, confirmations: int) -> None:
        self._ownable.require_owner(caller)
        self._s.set_int(K_CONFIRMATIONS, confirmations)
        self._c.emit(b"VRFParamChanged", param="request_confirmations", value=confirmations)

    def _set_key_hash(self, key_hash: Union[bytes, str]) -> None:
        kh = to_bytes(key_hash)
        if len(kh) != 32:
            raise InvalidParameter("key_hash", key_hash)
        self._s.set(K_KEY_HASH, kh)

    def _set_gas_limit(self, gas_limit: int) -> None:
        if isinstance(gas_limit, bool) or not isinstance(gas_limit, int) or gas_limit < 0:
            raise InvalidParameter("callback_gas_limit", gas_limit)
        self._s.set_int(K_GAS_LIMIT, gas_limit)

    # ---- request / fulfil ----

    def request(self, num_words: int) -> int:
        if not (1 <= num_words <= MAX_NUM_WORDS):
            raise InvalidParameter("num_words", num_words)
        coordinator = self.coordinator()
        if coordinator is None:
            raise ZeroAddress("coordinator")
        request_id = self._c.call(
            coordinator,
            "request_random_words",
            self.key_hash(),
            self.subscription_id(),
            self.request_confirmations(),
            self.callback_gas_limit(),
            num_words,
        )
        logger.debug("requested %d words, request_id=%d", num_words, request_id)
        return request_id

    def require_coordinator(self, caller: bytes) -> None:
        coordinator = self.coordinator()
        if coordinator is None or caller != coordinator:
            raise OnlyCoordinator(caller, coordinator or ZERO_ADDRESS)


__all__ = ["VRFConsumer"]
