# -*- coding: utf-8 -*-
"""
LabGame — the generational character collection.

ERC-721 "LabGame"/"LABGAME" minted through a commit/reveal protocol:

1. ``mint(count, burn_ids)`` or ``whitelist_mint(count, proof)`` takes payment,
   reserves ``count`` token ids and asks the oracle for ``count`` words.
2. The coordinator calls back ``raw_fulfill_random_words``; the words are
   stored (pull model) or, with ``auto_reveal``, revealed on the spot (push).
3. ``reveal()`` turns each word into a :class:`TraitSet` and mints the tokens.

Generations
-----------
Token ids fall into cumulative generation caps (2222 / 4444 / 6666 / 8888 by
default). A request belongs to the generation of its first reserved id and
may not cross into the next one (``GenerationLimit``) nor past the last cap
(``SupplyExceeded``).

- generation 0: paid in native currency, ``count * native_price``
- generations 1-3: burn ``count * serum_price`` Serum (LabGame is a Serum
  controller)
- generations 1 and 2: additionally burn exactly ``count`` distinct, owned,
  previous-generation tokens

Every mint, transfer and burn touches Serum's accrual checkpoints; tokens of
generation 3 also touch Blueprint's.

Admin (owner)
-------------
pause / unpause / set_paused, enable_whitelist / disable_whitelist, VRF
setters, set_blueprint, set_pending_timeout, rescue_pending_mint, withdraw,
transfer_ownership.

Events
------
- Requested {"account", "base", "count", "request_id"}, Fulfilled, Rescued
- Revealed  {"account", "token_id", "generation", "kind"}
- Transfer / Approval / ApprovalForAll (ERC-721)
- WhitelistEnabled / WhitelistDisabled, Paused / Unpaused, VRFParamChanged
- BlueprintSet {"blueprint"}, Withdrawn {"to", "amount"}
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Union

from ..config import GameConfig, GenerationParams
from ..constants import BLUEPRINT_GENERATION
from ..errors import (
    BurnNotOwned,
    GenerationLimit,
    InsufficientPayment,
    InvalidBurnSet,
    InvalidParameter,
    NotWhitelisted,
    SupplyExceeded,
    WhitelistEnabled,
    WhitelistNotEnabled,
    ZeroAddress,
)
from ..hashing import ZERO_ADDRESS, to_hex, u256
from ..ledger.mint import PendingMint, RandomMintLedger, RandomnessRequest
from ..stdlib.access import Ownable
from ..stdlib.nonfungible import NonFungibleToken
from ..stdlib.pausable import Pausable
from ..stdlib.upgrade import Initializable
from ..stdlib.vrf import VRFConsumer
from ..stdlib.whitelist import MerkleWhitelist, ProofLike
from ..vm.storage import key
from .generator import TraitGenerator, TraitSet

logger = logging.getLogger(__name__)

K_SERUM = b"game:serum"
K_BLUEPRINT = b"game:blueprint"
K_MAX_PER_TX = b"game:max_per_tx"
K_GEN_COUNT = b"game:gen_count"
K_PENDING_TIMEOUT = b"game:pending_timeout"
K_AUTO_REVEAL = b"game:auto_reveal"
P_GEN = b"game:gen:"
P_TRAITS = b"game:traits:"

_GENERATOR = TraitGenerator()


def _pack_generation(gen: GenerationParams) -> bytes:
    return u256(gen.max_supply) + u256(gen.native_price) + u256(gen.serum_price) + bytes([int(gen.burns_previous)])


def _unpack_generation(raw: bytes) -> GenerationParams:
    return GenerationParams(
        max_supply=int.from_bytes(raw[0:32], "big"),
        native_price=int.from_bytes(raw[32:64], "big"),
        serum_price=int.from_bytes(raw[64:96], "big"),
        burns_previous=raw[96] == 1,
    )


class LabGame(NonFungibleToken):
    LABEL = "lab_game"

    def __init__(self, chain, address: bytes) -> None:
        super().__init__(chain, address)
        self.ownable = Ownable(self)
        self.pausable = Pausable(self, self.ownable)
        self.whitelist = MerkleWhitelist(self, self.ownable)
        self.vrf = VRFConsumer(self, self.ownable)
        self.ledger = RandomMintLedger(self, self.vrf)
        self._init_guard = Initializable(self)

    def initialize(self, serum: bytes, coordinator: bytes, config: Optional[GameConfig] = None) -> None:
        cfg = config or GameConfig()
        cfg.validate()
        self._init_guard.initializer()
        if serum == ZERO_ADDRESS:
            raise ZeroAddress("serum")
        self._init_collection(cfg.name, cfg.symbol)
        self.ownable.init(self.msg.sender)
        self.vrf.init(
            coordinator,
            cfg.vrf.key_hash_bytes(),
            cfg.vrf.subscription_id,
            cfg.vrf.callback_gas_limit,
            cfg.vrf.request_confirmations,
        )
        self.storage.set_address(K_SERUM, serum)
        self.storage.set_int(K_MAX_PER_TX, cfg.max_mint_per_tx)
        self.storage.set_int(K_GEN_COUNT, len(cfg.generations))
        for g, gen in enumerate(cfg.generations):
            self.storage.set(key(P_GEN, g), _pack_generation(gen))
        self.storage.set_int(K_PENDING_TIMEOUT, cfg.pending_timeout_s)
        self.storage.set_bool(K_AUTO_REVEAL, cfg.auto_reveal)

    # ---- views ----

    def owner(self) -> Optional[bytes]:
        return self.ownable.owner()

    def paused(self) -> bool:
        return self.pausable.paused()

    def serum(self) -> Optional[bytes]:
        return self.storage.get_address(K_SERUM)

    def blueprint(self) -> Optional[bytes]:
        return self.storage.get_address(K_BLUEPRINT)

    def max_mint_per_tx(self) -> int:
        return self.storage.get_int(K_MAX_PER_TX)

    def pending_timeout(self) -> int:
        return self.storage.get_int(K_PENDING_TIMEOUT)

    def auto_reveal(self) -> bool:
        return self.storage.get_bool(K_AUTO_REVEAL)

    def generation_count(self) -> int:
        return self.storage.get_int(K_GEN_COUNT)

    def generation_params(self, generation: int) -> GenerationParams:
        raw = self.storage.get(key(P_GEN, generation))
        if raw is None:
            raise InvalidParameter("generation", generation)
        return _unpack_generation(raw)

    def max_supply(self) -> int:
        return self.generation_params(self.generation_count() - 1).max_supply

    def generation_of(self, token_id: int) -> int:
        if token_id < 1:
            raise InvalidParameter("token_id", token_id)
        for g in range(self.generation_count()):
            if token_id <= self.generation_params(g).max_supply:
                return g
        raise InvalidParameter("token_id", token_id)

    def current_generation(self) -> int:
        minted = self.total_minted()
        if minted >= self.max_supply():
            return self.generation_count() - 1
        return self.generation_of(minted + 1)

    def total_minted(self) -> int:
        return self.ledger.total_minted()

    def pending_mint(self, account: bytes) -> Optional[PendingMint]:
        return self.ledger.pending_mint(account)

    def randomness_request(self, request_id: int) -> Optional[RandomnessRequest]:
        return self.ledger.randomness_request(request_id)

    def token_data(self, token_id: int) -> TraitSet:
        self.owner_of(token_id)
        return TraitSet.unpack(self.storage.get(key(P_TRAITS, token_id)) or b"")

    def whitelisted(self) -> bool:
        return self.whitelist.whitelisted()

    def whitelist_root(self) -> Optional[bytes]:
        return self.whitelist.whitelist_root()

    def is_whitelisted(self, account: bytes, proof: ProofLike) -> bool:
        return self.whitelist.is_whitelisted(account, proof)

    # ---- mint ----

    def mint(self, count: int, burn_ids: Sequence[int] = ()) -> PendingMint:
        self.pausable.require_not_paused()
        if self.whitelist.whitelisted():
            raise WhitelistEnabled()
        return self._request(self.msg.sender, count, burn_ids)

    def whitelist_mint(self, count: int, proof: ProofLike) -> PendingMint:
        self.pausable.require_not_paused()
        if not self.whitelist.whitelisted():
            raise WhitelistNotEnabled()
        account = self.msg.sender
        if not self.whitelist.is_whitelisted(account, proof):
            raise NotWhitelisted(account)
        return self._request(account, count, (), only_generation=0)

    def _request(
        self,
        account: bytes,
        count: int,
        burn_ids: Sequence[int],
        *,
        only_generation: Optional[int] = None,
    ) -> PendingMint:
        self.ledger.check(account, count, self.max_mint_per_tx())
        generation = self._generation_for(count)
        if only_generation is not None and generation != only_generation:
            cap = self.generation_params(only_generation).max_supply
            raise GenerationLimit(only_generation, self.total_minted(), count, cap)
        params = self.generation_params(generation)

        required = count * params.native_price
        if self.msg.value < required:
            raise InsufficientPayment(required, self.msg.value)

        self._check_burn_set(account, generation, params, list(burn_ids), count)
        if params.serum_price:
            self.call(self.serum(), "burn", account, count * params.serum_price)
        for token_id in burn_ids:
            self._burn(token_id)

        return self.ledger.open(account, count, limit=self.max_mint_per_tx(), max_supply=self.max_supply())

    def _generation_for(self, count: int) -> int:
        minted = self.total_minted()
        max_supply = self.max_supply()
        if minted + count > max_supply:
            raise SupplyExceeded(minted, count, max_supply)
        generation = self.generation_of(minted + 1)
        cap = self.generation_params(generation).max_supply
        if minted + count > cap:
            raise GenerationLimit(generation, minted, count, cap)
        return generation

    def _check_burn_set(
        self,
        account: bytes,
        generation: int,
        params: GenerationParams,
        burn_ids: List[int],
        count: int,
    ) -> None:
        if not params.burns_previous:
            if burn_ids:
                raise InvalidBurnSet("generation does not burn", generation=generation)
            return
        if len(burn_ids) != count:
            raise InvalidBurnSet("length must equal count", count=count, given=len(burn_ids))
        if len(set(burn_ids)) != len(burn_ids):
            raise InvalidBurnSet("duplicate token id")
        for token_id in burn_ids:
            if not self.exists(token_id) or self.owner_of(token_id) != account:
                raise BurnNotOwned(account, token_id)
            if self.generation_of(token_id) != generation - 1:
                raise InvalidBurnSet("token is not from the previous generation", token_id=token_id)

    # ---- fulfil / reveal ----

    def raw_fulfill_random_words(self, request_id: int, random_words: Sequence[int]) -> None:
        self.vrf.require_coordinator(self.msg.sender)
        req = self.ledger.fulfill(request_id, random_words)
        if self.auto_reveal():
            self._reveal(req.requester)

    def reveal(self) -> List[int]:
        return self._reveal(self.msg.sender)

    def _reveal(self, account: bytes) -> List[int]:
        revealed = []
        for token_id, word in self.ledger.take_reveal(account):
            traits = _GENERATOR.assign(token_id, self.generation_of(token_id), word)
            self.storage.set(key(P_TRAITS, token_id), traits.pack())
            self._mint(account, token_id)
            self.emit(
                b"Revealed",
                account=account,
                token_id=token_id,
                generation=traits.generation,
                kind=traits.kind_name,
            )
            revealed.append(token_id)
        self.chain.metrics.record_reveals(self.LABEL, len(revealed))
        logger.info("revealed %d tokens for %s: %s", len(revealed), to_hex(account), revealed)
        return revealed

    def _after_token_transfer(self, frm: bytes, to: bytes, token_id: int) -> None:
        targets = [self.serum()]
        if self.generation_of(token_id) == BLUEPRINT_GENERATION:
            targets.append(self.blueprint())
        for target in targets:
            if target is None:
                continue
            if frm == ZERO_ADDRESS:
                self.call(target, "initialize_claim", token_id)
            else:
                self.call(target, "update_claim", frm, token_id)

    # ---- admin ----

    def transfer_ownership(self, new_owner: bytes) -> None:
        self.ownable.transfer_ownership(self.msg.sender, new_owner)

    def set_paused(self, paused: bool) -> None:
        self.pausable.set_paused(self.msg.sender, paused)

    def pause(self) -> None:
        self.pausable.pause(self.msg.sender)

    def unpause(self) -> None:
        self.pausable.unpause(self.msg.sender)

    def enable_whitelist(self, root: Union[bytes, str]) -> None:
        self.whitelist.enable(self.msg.sender, root)

    def disable_whitelist(self) -> None:
        self.whitelist.disable(self.msg.sender)

    def set_key_hash(self, key_hash: Union[bytes, str]) -> None:
        self.vrf.set_key_hash(self.msg.sender, key_hash)

    def set_subscription_id(self, subscription_id: int) -> None:
        self.vrf.set_subscription_id(self.msg.sender, subscription_id)

    def set_callback_gas_limit(self, gas_limit: int) -> None:
        self.vrf.set_callback_gas_limit(self.msg.sender, gas_limit)

    def set_request_confirmations(self, confirmations: int) -> None:
        self.vrf.set_request_confirmations(self.msg.sender, confirmations)

    def set_blueprint(self, blueprint: bytes) -> None:
        self.ownable.require_owner(self.msg.sender)
        if blueprint == ZERO_ADDRESS:
            raise ZeroAddress("blueprint")
        self.storage.set_address(K_BLUEPRINT, blueprint)
        self.emit(b"BlueprintSet", blueprint=blueprint)

    def set_pending_timeout(self, seconds: int) -> None:
        self.ownable.require_owner(self.msg.sender)
        if seconds < 0:
            raise InvalidParameter("pending_timeout", seconds)
        self.storage.set_int(K_PENDING_TIMEOUT, seconds)

    def rescue_pending_mint(self, account: bytes) -> None:
        self.ownable.require_owner(self.msg.sender)
        self.ledger.rescue(account, self.pending_timeout())
        if self.auto_reveal():
            self._reveal(account)

    def withdraw(self) -> int:
        owner = self.msg.sender
        self.ownable.require_owner(owner)
        amount = self.native_balance()
        self.send_value(owner, amount)
        self.emit(b"Withdrawn", to=owner, amount=amount)
        logger.info("withdrew %d to %s", amount, to_hex(owner))
        return amount


__all__ = ["LabGame"]
