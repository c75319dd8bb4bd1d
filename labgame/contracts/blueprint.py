# -*- coding: utf-8 -*-
"""
Blueprint — companion collection earned by holding generation-3 LabGame tokens.

ERC-721 "Blueprint"/"BLUEPRINT". Each generation-3 LabGame token accrues one
blueprint every two days (``rate`` per ``period_s``). Accrued blueprints are
not fungible balances: ``claim()`` turns them into a pending mint on the same
commit/reveal ledger LabGame uses, and ``reveal()`` assigns each blueprint a
rarity (common, uncommon, rare, epic or legendary).

claim()
-------
1. rejects while the caller still has a pending mint (``PendingMintExists``);
2. rejects when the caller holds no generation-3 token and has nothing banked
   (``NoOwnedTokens``);
3. settles every held generation-3 token and adds the banked remainder;
   zero means ``NothingToClaim``;
4. reserves ``min(accrued, max_mint_per_tx)`` ids and banks the rest for the
   next claim.

Blueprints realised through ``update_claim`` (a generation-3 token changed
hands) are banked for the previous owner.

Events
------
- Claimed  {"account", "amount", "banked"}
- Requested / Fulfilled (mint ledger), Revealed {"account", "token_id", "rarity"}
- Transfer / Approval / ApprovalForAll, Paused / Unpaused, VRFParamChanged,
  LabGameSet
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Union

from ..config import GameConfig
from ..constants import BLUEPRINT_GENERATION, BLUEPRINT_RARITIES
from ..errors import NoOwnedTokens, NothingToClaim, PendingMintExists
from ..hashing import to_hex
from ..ledger.accrual import TimeAccrualLedger
from ..ledger.mint import PendingMint, RandomMintLedger
from ..stdlib.access import Ownable
from ..stdlib.nonfungible import NonFungibleToken
from ..stdlib.pausable import Pausable
from ..stdlib.upgrade import Initializable
from ..stdlib.vrf import VRFConsumer
from ..vm.storage import key
from .generator import RarityGenerator

logger = logging.getLogger(__name__)

K_MAX_PER_TX = b"bp:max_per_tx"
K_MAX_SUPPLY = b"bp:max_supply"
P_RARITY = b"bp:rarity:"

_RARITY = RarityGenerator()


class Blueprint(NonFungibleToken):
    LABEL = "blueprint"

    def __init__(self, chain, address: bytes) -> None:
        super().__init__(chain, address)
        self.ownable = Ownable(self)
        self.pausable = Pausable(self, self.ownable)
        self.vrf = VRFConsumer(self, self.ownable)
        self.ledger = RandomMintLedger(self, self.vrf)
        self.accrual = TimeAccrualLedger(self, self.ownable, self.pausable)
        self._init_guard = Initializable(self)

    def initialize(
        self,
        lab_game: Optional[bytes],
        coordinator: bytes,
        config: Optional[GameConfig] = None,
    ) -> None:
        cfg = config or GameConfig()
        cfg.validate()
        self._init_guard.initializer()
        self._init_collection("Blueprint", "BLUEPRINT")
        self.ownable.init(self.msg.sender)
        self.vrf.init(
            coordinator,
            cfg.vrf.key_hash_bytes(),
            cfg.vrf.subscription_id,
            cfg.vrf.callback_gas_limit,
            cfg.vrf.request_confirmations,
        )
        self.accrual.init(cfg.blueprint_accrual.rate, cfg.blueprint_accrual.period_s, lab_game)
        self.storage.set_int(K_MAX_PER_TX, cfg.max_mint_per_tx)
        self.storage.set_int(K_MAX_SUPPLY, cfg.blueprint_max_supply)

    # ---- views ----

    def owner(self) -> Optional[bytes]:
        return self.ownable.owner()

    def paused(self) -> bool:
        return self.pausable.paused()

    def lab_game(self) -> Optional[bytes]:
        return self.accrual.lab_game()

    def max_supply(self) -> int:
        return self.storage.get_int(K_MAX_SUPPLY)

    def max_mint_per_tx(self) -> int:
        return self.storage.get_int(K_MAX_PER_TX)

    def total_minted(self) -> int:
        return self.ledger.total_minted()

    def pending_mint(self, account: bytes) -> Optional[PendingMint]:
        return self.ledger.pending_mint(account)

    def token_claims(self, token_id: int) -> int:
        return self.accrual.checkpoint(token_id)

    def banked(self, account: bytes) -> int:
        return self.accrual.banked(account)

    def pending_claim(self, account: bytes) -> int:
        return self.accrual.banked(account) + self.accrual.pending_total(self._qualifying_ids(account))

    def rarity_of(self, token_id: int) -> str:
        self.owner_of(token_id)
        return BLUEPRINT_RARITIES[self.storage.get_int(key(P_RARITY, token_id))]

    def _qualifying_ids(self, account: bytes) -> List[int]:
        lab_game = self.accrual.lab_game()
        if lab_game is None:
            return []
        game = self.at(lab_game)
        return [t for t in game.tokens_of_owner(account) if game.generation_of(t) == BLUEPRINT_GENERATION]

    # ---- claim / reveal ----

    def claim(self) -> PendingMint:
        account = self.msg.sender
        self.pausable.require_not_paused()
        if self.ledger.pending_mint(account) is not None:
            raise PendingMintExists(account)
        ids = self._qualifying_ids(account)
        if not ids and self.accrual.banked(account) == 0:
            raise NoOwnedTokens(account)
        accrued = self.accrual.settle(ids) + self.accrual.take_bank(account)
        if accrued == 0:
            raise NothingToClaim(account)
        limit = self.max_mint_per_tx()
        count = min(accrued, limit)
        self.accrual.bank(account, accrued - count)
        pending = self.ledger.open(account, count, limit=limit, max_supply=self.max_supply())
        self.emit(b"Claimed", account=account, amount=count, banked=accrued - count)
        self.chain.metrics.record_claim(self.LABEL)
        logger.info("blueprint claim by %s: %d now, %d banked", to_hex(account), count, accrued - count)
        return pending

    def raw_fulfill_random_words(self, request_id: int, random_words: Sequence[int]) -> None:
        self.vrf.require_coordinator(self.msg.sender)
        self.ledger.fulfill(request_id, random_words)

    def reveal(self) -> List[int]:
        account = self.msg.sender
        revealed = []
        for token_id, word in self.ledger.take_reveal(account):
            rarity = _RARITY.assign(token_id, word)
            self.storage.set_int(key(P_RARITY, token_id), rarity)
            self._mint(account, token_id)
            self.emit(b"Revealed", account=account, token_id=token_id, rarity=BLUEPRINT_RARITIES[rarity])
            revealed.append(token_id)
        self.chain.metrics.record_reveals(self.LABEL, len(revealed))
        return revealed

    # ---- accrual hooks (LabGame only) ----

    def initialize_claim(self, token_id: int) -> None:
        self.accrual.initialize(self.msg.sender, token_id)

    def update_claim(self, account: bytes, token_id: int) -> int:
        amount = self.accrual.touch(self.msg.sender, token_id)
        self.accrual.bank(account, amount)
        return amount

    # ---- admin ----

    def transfer_ownership(self, new_owner: bytes) -> None:
        self.ownable.transfer_ownership(self.msg.sender, new_owner)

    def set_paused(self, paused: bool) -> None:
        self.pausable.set_paused(self.msg.sender, paused)

    def pause(self) -> None:
        self.pausable.pause(self.msg.sender)

    def unpause(self) -> None:
        self.pausable.unpause(self.msg.sender)

    def set_lab_game(self, lab_game: bytes) -> None:
        self.accrual.set_lab_game(self.msg.sender, lab_game)

    def set_key_hash(self, key_hash: Union[bytes, str]) -> None:
        self.vrf.set_key_hash(self.msg.sender, key_hash)

    def set_subscription_id(self, subscription_id: int) -> None:
        self.vrf.set_subscription_id(self.msg.sender, subscription_id)

    def set_callback_gas_limit(self, gas_limit: int) -> None:
        self.vrf.set_callback_gas_limit(self.msg.sender, gas_limit)


__all__ = ["Blueprint"]
