"""
Serum accrual: per-token checkpoints, claim, realisation on transfer and the
pause switch.
"""

from __future__ import annotations

import pytest

from labgame.constants import SECONDS_PER_DAY, SERUM
from labgame.errors import NoOwnedTokens, NotOwner, Paused, Unauthorized

from . import mint_and_reveal

DAILY = 1_000 * SERUM


@pytest.fixture
def holder(game, alice):
    mint_and_reveal(game, alice, 2)
    return alice


def test_checkpoint_set_on_mint(game, holder):
    now = game.chain.timestamp
    assert game.serum.token_claims(1) == now
    assert game.serum.token_claims(2) == now
    assert game.serum.pending_claim(holder) == 0


def test_one_day_accrues_rate_per_token(game, holder):
    game.chain.increase_time(SECONDS_PER_DAY)
    assert game.serum.pending_claim(holder) == 2 * DAILY


def test_partial_period_is_floored(game, holder):
    game.chain.increase_time(SECONDS_PER_DAY // 2 + 1)
    assert game.serum.pending_claim(holder) == 2 * (DAILY * (SECONDS_PER_DAY // 2 + 1) // SECONDS_PER_DAY)


def test_claim_mints_and_resets(game, holder):
    game.chain.increase_time(SECONDS_PER_DAY)
    r = game.serum.connect(holder).claim()
    assert r.value == 2 * DAILY
    ev = r.first("Claimed")
    assert (ev["account"], ev["amount"]) == (holder, 2 * DAILY)
    assert game.serum.balance_of(holder) == 2 * DAILY
    assert game.serum.pending_claim(holder) == 0
    assert game.serum.token_claims(1) == game.chain.timestamp


def test_claim_is_idempotent_within_a_block_time(game, holder):
    game.chain.increase_time(SECONDS_PER_DAY)
    game.serum.connect(holder).claim()
    assert game.serum.connect(holder).claim().value == 0
    assert game.serum.balance_of(holder) == 2 * DAILY


def test_accrual_is_linear_across_claims(game, holder):
    game.chain.increase_time(SECONDS_PER_DAY)
    game.serum.connect(holder).claim()
    game.chain.increase_time(2 * SECONDS_PER_DAY)
    game.serum.connect(holder).claim()
    assert game.serum.balance_of(holder) == 6 * DAILY


def test_claim_without_tokens(game, bob):
    with pytest.raises(NoOwnedTokens):
        game.serum.connect(bob).claim()


def test_transfer_realises_accrual_to_sender(game, holder, bob):
    game.chain.increase_time(SECONDS_PER_DAY)
    game.lab_game.connect(holder).transfer_from(holder, bob, 1)
    assert game.serum.balance_of(holder) == DAILY
    # the moved token restarts for the new owner
    assert game.serum.pending_claim(bob) == 0
    assert game.serum.pending_claim(holder) == DAILY
    game.chain.increase_time(SECONDS_PER_DAY)
    assert game.serum.pending_claim(bob) == DAILY


def test_generation_one_mint_spends_claimed_serum(game, holder):
    mint_and_reveal(game, holder, 2)
    game.chain.increase_time(2 * SECONDS_PER_DAY)
    game.serum.connect(holder).claim()
    assert game.serum.balance_of(holder) == 8 * DAILY
    pending = game.lab_game.connect(holder).mint(1, [1]).value
    # token 1 had nothing left to realise; the burn cost came off the balance
    assert game.serum.balance_of(holder) == 8 * DAILY - 2_000 * SERUM
    assert pending.base == 5


class TestLabGameOnlyHooks:
    def test_initialize_claim_rejects_others(self, game, alice):
        with pytest.raises(Unauthorized) as ei:
            game.serum.connect(alice).initialize_claim(99)
        assert ei.value.message == "Not authorized"

    def test_update_claim_rejects_others(self, game, alice):
        with pytest.raises(Unauthorized):
            game.serum.connect(alice).update_claim(alice, 1)

    def test_update_claim_from_lab_game(self, game, holder):
        game.chain.increase_time(SECONDS_PER_DAY)
        r = game.serum.connect(game.lab_game.address).update_claim(holder, 1)
        assert r.value == DAILY
        assert game.serum.balance_of(holder) == DAILY
        assert game.serum.token_claims(1) == game.chain.timestamp

    def test_set_lab_game_is_owner_only(self, game, alice):
        with pytest.raises(NotOwner):
            game.serum.connect(alice).set_lab_game(alice)


class TestPause:
    def test_pause_blocks_claim_but_not_views(self, game, holder):
        game.chain.increase_time(SECONDS_PER_DAY)
        game.serum.connect(game.deployer).set_paused(True)
        with pytest.raises(Paused):
            game.serum.connect(holder).claim()
        assert game.serum.pending_claim(holder) == 2 * DAILY

    def test_paused_claim_is_paused_even_without_tokens(self, game, bob):
        game.serum.connect(game.deployer).pause()
        with pytest.raises(Paused):
            game.serum.connect(bob).claim()

    def test_pause_blocks_accrual_hooks(self, game, holder, bob):
        game.serum.connect(game.deployer).pause()
        with pytest.raises(Paused):
            game.lab_game.connect(holder).transfer_from(holder, bob, 1)
        assert game.lab_game.owner_of(1) == holder

    def test_unpause_resumes(self, game, holder):
        game.chain.increase_time(SECONDS_PER_DAY)
        game.serum.connect(game.deployer).pause()
        game.chain.increase_time(SECONDS_PER_DAY)
        game.serum.connect(game.deployer).unpause()
        assert game.serum.connect(holder).claim().value == 4 * DAILY
