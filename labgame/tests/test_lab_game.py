"""
LabGame end to end: request / fulfil / reveal, mint limits, generational
burn-to-mint, push delivery, pending-mint rescue and owner operations.
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from labgame.constants import GEN0_PRICE, SECONDS_PER_DAY, SERUM
from labgame.deploy import deploy_game
from labgame.errors import (
    AlreadyFulfilled,
    BurnExceedsBalance,
    BurnNotOwned,
    GenerationLimit,
    InsufficientPayment,
    InvalidBurnSet,
    InvalidCount,
    NonexistentToken,
    NoPendingMint,
    NotOwner,
    Paused,
    PendingMintExists,
    RescueNotAvailable,
    RevealNotReady,
    SupplyExceeded,
    UnknownRequest,
    ZeroAddress,
)
from labgame.hashing import ZERO_ADDRESS
from labgame.ledger.mint import P_REQUEST
from labgame.vm.storage import key

from . import GEN1_SERUM, climb_to_gen3, give_serum, mint_and_reveal, new_game, small_config


class TestRequest:
    def test_mint_opens_pending_request(self, game, alice):
        r = game.lab_game.connect(alice).mint(2, value=2 * GEN0_PRICE)
        pending = r.value
        assert (pending.base, pending.count) == (1, 2)
        assert list(pending.token_ids) == [1, 2]
        ev = r.first("Requested")
        assert (ev["account"], ev["base"], ev["count"]) == (alice, 1, 2)
        assert ev["request_id"] == pending.request_id
        assert game.lab_game.pending_mint(alice) == pending
        assert game.lab_game.total_minted() == 2
        # ids are reserved, not minted
        assert game.lab_game.total_supply() == 0
        assert game.lab_game.native_balance() == 2 * GEN0_PRICE

    @pytest.mark.parametrize("count", [0, 11, -1, True])
    def test_count_out_of_range(self, game, alice, count):
        with pytest.raises(InvalidCount):
            game.lab_game.connect(alice).mint(count, value=11 * GEN0_PRICE)
        assert game.lab_game.total_minted() == 0

    def test_payment_required(self, game, alice):
        with pytest.raises(InsufficientPayment):
            game.lab_game.connect(alice).mint(2, value=2 * GEN0_PRICE - 1)
        with pytest.raises(InsufficientPayment):
            game.lab_game.connect(alice).mint(1)
        assert game.lab_game.total_minted() == 0

    def test_one_pending_mint_per_account(self, game, alice, bob):
        game.lab_game.connect(alice).mint(1, value=GEN0_PRICE)
        with pytest.raises(PendingMintExists):
            game.lab_game.connect(alice).mint(1, value=GEN0_PRICE)
        # others are unaffected
        assert game.lab_game.connect(bob).mint(1, value=GEN0_PRICE).value.base == 2

    def test_paused(self, chain, deployer, alice):
        d = deploy_game(chain, deployer, small_config(start_paused=True))
        assert d.lab_game.paused()
        with pytest.raises(Paused):
            d.lab_game.connect(alice).mint(1, value=GEN0_PRICE)
        d.lab_game.connect(deployer).unpause()
        d.lab_game.connect(alice).mint(1, value=GEN0_PRICE)


class TestReveal:
    def test_reveal_before_fulfilment(self, game, alice):
        game.lab_game.connect(alice).mint(1, value=GEN0_PRICE)
        with pytest.raises(RevealNotReady) as ei:
            game.lab_game.connect(alice).reveal()
        assert ei.value.message == "Reveal not ready"

    def test_reveal_without_pending(self, game, alice):
        with pytest.raises(NoPendingMint):
            game.lab_game.connect(alice).reveal()

    def test_only_requester_reveals(self, game, alice, bob):
        pending = game.lab_game.connect(alice).mint(1, value=GEN0_PRICE).value
        game.coordinator.connect(game.deployer).fulfill_request(pending.request_id)
        with pytest.raises(NoPendingMint):
            game.lab_game.connect(bob).reveal()

    def test_reveal_mints_with_traits(self, game, alice, bob):
        pending = game.lab_game.connect(bob).mint(1, value=GEN0_PRICE).value
        game.coordinator.connect(game.deployer).fulfill_request(pending.request_id)
        r = game.lab_game.connect(bob).reveal()
        assert r.value == [1]
        ev = r.first("Revealed")
        assert (ev["account"], ev["token_id"], ev["generation"]) == (bob, 1, 0)
        assert ev["kind"] in ("scientist", "mutant")
        assert game.lab_game.token_of_owner_by_index(bob, 0) == 1
        traits = game.lab_game.token_data(1)
        assert traits.generation == 0 and traits.kind_name == ev["kind"]
        assert game.lab_game.pending_mint(bob) is None
        assert game.lab_game.randomness_request(pending.request_id) is None

    def test_reveal_is_deterministic_in_the_word(self):
        a, b = new_game(), new_game()
        for d in (a, b):
            acct = d.chain.account("alice")
            pending = d.lab_game.connect(acct).mint(3, value=3 * GEN0_PRICE).value
            d.coordinator.connect(d.deployer).fulfill_request(pending.request_id, [11, 22, 33])
            d.lab_game.connect(acct).reveal()
        assert [a.lab_game.token_data(t) for t in (1, 2, 3)] == [b.lab_game.token_data(t) for t in (1, 2, 3)]

    def test_token_data_for_unknown_token(self, game):
        with pytest.raises(NonexistentToken):
            game.lab_game.token_data(1)

    def test_auto_reveal_delivers_on_fulfilment(self, chain, deployer, alice):
        d = deploy_game(chain, deployer, small_config(auto_reveal=True))
        pending = d.lab_game.connect(alice).mint(2, value=2 * GEN0_PRICE).value
        r = d.coordinator.connect(deployer).fulfill_request(pending.request_id)
        assert r.names().count("Revealed") == 2
        assert d.lab_game.tokens_of_owner(alice) == [1, 2]
        assert d.lab_game.pending_mint(alice) is None
        with pytest.raises(NoPendingMint):
            d.lab_game.connect(alice).reveal()


class TestGenerations:
    def test_generation_table(self, game):
        lg = game.lab_game
        assert lg.generation_count() == 4
        assert lg.max_supply() == 12
        assert [lg.generation_of(t) for t in (1, 4, 5, 8, 9, 10, 11, 12)] == [0, 0, 1, 1, 2, 2, 3, 3]
        assert lg.generation_params(1).serum_price == GEN1_SERUM
        assert lg.current_generation() == 0

    def test_request_may_not_cross_a_generation_cap(self, game, alice, bob):
        mint_and_reveal(game, alice, 3)
        with pytest.raises(GenerationLimit):
            game.lab_game.connect(bob).mint(2, value=2 * GEN0_PRICE)
        assert game.lab_game.total_minted() == 3
        mint_and_reveal(game, bob, 1)
        assert game.lab_game.current_generation() == 1

    def test_supply_exhausted(self, game, alice, bob):
        climb_to_gen3(game, alice)
        assert game.lab_game.total_minted() == 12
        assert game.lab_game.current_generation() == 3
        give_serum(game, bob, 100_000 * SERUM)
        with pytest.raises(SupplyExceeded):
            game.lab_game.connect(bob).mint(1)
        assert game.lab_game.total_minted() == 12

    def test_generation_one_burns_serum_and_tokens(self, game, alice):
        mint_and_reveal(game, alice, 4)
        give_serum(game, alice, 2 * GEN1_SERUM)
        ids = mint_and_reveal(game, alice, 2, burn_ids=[1, 2])
        assert ids == [5, 6]
        assert sorted(game.lab_game.tokens_of_owner(alice)) == [3, 4, 5, 6]
        assert not game.lab_game.exists(1)
        assert game.serum.balance_of(alice) == 0
        assert game.lab_game.token_data(5).generation == 1

    def test_generation_three_needs_no_burn(self, game, alice):
        ids = climb_to_gen3(game, alice)
        assert ids == [11, 12]
        assert game.lab_game.tokens_of_owner(alice) == [11, 12]
        # generation-3 tokens are tracked by Blueprint as well
        assert game.blueprint.token_claims(11) == game.chain.timestamp


class TestBurnSets:
    @pytest.fixture
    def gen1_open(self, game, alice, bob):
        mint_and_reveal(game, alice, 3)
        mint_and_reveal(game, bob, 1)
        give_serum(game, alice, 10 * GEN1_SERUM)
        return game

    def test_missing_burn(self, gen1_open, alice):
        with pytest.raises(InvalidBurnSet):
            gen1_open.lab_game.connect(alice).mint(1)

    def test_length_mismatch(self, gen1_open, alice):
        with pytest.raises(InvalidBurnSet):
            gen1_open.lab_game.connect(alice).mint(2, [1])

    def test_duplicates(self, gen1_open, alice):
        with pytest.raises(InvalidBurnSet):
            gen1_open.lab_game.connect(alice).mint(2, [1, 1])

    def test_not_owned(self, gen1_open, alice):
        with pytest.raises(BurnNotOwned):
            gen1_open.lab_game.connect(alice).mint(1, [4])
        with pytest.raises(BurnNotOwned):
            gen1_open.lab_game.connect(alice).mint(1, [99])

    def test_wrong_generation(self, gen1_open, alice):
        mint_and_reveal(gen1_open, alice, 1, burn_ids=[1])
        with pytest.raises(InvalidBurnSet):
            gen1_open.lab_game.connect(alice).mint(1, [5])

    def test_generation_zero_takes_no_burn(self, game, alice):
        mint_and_reveal(game, alice, 1)
        with pytest.raises(InvalidBurnSet):
            game.lab_game.connect(alice).mint(1, [1], value=GEN0_PRICE)

    def test_failed_serum_burn_keeps_tokens(self, game, alice):
        mint_and_reveal(game, alice, 4)
        with pytest.raises(BurnExceedsBalance):
            game.lab_game.connect(alice).mint(1, [1])
        assert game.lab_game.owner_of(1) == alice
        assert game.lab_game.total_minted() == 4


class TestRescue:
    def test_disabled_by_default(self, game, alice):
        game.lab_game.connect(alice).mint(1, value=GEN0_PRICE)
        game.chain.increase_time(365 * SECONDS_PER_DAY)
        with pytest.raises(RescueNotAvailable):
            game.lab_game.connect(game.deployer).rescue_pending_mint(alice)

    def test_rescue_after_timeout(self, game, alice):
        lg = game.lab_game
        lg.connect(game.deployer).set_pending_timeout(3600)
        assert lg.pending_timeout() == 3600
        pending = lg.connect(alice).mint(2, value=2 * GEN0_PRICE).value
        game.chain.increase_time(3599)
        with pytest.raises(RescueNotAvailable):
            lg.connect(game.deployer).rescue_pending_mint(alice)
        game.chain.increase_time(1)
        r = lg.connect(game.deployer).rescue_pending_mint(alice)
        assert r.first("Rescued")["request_id"] == pending.request_id
        # the oracle's late answer is refused
        with pytest.raises(AlreadyFulfilled):
            game.coordinator.connect(game.deployer).fulfill_request(pending.request_id)
        assert lg.connect(alice).reveal().value == [1, 2]

    def test_rescue_needs_a_pending_mint(self, game, alice):
        game.lab_game.connect(game.deployer).set_pending_timeout(1)
        with pytest.raises(NoPendingMint):
            game.lab_game.connect(game.deployer).rescue_pending_mint(alice)

    def test_rescue_with_a_missing_request_record(self, game, alice):
        lg = game.lab_game
        lg.connect(game.deployer).set_pending_timeout(1)
        pending = lg.connect(alice).mint(1, value=GEN0_PRICE).value
        lg.storage.delete(key(P_REQUEST, pending.request_id))
        game.chain.increase_time(2)
        with pytest.raises(UnknownRequest):
            lg.connect(game.deployer).rescue_pending_mint(alice)

    def test_rescue_is_owner_only(self, game, alice):
        with pytest.raises(NotOwner):
            game.lab_game.connect(alice).rescue_pending_mint(alice)
        with pytest.raises(NotOwner):
            game.lab_game.connect(alice).set_pending_timeout(1)


class TestAdmin:
    def test_withdraw(self, game, alice):
        mint_and_reveal(game, alice, 3)
        before = game.chain.balance_of(game.deployer)
        r = game.lab_game.connect(game.deployer).withdraw()
        assert r.value == 3 * GEN0_PRICE
        assert r.first("Withdrawn")["amount"] == 3 * GEN0_PRICE
        assert game.chain.balance_of(game.deployer) == before + 3 * GEN0_PRICE
        assert game.lab_game.native_balance() == 0

    def test_withdraw_owner_only(self, game, alice):
        with pytest.raises(NotOwner):
            game.lab_game.connect(alice).withdraw()

    def test_set_blueprint(self, game, alice):
        with pytest.raises(NotOwner):
            game.lab_game.connect(alice).set_blueprint(alice)
        with pytest.raises(ZeroAddress):
            game.lab_game.connect(game.deployer).set_blueprint(ZERO_ADDRESS)
        assert game.lab_game.blueprint() == game.blueprint.address

    def test_pause_is_owner_only(self, game, alice):
        with pytest.raises(NotOwner):
            game.lab_game.connect(alice).set_paused(True)


@settings(max_examples=15)
@given(st.lists(st.integers(min_value=1, max_value=4), min_size=1, max_size=6))
def test_reserved_ranges_are_contiguous_and_disjoint(counts):
    d = new_game()
    lg = d.lab_game
    expected_next = 1
    for i, count in enumerate(counts):
        acct = d.chain.account(f"player{i}")
        before = lg.total_minted()
        try:
            pending = lg.connect(acct).mint(count, value=count * GEN0_PRICE).value
        except (GenerationLimit, InvalidBurnSet):
            assert lg.total_minted() == before
            continue
        assert pending.base == expected_next
        expected_next += count
        assert lg.total_minted() == expected_next - 1
        assert lg.total_supply() <= lg.total_minted()
    d.coordinator.connect(d.deployer).fulfill_requests()
    for i in range(len(counts)):
        acct = d.chain.account(f"player{i}")
        if lg.pending_mint(acct) is not None:
            lg.connect(acct).reveal()
    assert lg.total_supply() == lg.total_minted()
