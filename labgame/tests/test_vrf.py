"""
Local VRF coordinator and the consumer parameters held by LabGame / Blueprint.
"""

from __future__ import annotations

import pytest

from labgame.constants import DEFAULT_KEY_HASH, GEN0_PRICE
from labgame.contracts import VRFCoordinator
from labgame.deploy import deploy_game
from labgame.errors import (
    AlreadyFulfilled,
    AlreadyInitialized,
    InvalidParameter,
    NotOwner,
    OnlyCoordinator,
    Unauthorized,
    UnknownRequest,
)

from . import small_config


def test_request_ids_increase_and_words_are_deterministic(chain, deployer, alice):
    a = chain.deploy(VRFCoordinator, deployer, b"seed")
    b = chain.deploy(VRFCoordinator, deployer, b"seed")
    assert a.seed() == b.seed()
    assert a.words_for(1, 3) == b.words_for(1, 3)
    assert a.words_for(1, 3) != a.words_for(2, 3)
    assert len(set(a.words_for(1, 5))) == 5

    r1 = a.connect(alice).request_random_words(DEFAULT_KEY_HASH, 1, 3, 100_000, 2)
    r2 = a.connect(alice).request_random_words(DEFAULT_KEY_HASH, 1, 3, 100_000, 1)
    assert (r1.value, r2.value) == (1, 2)
    ev = r1.first("RandomWordsRequested")
    assert ev["consumer"] == alice and ev["num_words"] == 2
    assert a.request_consumer(1) == alice
    assert a.request_size(1) == 2
    assert a.pending_requests() == [1, 2]


def test_num_words_bounds(chain, deployer):
    c = chain.deploy(VRFCoordinator, deployer)
    with pytest.raises(InvalidParameter):
        c.connect(deployer).request_random_words(DEFAULT_KEY_HASH, 1, 3, 100_000, 0)


def test_unknown_request(chain, deployer):
    c = chain.deploy(VRFCoordinator, deployer)
    with pytest.raises(UnknownRequest):
        c.connect(deployer).fulfill_request(7)


def test_fulfil_delivers_to_consumer(game, alice):
    pending = game.lab_game.connect(alice).mint(2, value=2 * GEN0_PRICE).value
    coord = game.coordinator
    r = coord.connect(game.deployer).fulfill_request(pending.request_id)
    assert r.names() == ["Fulfilled", "RandomWordsFulfilled"]
    assert coord.is_fulfilled(pending.request_id)
    req = game.lab_game.randomness_request(pending.request_id)
    assert req.fulfilled
    assert list(req.random_words) == coord.words_for(pending.request_id, 2)
    with pytest.raises(AlreadyFulfilled):
        coord.connect(game.deployer).fulfill_request(pending.request_id)


def test_fulfil_with_explicit_words(game, alice):
    pending = game.lab_game.connect(alice).mint(2, value=2 * GEN0_PRICE).value
    game.coordinator.connect(game.deployer).fulfill_request(pending.request_id, [7, 8])
    assert game.lab_game.randomness_request(pending.request_id).random_words == (7, 8)


def test_wrong_word_count_reverts_whole_fulfilment(game, alice):
    pending = game.lab_game.connect(alice).mint(2, value=2 * GEN0_PRICE).value
    with pytest.raises(InvalidParameter):
        game.coordinator.connect(game.deployer).fulfill_request(pending.request_id, [1])
    assert not game.coordinator.is_fulfilled(pending.request_id)
    assert not game.lab_game.randomness_request(pending.request_id).fulfilled


def test_fulfill_requests_drains_queue(game, alice, bob):
    game.lab_game.connect(alice).mint(1, value=GEN0_PRICE)
    game.lab_game.connect(bob).mint(2, value=2 * GEN0_PRICE)
    assert game.coordinator.connect(game.deployer).fulfill_requests().value == 2
    assert game.coordinator.pending_requests() == []


def test_coordinator_initializes_once(game, bob):
    coord = game.coordinator
    seed = coord.seed()
    with pytest.raises(AlreadyInitialized):
        coord.connect(bob).initialize(b"x")
    assert coord.seed() == seed
    first = game.lab_game.connect(bob).mint(1, value=GEN0_PRICE).value
    coord.connect(game.deployer).fulfill_request(first.request_id)
    second = game.lab_game.connect(game.deployer).mint(1, value=GEN0_PRICE).value
    assert second.request_id == first.request_id + 1
    assert coord.pending_requests() == [second.request_id]


def test_batch_skips_a_request_the_consumer_no_longer_knows(game, alice, bob):
    lg = game.lab_game
    lg.connect(game.deployer).set_pending_timeout(10)
    rescued = lg.connect(alice).mint(1, value=GEN0_PRICE).value
    game.chain.increase_time(11)
    lg.connect(game.deployer).rescue_pending_mint(alice)
    assert lg.connect(alice).reveal().value == [1]
    queued = lg.connect(bob).mint(2, value=2 * GEN0_PRICE).value

    r = game.coordinator.connect(game.deployer).fulfill_requests()
    assert r.value == 1
    outcome = {e["request_id"]: e["success"] for e in r.find("RandomWordsFulfilled")}
    assert outcome == {rescued.request_id: False, queued.request_id: True}
    assert game.coordinator.delivery_failed(rescued.request_id)
    assert not game.coordinator.delivery_failed(queued.request_id)
    assert game.coordinator.pending_requests() == []
    assert lg.connect(bob).reveal().value == [2, 3]
    # nothing left to retry
    assert game.coordinator.connect(game.deployer).fulfill_requests().value == 0


def test_batch_rolls_back_only_the_failing_consumer(chain, deployer, alice):
    d = deploy_game(chain, deployer, small_config(auto_reveal=True))
    pending = d.lab_game.connect(alice).mint(1, value=GEN0_PRICE).value
    d.serum.connect(deployer).pause()
    r = d.coordinator.connect(deployer).fulfill_requests()
    assert r.value == 0
    assert r.first("RandomWordsFulfilled")["success"] is False
    assert "Fulfilled" not in r.names()
    assert d.coordinator.is_fulfilled(pending.request_id)
    assert d.coordinator.delivery_failed(pending.request_id)
    assert not d.lab_game.randomness_request(pending.request_id).fulfilled
    assert d.lab_game.balance_of(alice) == 0


def test_only_coordinator_may_deliver(game, alice):
    pending = game.lab_game.connect(alice).mint(1, value=GEN0_PRICE).value
    with pytest.raises(OnlyCoordinator):
        game.lab_game.connect(alice).raw_fulfill_random_words(pending.request_id, [1])
    with pytest.raises(Unauthorized):
        game.blueprint.connect(alice).raw_fulfill_random_words(pending.request_id, [1])


class TestConsumerParameters:
    def test_defaults_from_config(self, game):
        vrf = game.lab_game.vrf
        assert vrf.coordinator() == game.coordinator.address
        assert vrf.key_hash() == DEFAULT_KEY_HASH
        assert vrf.subscription_id() == game.config.vrf.subscription_id

    def test_owner_setters(self, game):
        lg = game.lab_game.connect(game.deployer)
        r = lg.set_key_hash("0x" + "11" * 32)
        assert r.first("VRFParamChanged")["param"] == "key_hash"
        lg.set_subscription_id(42)
        lg.set_callback_gas_limit(1)
        lg.set_request_confirmations(5)
        vrf = game.lab_game.vrf
        assert vrf.key_hash() == b"\x11" * 32
        assert vrf.subscription_id() == 42
        assert vrf.callback_gas_limit() == 1
        assert vrf.request_confirmations() == 5

    def test_zero_gas_limit_is_accepted(self, game):
        game.lab_game.connect(game.deployer).set_callback_gas_limit(0)
        assert game.lab_game.vrf.callback_gas_limit() == 0
        game.blueprint.connect(game.deployer).set_callback_gas_limit(0)
        assert game.blueprint.vrf.callback_gas_limit() == 0

    @pytest.mark.parametrize(
        "method,arg",
        [
            ("set_key_hash", "0x" + "22" * 32),
            ("set_subscription_id", 1),
            ("set_callback_gas_limit", 1),
            ("set_request_confirmations", 1),
        ],
    )
    def test_non_owner_setters_revert(self, game, alice, method, arg):
        with pytest.raises(NotOwner):
            getattr(game.lab_game.connect(alice), method)(arg)

    @pytest.mark.parametrize(
        "method,arg",
        [
            ("set_key_hash", "0x" + "22" * 32),
            ("set_subscription_id", 1),
            ("set_callback_gas_limit", 1),
        ],
    )
    def test_blueprint_non_owner_setters_revert(self, game, alice, method, arg):
        with pytest.raises(NotOwner):
            getattr(game.blueprint.connect(alice), method)(arg)

    def test_invalid_values(self, game):
        lg = game.lab_game.connect(game.deployer)
        with pytest.raises(InvalidParameter):
            lg.set_callback_gas_limit(-1)
        with pytest.raises(InvalidParameter):
            lg.set_key_hash("0x1234")
