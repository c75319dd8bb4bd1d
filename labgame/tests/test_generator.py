"""
Trait and rarity assignment: alias-table distributions, determinism and the
packed trait encoding.
"""

from __future__ import annotations

from collections import Counter

import pytest
from hypothesis import given
from hypothesis import strategies as st

from labgame.constants import BLUEPRINT_RARITY_WEIGHTS, DEFAULT_TRAIT_WEIGHTS, KIND_MUTANT, TRAIT_SLOTS
from labgame.contracts.generator import (
    AliasTable,
    Entropy,
    RarityGenerator,
    TraitGenerator,
    TraitSet,
    uniform_index,
)
from labgame.hashing import hash_concat, u256


def _exact_distribution(table: AliasTable):
    """Outcome frequencies over every (column, threshold byte) pair."""
    n = len(table)
    counts = Counter(table.sample(c, t) for c in range(n) for t in range(256))
    return {k: v / (n * 256) for k, v in counts.items()}


@pytest.mark.parametrize("weights", [(25, 25, 25, 25), (50, 30, 15, 5), BLUEPRINT_RARITY_WEIGHTS])
def test_alias_table_follows_weights(weights):
    dist = _exact_distribution(AliasTable.from_weights(weights))
    total = sum(weights)
    for i, w in enumerate(weights):
        assert dist.get(i, 0.0) == pytest.approx(w / total, abs=0.015)


def test_alias_table_exact_for_power_of_two_columns():
    dist = _exact_distribution(AliasTable.from_weights((64, 64, 64, 64)))
    assert dist == {0: 0.25, 1: 0.25, 2: 0.25, 3: 0.25}


def test_zero_weight_is_never_drawn():
    dist = _exact_distribution(AliasTable.from_weights((3, 0, 1)))
    assert 1 not in dist


def test_column_choice_is_unbiased():
    picks = Counter(uniform_index(iter([b]).__next__, 5) for b in range(255))
    assert picks == {i: 51 for i in range(5)}
    # 255 sits in the uneven tail and is redrawn from the next byte
    assert uniform_index(iter([255, 7]).__next__, 5) == 2
    assert uniform_index(iter([200]).__next__, 256) == 200
    with pytest.raises(ValueError):
        uniform_index(iter([0]).__next__, 0)


def test_sample_rejects_columns_outside_the_table():
    table = AliasTable.from_weights((1, 1, 1))
    with pytest.raises(ValueError):
        table.sample(3, 0)


def test_entropy_stream_is_deterministic_across_blocks():
    stream = Entropy(1, 5)
    first = [stream.next_byte() for _ in range(64)]
    assert bytes(first[:32]) == hash_concat(u256(5), u256(1), u256(0))
    assert bytes(first[32:]) == hash_concat(u256(5), u256(1), u256(1))
    other = Entropy(2, 5)
    assert first != [other.next_byte() for _ in range(64)]


@pytest.mark.parametrize("weights", [(), (0, 0), (1, -1)])
def test_alias_table_rejects_bad_weights(weights):
    with pytest.raises(ValueError):
        AliasTable.from_weights(weights)


@given(st.lists(st.integers(min_value=0, max_value=1000), min_size=1, max_size=32).filter(lambda w: sum(w) > 0))
def test_alias_probabilities_sum_to_weights(weights):
    # Each column carries 1/n of the mass; it splits between itself and its alias.
    table = AliasTable.from_weights(weights)
    n, total = len(weights), table.total
    mass = [0] * n
    for col in range(n):
        mass[col] += table.prob[col]
        mass[table.alias[col]] += total - table.prob[col]
    assert mass == [w * n for w in weights]


def test_trait_assignment_is_deterministic():
    gen = TraitGenerator()
    a = gen.assign(1, 0, 12345)
    assert gen.assign(1, 0, 12345) == a
    assert gen.assign(2, 0, 12345) != a or gen.assign(3, 0, 12345) != a


def test_traits_index_into_their_tables():
    gen = TraitGenerator()
    for token_id in range(1, 200):
        ts = gen.assign(token_id, 2, token_id * 7919)
        tables = gen.tables_for(ts.kind)
        assert ts.generation == 2
        assert len(ts.traits) == len(TRAIT_SLOTS)
        assert all(0 <= t < len(tables[i]) for i, t in enumerate(ts.traits))


def test_mutant_share_tracks_threshold():
    gen = TraitGenerator()
    n = 2000
    mutants = sum(1 for i in range(n) if gen.assign(i + 1, 0, 42).kind == KIND_MUTANT)
    assert 0.06 < mutants / n < 0.15


def test_threshold_extremes():
    assert TraitGenerator(mutant_threshold=0).assign(1, 0, 9).kind_name == "scientist"
    assert TraitGenerator(mutant_threshold=256).assign(1, 0, 9).kind_name == "mutant"
    with pytest.raises(ValueError):
        TraitGenerator(mutant_threshold=257)
    with pytest.raises(ValueError):
        TraitGenerator(weights=DEFAULT_TRAIT_WEIGHTS[:8])


def test_trait_set_pack_unpack():
    ts = TraitSet(generation=3, kind=1, traits=(0, 1, 2, 3, 4, 0, 1, 2))
    raw = ts.pack()
    assert len(raw) == 10
    assert TraitSet.unpack(raw) == ts
    assert ts.to_dict()["kind"] == "mutant"
    assert ts.to_dict()["background"] == 0
    with pytest.raises(ValueError):
        TraitSet.unpack(raw[:-1])


def test_rarity_generator():
    rg = RarityGenerator()
    picks = Counter(rg.assign(i, 99) for i in range(1, 3001))
    assert set(picks) <= set(range(len(BLUEPRINT_RARITY_WEIGHTS)))
    # common dominates
    assert picks[0] > picks[1] > picks[2]
    with pytest.raises(ValueError):
        RarityGenerator((1, 2))
