"""
Tests for deck creation, shuffling and dealing.
"""

import random
from collections import Counter

import pytest
from menteur_engine.constants import JOKER, MENTEUR_VARIANT, RANK_VARIANT, get_variant
from menteur_engine.shuffle import create_deck, deal_cards, shuffle_deck


def test_rank_deck_composition():
    deck = create_deck(RANK_VARIANT)
    assert len(deck) == 52 == RANK_VARIANT.deck_size
    assert len({(c.suit, c.value) for c in deck}) == 52
    assert Counter(c.value for c in deck)["K"] == 4


def test_menteur_deck_composition():
    deck = create_deck(MENTEUR_VARIANT)
    counts = Counter(c.value for c in deck)
    assert len(deck) == 30 == MENTEUR_VARIANT.deck_size
    assert counts[JOKER] == 2
    assert all(counts[v] == 4 for v in MENTEUR_VARIANT.values)
    assert all(c.suit is None for c in deck)


def test_card_ids_are_unique_and_sequential():
    deck = create_deck(MENTEUR_VARIANT)
    assert [c.id for c in deck] == [f"card-{i}" for i in range(30)]
    assert not any(c.face_up for c in deck)


def test_unknown_variant():
    with pytest.raises(ValueError):
        get_variant("tarot")


def test_shuffle_returns_permutation_and_keeps_input():
    deck = create_deck(RANK_VARIANT)
    original = [c.id for c in deck]

    shuffled = shuffle_deck(deck, random.Random(3))

    assert [c.id for c in deck] == original
    assert sorted(c.id for c in shuffled) == sorted(original)
    assert [c.id for c in shuffled] != original


def test_shuffle_is_deterministic_with_seed():
    deck = create_deck(MENTEUR_VARIANT)
    first = [c.id for c in shuffle_deck(deck, random.Random(42))]
    second = [c.id for c in shuffle_deck(deck, random.Random(42))]
    assert first == second


def test_shuffle_positions_are_roughly_uniform():
    """Every card shows up in the first and last slot about equally often."""
    deck = create_deck(MENTEUR_VARIANT)
    rng = random.Random(2024)
    trials = 6000
    first_slot = Counter()
    last_slot = Counter()
    for _ in range(trials):
        shuffled = shuffle_deck(deck, rng)
        first_slot[shuffled[0].id] += 1
        last_slot[shuffled[-1].id] += 1

    expected = trials / len(deck)  # 200
    for counter in (first_slot, last_slot):
        assert len(counter) == len(deck)
        assert all(0.6 * expected < n < 1.4 * expected for n in counter.values())


@pytest.mark.parametrize("variant", ["menteur", "rank"])
@pytest.mark.parametrize("player_count", [2, 3, 4, 5, 6])
def test_deal_partitions_deck(variant, player_count):
    deck = shuffle_deck(create_deck(get_variant(variant)), random.Random(player_count))

    deal = deal_cards(deck, player_count)

    per_player = len(deck) // player_count
    assert len(deal.hands) == player_count
    assert all(len(hand) == per_player for hand in deal.hands)
    assert len(deal.undealt) == len(deck) % player_count

    dealt_ids = [c.id for hand in deal.hands for c in hand]
    assert len(dealt_ids) == len(set(dealt_ids))
    assert set(dealt_ids) | {c.id for c in deal.undealt} == {c.id for c in deck}
    assert not set(dealt_ids) & {c.id for c in deal.undealt}


def test_deal_is_contiguous_in_player_order():
    deck = create_deck(MENTEUR_VARIANT)
    deal = deal_cards(deck, 4)
    assert [c.id for c in deal.hands[1]] == [c.id for c in deck[7:14]]
    assert [c.id for c in deal.undealt] == ["card-28", "card-29"]
