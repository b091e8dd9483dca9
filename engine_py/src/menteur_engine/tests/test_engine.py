"""
Tests for the Menteur rules engine.
"""

import random

import pytest
from menteur_engine.constants import JOKER, PHASE_CHALLENGE, PHASE_GAME_OVER, PHASE_PLAYING
from menteur_engine.effects import find_effect
from menteur_engine.engine import GameEngine
from menteur_engine.errors import (
    ACTION_NOT_ALLOWED, CANNOT_CHALLENGE, EMPTY_PLAY, ILLEGAL_JOKER_CLAIM,
    INVALID_CLAIM, NOT_YOUR_TURN, InvariantViolation
)
from menteur_engine.models import Card, Player
from menteur_engine.rules import create_rules


def start(names=("Alice", "Bob", "Charlie"), variant="menteur", ai=(), **overrides):
    engine = GameEngine(create_rules(variant=variant, **overrides), rng=random.Random(7))
    players = [Player(id=name.lower(), name=name, is_ai=name in ai) for name in names]
    engine.start_game(players)
    return engine


def give(player, *values):
    """Replace a player's hand with known cards."""
    player.hand = [
        Card(id=f"{player.id}-{i}", value=value, face_up=not player.is_ai)
        for i, value in enumerate(values)
    ]
    return [card.id for card in player.hand]


def test_start_game_deals_and_gives_turn_to_first_player():
    engine = start(names=("Alice", "Bob", "Charlie", "Diana"))
    state = engine.state

    assert state.phase == PHASE_PLAYING
    assert state.current_player_index == 0
    assert engine.current_player.is_current_turn
    assert [p.hand_count for p in state.players] == [7, 7, 7, 7]
    assert len(state.undealt) == 2
    assert engine.expected_value() == "1"
    assert "Alice starts" in state.message
    engine.check_invariants()


def test_ai_hands_are_dealt_face_down():
    engine = start(ai=("Bob",))
    assert all(c.face_up for c in engine.get_player("alice").hand)
    assert not any(c.face_up for c in engine.get_player("bob").hand)


def test_turn_rotation_wraps_around():
    engine = start()
    seen = []
    for _ in range(4):
        player = engine.current_player
        seen.append(engine.state.current_player_index)
        card = player.hand[0]
        result = engine.play_cards(player.id, [card.id], engine.expected_value())
        assert result.success
    assert seen == [0, 1, 2, 0]
    assert engine.state.current_player_index == 1


def test_progression_cycles_through_values():
    engine = start(variant="rank", names=("Alice", "Bob"))
    claims = []
    for _ in range(14):
        player = engine.current_player
        value = engine.expected_value()
        claims.append(value)
        engine.play_cards(player.id, [player.hand[0].id], value)
    assert claims[:13] == ["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]
    assert claims[13] == "A"


def test_play_out_of_turn_is_rejected():
    engine = start()
    bob = engine.get_player("bob")
    before = bob.hand_count

    result = engine.play_cards("bob", [bob.hand[0].id], "1")

    assert not result.success
    assert result.error_code == NOT_YOUR_TURN
    assert bob.hand_count == before
    assert engine.state.pile == []


def test_empty_play_is_rejected():
    engine = start()
    assert engine.play_cards("alice", [], "1").error_code == EMPTY_PLAY
    assert engine.play_cards("alice", ["card-does-not-exist"], "1").error_code == EMPTY_PLAY


def test_cards_not_in_hand_are_ignored():
    engine = start()
    alice = engine.get_player("alice")
    ids = give(alice, "1", "2")
    bob_card = engine.get_player("bob").hand[0].id

    result = engine.play_cards("alice", [ids[0], bob_card], "1")

    assert result.success
    assert [c.id for c in engine.state.pile] == [ids[0]]
    assert engine.get_player("bob").hand[0].id == bob_card


def test_joker_claim_is_always_rejected():
    engine = start(enforce_progression=False)
    alice = engine.get_player("alice")
    ids = give(alice, JOKER, "1")

    result = engine.play_cards("alice", ids, JOKER)

    assert not result.success
    assert result.error_code == ILLEGAL_JOKER_CLAIM
    assert alice.hand_count == 2
    assert "lie" in engine.state.message


def test_joker_can_be_played_as_a_bluff():
    engine = start()
    alice = engine.get_player("alice")
    ids = give(alice, JOKER, "1")

    assert engine.play_cards("alice", [ids[0]], "1").success

    result = engine.challenge("bob")
    assert result.outcome.was_lying


def test_off_cycle_claim_is_rejected_by_default():
    engine = start()
    alice = engine.get_player("alice")
    ids = give(alice, "4", "5")

    result = engine.play_cards("alice", [ids[0]], "4")

    assert result.error_code == INVALID_CLAIM
    assert engine.state.current_value is None


def test_off_cycle_claim_allowed_when_progression_not_enforced():
    engine = start(enforce_progression=False)
    alice = engine.get_player("alice")
    ids = give(alice, "4", "5")

    assert engine.play_cards("alice", [ids[0]], "4").success
    assert engine.state.current_value == "4"
    assert engine.expected_value() == "5"


def test_unknown_value_is_rejected():
    engine = start(enforce_progression=False)
    ids = give(engine.get_player("alice"), "1")
    assert engine.play_cards("alice", ids, "Q").error_code == INVALID_CLAIM


def test_win_ends_game_without_advancing_turn():
    engine = start()
    alice = engine.get_player("alice")
    ids = give(alice, "1")
    generation = engine.state.turn_generation

    result = engine.play_cards("alice", ids, "1")

    assert result.success
    assert engine.state.phase == PHASE_GAME_OVER
    assert engine.state.winner_id == "alice"
    assert engine.state.current_player_index == 0
    assert engine.state.turn_generation > generation
    assert find_effect(result.effects, "game_won").data["player_id"] == "alice"
    assert engine.play_cards("bob", [engine.get_player("bob").hand[0].id], "2").error_code == ACTION_NOT_ALLOWED


def test_winning_bluff_closes_the_challenge_gate():
    engine = start()
    alice = engine.get_player("alice")
    ids = give(alice, "5")

    assert engine.play_cards("alice", ids, "1").success

    assert engine.state.phase == PHASE_GAME_OVER
    assert engine.state.last_play.claimed_value == "1"
    assert engine.state.can_challenge is False
    result = engine.challenge("bob")
    assert result.error_code == CANNOT_CHALLENGE
    assert engine.state.winner_id == "alice"
    engine.check_invariants()


def test_check_invariants_detects_gate_open_after_game_over():
    engine = start()
    ids = give(engine.get_player("alice"), "1")
    engine.play_cards("alice", ids, "1")
    engine.state.can_challenge = True
    with pytest.raises(InvariantViolation):
        engine.check_invariants()


def test_truthful_claim_challenged_challenger_takes_pile():
    """A plays two 3s as 3, B challenges and picks up the pile."""
    engine = start()
    engine.state.current_value = "2"
    alice = engine.get_player("alice")
    bob = engine.get_player("bob")
    ids = give(alice, "3", "3", "5")
    bob_before = bob.hand_count

    result = engine.play_cards("alice", ids[:2], "3")
    assert result.success
    assert engine.state.last_play.claimed_value == "3"
    assert engine.state.can_challenge
    assert alice.hand_count == 1

    result = engine.challenge("bob")
    assert result.success
    assert result.outcome.was_lying is False
    assert engine.state.phase == PHASE_CHALLENGE
    assert all(c.face_up for c in engine.state.last_play.cards)

    result = engine.resolve_challenge()
    assert result.success
    assert bob.hand_count == bob_before + 2
    assert engine.current_player is bob
    assert engine.state.current_value == "3"
    assert engine.state.pile == []
    assert engine.state.last_play is None
    assert engine.state.phase == PHASE_PLAYING
    engine.check_invariants()


def test_lie_challenged_liar_takes_pile():
    """A plays a 5 as 3, C challenges and A picks up the pile."""
    engine = start()
    engine.state.current_value = "2"
    alice = engine.get_player("alice")
    ids = give(alice, "5", "6")

    assert engine.play_cards("alice", [ids[0]], "3").success
    result = engine.challenge("charlie")
    assert result.outcome.was_lying is True
    assert result.outcome.loser_id == "alice"

    engine.resolve_challenge()
    assert alice.hand_count == 2
    assert engine.current_player is alice
    assert engine.state.current_player_index == 0
    assert engine.state.current_value == "3"


def test_pile_given_to_ai_loser_stays_face_down():
    engine = start(ai=("Alice",))
    alice = engine.get_player("alice")
    ids = give(alice, "6", "2")
    engine.play_cards("alice", [ids[0]], "1")
    engine.challenge("bob")
    engine.resolve_challenge()
    assert not any(c.face_up for c in alice.hand)


def test_challenge_needs_a_live_claim():
    engine = start()
    result = engine.challenge("bob")
    assert result.error_code == CANNOT_CHALLENGE


def test_cannot_challenge_own_claim():
    engine = start()
    ids = give(engine.get_player("alice"), "1", "2")
    engine.play_cards("alice", [ids[0]], "1")
    assert engine.challenge("alice").error_code == CANNOT_CHALLENGE
    assert engine.state.can_challenge


def test_only_one_challenge_per_claim():
    engine = start()
    ids = give(engine.get_player("alice"), "1", "2")
    engine.play_cards("alice", [ids[0]], "1")
    assert engine.challenge("bob").success
    assert engine.challenge("charlie").error_code == CANNOT_CHALLENGE


def test_no_plays_while_challenge_is_pending():
    engine = start()
    ids = give(engine.get_player("alice"), "1", "2")
    engine.play_cards("alice", [ids[0]], "1")
    engine.challenge("charlie")
    bob = engine.get_player("bob")
    assert engine.play_cards("bob", [bob.hand[0].id], "2").error_code == ACTION_NOT_ALLOWED


def test_resolve_without_challenge_is_an_error():
    engine = start()
    assert not engine.resolve_challenge().success


def test_generation_moves_on_every_transition():
    engine = start()
    generations = [engine.state.turn_generation]
    ids = give(engine.get_player("alice"), "1", "2")
    engine.play_cards("alice", [ids[0]], "1")
    generations.append(engine.state.turn_generation)
    engine.challenge("bob")
    generations.append(engine.state.turn_generation)
    engine.resolve_challenge()
    generations.append(engine.state.turn_generation)
    assert generations == sorted(set(generations))


def test_rejections_are_private_when_echo_is_off():
    engine = GameEngine(create_rules(), rng=random.Random(1), echo_errors=False)
    engine.start_game([Player(id="a", name="A"), Player(id="b", name="B")])
    message = engine.state.message

    result = engine.play_cards("b", [engine.get_player("b").hand[0].id], "1")

    assert result.error_code == NOT_YOUR_TURN
    assert engine.state.message == message


def test_out_of_range_index_is_an_invariant_violation():
    engine = start()
    engine.state.current_player_index = 9
    with pytest.raises(InvariantViolation):
        engine.current_player


def test_check_invariants_detects_duplicate_cards():
    engine = start()
    alice, bob = engine.get_player("alice"), engine.get_player("bob")
    bob.hand.append(alice.hand[0])
    with pytest.raises(InvariantViolation):
        engine.check_invariants()


def test_check_invariants_detects_two_current_players():
    engine = start()
    engine.get_player("charlie").is_current_turn = True
    with pytest.raises(InvariantViolation):
        engine.check_invariants()
