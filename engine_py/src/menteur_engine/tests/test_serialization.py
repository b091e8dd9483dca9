"""
Tests for the public-state projections.
"""

import random

from menteur_engine.engine import GameEngine
from menteur_engine.models import Card, OnlinePlayer, Player, Room
from menteur_engine.rules import create_rules
from menteur_engine.serialization import project_game_state, project_hand, project_room


def started_engine():
    engine = GameEngine(create_rules(), rng=random.Random(11))
    engine.start_game([
        Player(id="p1", name="Ann"),
        Player(id="p2", name="Ben", is_ai=True),
        Player(id="p3", name="Cy"),
    ])
    return engine


def test_hands_are_reduced_to_counts():
    engine = started_engine()
    public = project_game_state(engine)
    dumped = public.model_dump()

    assert [p["hand_count"] for p in dumped["players"]] == [10, 10, 10]
    assert all("hand" not in p for p in dumped["players"])
    assert dumped["players"][0]["is_current_turn"] is True
    assert dumped["expected_value"] == "1"
    assert dumped["last_play"] is None


def test_unrevealed_claim_hides_card_identities():
    engine = started_engine()
    ann = engine.get_player("p1")
    ann.hand = [Card(id="x1", value="5", face_up=True), Card(id="x2", value="1", face_up=True)]

    engine.play_cards("p1", ["x1"], "1")
    public = project_game_state(engine)

    assert public.pile_count == 1
    assert public.last_play.card_count == 1
    assert public.last_play.claimed_value == "1"
    assert public.last_play.revealed is False
    assert public.last_play.cards is None
    assert "x1" not in public.model_dump_json()
    assert public.can_challenge is True


def test_challenge_reveals_claim():
    engine = started_engine()
    ann = engine.get_player("p1")
    ann.hand = [Card(id="x1", value="5", face_up=True), Card(id="x2", value="1", face_up=True)]
    engine.play_cards("p1", ["x1"], "1")

    engine.challenge("p3")
    public = project_game_state(engine)

    assert public.phase == "challenge"
    assert public.last_play.revealed is True
    assert [(c.id, c.value, c.face_up) for c in public.last_play.cards] == [("x1", "5", True)]


def test_private_hand_is_face_up_for_owner():
    engine = started_engine()
    bot = engine.get_player("p2")
    cards = project_hand(bot)
    assert len(cards) == 10
    assert all(c.face_up for c in cards)


def test_room_projection_never_includes_cards():
    host = OnlinePlayer(id="c1", name="Ann", connection_id="c1", is_host=True, is_ready=True)
    guest = OnlinePlayer(id="c2", name="Ben", connection_id="c2")
    host.hand = [Card(id="secret", value="3")]
    room = Room(id="ABC123", name="Table", host_id="c1", players=[host, guest], created_at=1700000000.0)

    public = project_room(room)

    assert public.status == "waiting"
    assert public.created_at == 1700000000.0
    assert [p.is_host for p in public.players] == [True, False]
    assert public.players[0].hand_count == 1
    assert "secret" not in public.model_dump_json()
