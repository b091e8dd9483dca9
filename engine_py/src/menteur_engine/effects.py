"""
Effects emitted by the rules engine.

The engine mutates its state and describes what happened as a list of
effects; sessions turn those into log lines, timers and outbound events.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .constants import (
    EFFECT_CARDS_PLAYED, EFFECT_TURN_CHANGED, EFFECT_CARDS_REVEALED,
    EFFECT_PILE_TRANSFERRED, EFFECT_GAME_WON
)
from .models import Card


@dataclass
class Effect:
    effect: str
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


def cards_played(player_id: str, count: int, claimed_value: str) -> Effect:
    return Effect(EFFECT_CARDS_PLAYED, {
        'player_id': player_id,
        'count': count,
        'claimed_value': claimed_value,
    })


def turn_changed(player_id: str, expected_value: str, generation: int) -> Effect:
    return Effect(EFFECT_TURN_CHANGED, {
        'player_id': player_id,
        'expected_value': expected_value,
        'generation': generation,
    })


def cards_revealed(challenger_id: str, accused_id: str, cards: List[Card], was_lying: bool) -> Effect:
    return Effect(EFFECT_CARDS_REVEALED, {
        'challenger_id': challenger_id,
        'accused_id': accused_id,
        'cards': [{'id': c.id, 'value': c.value, 'suit': c.suit} for c in cards],
        'was_lying': was_lying,
    })


def pile_transferred(player_id: str, count: int) -> Effect:
    return Effect(EFFECT_PILE_TRANSFERRED, {'player_id': player_id, 'count': count})


def game_won(player_id: str) -> Effect:
    return Effect(EFFECT_GAME_WON, {'player_id': player_id})


def find_effect(effects: List[Effect], effect: str):
    """Return the first effect of the given kind, or None."""
    return next((e for e in effects if e.effect == effect), None)
