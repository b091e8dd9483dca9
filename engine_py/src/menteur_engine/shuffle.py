"""
Card creation, shuffling and dealing utilities.
"""

import random
from dataclasses import dataclass, field
from typing import List, Optional

from .constants import ValueSet
from .models import Card


@dataclass
class DealResult:
    """Hands in player order plus the cards that could not be dealt evenly."""
    hands: List[List[Card]]
    undealt: List[Card] = field(default_factory=list)


def create_deck(value_set: ValueSet) -> List[Card]:
    """
    Create the deck for a value set.

    Rank decks hold one card per suit and value; other decks hold
    ``value_set.copies`` cards per value followed by the wild cards.
    Card ids are sequential (``card-0``, ``card-1``, ...).
    """
    deck = []
    next_id = 0

    if value_set.suits:
        for suit in value_set.suits:
            for value in value_set.values:
                deck.append(Card(id=f"card-{next_id}", value=value, suit=suit))
                next_id += 1
    else:
        for value in value_set.values:
            for _ in range(value_set.copies):
                deck.append(Card(id=f"card-{next_id}", value=value))
                next_id += 1

    if value_set.wild:
        for _ in range(value_set.wild_copies):
            deck.append(Card(id=f"card-{next_id}", value=value_set.wild))
            next_id += 1

    return deck


def shuffle_deck(deck: List[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """
    Shuffle a deck with Fisher-Yates.

    Args:
        deck: Cards to shuffle (left untouched)
        rng: Optional random source for deterministic shuffling

    Returns:
        Shuffled copy of the deck
    """
    rng = rng or random.Random()
    shuffled = deck.copy()
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def deal_cards(deck: List[Card], player_count: int) -> DealResult:
    """
    Deal cards evenly to all players.

    Each player receives ``len(deck) // player_count`` contiguous cards in
    player order. Remainder cards are not dealt; they are returned in
    ``undealt`` so callers can account for them.
    """
    if player_count <= 0:
        return DealResult(hands=[], undealt=deck.copy())

    cards_per_player = len(deck) // player_count
    hands = [
        deck[i * cards_per_player:(i + 1) * cards_per_player]
        for i in range(player_count)
    ]
    undealt = deck[cards_per_player * player_count:]
    return DealResult(hands=hands, undealt=undealt)
