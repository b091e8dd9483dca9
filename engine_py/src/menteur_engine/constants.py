"""Game constants and value sets"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

SUITS = ['hearts', 'diamonds', 'clubs', 'spades']

RANKS = ('A', '2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K')
MENTEUR_VALUES = ('1', '2', '3', '4', '5', '6', '7')
JOKER = 'JOKER'

# Game phases
PHASE_SETUP = 'setup'
PHASE_PLAYING = 'playing'
PHASE_CHALLENGE = 'challenge'
PHASE_GAME_OVER = 'gameOver'

# Room statuses
ROOM_WAITING = 'waiting'
ROOM_PLAYING = 'playing'
ROOM_FINISHED = 'finished'

# Effects returned by the engine
EFFECT_CARDS_PLAYED = 'cards_played'
EFFECT_TURN_CHANGED = 'turn_changed'
EFFECT_CARDS_REVEALED = 'cards_revealed'
EFFECT_PILE_TRANSFERRED = 'pile_transferred'
EFFECT_GAME_WON = 'game_won'

AI_NAMES = ['Alice 🤖', 'Bob 🤖', 'Charlie 🤖', 'Diana 🤖', 'Eve 🤖']

ROOM_ID_LENGTH = 6
MIN_ROOM_SIZE = 2
MAX_ROOM_SIZE = 6


@dataclass(frozen=True)
class ValueSet:
    """Ordered, cyclic set of claimable values with an optional wild value.

    ``copies`` is how many cards of each claimable value the deck holds
    (ignored when ``suits`` is set: one card per suit and value), and
    ``wild_copies`` how many wild cards are added.
    """
    name: str
    values: Tuple[str, ...]
    wild: Optional[str] = None
    suits: Tuple[str, ...] = ()
    copies: int = 4
    wild_copies: int = 0
    labels: Optional[Dict[str, str]] = None

    def is_wild(self, value: str) -> bool:
        return self.wild is not None and value == self.wild

    def contains(self, value: str) -> bool:
        return value in self.values or self.is_wild(value)

    def first(self) -> str:
        return self.values[0]

    def next_value(self, current: Optional[str]) -> str:
        """Value one step past ``current`` in the cycle (first value when unset)."""
        if current is None or current not in self.values:
            return self.first()
        index = self.values.index(current)
        return self.values[(index + 1) % len(self.values)]

    def label(self, value: str) -> str:
        if self.labels and value in self.labels:
            return self.labels[value]
        return value

    @property
    def deck_size(self) -> int:
        per_value = len(self.suits) if self.suits else self.copies
        return per_value * len(self.values) + (self.wild_copies if self.wild else 0)


RANK_VARIANT = ValueSet(
    name='rank',
    values=RANKS,
    suits=tuple(SUITS),
    labels={'A': 'Ace', 'J': 'Jack', 'Q': 'Queen', 'K': 'King'},
)

MENTEUR_VARIANT = ValueSet(
    name='menteur',
    values=MENTEUR_VALUES,
    wild=JOKER,
    copies=4,
    wild_copies=2,
    labels={JOKER: 'Joker (Peto)'},
)

VARIANTS = {
    RANK_VARIANT.name: RANK_VARIANT,
    MENTEUR_VARIANT.name: MENTEUR_VARIANT,
}


def get_variant(name: str) -> ValueSet:
    try:
        return VARIANTS[name]
    except KeyError:
        raise ValueError(f"Unknown variant: {name}")
