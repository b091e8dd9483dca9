"""
Casual bluffing bot.
"""

import random
from typing import Optional

from .base import BaseBot, BotAction
from ..engine import GameEngine


class BluffBot(BaseBot):
    """
    Bot that plays like a casual opponent rather than a solved strategy.

    Strategy:
    - Call liar on the previous claim now and then, at random
    - Play real cards of the expected value when it has some
    - Otherwise bluff with ordinary cards
    - Get rid of jokers one at a time once nothing else is left
    """

    def __init__(self, player_id: str, rng: Optional[random.Random] = None,
                 challenge_probability: float = 0.3, max_cards: int = 2):
        super().__init__(player_id)
        self.rng = rng or random.Random()
        self.challenge_probability = challenge_probability
        self.max_cards = max_cards

    def choose_action(self, engine: GameEngine) -> Optional[BotAction]:
        """Choose the action for the current state."""
        if not self.is_my_turn(engine):
            return None

        if self.can_challenge(engine) and self.rng.random() < self.challenge_probability:
            return BotAction.challenge()

        return self._choose_play(engine)

    def _choose_play(self, engine: GameEngine) -> Optional[BotAction]:
        value_set = engine.value_set
        expected = engine.expected_value()
        hand = self.get_player_hand(engine)

        matching = [c for c in hand if c.value == expected]
        others = [c for c in hand if c.value != expected and not value_set.is_wild(c.value)]
        jokers = [c for c in hand if value_set.is_wild(c.value)]

        if matching:
            count = min(len(matching), self._draw_count())
            cards = matching[:count]
        elif others:
            count = min(len(others), self._draw_count())
            cards = others[:count]
        elif jokers:
            cards = jokers[:1]
        else:
            return None

        return BotAction.play([c.id for c in cards], expected)

    def _draw_count(self) -> int:
        return self.rng.randint(1, self.max_cards)
