"""
Base bot interface and utilities.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..constants import PHASE_PLAYING
from ..engine import GameEngine
from ..models import Card, Player


class BotAction:
    """Represents a bot action."""

    def __init__(self, action_type: str, **kwargs):
        self.type = action_type
        self.data = kwargs

    @classmethod
    def play(cls, cards: List[str], claimed_value: str) -> 'BotAction':
        """Create a play action."""
        return cls('play', cards=cards, claimed_value=claimed_value)

    @classmethod
    def challenge(cls) -> 'BotAction':
        """Create a challenge action."""
        return cls('challenge')

    def __repr__(self) -> str:
        return f"BotAction({self.type!r}, {self.data!r})"


class BaseBot(ABC):
    """Abstract base class for bot players."""

    def __init__(self, player_id: str):
        self.player_id = player_id

    @abstractmethod
    def choose_action(self, engine: GameEngine) -> Optional[BotAction]:
        """
        Choose an action based on the current game state.

        Args:
            engine: Engine holding the game the bot sits in

        Returns:
            BotAction to take, or None if no action needed
        """
        pass

    def get_player(self, engine: GameEngine) -> Optional[Player]:
        return engine.get_player(self.player_id)

    def get_player_hand(self, engine: GameEngine) -> List[Card]:
        """Get this bot's current hand."""
        player = self.get_player(engine)
        return player.hand if player else []

    def is_my_turn(self, engine: GameEngine) -> bool:
        """Check if it's this bot's turn to act."""
        state = engine.state
        if state.phase != PHASE_PLAYING or not state.players:
            return False
        return engine.current_player.id == self.player_id

    def can_challenge(self, engine: GameEngine) -> bool:
        """Check if there is someone else's live claim to challenge."""
        state = engine.state
        return (
            state.can_challenge
            and state.last_play is not None
            and state.last_play.player_id != self.player_id
        )
