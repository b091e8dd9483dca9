"""Game models and data structures"""

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from .constants import PHASE_SETUP, ROOM_WAITING

if TYPE_CHECKING:
    from .engine import GameEngine


@dataclass
class Card:
    id: str
    value: str
    suit: Optional[str] = None
    face_up: bool = False


@dataclass
class Player:
    id: str
    name: str
    hand: List[Card] = field(default_factory=list)
    is_ai: bool = False
    is_current_turn: bool = False

    @property
    def hand_count(self) -> int:
        return len(self.hand)

    @property
    def is_connected(self) -> bool:
        return True


@dataclass
class OnlinePlayer(Player):
    connection_id: Optional[str] = None
    is_host: bool = False
    is_ready: bool = False
    connected: bool = True

    @property
    def is_connected(self) -> bool:
        return self.connected


@dataclass
class PlayedCards:
    cards: List[Card]
    claimed_value: str
    player_id: str

    @property
    def revealed(self) -> bool:
        return bool(self.cards) and all(card.face_up for card in self.cards)


@dataclass
class ChallengeOutcome:
    challenger_id: str
    accused_id: str
    was_lying: bool

    @property
    def loser_id(self) -> str:
        return self.accused_id if self.was_lying else self.challenger_id


@dataclass
class GameState:
    players: List[Player] = field(default_factory=list)
    current_player_index: int = 0
    pile: List[Card] = field(default_factory=list)
    current_value: Optional[str] = None  # progression value, None before the first play
    last_play: Optional[PlayedCards] = None
    phase: str = PHASE_SETUP  # setup|playing|challenge|gameOver
    winner_id: Optional[str] = None
    message: str = ''
    can_challenge: bool = False
    turn_generation: int = 0
    pending_challenge: Optional[ChallengeOutcome] = None
    undealt: List[Card] = field(default_factory=list)


@dataclass
class Room:
    id: str
    name: str
    host_id: str
    players: List[OnlinePlayer] = field(default_factory=list)
    max_players: int = 4
    status: str = ROOM_WAITING  # waiting|playing|finished
    engine: Optional["GameEngine"] = None
    created_at: float = field(default_factory=time.time)

    def get_player(self, player_id: str) -> Optional[OnlinePlayer]:
        return next((p for p in self.players if p.id == player_id), None)

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.max_players
