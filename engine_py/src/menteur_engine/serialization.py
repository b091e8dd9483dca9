"""
Client-safe views of rooms and games.

Everything sent to more than one player goes through these projections.
Opponents' hands are reduced to counts and the cards of the live claim
stay hidden until a challenge turns them face up.
"""

from typing import List, Optional

from pydantic import BaseModel

from .engine import GameEngine
from .models import Card, OnlinePlayer, Player, Room


class CardView(BaseModel):
    id: str
    value: str
    suit: Optional[str] = None
    face_up: bool


class PublicPlayer(BaseModel):
    id: str
    name: str
    hand_count: int
    is_current_turn: bool
    is_connected: bool
    is_ai: bool


class PublicClaim(BaseModel):
    player_id: str
    claimed_value: str
    card_count: int
    revealed: bool
    cards: Optional[List[CardView]] = None  # only once revealed


class PublicGameState(BaseModel):
    players: List[PublicPlayer]
    current_player_index: int
    pile_count: int
    current_value: Optional[str]
    expected_value: str
    last_play: Optional[PublicClaim]
    phase: str
    winner_id: Optional[str]
    message: str
    can_challenge: bool


class PublicRoomPlayer(BaseModel):
    id: str
    name: str
    is_host: bool
    is_ready: bool
    is_connected: bool
    is_ai: bool
    hand_count: int


class PublicRoom(BaseModel):
    id: str
    name: str
    host_id: str
    players: List[PublicRoomPlayer]
    max_players: int
    status: str
    created_at: float
    variant: Optional[str] = None


def card_view(card: Card, face_up: Optional[bool] = None) -> CardView:
    return CardView(
        id=card.id,
        value=card.value,
        suit=card.suit,
        face_up=card.face_up if face_up is None else face_up,
    )


def project_hand(player: Player) -> List[CardView]:
    """Private view of a player's own hand; the owner always sees their cards."""
    return [card_view(card, face_up=True) for card in player.hand]


def project_game_state(engine: GameEngine) -> PublicGameState:
    """
    Project the authoritative game state for broadcast.

    Args:
        engine: Engine holding the game

    Returns:
        State with hands replaced by counts and unrevealed cards hidden
    """
    state = engine.state

    claim = None
    if state.last_play is not None:
        revealed = state.last_play.revealed
        claim = PublicClaim(
            player_id=state.last_play.player_id,
            claimed_value=state.last_play.claimed_value,
            card_count=len(state.last_play.cards),
            revealed=revealed,
            cards=[card_view(c) for c in state.last_play.cards] if revealed else None,
        )

    return PublicGameState(
        players=[
            PublicPlayer(
                id=p.id,
                name=p.name,
                hand_count=p.hand_count,
                is_current_turn=p.is_current_turn,
                is_connected=p.is_connected,
                is_ai=p.is_ai,
            )
            for p in state.players
        ],
        current_player_index=state.current_player_index,
        pile_count=len(state.pile),
        current_value=state.current_value,
        expected_value=engine.expected_value(),
        last_play=claim,
        phase=state.phase,
        winner_id=state.winner_id,
        message=state.message,
        can_challenge=state.can_challenge,
    )


def serialize_player_for_list(player: OnlinePlayer) -> PublicRoomPlayer:
    """Serialize a member for the lobby player list."""
    return PublicRoomPlayer(
        id=player.id,
        name=player.name,
        is_host=player.is_host,
        is_ready=player.is_ready,
        is_connected=player.is_connected,
        is_ai=player.is_ai,
        hand_count=player.hand_count,
    )


def project_room(room: Room) -> PublicRoom:
    """Get public information about a room; hands are never included."""
    return PublicRoom(
        id=room.id,
        name=room.name,
        host_id=room.host_id,
        players=[serialize_player_for_list(p) for p in room.players],
        max_players=room.max_players,
        status=room.status,
        created_at=room.created_at,
        variant=room.engine.value_set.name if room.engine else None,
    )
