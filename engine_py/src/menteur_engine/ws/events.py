"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field, ValidationError

from ..serialization import CardView, PublicGameState, PublicRoom, PublicRoomPlayer


class EventType(str, Enum):
    """Inbound event types."""
    CREATE_ROOM = "room:create"
    JOIN_ROOM = "room:join"
    LEAVE_ROOM = "room:leave"
    READY = "room:ready"
    START = "room:start"
    ADD_BOT = "room:addBot"
    PLAY_CARDS = "game:playCards"
    CHALLENGE = "game:challenge"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    ROOM_CREATED = "room:created"
    ROOM_JOINED = "room:joined"
    ROOM_UPDATED = "room:updated"
    PLAYER_JOINED = "room:playerJoined"
    PLAYER_LEFT = "room:playerLeft"
    ERROR = "room:error"
    GAME_STARTED = "game:started"
    GAME_UPDATED = "game:updated"
    GAME_ENDED = "game:ended"
    PLAYER_CARDS = "player:cards"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class CreateRoomEvent(BaseEvent):
    """Create a room and become its host."""
    type: EventType = EventType.CREATE_ROOM
    player_name: str = Field(..., min_length=1, max_length=30)
    room_name: Optional[str] = Field(None, max_length=50)
    max_players: Optional[int] = None


class JoinRoomEvent(BaseEvent):
    """Join room event."""
    type: EventType = EventType.JOIN_ROOM
    player_name: str = Field(..., min_length=1, max_length=30)
    room_id: str = Field(..., min_length=1, max_length=12)


class LeaveRoomEvent(BaseEvent):
    type: EventType = EventType.LEAVE_ROOM


class ReadyEvent(BaseEvent):
    """Toggle ready flag."""
    type: EventType = EventType.READY


class StartGameEvent(BaseEvent):
    type: EventType = EventType.START


class AddBotEvent(BaseEvent):
    """Host adds an AI seat."""
    type: EventType = EventType.ADD_BOT
    name: Optional[str] = Field(None, max_length=30)


class PlayCardsEvent(BaseEvent):
    """Play cards under a claimed value."""
    type: EventType = EventType.PLAY_CARDS
    card_ids: List[str] = Field(default_factory=list, max_length=60)
    claimed_value: str = Field(..., min_length=1, max_length=10)


class ChallengeEvent(BaseEvent):
    """Call liar on the live claim."""
    type: EventType = EventType.CHALLENGE


# Union type for all inbound events
InboundEvent = Union[
    CreateRoomEvent,
    JoinRoomEvent,
    LeaveRoomEvent,
    ReadyEvent,
    StartGameEvent,
    AddBotEvent,
    PlayCardsEvent,
    ChallengeEvent
]


# Outbound event models
class RoomEvent(BaseModel):
    """Room snapshot (created / joined / updated). ``player_id`` is set for the recipient's own seat."""
    type: OutboundEventType
    room: PublicRoom
    player_id: Optional[str] = None
    timestamp: float


class PlayerJoinedEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.PLAYER_JOINED
    player: PublicRoomPlayer
    timestamp: float


class PlayerLeftEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.PLAYER_LEFT
    player_id: str
    timestamp: float


class ErrorEvent(BaseModel):
    """Error event."""
    type: OutboundEventType = OutboundEventType.ERROR
    code: str
    message: str
    timestamp: float


class GameStateEvent(BaseModel):
    """Public game state (started / updated)."""
    type: OutboundEventType
    state: PublicGameState
    timestamp: float


class GameEndedEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.GAME_ENDED
    winner_id: Optional[str]
    timestamp: float


class PlayerCardsEvent(BaseModel):
    """Private hand, sent only to its owner."""
    type: OutboundEventType = OutboundEventType.PLAYER_CARDS
    cards: List[CardView]
    timestamp: float


# Union type for all outbound events
OutboundEvent = Union[
    RoomEvent,
    PlayerJoinedEvent,
    PlayerLeftEvent,
    ErrorEvent,
    GameStateEvent,
    GameEndedEvent,
    PlayerCardsEvent
]


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Args:
        data: Raw event data from WebSocket

    Returns:
        Parsed event model

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")

    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    event_map = {
        EventType.CREATE_ROOM: CreateRoomEvent,
        EventType.JOIN_ROOM: JoinRoomEvent,
        EventType.LEAVE_ROOM: LeaveRoomEvent,
        EventType.READY: ReadyEvent,
        EventType.START: StartGameEvent,
        EventType.ADD_BOT: AddBotEvent,
        EventType.PLAY_CARDS: PlayCardsEvent,
        EventType.CHALLENGE: ChallengeEvent,
    }

    event_class = event_map[event_type]
    try:
        return event_class(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid event data: {e.errors()[0]['msg']}")


def create_error_event(code: str, message: str) -> ErrorEvent:
    """Create an error event."""
    return ErrorEvent(
        code=code,
        message=message,
        timestamp=time.time()
    )


def create_room_event(event_type: OutboundEventType, room: PublicRoom,
                      player_id: Optional[str] = None) -> RoomEvent:
    return RoomEvent(
        type=event_type,
        room=room,
        player_id=player_id,
        timestamp=time.time()
    )


def create_player_joined_event(player: PublicRoomPlayer) -> PlayerJoinedEvent:
    return PlayerJoinedEvent(player=player, timestamp=time.time())


def create_player_left_event(player_id: str) -> PlayerLeftEvent:
    return PlayerLeftEvent(player_id=player_id, timestamp=time.time())


def create_game_state_event(event_type: OutboundEventType, state: PublicGameState) -> GameStateEvent:
    """Create a game state event."""
    return GameStateEvent(
        type=event_type,
        state=state,
        timestamp=time.time()
    )


def create_game_ended_event(winner_id: Optional[str]) -> GameEndedEvent:
    return GameEndedEvent(winner_id=winner_id, timestamp=time.time())


def create_player_cards_event(cards: List[CardView]) -> PlayerCardsEvent:
    """Create a private hand event."""
    return PlayerCardsEvent(cards=cards, timestamp=time.time())
