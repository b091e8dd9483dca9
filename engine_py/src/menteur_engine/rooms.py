"""Online rooms: membership, readiness, host authority and the game each room runs"""

import logging
import random
import threading
import uuid
from collections import defaultdict
from contextlib import contextmanager
from typing import Callable, Dict, List, Optional

from .bots import BaseBot, BluffBot
from .constants import (
    AI_NAMES, PHASE_PLAYING, ROOM_FINISHED, ROOM_ID_LENGTH, ROOM_PLAYING, ROOM_WAITING
)
from .engine import ActionResult, GameEngine
from .errors import (
    ACTION_NOT_ALLOWED, GAME_NOT_STARTED, INTERNAL_ERROR, NOT_ENOUGH_PLAYERS, NOT_HOST,
    NOT_IN_ROOM, NOT_YOUR_TURN, PLAYERS_NOT_READY, ROOM_FULL, ROOM_NOT_FOUND,
    ROOM_NOT_WAITING, GameError, InvariantViolation, raise_error
)
from .models import OnlinePlayer, Room
from .rules import RuleConfig, default_rules
from .scheduler import Scheduler
from .serialization import project_game_state, project_hand, project_room, serialize_player_for_list
from .ws.events import (
    AddBotEvent, ChallengeEvent, CreateRoomEvent, InboundEvent, JoinRoomEvent, LeaveRoomEvent,
    OutboundEvent, OutboundEventType, PlayCardsEvent, ReadyEvent, StartGameEvent,
    create_error_event, create_game_ended_event, create_game_state_event,
    create_player_cards_event, create_player_joined_event, create_player_left_event,
    create_room_event
)

logger = logging.getLogger(__name__)

EventSink = Callable[[List[str], OutboundEvent], None]

ROOM_ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"


def normalize_room_id(room_id: str) -> str:
    return (room_id or "").strip().upper()


class RoomRegistry:
    """All live rooms and which room each connection sits in."""

    def __init__(self):
        self.rooms: Dict[str, Room] = {}
        self.connection_rooms: Dict[str, str] = {}
        self.room_locks = defaultdict(threading.RLock)
        self._guard = threading.Lock()

    def get(self, room_id: str) -> Optional[Room]:
        return self.rooms.get(normalize_room_id(room_id))

    def room_for(self, connection_id: str) -> Optional[Room]:
        room_id = self.connection_rooms.get(connection_id)
        return self.rooms.get(room_id) if room_id else None

    def lock(self, room_id: str) -> threading.RLock:
        with self._guard:
            return self.room_locks[room_id]

    def holds(self, room: Room) -> bool:
        """True while ``room`` is still the live room under its id."""
        return self.rooms.get(room.id) is room

    def new_room_id(self, rng: random.Random) -> str:
        while True:
            room_id = "".join(rng.choice(ROOM_ID_ALPHABET) for _ in range(ROOM_ID_LENGTH))
            if room_id not in self.rooms:
                return room_id

    def add(self, room: Room):
        self.rooms[room.id] = room

    def remove(self, room_id: str) -> Optional[Room]:
        with self._guard:
            room = self.rooms.pop(room_id, None)
            self.room_locks.pop(room_id, None)
        for connection_id, rid in list(self.connection_rooms.items()):
            if rid == room_id:
                del self.connection_rooms[connection_id]
        return room

    def __len__(self) -> int:
        return len(self.rooms)


class RoomCoordinator:
    """
    Applies player intents to rooms and fans out the resulting events.

    Every intent is attributed to an opaque connection id; online players use
    their connection id as player id. Rule violations raise GameError and
    leave the room untouched; ``dispatch`` turns them into a private
    ``room:error``. Deferred work (challenge resolution, bot turns) is keyed
    by room id and turn generation and re-checked when it fires.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        sink: Optional[EventSink] = None,
        registry: Optional[RoomRegistry] = None,
        rules: RuleConfig = default_rules,
        rng: Optional[random.Random] = None
    ):
        self.scheduler = scheduler
        self.sink = sink
        self.registry = registry if registry is not None else RoomRegistry()
        self.rules = rules
        self.rng = rng or random.Random()
        self.bots: Dict[str, Dict[str, BaseBot]] = {}

    # ------------------------------------------------------------------ dispatch

    def dispatch(self, connection_id: str, event: InboundEvent):
        """Route a parsed inbound event; rule violations go back to the caller only."""
        try:
            if isinstance(event, CreateRoomEvent):
                self.create_room(connection_id, event.player_name, event.room_name, event.max_players)
            elif isinstance(event, JoinRoomEvent):
                self.join_room(connection_id, event.player_name, event.room_id)
            elif isinstance(event, LeaveRoomEvent):
                self.leave_room(connection_id)
            elif isinstance(event, ReadyEvent):
                self.toggle_ready(connection_id)
            elif isinstance(event, StartGameEvent):
                self.start_game(connection_id)
            elif isinstance(event, AddBotEvent):
                self.add_bot(connection_id, event.name)
            elif isinstance(event, PlayCardsEvent):
                self.play_cards(connection_id, event.card_ids, event.claimed_value)
            elif isinstance(event, ChallengeEvent):
                self.challenge(connection_id)
            else:
                raise ValueError(f"Unhandled event type: {type(event)}")
        except InvariantViolation as e:
            room = self.registry.room_for(connection_id)
            if room:
                self._drop_room(room, e)
        except GameError as e:
            logger.info(f"Rejected {event.type.value} from {connection_id}: {e.message}")
            self._emit([connection_id], create_error_event(e.code, e.message))

    # ------------------------------------------------------------------ lobby

    def create_room(self, connection_id: str, player_name: str,
                    room_name: Optional[str] = None, max_players: Optional[int] = None) -> Room:
        if connection_id in self.registry.connection_rooms:
            self.leave_room(connection_id)

        player = OnlinePlayer(
            id=connection_id,
            name=player_name,
            connection_id=connection_id,
            is_host=True,
            is_ready=True,
        )
        room = Room(
            id=self.registry.new_room_id(self.rng),
            name=room_name or f"{player_name}'s game",
            host_id=player.id,
            players=[player],
            max_players=self.rules.clamp_room_size(max_players),
        )
        self.registry.add(room)
        self.registry.connection_rooms[connection_id] = room.id

        self._emit([connection_id], create_room_event(
            OutboundEventType.ROOM_CREATED, project_room(room), player.id
        ))
        logger.info(f"Room {room.id} created by {player_name}")
        return room

    def join_room(self, connection_id: str, player_name: str, room_id: str) -> Room:
        room = self.registry.get(room_id)
        if room is None:
            raise_error(ROOM_NOT_FOUND, "This room doesn't exist")
        self._check_joinable(room, connection_id)

        # Never hold two room locks at once: leave the old room first.
        if connection_id in self.registry.connection_rooms:
            self.leave_room(connection_id)

        with self._room_lock(room):
            self._check_joinable(room, connection_id)

            player = OnlinePlayer(id=connection_id, name=player_name, connection_id=connection_id)
            room.players.append(player)
            self.registry.connection_rooms[connection_id] = room.id

            public_room = project_room(room)
            self._emit([connection_id], create_room_event(
                OutboundEventType.ROOM_JOINED, public_room, player.id
            ))
            self._emit(self._connections(room, exclude=player.id),
                       create_player_joined_event(serialize_player_for_list(player)))
            self._emit(self._connections(room), create_room_event(OutboundEventType.ROOM_UPDATED, public_room))

        logger.info(f"{player_name} joined room {room.id}")
        return room

    def _check_joinable(self, room: Room, connection_id: str):
        if room.status != ROOM_WAITING:
            raise_error(ROOM_NOT_WAITING, "This game has already started")
        if room.is_full:
            raise_error(ROOM_FULL, "This room is full")
        if room.get_player(connection_id):
            raise_error(ACTION_NOT_ALLOWED, "You are already in this room")

    def add_bot(self, connection_id: str, name: Optional[str] = None) -> OnlinePlayer:
        room, player = self._require_member(connection_id)
        with self._room_lock(room):
            if not player.is_host:
                raise_error(NOT_HOST, "Only the host can add bots")
            if room.status != ROOM_WAITING:
                raise_error(ROOM_NOT_WAITING, "This game has already started")
            if room.is_full:
                raise_error(ROOM_FULL, "This room is full")

            bot_count = sum(1 for p in room.players if p.is_ai)
            default_name = AI_NAMES[bot_count] if bot_count < len(AI_NAMES) else f"AI {bot_count + 1}"
            bot = OnlinePlayer(
                id=f"bot-{uuid.uuid4().hex[:8]}",
                name=name or default_name,
                is_ai=True,
                is_ready=True,
            )
            room.players.append(bot)

            self._emit(self._connections(room), create_player_joined_event(serialize_player_for_list(bot)))
            self._emit(self._connections(room), create_room_event(OutboundEventType.ROOM_UPDATED, project_room(room)))

        logger.info(f"Bot {bot.name} added to room {room.id}")
        return bot

    def toggle_ready(self, connection_id: str) -> bool:
        room, player = self._require_member(connection_id)
        with self._room_lock(room):
            if room.status != ROOM_WAITING:
                raise_error(ROOM_NOT_WAITING, "This game has already started")
            if player.is_host:
                return True
            player.is_ready = not player.is_ready
            self._emit(self._connections(room), create_room_event(OutboundEventType.ROOM_UPDATED, project_room(room)))
            return player.is_ready

    def start_game(self, connection_id: str) -> GameEngine:
        room, player = self._require_member(connection_id)
        with self._room_lock(room):
            if room.host_id != player.id:
                raise_error(NOT_HOST, "Only the host can start the game")
            if room.status != ROOM_WAITING:
                raise_error(ROOM_NOT_WAITING, "This game has already started")
            if len(room.players) < self.rules.min_players:
                raise_error(NOT_ENOUGH_PLAYERS, f"At least {self.rules.min_players} players are needed")
            if not all(p.is_ready or p.is_host for p in room.players):
                raise_error(PLAYERS_NOT_READY, "All players must be ready")

            engine = GameEngine(self.rules, rng=self.rng, echo_errors=False)
            engine.start_game(room.players)
            engine.check_invariants()
            room.engine = engine
            room.status = ROOM_PLAYING
            self.bots[room.id] = {
                p.id: BluffBot(
                    p.id,
                    rng=self.rng,
                    challenge_probability=self.rules.ai_challenge_probability,
                    max_cards=self.rules.ai_max_cards,
                )
                for p in room.players if p.is_ai
            }

            for p in room.players:
                self._send_hand(p)
            self._emit(self._connections(room), create_game_state_event(
                OutboundEventType.GAME_STARTED, project_game_state(engine)
            ))
            self._emit(self._connections(room), create_room_event(OutboundEventType.ROOM_UPDATED, project_room(room)))
            self._schedule_bot_turn(room)

        logger.info(f"Game started in room {room.id} with {len(room.players)} players")
        return engine

    # ------------------------------------------------------------------ game

    def play_cards(self, connection_id: str, card_ids: List[str], claimed_value: str) -> ActionResult:
        room, player = self._require_member(connection_id)
        with self._room_lock(room):
            return self._play(room, player, card_ids, claimed_value)

    def challenge(self, connection_id: str) -> ActionResult:
        room, player = self._require_member(connection_id)
        with self._room_lock(room):
            return self._challenge(room, player)

    def _play(self, room: Room, player: OnlinePlayer, card_ids: List[str], claimed_value: str) -> ActionResult:
        engine = self._require_engine(room)
        if engine.state.phase != PHASE_PLAYING or engine.current_player.id != player.id:
            raise_error(NOT_YOUR_TURN, "It's not your turn")

        result = engine.play_cards(player.id, card_ids, claimed_value)
        if not result.success:
            raise GameError(result.error_code, result.message)
        engine.check_invariants()

        self._send_hand(player)
        self._emit(self._connections(room), create_game_state_event(
            OutboundEventType.GAME_UPDATED, project_game_state(engine)
        ))
        if engine.is_over:
            room.status = ROOM_FINISHED
            self._emit(self._connections(room), create_game_ended_event(engine.state.winner_id))
            self._emit(self._connections(room), create_room_event(OutboundEventType.ROOM_UPDATED, project_room(room)))
            logger.info(f"Room {room.id} finished, winner {engine.state.winner_id}")
        else:
            self._schedule_bot_turn(room)
        return result

    def _challenge(self, room: Room, player: OnlinePlayer) -> ActionResult:
        engine = self._require_engine(room)
        if not player.is_connected:
            raise_error(ACTION_NOT_ALLOWED, "Disconnected players can't challenge")

        result = engine.challenge(player.id)
        if not result.success:
            raise GameError(result.error_code, result.message)

        self._emit(self._connections(room), create_game_state_event(
            OutboundEventType.GAME_UPDATED, project_game_state(engine)
        ))
        self.scheduler.call_later(
            self.rules.challenge_delay, self._resolve_challenge, room.id, engine.state.turn_generation
        )
        logger.info(f"{player.name} challenged in room {room.id}: was_lying={result.outcome.was_lying}")
        return result

    def _resolve_challenge(self, room_id: str, generation: int):
        room = self.registry.get(room_id)
        if room is None or room.engine is None:
            logger.debug(f"Challenge resolution for missing room {room_id} ignored")
            return

        with self.registry.lock(room.id):
            engine = room.engine
            if not self.registry.holds(room) or engine.state.turn_generation != generation:
                logger.debug(f"Stale challenge resolution for room {room_id} ignored")
                return
            try:
                result = engine.resolve_challenge()
                if not result.success:
                    return
                engine.check_invariants()
            except InvariantViolation as e:
                self._drop_room(room, e)
                return

            loser = room.get_player(result.outcome.loser_id)
            if loser:
                self._send_hand(loser)
            self._emit(self._connections(room), create_game_state_event(
                OutboundEventType.GAME_UPDATED, project_game_state(engine)
            ))
            self._schedule_bot_turn(room)

    # ------------------------------------------------------------------ bots

    def _schedule_bot_turn(self, room: Room):
        engine = room.engine
        if engine is None or engine.state.phase != PHASE_PLAYING:
            return
        if engine.current_player.is_ai:
            self.scheduler.call_later(
                self.rules.ai_think_delay, self._bot_turn, room.id, engine.state.turn_generation
            )

    def _bot_turn(self, room_id: str, generation: int):
        room = self.registry.get(room_id)
        if room is None or room.engine is None:
            return

        with self.registry.lock(room.id):
            engine = room.engine
            stale = engine.state.turn_generation != generation or engine.state.phase != PHASE_PLAYING
            if stale or not self.registry.holds(room):
                logger.debug(f"Stale bot turn for room {room_id} ignored")
                return
            try:
                player = engine.current_player
                bot = self.bots.get(room.id, {}).get(player.id)
                if bot is None:
                    return
                action = bot.choose_action(engine)
                if action is None:
                    logger.info(f"Bot {player.name} has nothing to play in room {room.id}")
                    return
                if action.type == 'challenge':
                    self._challenge(room, player)
                elif action.type == 'play':
                    self._play(room, player, action.data['cards'], action.data['claimed_value'])
            except InvariantViolation as e:
                self._drop_room(room, e)
            except GameError as e:
                logger.warning(f"Bot action rejected in room {room.id}: {e.message}")

    # ------------------------------------------------------------------ leaving

    def leave_room(self, connection_id: str):
        """Remove the member from a waiting room, or mark them disconnected once the game started."""
        room_id = self.registry.connection_rooms.pop(connection_id, None)
        if room_id is None:
            return
        room = self.registry.get(room_id)
        if room is None:
            return

        with self.registry.lock(room.id):
            player = room.get_player(connection_id)
            if player is None or not self.registry.holds(room):
                return

            if room.status == ROOM_WAITING:
                room.players.remove(player)
                humans = [p for p in room.players if not p.is_ai]
                if not humans:
                    self._destroy_room(room, "empty")
                    return
                if player.is_host:
                    new_host = humans[0]
                    new_host.is_host = True
                    new_host.is_ready = True
                    room.host_id = new_host.id
                    logger.info(f"Host of room {room.id} passed to {new_host.name}")
            else:
                player.connected = False
                if not any(p.is_connected for p in room.players if not p.is_ai):
                    self._destroy_room(room, "everyone disconnected")
                    return

            self._emit(self._connections(room), create_player_left_event(player.id))
            self._emit(self._connections(room), create_room_event(OutboundEventType.ROOM_UPDATED, project_room(room)))

        logger.info(f"{player.name} left room {room.id}")

    def disconnect(self, connection_id: str):
        """Transport-level disconnect; same rules as leaving."""
        if connection_id in self.registry.connection_rooms:
            logger.info(f"Connection {connection_id} dropped")
        self.leave_room(connection_id)

    # ------------------------------------------------------------------ helpers

    def _require_member(self, connection_id: str):
        room = self.registry.room_for(connection_id)
        if room is None:
            raise_error(NOT_IN_ROOM, "You are not in a room")
        player = room.get_player(connection_id)
        if player is None:
            raise_error(NOT_IN_ROOM, "You are not in this room")
        return room, player

    @contextmanager
    def _room_lock(self, room: Room):
        """Hold the room's lock, failing if the room was destroyed meanwhile."""
        with self.registry.lock(room.id):
            if not self.registry.holds(room):
                raise_error(ROOM_NOT_FOUND, "This room no longer exists")
            yield

    def _require_engine(self, room: Room) -> GameEngine:
        if room.engine is None or room.status == ROOM_WAITING:
            raise_error(GAME_NOT_STARTED, "The game hasn't started")
        return room.engine

    def _connections(self, room: Room, exclude: Optional[str] = None) -> List[str]:
        return [
            p.connection_id for p in room.players
            if p.connection_id and p.is_connected and p.id != exclude
        ]

    def _send_hand(self, player: OnlinePlayer):
        if player.connection_id and player.is_connected:
            self._emit([player.connection_id], create_player_cards_event(project_hand(player)))

    def _emit(self, connection_ids: List[str], event: OutboundEvent):
        if self.sink and connection_ids:
            self.sink(connection_ids, event)

    def _destroy_room(self, room: Room, reason: str):
        self.registry.remove(room.id)
        self.bots.pop(room.id, None)
        logger.info(f"Room {room.id} destroyed ({reason})")

    def _drop_room(self, room: Room, error: Exception):
        logger.error(f"Dropping room {room.id} after invariant violation: {error}")
        self._emit(self._connections(room), create_error_event(
            INTERNAL_ERROR, "The game hit an internal error and was closed"
        ))
        self._destroy_room(room, "internal error")
