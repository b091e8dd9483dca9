"""Local game: one human against AI opponents"""

import logging
import random
from typing import Dict, List, Optional

from .bots import BaseBot, BluffBot
from .constants import AI_NAMES, PHASE_PLAYING
from .engine import ActionResult, GameEngine
from .errors import NOT_YOUR_TURN
from .models import Player
from .rules import RuleConfig, create_rules
from .scheduler import Scheduler
from .serialization import PublicGameState, project_game_state

logger = logging.getLogger(__name__)

HUMAN_ID = 'player-0'

local_rules = create_rules(challenge_delay=2.5)


def build_local_players(player_name: str, ai_count: int, max_ai: int = 5) -> List[Player]:
    """The human sits first, followed by ``ai_count`` AI players (clamped to 1..max_ai)."""
    ai_count = min(max(ai_count, 1), max_ai)
    players = [Player(id=HUMAN_ID, name=player_name or 'Player')]
    for i in range(ai_count):
        name = AI_NAMES[i] if i < len(AI_NAMES) else f"AI {i + 1}"
        players.append(Player(id=f"player-{i + 1}", name=name, is_ai=True))
    return players


class LocalGame:
    """
    Drives a GameEngine for a single machine.

    The human acts through ``play_cards``/``challenge``; AI players are
    scheduled through the scheduler after the thinking delay, and challenge
    resolution after the settle delay. Every deferred callback carries the
    turn generation it was scheduled for and does nothing if the game moved on.
    """

    def __init__(self, scheduler: Scheduler, rules: RuleConfig = local_rules,
                 rng: Optional[random.Random] = None):
        self.scheduler = scheduler
        self.rules = rules
        self.rng = rng or random.Random()
        self.engine = GameEngine(rules, rng=self.rng)
        self.bots: Dict[str, BaseBot] = {}
        self.engine.state.message = 'Welcome to Menteur! Set up a game.'

    @property
    def state(self):
        return self.engine.state

    @property
    def human(self) -> Optional[Player]:
        return next((p for p in self.state.players if not p.is_ai), None)

    @property
    def is_human_turn(self) -> bool:
        if self.state.phase != PHASE_PLAYING or not self.state.players:
            return False
        return not self.engine.current_player.is_ai

    def public_state(self) -> PublicGameState:
        return project_game_state(self.engine)

    def start(self, player_name: str, ai_count: int = 3) -> ActionResult:
        players = build_local_players(player_name, ai_count, self.rules.max_ai_players)
        return self.start_with(players)

    def start_with(self, players: List[Player]) -> ActionResult:
        """Start a game with an explicit seating (used by simulations with no human)."""
        self.bots = {
            p.id: BluffBot(
                p.id,
                rng=self.rng,
                challenge_probability=self.rules.ai_challenge_probability,
                max_cards=self.rules.ai_max_cards,
            )
            for p in players if p.is_ai
        }
        result = self.engine.start_game(players)
        logger.info(f"Local game started with {len(players)} players")
        self._schedule_ai_turn()
        return result

    def play_cards(self, card_ids: List[str], claimed_value: str) -> ActionResult:
        """Play for the human seat."""
        human = self.human
        if human is None:
            return ActionResult.error(NOT_YOUR_TURN, "There is no human player in this game")
        return self._play(human.id, card_ids, claimed_value)

    def challenge(self, challenger_id: str = HUMAN_ID) -> ActionResult:
        result = self.engine.challenge(challenger_id)
        if result.success:
            self.scheduler.call_later(
                self.rules.challenge_delay, self._resolve_challenge, self.state.turn_generation
            )
        return result

    def reset(self):
        self.engine = GameEngine(self.rules, rng=self.rng)
        self.bots = {}
        self.engine.state.message = 'Welcome to Menteur! Set up a game.'

    def _play(self, player_id: str, card_ids: List[str], claimed_value: str) -> ActionResult:
        result = self.engine.play_cards(player_id, card_ids, claimed_value)
        if result.success:
            self._schedule_ai_turn()
        return result

    def _resolve_challenge(self, generation: int):
        if self.state.turn_generation != generation:
            logger.debug("Stale challenge resolution ignored")
            return
        result = self.engine.resolve_challenge()
        if result.success:
            self._schedule_ai_turn()

    def _schedule_ai_turn(self):
        state = self.state
        if state.phase != PHASE_PLAYING or not state.players:
            return
        if self.engine.current_player.is_ai:
            self.scheduler.call_later(self.rules.ai_think_delay, self._ai_turn, state.turn_generation)

    def _ai_turn(self, generation: int):
        state = self.state
        if state.turn_generation != generation or state.phase != PHASE_PLAYING:
            logger.debug("Stale AI turn ignored")
            return

        player = self.engine.current_player
        bot = self.bots.get(player.id)
        if not player.is_ai or bot is None:
            return

        action = bot.choose_action(self.engine)
        if action is None:
            logger.info(f"{player.name} has nothing to play")
            return

        if action.type == 'challenge':
            self.challenge(player.id)
        elif action.type == 'play':
            result = self._play(player.id, action.data['cards'], action.data['claimed_value'])
            if not result.success:
                logger.warning(f"AI {player.name} play rejected: {result.message}")
