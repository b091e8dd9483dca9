"""Rules engine for a single game of Menteur"""

import logging
import random
from typing import List, Optional

from . import effects as fx
from .constants import PHASE_PLAYING, PHASE_CHALLENGE, PHASE_GAME_OVER, ValueSet
from .effects import Effect
from .errors import (
    ACTION_NOT_ALLOWED, CANNOT_CHALLENGE, EMPTY_PLAY, ILLEGAL_JOKER_CLAIM,
    INVALID_CLAIM, NOT_YOUR_TURN, InvariantViolation
)
from .models import ChallengeOutcome, GameState, PlayedCards, Player
from .rules import RuleConfig, default_rules
from .shuffle import create_deck, deal_cards, shuffle_deck

logger = logging.getLogger(__name__)


class ActionResult:
    """Result of an engine action."""

    def __init__(
        self,
        success: bool,
        error_code: Optional[str] = None,
        message: str = '',
        effects: Optional[List[Effect]] = None,
        outcome: Optional[ChallengeOutcome] = None
    ):
        self.success = success
        self.error_code = error_code
        self.message = message
        self.effects = effects or []
        self.outcome = outcome

    @classmethod
    def ok(cls, message: str, effects: List[Effect], outcome: Optional[ChallengeOutcome] = None) -> 'ActionResult':
        return cls(success=True, message=message, effects=effects, outcome=outcome)

    @classmethod
    def error(cls, error_code: str, message: str) -> 'ActionResult':
        return cls(success=False, error_code=error_code, message=message)

    def __bool__(self) -> bool:
        return self.success


class GameEngine:
    """
    State machine for one game.

    The engine only knows about turn order and claims; who is allowed to
    send an action and when deferred work runs is decided by the session
    that owns it (``LocalGame`` or ``RoomCoordinator``).
    """

    def __init__(
        self,
        rules: RuleConfig = default_rules,
        rng: Optional[random.Random] = None,
        echo_errors: bool = True
    ):
        self.rules = rules
        self.value_set: ValueSet = rules.value_set
        self.rng = rng or random.Random()
        self.state = GameState()
        # Local games show rejections in the shared status line; rooms report them privately
        self.echo_errors = echo_errors

    # ------------------------------------------------------------------ queries

    @property
    def current_player(self) -> Player:
        players = self.state.players
        if not players:
            raise InvariantViolation("Game has no players")
        if not 0 <= self.state.current_player_index < len(players):
            raise InvariantViolation(
                f"current_player_index {self.state.current_player_index} out of range for {len(players)} players"
            )
        return players[self.state.current_player_index]

    def get_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.state.players if p.id == player_id), None)

    def expected_value(self) -> str:
        """Value the next play has to claim."""
        return self.value_set.next_value(self.state.current_value)

    @property
    def is_over(self) -> bool:
        return self.state.phase == PHASE_GAME_OVER

    def check_invariants(self):
        """Raise InvariantViolation if the state could not have been reached legally."""
        state = self.state
        if state.phase == PHASE_PLAYING:
            current = self.current_player
            flagged = [p for p in state.players if p.is_current_turn]
            if flagged != [current]:
                raise InvariantViolation(
                    f"Expected only {current.id} to hold the turn, found {[p.id for p in flagged]}"
                )
        if state.can_challenge and state.last_play is None:
            raise InvariantViolation("Challenge gate open without a live claim")
        if state.can_challenge and state.phase != PHASE_PLAYING:
            raise InvariantViolation(f"Challenge gate open in phase {state.phase}")

        seen = set()
        for card in [c for p in state.players for c in p.hand] + state.pile:
            if card.id in seen:
                raise InvariantViolation(f"Card {card.id} is in more than one place")
            seen.add(card.id)

    # ------------------------------------------------------------------ actions

    def start_game(self, players: List[Player]) -> ActionResult:
        """Shuffle a fresh deck, deal it and hand the turn to the first player."""
        if not players:
            raise InvariantViolation("Cannot start a game without players")

        deck = shuffle_deck(create_deck(self.value_set), self.rng)
        deal = deal_cards(deck, len(players))
        for player, hand in zip(players, deal.hands):
            for card in hand:
                card.face_up = not player.is_ai
            player.hand = hand
            player.is_current_turn = False

        generation = self.state.turn_generation + 1
        self.state = GameState(
            players=list(players),
            phase=PHASE_PLAYING,
            turn_generation=generation,
            undealt=deal.undealt,
        )
        if deal.undealt:
            logger.debug(f"{len(deal.undealt)} cards left undealt for {len(players)} players")

        self._set_turn(0)
        first = self.current_player
        first_label = self.value_set.label(self.expected_value())
        self.state.message = f'{first.name} starts! Play cards as "{first_label}".'
        return ActionResult.ok(self.state.message, [
            fx.turn_changed(first.id, self.expected_value(), self.state.turn_generation)
        ])

    def play_cards(self, player_id: str, card_ids: List[str], claimed_value: str) -> ActionResult:
        """Move cards from the current player's hand to the pile under a claim."""
        state = self.state
        if state.phase != PHASE_PLAYING:
            return self._reject(ACTION_NOT_ALLOWED, "Cards can't be played right now")

        player = self.current_player
        if player.id != player_id:
            return self._reject(NOT_YOUR_TURN, "It's not your turn")

        if not card_ids:
            return self._reject(EMPTY_PLAY, "You must play at least one card")

        wanted = list(dict.fromkeys(card_ids))
        held = [c for c in player.hand if c.id in wanted]
        if not held:
            return self._reject(EMPTY_PLAY, "You must play at least one card from your hand")

        if self.value_set.is_wild(claimed_value) and any(self.value_set.is_wild(c.value) for c in held):
            label = self.value_set.label(claimed_value)
            return self._reject(
                ILLEGAL_JOKER_CLAIM,
                f"The {label} can never be played truthfully, you have to lie to get rid of it"
            )

        if not self.value_set.contains(claimed_value):
            return self._reject(INVALID_CLAIM, f"Unknown card value: {claimed_value}")

        expected = self.expected_value()
        if self.rules.enforce_progression and claimed_value != expected:
            return self._reject(
                INVALID_CLAIM,
                f'You must claim "{self.value_set.label(expected)}"'
            )

        played = []
        for card_id in wanted:
            index = next((i for i, c in enumerate(player.hand) if c.id == card_id), None)
            if index is None:
                continue
            card = player.hand.pop(index)
            card.face_up = False
            played.append(card)

        state.pile.extend(played)
        state.last_play = PlayedCards(cards=played, claimed_value=claimed_value, player_id=player.id)
        state.current_value = claimed_value
        state.can_challenge = True
        effects = [fx.cards_played(player.id, len(played), claimed_value)]

        if not player.hand:
            state.phase = PHASE_GAME_OVER
            state.winner_id = player.id
            state.can_challenge = False
            state.turn_generation += 1
            state.message = f"🎉 {player.name} wins!"
            effects.append(fx.game_won(player.id))
            return ActionResult.ok(state.message, effects)

        label = self.value_set.label(claimed_value)
        message = f'{player.name} played {len(played)} card(s) as "{label}".'
        effects.append(self._advance_turn())
        nxt = self.current_player
        state.message = f'{message} {nxt.name}\'s turn ("{self.value_set.label(self.expected_value())}").'
        return ActionResult.ok(state.message, effects)

    def challenge(self, challenger_id: str) -> ActionResult:
        """Reveal the live claim and decide who loses; the pile moves in resolve_challenge."""
        state = self.state
        if state.phase != PHASE_PLAYING or state.last_play is None or not state.can_challenge:
            return self._reject(CANNOT_CHALLENGE, "You can't challenge right now")

        challenger = self.get_player(challenger_id)
        if challenger is None:
            return self._reject(CANNOT_CHALLENGE, "Only players in this game can challenge")

        accused = self.get_player(state.last_play.player_id)
        if accused is None:
            raise InvariantViolation(f"Claim made by unknown player {state.last_play.player_id}")
        if accused.id == challenger.id:
            return self._reject(CANNOT_CHALLENGE, "You can't challenge your own claim")

        claimed = state.last_play.claimed_value
        was_lying = any(card.value != claimed for card in state.last_play.cards)
        for card in state.last_play.cards:
            card.face_up = True

        outcome = ChallengeOutcome(challenger_id=challenger.id, accused_id=accused.id, was_lying=was_lying)
        state.phase = PHASE_CHALLENGE
        state.can_challenge = False
        state.pending_challenge = outcome
        state.turn_generation += 1

        label = self.value_set.label(claimed)
        if was_lying:
            state.message = f'🔍 {challenger.name} calls liar! {accused.name} LIED, those are not "{label}"!'
        else:
            state.message = f'🔍 {challenger.name} calls liar! But {accused.name} told the TRUTH, those are "{label}"!'

        logger.debug(f"{challenger.id} challenged {accused.id}: was_lying={was_lying}")
        return ActionResult.ok(state.message, [
            fx.cards_revealed(challenger.id, accused.id, state.last_play.cards, was_lying)
        ], outcome=outcome)

    def resolve_challenge(self) -> ActionResult:
        """Give the pile to the loser of the pending challenge and let them play next."""
        state = self.state
        outcome = state.pending_challenge
        if state.phase != PHASE_CHALLENGE or outcome is None:
            return ActionResult.error(CANNOT_CHALLENGE, "No challenge to resolve")

        loser = self.get_player(outcome.loser_id)
        if loser is None:
            raise InvariantViolation(f"Challenge loser {outcome.loser_id} is not in the game")
        challenger = self.get_player(outcome.challenger_id)

        pile_count = len(state.pile)
        for card in state.pile:
            card.face_up = not loser.is_ai
        loser.hand.extend(state.pile)
        state.pile = []
        state.last_play = None
        state.can_challenge = False
        state.pending_challenge = None
        state.phase = PHASE_PLAYING

        index = state.players.index(loser)
        effects = [fx.pile_transferred(loser.id, pile_count), self._set_turn(index)]
        prompt = f'{loser.name}\'s turn ("{self.value_set.label(self.expected_value())}").'
        if outcome.was_lying:
            state.message = f"🎯 {challenger.name} was right! {loser.name} picks up the pile ({pile_count} cards). {prompt}"
        else:
            state.message = f"❌ {loser.name} was wrong and picks up the pile ({pile_count} cards). {prompt}"
        return ActionResult.ok(state.message, effects, outcome=outcome)

    # ------------------------------------------------------------------ helpers

    def _reject(self, code: str, message: str) -> ActionResult:
        if self.echo_errors:
            self.state.message = message
        return ActionResult.error(code, message)

    def _advance_turn(self) -> Effect:
        n = len(self.state.players)
        return self._set_turn((self.state.current_player_index + 1) % n)

    def _set_turn(self, index: int) -> Effect:
        for p in self.state.players:
            p.is_current_turn = False
        self.state.current_player_index = index
        player = self.current_player
        player.is_current_turn = True
        self.state.turn_generation += 1
        return fx.turn_changed(player.id, self.expected_value(), self.state.turn_generation)
