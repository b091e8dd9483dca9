#!/usr/bin/env python3
"""Play headless all-bot games on a virtual clock.

Useful for checking that games terminate and for eyeballing how often each
seat wins under a given rule set.

Example:
    python -m menteur_engine.simulate --games 200 --players 4 --variant rank
"""

import argparse
import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .constants import AI_NAMES
from .models import Player
from .rules import RuleConfig, create_rules
from .scheduler import ManualScheduler
from .solo import LocalGame

logger = logging.getLogger(__name__)


@dataclass
class SimulationReport:
    games: int = 0
    finished: int = 0
    wins: Counter = field(default_factory=Counter)
    steps: List[int] = field(default_factory=list)

    @property
    def stalled(self) -> int:
        return self.games - self.finished

    def summary(self) -> Dict[str, object]:
        average = sum(self.steps) / len(self.steps) if self.steps else 0.0
        return {
            "games": self.games,
            "finished": self.finished,
            "stalled": self.stalled,
            "wins": dict(self.wins),
            "avg_steps": round(average, 1),
        }


def bot_seating(player_count: int) -> List[Player]:
    return [
        Player(id=f"player-{i}", name=AI_NAMES[i] if i < len(AI_NAMES) else f"AI {i + 1}", is_ai=True)
        for i in range(player_count)
    ]


def play_one(rules: RuleConfig, player_count: int, rng: random.Random,
             max_steps: int = 5_000) -> Tuple[Optional[str], int]:
    """Run a single all-bot game. Returns the winner id (None if it stalled) and the steps taken."""
    scheduler = ManualScheduler()
    game = LocalGame(scheduler, rules=rules, rng=rng)
    game.start_with(bot_seating(player_count))

    steps = 0
    while not game.engine.is_over and steps < max_steps and scheduler.run_next():
        steps += 1
    return game.state.winner_id, steps


def run_simulation(rules: RuleConfig, games: int, player_count: int,
                   seed: Optional[int] = None, max_steps: int = 5_000) -> SimulationReport:
    rng = random.Random(seed)
    report = SimulationReport()
    for i in range(games):
        winner_id, steps = play_one(rules, player_count, rng, max_steps)
        report.games += 1
        report.steps.append(steps)
        if winner_id is not None:
            report.finished += 1
            report.wins[winner_id] += 1
        else:
            logger.warning(f"Game {i} stalled after {steps} steps")
    return report


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Simulate all-bot Menteur games")
    parser.add_argument("--games", type=int, default=100)
    parser.add_argument("--players", type=int, default=4)
    parser.add_argument("--variant", choices=["menteur", "rank"], default="menteur")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--max-steps", type=int, default=5_000,
                        help="give up on a game after this many deferred callbacks")
    parser.add_argument("--challenge-probability", type=float, default=0.3)
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    rules = create_rules(variant=args.variant, ai_challenge_probability=args.challenge_probability)
    if not rules.validate_player_count(args.players):
        parser.error(f"--players must be between {rules.min_players} and {rules.max_players}")

    report = run_simulation(rules, args.games, args.players, seed=args.seed, max_steps=args.max_steps)
    summary = report.summary()
    print(f"{summary['finished']}/{summary['games']} games finished, {summary['stalled']} stalled")
    print(f"average steps per game: {summary['avg_steps']}")
    for player_id, wins in sorted(report.wins.items()):
        print(f"  {player_id}: {wins} wins")
    return report


if __name__ == "__main__":
    main()
