"""
Tests for headless all-bot simulations.
"""

import random

import pytest
from menteur_engine.rules import create_rules
from menteur_engine.simulate import bot_seating, main, play_one, run_simulation


def test_games_without_challenges_always_finish():
    rules = create_rules(ai_challenge_probability=0)
    report = run_simulation(rules, games=5, player_count=3, seed=1)

    assert report.games == 5
    assert report.finished == 5
    assert report.stalled == 0
    assert sum(report.wins.values()) == 5
    assert set(report.wins) <= {p.id for p in bot_seating(3)}


def test_step_cap_reports_stalled_game():
    winner_id, steps = play_one(create_rules(), 4, random.Random(0), max_steps=1)
    assert winner_id is None
    assert steps == 1


def test_cli_rejects_bad_player_count():
    with pytest.raises(SystemExit) as exc:
        main(["--players", "9", "--games", "1"])
    assert exc.value.code == 2


def test_cli_prints_summary(capsys):
    report = main(["--games", "2", "--players", "2", "--seed", "3", "--challenge-probability", "0"])
    out = capsys.readouterr().out
    assert "2/2 games finished" in out
    assert report.finished == 2
