"""Unit tests for src/cli.py"""

import argparse
import random

from src.cli import cmd_simulate, play_local_turn
from src.core.shared_types import Phase
from src.tiles.session import GameSession


def test_local_turn_hands_over(session_with_tile: GameSession) -> None:
    after = play_local_turn(session_with_tile, random.Random(3))

    assert after.board.placed_count == 2
    assert after.phase == Phase.OPPONENT_TURN
    assert after.active_player_id == "1"


def test_simulate_plays_to_the_end(capsys) -> None:
    assert cmd_simulate(argparse.Namespace(seed=5, players=3)) == 0

    out = capsys.readouterr().out
    assert out.startswith("Game over after ")
    for name in ("Red", "Blue", "Green"):
        assert name in out
    assert "Yellow" not in out
