"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

import random
from dataclasses import replace

import pytest

from src.tiles.board import Board, PlacedTile
from src.tiles.position import Position
from src.tiles.session import GameSession

SEED = 1234
CENTER = Position(36, 36)


@pytest.fixture
def rng() -> random.Random:
    """Seeded, so every test sees the same shuffle and the same automated choices"""
    return random.Random(SEED)


@pytest.fixture
def starting_board() -> Board:
    """Only the starting tile (D, unrotated) on the center of a 72x72 board"""
    return Board.starting()


@pytest.fixture
def field_board() -> Board:
    """Only a plain field tile (B) on the center: every edge is a field"""
    return Board.from_tiles([PlacedTile.create("B", CENTER, 0)])


@pytest.fixture
def new_session(rng: random.Random) -> GameSession:
    """Two players, the local player (id "0") starts"""
    return GameSession.new_game(["Alice", "Bob"], rng=rng)


@pytest.fixture
def session_with_tile(new_session: GameSession) -> GameSession:
    """Local player's turn with a known tile in hand (D fits all four cells around the start tile)"""
    return replace(new_session, current_tile="D")
