"""Unit tests for src/tiles/position.py"""

import pytest

from src.tiles.position import BOARD_SIZE, Position


def test_neighbors_are_in_border_order() -> None:
    assert Position(5, 5).neighbors() == [
        Position(5, 4),
        Position(6, 5),
        Position(5, 6),
        Position(4, 5),
    ]


def test_positions_are_values() -> None:
    assert Position(1, 2) == Position(1, 2)
    assert len({Position(1, 2), Position(1, 2), Position(2, 1)}) == 2


@pytest.mark.parametrize(
    "x, y, inside",
    [
        (0, 0, True),
        (BOARD_SIZE - 1, BOARD_SIZE - 1, True),
        (-1, 0, False),
        (0, BOARD_SIZE, False),
    ],
)
def test_bounds(x: int, y: int, inside: bool) -> None:
    assert Position(x, y).is_within_bounds() is inside


def test_shifted() -> None:
    assert Position(3, 3).shifted(-1, 2) == Position(2, 5)
