"""
A cell on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

# Big enough that a full deck can never run off the edge when started from the center
BOARD_SIZE = 72

Vector = tuple[int, int]

# Same order as the borders of a tile: north, east, south, west. y grows towards the south.
DIRECTIONS: tuple[Vector, ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))


@dataclass(frozen=True)
class Position:
    x: int
    y: int

    def shifted(self, dx: int, dy: int) -> Position:
        return Position(self.x + dx, self.y + dy)

    def neighbors(self) -> list[Position]:
        """The 4-connected neighbors, in border order (north, east, south, west). May lie outside the board."""
        return [self.shifted(dx, dy) for dx, dy in DIRECTIONS]

    def is_within_bounds(self, size: int = BOARD_SIZE) -> bool:
        return (0 <= self.x < size) and (0 <= self.y < size)
