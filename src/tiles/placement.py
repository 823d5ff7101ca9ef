"""
Geometry and legality of laying a tile

Key idea: a tile fits when every edge that touches an existing tile shows the SAME terrain as that neighbor's facing edge.
Open edges (no neighbor) never constrain anything.

Legality is only checked here. Applying a placement is done by the GameSession.
"""

from enum import StrEnum
from typing import Optional, Protocol

from src.tiles.catalog import EAST, NORTH, SOUTH, WEST, Borders, tile
from src.tiles.position import Position

ROTATIONS: tuple[int, ...] = (0, 1, 2, 3)

# For each of our edges: the edge of the neighbor it touches
FACING_EDGE: dict[int, int] = {NORTH: SOUTH, EAST: WEST, SOUTH: NORTH, WEST: EAST}


class PlacedTile(Protocol):
    borders: Borders


class Board(Protocol):
    """Just the parts the placement rules need"""

    frontier: frozenset[Position]

    def tile_at(self, position: Position) -> Optional[PlacedTile]: ...
    def is_occupied(self, position: Position) -> bool: ...
    def contains(self, position: Position) -> bool: ...
    def is_empty(self) -> bool: ...
    def positions(self): ...


class PlacementRejection(StrEnum):
    OUT_OF_BOUNDS = "outside the board"
    OCCUPIED = "cell already taken"
    NOT_ADJACENT = "not next to any tile"
    BORDER_MISMATCH = "borders do not match"


def rotate_borders(borders: Borders, rotation: int) -> Borders:
    """
    Turn the tile clockwise by `rotation` quarter turns.
    ---

    What used to face north now faces east: rotated[i] = borders[(i - r) mod 4]
    """
    r = rotation % 4
    return tuple(borders[(i - r + 4) % 4] for i in range(4))  # type: ignore[return-value]


def check_placement(
    board: Board, x: int, y: int, rotated_borders: Borders
) -> Optional[PlacementRejection]:
    """Returns None if the tile (with its borders already rotated) may go on (x, y), else the reason it may not."""
    position = Position(x, y)
    if not board.contains(position):
        return PlacementRejection.OUT_OF_BOUNDS

    if board.is_occupied(position):
        return PlacementRejection.OCCUPIED

    has_neighbor = False
    for edge, neighbor_position in enumerate(position.neighbors()):
        neighbor = board.tile_at(neighbor_position)
        if neighbor is None:
            continue
        has_neighbor = True
        if rotated_borders[edge] != neighbor.borders[FACING_EDGE[edge]]:
            return PlacementRejection.BORDER_MISMATCH

    # Only the very first tile may float freely
    if not has_neighbor and not board.is_empty():
        return PlacementRejection.NOT_ADJACENT
    return None


def can_place(board: Board, x: int, y: int, rotated_borders: Borders) -> bool:
    return check_placement(board, x, y, rotated_borders) is None


def valid_rotations(board: Board, x: int, y: int, identity: str) -> list[int]:
    """All rotations of the tile that fit on (x, y), ascending. May be empty."""
    borders = tile(identity).borders
    return [
        rotation
        for rotation in ROTATIONS
        if can_place(board, x, y, rotate_borders(borders, rotation))
    ]


def possible_placements(board: Board, identity: str) -> set[Position]:
    """
    Every cell where the tile fits in at least one rotation.
    ----

    ----
    NOTE only the positions are returned. Once a position has been chosen, ask `valid_rotations()` which rotations fit there.

    Only empty cells next to a tile can ever be legal, which is exactly the board's frontier.
    An empty board has no frontier, every cell is a candidate then.
    """
    candidates = board.positions() if board.is_empty() else board.frontier
    return {
        position
        for position in candidates
        if valid_rotations(board, position.x, position.y, identity)
    }


def has_placement(board: Board, identity: str) -> bool:
    """Cheaper than `possible_placements()` when the answer is all you need: stops at the first fit."""
    candidates = board.positions() if board.is_empty() else board.frontier
    return any(
        valid_rotations(board, position.x, position.y, identity)
        for position in candidates
    )
