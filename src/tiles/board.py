"""The Board holds the tiles that have been laid so far. It does not know the placement rules (see placement.py)."""

from dataclasses import dataclass, field, replace
from typing import Iterator, Mapping, Optional, Self

from src.core.exceptions import GameStateError
from src.core.shared_types import FeatureClass
from src.tiles.catalog import INITIAL_TILE, Borders, is_known_tile, tile
from src.tiles.placement import rotate_borders
from src.tiles.position import BOARD_SIZE, Position

PlayerId = str


@dataclass(frozen=True)
class Meeple:
    feature: FeatureClass
    player_id: PlayerId
    # index into the feature slots of the tile it stands on (see features.py)
    slot: int


@dataclass(frozen=True)
class PlacedTile:
    identity: str
    position: Position
    rotation: int
    borders: Borders
    meeple: Optional[Meeple] = None

    @classmethod
    def create(cls, identity: str, position: Position, rotation: int) -> Self:
        """The borders are derived once, from the catalog entry and the rotation."""
        if not is_known_tile(identity):
            raise GameStateError(f"Unknown tile {identity!r}")
        if rotation not in range(4):
            raise GameStateError(f"Rotation must be 0-3, got {rotation}")
        borders = rotate_borders(tile(identity).borders, rotation)
        return cls(identity, position, rotation, borders)

    def with_meeple(self, meeple: Meeple) -> Self:
        return replace(self, meeple=meeple)


@dataclass(frozen=True)
class Board:
    """
    Sparse grid of placed tiles.
    ----

    Boards are values: placing a tile returns a new Board and leaves this one untouched.

    Besides the tiles, the board keeps track of its `frontier`: the empty cells next to at least one tile.
    Those are the only cells where a new tile can go, so searching for placements does not have to scan the whole grid.
    """

    size: int = BOARD_SIZE
    tiles: Mapping[Position, PlacedTile] = field(default_factory=dict)
    frontier: frozenset[Position] = frozenset()

    @classmethod
    def empty(cls, size: int = BOARD_SIZE) -> Self:
        return cls(size=size)

    @classmethod
    def starting(cls, size: int = BOARD_SIZE, identity: str = INITIAL_TILE) -> Self:
        """The board before the first turn: one tile, unrotated, in the center"""
        board = cls.empty(size)
        return board.place(PlacedTile.create(identity, board.center, 0))

    @classmethod
    def from_tiles(cls, tiles: list[PlacedTile], size: int = BOARD_SIZE) -> Self:
        board = cls.empty(size)
        for placed in tiles:
            board = board.place(placed)
        return board

    @property
    def center(self) -> Position:
        return Position(self.size // 2, self.size // 2)

    @property
    def placed_count(self) -> int:
        return len(self.tiles)

    def is_empty(self) -> bool:
        return not self.tiles

    def tile_at(self, position: Position) -> Optional[PlacedTile]:
        return self.tiles.get(position)

    def is_occupied(self, position: Position) -> bool:
        return position in self.tiles

    def contains(self, position: Position) -> bool:
        return position.is_within_bounds(self.size)

    def occupied_neighbors(self, position: Position) -> list[PlacedTile]:
        return [
            self.tiles[neighbor]
            for neighbor in position.neighbors()
            if neighbor in self.tiles
        ]

    def positions(self) -> Iterator[Position]:
        """Every cell of the board, row by row"""
        for y in range(self.size):
            for x in range(self.size):
                yield Position(x, y)

    def place(self, placed: PlacedTile) -> Self:
        """Put a tile on the board (no rule checks here, the placement engine does those)."""
        position = placed.position
        if not self.contains(position):
            raise GameStateError(f"{position} lies outside a {self.size}x{self.size} board")
        if self.is_occupied(position):
            raise GameStateError(f"{position} is already occupied")

        tiles = dict(self.tiles)
        tiles[position] = placed
        new_frontier = {
            neighbor
            for neighbor in position.neighbors()
            if self.contains(neighbor) and neighbor not in tiles
        }
        frontier = (self.frontier - {position}) | new_frontier
        return replace(self, tiles=tiles, frontier=frozenset(frontier))

    def with_meeple(self, position: Position, meeple: Meeple) -> Self:
        placed = self.tile_at(position)
        if placed is None:
            raise GameStateError(f"No tile at {position} to put a meeple on")
        tiles = dict(self.tiles)
        tiles[position] = placed.with_meeple(meeple)
        return replace(self, tiles=tiles)

    def meeples(self) -> list[tuple[Position, Meeple]]:
        return [
            (position, placed.meeple)
            for position, placed in self.tiles.items()
            if placed.meeple is not None
        ]
