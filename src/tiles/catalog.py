"""Defines the tile types: which terrain is on each of the four edges"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Self

from src.core.shared_types import Border

# Edges are always listed in this order (before any rotation is applied)
NORTH, EAST, SOUTH, WEST = range(4)

Borders = tuple[Border, Border, Border, Border]


@dataclass(frozen=True)
class TileDefinition:
    identity: str
    borders: Borders
    has_monastery: bool = False

    @classmethod
    def from_letters(cls, identity: str, letters: str, has_monastery: bool = False) -> Self:
        """'CRFR' -> (City, Road, Field, Road)"""
        if len(letters) != 4:
            raise ValueError(f"A tile has exactly four borders, got {letters!r}")
        borders = tuple(Border(letter) for letter in letters)
        return cls(identity, borders, has_monastery)  # type: ignore[arg-type]

    def has_border(self, border: Border) -> bool:
        return border in self.borders


# Monastery tiles: the monastery is a property of the tile, not of its edges
MONASTERY_TILES: frozenset[str] = frozenset({"A", "B"})

_BORDER_TABLE: dict[str, str] = {
    "A": "FFRF",
    "B": "FFFF",
    "C": "CCCC",
    "D": "CRFR",
    "E": "CFFF",
    "F": "FCFC",
    "G": "FCFC",
    "H": "CFCF",
    "I": "CFFC",
    "J": "CRRF",
    "K": "CFRR",
    "L": "CRRR",
    "M": "CCFF",
    "N": "CCFF",
    "O": "CRRC",
    "P": "CRRC",
    "Q": "CCFC",
    "R": "CCFC",
    "S": "CCRC",
    "T": "CCRC",
    "U": "RFRF",
    "V": "FFRR",
    "W": "FRRR",
    "X": "RRRR",
}

TILES: Mapping[str, TileDefinition] = MappingProxyType(
    {
        identity: TileDefinition.from_letters(
            identity, letters, has_monastery=identity in MONASTERY_TILES
        )
        for identity, letters in _BORDER_TABLE.items()
    }
)

# The tile already on the table before the first turn
INITIAL_TILE = "D"

# How many copies of each tile go into the deck (the starting tile is not in the deck)
DEFAULT_TILE_COUNT = 3
TILE_COUNTS: dict[str, int] = {"A": 5, "B": 5, "X": 1, INITIAL_TILE: 0}


def tile(identity: str) -> TileDefinition:
    return TILES[identity]


def is_known_tile(identity: str) -> bool:
    return identity in TILES


def deck_composition() -> list[str]:
    """Unshuffled list of all tiles that go into the deck"""
    return [
        identity
        for identity in TILES
        for _ in range(TILE_COUNTS.get(identity, DEFAULT_TILE_COUNT))
    ]
