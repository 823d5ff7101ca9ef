"""Unit tests for src/tiles/catalog.py"""

from collections import Counter

import pytest

from src.core.shared_types import Border
from src.tiles.catalog import (
    INITIAL_TILE,
    MONASTERY_TILES,
    TILES,
    TileDefinition,
    deck_composition,
    is_known_tile,
    tile,
)


def test_catalog_has_tiles_a_to_x() -> None:
    assert sorted(TILES) == [chr(code) for code in range(ord("A"), ord("X") + 1)]


@pytest.mark.parametrize(
    "identity, expected",
    [
        ("D", (Border.CITY, Border.ROAD, Border.FIELD, Border.ROAD)),
        ("B", (Border.FIELD,) * 4),
        ("C", (Border.CITY,) * 4),
        ("X", (Border.ROAD,) * 4),
        ("W", (Border.FIELD, Border.ROAD, Border.ROAD, Border.ROAD)),
    ],
)
def test_borders_are_listed_north_east_south_west(identity: str, expected: tuple) -> None:
    assert tile(identity).borders == expected


def test_only_a_and_b_have_a_monastery() -> None:
    assert {identity for identity, definition in TILES.items() if definition.has_monastery} == MONASTERY_TILES
    assert MONASTERY_TILES == {"A", "B"}


def test_catalog_cannot_be_modified() -> None:
    with pytest.raises(TypeError):
        TILES["Z"] = TILES["A"]  # type: ignore[index]


def test_from_letters_needs_four_borders() -> None:
    with pytest.raises(ValueError):
        TileDefinition.from_letters("Z", "CRF")


def test_unknown_identity() -> None:
    assert is_known_tile("A")
    assert not is_known_tile("Z")
    assert not is_known_tile("")


def test_deck_composition() -> None:
    """Every tile 3 times, A and B 5 times, X once, never the starting tile"""
    counts = Counter(deck_composition())
    assert counts["A"] == 5
    assert counts["B"] == 5
    assert counts["X"] == 1
    assert INITIAL_TILE not in counts
    assert all(counts[identity] == 3 for identity in "CEFGHIJKLMNOPQRSTUVW")
    # together with the starting tile: one tile per cell of the board's side
    assert sum(counts.values()) + 1 == 72
