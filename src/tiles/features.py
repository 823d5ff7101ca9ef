"""
Where meeples can stand on a tile

Every tile type has a fixed list of feature slots: a point on the tile (drawing units, the tile center is (0, 0),
the edges are about 25 away, x grows to the east and y grows to the south) and the kind of feature found there.

A meeple is stored by the INDEX of its slot. A tile can have several slots of the same kind (two separate cities on H,
three road ends on L), so the feature class alone is not enough to know where the meeple stands.

A slot is only usable if the tile shows its feature on a border: the field slots of X, L, O, P, S and T
are listed but can never take a meeple.
"""

import logging
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Optional, Protocol, TypeVar

from src.core.shared_types import BORDER_FEATURES, FeatureClass
from src.tiles.board import Board, Meeple, PlacedTile, PlayerId
from src.tiles.catalog import tile
from src.tiles.position import Position, Vector

logger = logging.getLogger(__name__)

ROAD = FeatureClass.ROAD
CITY = FeatureClass.CITY
FIELD = FeatureClass.FIELD
MONASTERY = FeatureClass.MONASTERY


@dataclass(frozen=True)
class FeatureSlot:
    offset: Vector
    feature: FeatureClass


# --- Slots of each tile, unrotated. The order is the featureId the server knows them by.
_SLOT_TABLE: dict[str, list[tuple[Vector, FeatureClass]]] = {
    "A": [((0, 0), MONASTERY), ((20, -20), FIELD), ((0, 25), ROAD)],
    "B": [((0, 0), MONASTERY), ((20, -20), FIELD)],
    "C": [((0, 0), CITY)],
    "D": [((0, -22), CITY), ((-15, -9), FIELD), ((15, 16), FIELD), ((-3, 7), ROAD)],
    "E": [((0, -22), CITY), ((0, 10), FIELD)],
    "F": [((0, 0), CITY), ((0, -22), FIELD), ((0, 26), FIELD)],
    "G": [((0, 0), CITY), ((0, -22), FIELD), ((0, 26), FIELD)],
    "H": [((0, -22), CITY), ((0, 22), CITY), ((0, 0), FIELD)],
    "I": [((0, -22), CITY), ((-22, 0), CITY), ((5, 5), FIELD)],
    "J": [((0, -22), CITY), ((-22, -4), FIELD), ((22, 22), FIELD), ((2, 2), ROAD)],
    "K": [((0, -22), CITY), ((22, 10), FIELD), ((-15, 15), FIELD), ((7, -2), ROAD)],
    "L": [
        ((0, -22), CITY),
        ((-25, -15), FIELD),
        ((-20, 20), FIELD),
        ((20, 20), FIELD),
        ((22, 0), ROAD),
        ((-22, 0), ROAD),
        ((0, 22), ROAD),
    ],
    "M": [((12, -12), CITY), ((-12, 12), FIELD)],
    "N": [((12, -12), CITY), ((-12, 12), FIELD)],
    "O": [((-12, -12), CITY), ((-12, 20), FIELD), ((22, 22), FIELD), ((9, 9), ROAD)],
    "P": [((-12, -12), CITY), ((-12, 20), FIELD), ((22, 22), FIELD), ((9, 9), ROAD)],
    "Q": [((0, -10), CITY), ((0, 22), FIELD)],
    "R": [((0, -10), CITY), ((0, 22), FIELD)],
    "S": [((0, -10), CITY), ((-15, 23), FIELD), ((15, 23), FIELD), ((0, 20), ROAD)],
    "T": [((0, -10), CITY), ((-15, 23), FIELD), ((15, 23), FIELD), ((0, 20), ROAD)],
    "U": [((19, 0), FIELD), ((-19, 0), FIELD), ((0, 0), ROAD)],
    "V": [((10, -10), FIELD), ((-20, 17), FIELD), ((-10, 5), ROAD)],
    "W": [
        ((0, -20), FIELD),
        ((-22, 20), FIELD),
        ((22, 20), FIELD),
        ((20, 0), ROAD),
        ((-20, 0), ROAD),
        ((0, 20), ROAD),
    ],
    "X": [
        ((-20, -20), FIELD),
        ((20, -20), FIELD),
        ((-20, 20), FIELD),
        ((20, 20), FIELD),
        ((20, 0), ROAD),
        ((-20, 0), ROAD),
        ((0, 20), ROAD),
        ((0, -20), ROAD),
    ],
}

FEATURE_SLOTS: dict[str, tuple[FeatureSlot, ...]] = {
    identity: tuple(FeatureSlot(offset, feature) for offset, feature in slots)
    for identity, slots in _SLOT_TABLE.items()
}


class MeepleRejection(StrEnum):
    NO_TILE = "no tile there"
    OCCUPIED = "tile already has a meeple"
    NO_SUCH_FEATURE = "tile has no such feature"
    NO_MEEPLES_LEFT = "player has no meeples left"
    UNKNOWN_PLAYER = "unknown player"


class Player(Protocol):
    id: PlayerId
    meeples_remaining: int


class Session(Protocol):
    """Just the parts of the GameSession that attaching a meeple touches"""

    board: Board
    players: tuple[Player, ...]


SessionT = TypeVar("SessionT", bound=Session)


# --- GEOMETRY ---
def rotate_feature_offset(offset: Vector, rotation: int) -> Vector:
    """Quarter turn clockwise (y grows downwards): (col, row) -> (-row, col), applied `rotation` times"""
    col, row = offset
    for _ in range(rotation % 4):
        col, row = -row, col
    return col, row


def feature_slots(identity: str, rotation: int) -> list[FeatureSlot]:
    """The slots of a tile type as they lie on the table after rotating it"""
    return [
        FeatureSlot(rotate_feature_offset(slot.offset, rotation), slot.feature)
        for slot in FEATURE_SLOTS[identity]
    ]


def slots_of_placed_tile(placed: PlacedTile) -> list[FeatureSlot]:
    return feature_slots(placed.identity, placed.rotation)


# --- RULES ---
def _tile_offers(placed: PlacedTile, feature: FeatureClass) -> bool:
    """Road / City / Field: one of the borders must show it. Monastery: the tile type must have one."""
    if feature == MONASTERY:
        return tile(placed.identity).has_monastery
    return BORDER_FEATURES[feature] in placed.borders


def check_meeple(board: Board, x: int, y: int, feature: FeatureClass) -> Optional[MeepleRejection]:
    placed = board.tile_at(Position(x, y))
    if placed is None:
        return MeepleRejection.NO_TILE
    if placed.meeple is not None:
        return MeepleRejection.OCCUPIED
    if not _tile_offers(placed, feature):
        return MeepleRejection.NO_SUCH_FEATURE
    return None


def can_attach_meeple(board: Board, x: int, y: int, feature: FeatureClass) -> bool:
    return check_meeple(board, x, y, feature) is None


def available_features(board: Board, x: int, y: int) -> list[FeatureClass]:
    """Feature classes a meeple could still be put on, in a fixed order. Empty if the cell is empty or taken."""
    return [feature for feature in FeatureClass if can_attach_meeple(board, x, y, feature)]


def _find_player(session: Session, player_id: PlayerId) -> Optional[Player]:
    return next((player for player in session.players if player.id == player_id), None)


def _place(session: SessionT, position: Position, meeple: Meeple) -> SessionT:
    """Fill the slot and take one meeple from the owner's supply"""
    board = session.board.with_meeple(position, meeple)
    players = tuple(
        replace(player, meeples_remaining=player.meeples_remaining - 1)  # type: ignore[type-var]
        if player.id == meeple.player_id
        else player
        for player in session.players
    )
    return replace(session, board=board, players=players)  # type: ignore[type-var]


def _reject(session: SessionT, position: Position, reason: MeepleRejection) -> SessionT:
    logger.info("Meeple rejected at (%d, %d): %s", position.x, position.y, reason)
    return session


def attach_meeple(
    session: SessionT, x: int, y: int, feature: FeatureClass, player_id: PlayerId
) -> SessionT:
    """
    Put a meeple of `player_id` on the first slot of the requested kind.
    ----

    Returns the session unchanged (the very same object) when the player has no meeples left or the tile does not allow it.
    """
    position = Position(x, y)
    player = _find_player(session, player_id)
    if player is None:
        return _reject(session, position, MeepleRejection.UNKNOWN_PLAYER)
    if player.meeples_remaining <= 0:
        return _reject(session, position, MeepleRejection.NO_MEEPLES_LEFT)

    reason = check_meeple(session.board, x, y, feature)
    if reason is not None:
        return _reject(session, position, reason)

    # the tile is there (checked above), find the slot index
    placed = session.board.tile_at(position)
    assert placed is not None
    slot_index = next(
        index
        for index, slot in enumerate(slots_of_placed_tile(placed))
        if slot.feature == feature
    )
    return _place(session, position, Meeple(feature, player_id, slot_index))


def attach_meeple_to_slot(
    session: SessionT, x: int, y: int, slot_index: int, player_id: PlayerId
) -> SessionT:
    """Same as `attach_meeple()`, but the slot is picked directly (this is what the server calls the featureId)."""
    position = Position(x, y)
    placed = session.board.tile_at(position)
    if placed is None:
        return _reject(session, position, MeepleRejection.NO_TILE)

    slots = slots_of_placed_tile(placed)
    if not 0 <= slot_index < len(slots):
        return _reject(session, position, MeepleRejection.NO_SUCH_FEATURE)

    feature = slots[slot_index].feature
    player = _find_player(session, player_id)
    if player is None:
        return _reject(session, position, MeepleRejection.UNKNOWN_PLAYER)
    if player.meeples_remaining <= 0:
        return _reject(session, position, MeepleRejection.NO_MEEPLES_LEFT)

    reason = check_meeple(session.board, x, y, feature)
    if reason is not None:
        return _reject(session, position, reason)
    return _place(session, position, Meeple(feature, player_id, slot_index))


def slot_feature(identity: str, slot_index: int) -> Optional[FeatureClass]:
    """Kind of feature at a slot index, None if the tile type has no such slot"""
    slots = FEATURE_SLOTS.get(identity, ())
    if 0 <= slot_index < len(slots):
        return slots[slot_index].feature
    return None


