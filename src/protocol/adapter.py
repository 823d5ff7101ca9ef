"""
Translation between the local game model and the server's wire format.

Every function here is pure. Conversions come in pairs, each the inverse of the other:
* tile identity  <-> numeric code ("A" <-> 0)
* Border         <-> "CITY" / "ROAD" / "FIELD"
* board position <-> wire position (the wire is relative to the board center)
* degrees        <-> quarter turns
* GameSession    <-> WireGameState
"""

import logging
from typing import Any, Optional, Union

from pydantic import TypeAdapter, ValidationError

from src.core.config import GameConfig
from src.core.exceptions import GameStateError, ProtocolParseError
from src.core.models import Envelope
from src.core.shared_types import Border, Phase
from src.protocol.wire import (
    INBOUND_TYPES,
    InboundMessage,
    Unrecognized,
    WireCurrentTile,
    WireGameState,
    WireMeeple,
    WirePlayer,
    WirePosition,
    WireTile,
    WireTilePlacement,
)
from src.tiles.board import Board, Meeple, PlacedTile, PlayerId
from src.tiles.catalog import is_known_tile, tile
from src.tiles.features import slot_feature
from src.tiles.position import BOARD_SIZE, Position
from src.tiles.session import Deck, GameSession, Player

logger = logging.getLogger(__name__)

DEFAULT_CENTER = Position(BOARD_SIZE // 2, BOARD_SIZE // 2)

_inbound_adapter: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


# --- FIELDS ---
def tile_to_code(identity: str) -> int:
    if not is_known_tile(identity):
        raise GameStateError(f"Unknown tile {identity!r}")
    return ord(identity) - ord("A")


def code_to_tile(code: int) -> str:
    identity = chr(ord("A") + code) if code >= 0 else ""
    if not is_known_tile(identity):
        raise ProtocolParseError(f"Unknown tile code {code}")
    return identity


def border_to_wire(border: Border) -> str:
    return border.name


def border_from_wire(value: Optional[str]) -> Border:
    """A missing border reads as a field"""
    if value is None:
        return Border.FIELD
    try:
        return Border[value]
    except KeyError:
        raise ProtocolParseError(f"Unknown border {value!r}") from None


def position_to_wire(position: Position, center: Position = DEFAULT_CENTER) -> WirePosition:
    return WirePosition(x=position.x - center.x, y=position.y - center.y)


def position_from_wire(wire: WirePosition, center: Position = DEFAULT_CENTER) -> Position:
    return Position(wire.x + center.x, wire.y + center.y)


def degrees_to_rotation(degrees: float) -> int:
    return int(degrees // 90) % 4


def rotation_to_degrees(rotation: int) -> int:
    return (rotation % 4) * 90


def tile_to_wire(placed: PlacedTile) -> WireTile:
    """Borders as they lie on the board (rotated)"""
    north, east, south, west = (border_to_wire(border) for border in placed.borders)
    return WireTile(
        id=tile_to_code(placed.identity),
        north=north,
        east=east,
        south=south,
        west=west,
        has_monastery=tile(placed.identity).has_monastery,
    )


def placed_tile_to_wire(placed: PlacedTile, center: Position = DEFAULT_CENTER) -> WireTilePlacement:
    meeples = []
    if placed.meeple is not None:
        meeples.append(WireMeeple(player_id=placed.meeple.player_id, feature_id=placed.meeple.slot))
    return WireTilePlacement(
        tile=tile_to_wire(placed),
        position=position_to_wire(placed.position, center),
        rotation=placed.rotation,
        meeples=meeples,
    )


def placed_tile_from_wire(
    placement: WireTilePlacement, position: Position
) -> PlacedTile:
    """
    Rebuild a tile laid on the board
    ----

    The borders are derived from the catalog and the rotation (the wire borders are informative only).
    Only the first meeple is kept, a meeple on a slot the tile does not have is dropped.
    """
    identity = code_to_tile(placement.tile.id)
    placed = PlacedTile.create(identity, position, placement.rotation % 4)
    if not placement.meeples:
        return placed

    wire_meeple = placement.meeples[0]
    feature = slot_feature(identity, wire_meeple.feature_id)
    if feature is None:
        logger.warning(
            "Tile %s at %s has no feature %d, meeple dropped", identity, position, wire_meeple.feature_id
        )
        return placed
    return placed.with_meeple(Meeple(feature, wire_meeple.player_id, wire_meeple.feature_id))


# --- FULL STATE ---
def to_wire_game_state(session: GameSession, center: Optional[Position] = None) -> WireGameState:
    center = center or session.board.center
    tiles = {}
    for placed in session.board.tiles.values():
        wire_position = position_to_wire(placed.position, center)
        tiles[f"{wire_position.x},{wire_position.y}"] = placed_tile_to_wire(placed, center)

    return WireGameState(
        tiles=tiles,
        current_tile=(
            WireCurrentTile(id=tile_to_code(session.current_tile))
            if session.current_tile is not None
            else None
        ),
        players=[
            WirePlayer(
                id=player.id,
                name=player.name,
                score=player.score,
                meeples_remaining=player.meeples_remaining,
            )
            for player in session.players
        ],
        current_player=session.active_player_id,
        game_started=True,
        game_ended=session.is_over,
        scores={player.id: player.score for player in session.players},
        tiles_left=session.deck.remaining,
    )


def _key_to_wire_position(key: str) -> Optional[WirePosition]:
    try:
        x, y = (int(part) for part in key.split(","))
    except ValueError:
        return None
    return WirePosition(x=x, y=y)


def _board_from_wire(tiles: dict[str, WireTilePlacement], size: int, center: Position) -> Board:
    board = Board.empty(size)
    for key, placement in tiles.items():
        wire_position = placement.position or _key_to_wire_position(key)
        if wire_position is None:
            logger.warning("Skipping tile with unreadable position %r", key)
            continue
        try:
            placed = placed_tile_from_wire(placement, position_from_wire(wire_position, center))
            board = board.place(placed)
        except (ProtocolParseError, GameStateError) as error:
            logger.warning("Skipping tile at %r: %s", key, error)
    return board


def from_wire_game_state(
    wire: Union[WireGameState, dict[str, Any]],
    local_player_id: PlayerId,
    config: Optional[GameConfig] = None,
    center: Optional[Position] = None,
) -> GameSession:
    """
    Build a session from a server snapshot.
    ----

    * Missing rotation -> 0, missing meeples -> none, unknown tile codes -> skipped (logged)
    * The server owns the deck: the session gets an empty one, the next tile arrives with the next turn
    * Raises ProtocolParseError if the snapshot itself does not have the expected shape
    """
    config = config or GameConfig()
    if not isinstance(wire, WireGameState):
        try:
            wire = WireGameState.model_validate(wire)
        except ValidationError as error:
            raise ProtocolParseError(f"Invalid game state: {error}") from error

    board_center = Position(config.board_size // 2, config.board_size // 2)
    board = _board_from_wire(wire.tiles, config.board_size, center or board_center)

    current_tile = None
    if wire.current_tile is not None:
        try:
            current_tile = code_to_tile(wire.current_tile.id)
        except ProtocolParseError as error:
            logger.warning("Ignoring current tile: %s", error)

    players = tuple(
        Player(
            id=player.id,
            name=player.name,
            score=wire.scores.get(player.id, player.score),
            meeples_remaining=player.meeples_remaining,
        )
        for player in wire.players
    )
    active_player_id = wire.current_player
    if active_player_id is None:
        active_player_id = players[0].id if players else local_player_id

    if wire.game_ended:
        phase = Phase.GAME_OVER
    elif active_player_id == local_player_id:
        phase = Phase.PLAYER_TURN
    else:
        phase = Phase.OPPONENT_TURN

    return GameSession(
        board=board,
        deck=Deck(),
        current_tile=current_tile,
        players=players,
        active_player_id=active_player_id,
        local_player_id=local_player_id,
        phase=phase,
        config=config,
    )


# --- MESSAGES ---
def decode_inbound(envelope: Envelope) -> Union[InboundMessage, Unrecognized]:
    """Unknown message types become `Unrecognized`. A known type with a malformed payload raises ProtocolParseError."""
    if envelope.type not in INBOUND_TYPES:
        return Unrecognized(type=envelope.type, data=envelope.data)
    try:
        return _inbound_adapter.validate_python({"type": envelope.type, "data": envelope.data})
    except ValidationError as error:
        raise ProtocolParseError(f"Invalid {envelope.type} message: {error}") from error


def place_tile_payload(
    position: Position, rotation: int, center: Position = DEFAULT_CENTER
) -> dict[str, Any]:
    return {"position": position_to_wire(position, center).to_wire(), "rotation": rotation % 4}


def place_meeple_payload(slot_index: int) -> dict[str, Any]:
    return {"featureId": slot_index}
