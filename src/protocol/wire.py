"""
Wire models: what the server sends and expects, field for field (camelCase on the wire, snake_case here).

Inbound messages form a closed union discriminated by `type`. The server uses a few alternative names
for the same message (LIST_ROOMS, ROOM_STATE, GAME_STARTED); those are accepted as extra tags of the same variant.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

WireBorder = Literal["CITY", "ROAD", "FIELD"]


def _as_id(value: Any) -> Any:
    """The server is not consistent: ids come as numbers or strings"""
    if value is None or isinstance(value, str):
        return value
    return str(value)


WireId = Annotated[str, BeforeValidator(_as_id)]


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


# --- BOARD ---
class WirePosition(WireModel):
    x: int
    y: int


class WireTile(WireModel):
    id: int = 0
    north: WireBorder = "FIELD"
    east: WireBorder = "FIELD"
    south: WireBorder = "FIELD"
    west: WireBorder = "FIELD"
    features: list[Any] = Field(default_factory=list)
    has_monastery: bool = False
    has_shield: bool = False

    @field_validator("north", "east", "south", "west", mode="before")
    @classmethod
    def default_missing_border(cls, value: Any) -> Any:
        return "FIELD" if value is None else value


class WireMeeple(WireModel):
    player_id: WireId
    feature_id: int = 0


class WireTilePlacement(WireModel):
    tile: WireTile
    position: Optional[WirePosition] = None
    rotation: int = 0
    meeples: list[WireMeeple] = Field(default_factory=list)

    @field_validator("rotation", mode="before")
    @classmethod
    def default_missing_rotation(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("meeples", mode="before")
    @classmethod
    def default_missing_meeples(cls, value: Any) -> Any:
        return [] if value is None else value


class WireCurrentTile(WireModel):
    id: int


class WirePlayer(WireModel):
    id: WireId
    name: str = ""
    color: Optional[str] = None
    score: int = 0
    meeples_remaining: int = 7


class WireGameState(WireModel):
    # key: "x,y" in wire coordinates
    tiles: dict[str, WireTilePlacement] = Field(default_factory=dict)
    current_tile: Optional[WireCurrentTile] = None
    players: list[WirePlayer] = Field(default_factory=list)
    current_player: Optional[WireId] = None
    game_started: bool = False
    game_ended: bool = False
    scores: dict[str, int] = Field(default_factory=dict)
    tiles_left: int = 0


class WireRoom(WireModel):
    id: WireId
    name: str = ""
    players: list[Any] = Field(default_factory=list)
    max_players: int = 4
    status: Optional[str] = None


# --- INBOUND MESSAGE PAYLOADS ---
class TurnStartData(WireModel):
    current_player: WireId
    current_tile: Optional[WireCurrentTile] = None
    valid_placements: list[WirePosition] = Field(default_factory=list)

    @field_validator("current_tile", mode="before")
    @classmethod
    def accept_bare_code(cls, value: Any) -> Any:
        if isinstance(value, int):
            return {"id": value}
        return value


class TilePlacedData(WireModel):
    valid: bool
    player_id: Optional[WireId] = None
    position: Optional[WirePosition] = None
    rotation: int = 0
    tile: Optional[WireTile] = None


class MeeplePlacedData(WireModel):
    valid: bool
    player_id: Optional[WireId] = None
    feature_id: Optional[int] = None
    position: Optional[WirePosition] = None


class TurnEndData(WireModel):
    next_player: WireId


class GameEndData(WireModel):
    winner: Optional[WireId] = None
    scores: dict[str, int] = Field(default_factory=dict)


class GameStateData(WireModel):
    game_state: WireGameState


class ErrorData(WireModel):
    message: str = ""
    code: Optional[WireId] = None


class RoomPlayersData(WireModel):
    """ROOM_JOINED, ROOM_UPDATE and GAME_START: who sits in the room (room id only on joining)"""

    room_id: Optional[WireId] = None
    players: list[Any] = Field(default_factory=list)

    @field_validator("players", mode="before")
    @classmethod
    def default_missing_players(cls, value: Any) -> Any:
        return [] if value is None else value


# --- INBOUND MESSAGES ---
class ConnectedMessage(WireModel):
    type: Literal["CONNECTED"]
    data: dict[str, Any] = Field(default_factory=dict)


class RoomsListMessage(WireModel):
    type: Literal["ROOMS_LIST", "LIST_ROOMS"]
    data: list[WireRoom] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def unwrap_rooms(cls, value: Any) -> Any:
        """Either `{"rooms": [...]}` or the bare list"""
        if isinstance(value, dict):
            return value.get("rooms") or []
        return value or []


class RoomJoinedMessage(WireModel):
    type: Literal["ROOM_JOINED"]
    data: RoomPlayersData = Field(default_factory=RoomPlayersData)


class RoomUpdateMessage(WireModel):
    type: Literal["ROOM_UPDATE", "ROOM_STATE"]
    data: RoomPlayersData = Field(default_factory=RoomPlayersData)


class GameStartMessage(WireModel):
    type: Literal["GAME_START", "GAME_STARTED"]
    data: RoomPlayersData = Field(default_factory=RoomPlayersData)


class TurnStartMessage(WireModel):
    type: Literal["TURN_START"]
    data: TurnStartData


class TilePlacedMessage(WireModel):
    type: Literal["TILE_PLACED"]
    data: TilePlacedData


class MeeplePlacedMessage(WireModel):
    type: Literal["MEEPLE_PLACED"]
    data: MeeplePlacedData


class TurnEndMessage(WireModel):
    type: Literal["TURN_END"]
    data: TurnEndData


class GameEndMessage(WireModel):
    type: Literal["GAME_END"]
    data: GameEndData = Field(default_factory=GameEndData)


class GameStateMessage(WireModel):
    type: Literal["GAME_STATE"]
    data: GameStateData


class ErrorMessage(WireModel):
    type: Literal["ERROR"]
    data: ErrorData = Field(default_factory=ErrorData)


class PongMessage(WireModel):
    type: Literal["PONG"]
    data: dict[str, Any] = Field(default_factory=dict)


class Unrecognized(WireModel):
    """Anything with a `type` we do not know. Kept (not dropped) so the caller can log or ignore it explicitly."""

    type: str
    data: Any = None


InboundMessage = Annotated[
    Union[
        ConnectedMessage,
        RoomsListMessage,
        RoomJoinedMessage,
        RoomUpdateMessage,
        GameStartMessage,
        TurnStartMessage,
        TilePlacedMessage,
        MeeplePlacedMessage,
        TurnEndMessage,
        GameEndMessage,
        GameStateMessage,
        ErrorMessage,
        PongMessage,
    ],
    Field(discriminator="type"),
]

INBOUND_TYPES: frozenset[str] = frozenset(
    {
        "CONNECTED",
        "ROOMS_LIST",
        "LIST_ROOMS",
        "ROOM_JOINED",
        "ROOM_UPDATE",
        "ROOM_STATE",
        "GAME_START",
        "GAME_STARTED",
        "TURN_START",
        "TILE_PLACED",
        "MEEPLE_PLACED",
        "TURN_END",
        "GAME_END",
        "GAME_STATE",
        "ERROR",
        "PONG",
    }
)
