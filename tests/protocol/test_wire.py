"""Unit tests for src/protocol/wire.py"""

import pytest
from pydantic import ValidationError

from src.protocol.wire import (
    RoomJoinedMessage,
    RoomsListMessage,
    TurnStartData,
    WireGameState,
    WireMeeple,
    WireTile,
    WireTilePlacement,
)


def test_camel_case_on_the_wire() -> None:
    tile = WireTile(id=3, north="CITY", east="ROAD", south="FIELD", west="ROAD", has_monastery=False)
    assert tile.to_wire() == {
        "id": 3,
        "north": "CITY",
        "east": "ROAD",
        "south": "FIELD",
        "west": "ROAD",
        "features": [],
        "hasMonastery": False,
        "hasShield": False,
    }


def test_missing_optional_fields_get_defaults() -> None:
    placement = WireTilePlacement.model_validate({"tile": {"id": 0, "north": None}, "rotation": None, "meeples": None})
    assert placement.rotation == 0
    assert placement.meeples == []
    assert placement.position is None
    assert placement.tile.north == "FIELD"


def test_numeric_ids_become_strings() -> None:
    meeple = WireMeeple.model_validate({"playerId": 2, "featureId": 1})
    assert meeple.player_id == "2"

    state = WireGameState.model_validate({"currentPlayer": 1})
    assert state.current_player == "1"


def test_unknown_border_is_invalid() -> None:
    with pytest.raises(ValidationError):
        WireTile.model_validate({"id": 0, "north": "LAKE"})


def test_rooms_list_accepts_both_shapes() -> None:
    wrapped = RoomsListMessage.model_validate({"type": "ROOMS_LIST", "data": {"rooms": [{"id": "r1"}]}})
    bare = RoomsListMessage.model_validate({"type": "LIST_ROOMS", "data": [{"id": 7, "maxPlayers": 5}]})

    assert [room.id for room in wrapped.data] == ["r1"]
    assert bare.data[0].id == "7"
    assert bare.data[0].max_players == 5


def test_turn_start_accepts_a_bare_tile_code() -> None:
    data = TurnStartData.model_validate({"currentPlayer": "p2", "currentTile": 4})
    assert data.current_tile is not None
    assert data.current_tile.id == 4
    assert data.valid_placements == []


def test_room_joined_payload() -> None:
    message = RoomJoinedMessage.model_validate({"type": "ROOM_JOINED", "data": {"roomId": 12, "players": None}})
    assert message.data.room_id == "12"
    assert message.data.players == []
