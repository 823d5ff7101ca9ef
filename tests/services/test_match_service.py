"""Unit tests for src/services/match_service.py"""

from dataclasses import replace
from unittest.mock import Mock

import pytest

from src.core.exceptions import GameStateError
from src.core.models import Envelope
from src.core.shared_types import FeatureClass, Phase
from src.network.transport import Identity, TransportClient
from src.protocol.adapter import to_wire_game_state
from src.services.match_service import MatchService
from src.tiles.position import Position
from src.tiles.session import GameSession

IDENTITY = Identity(player_id="0", name="Alice")


# --- MOCK DEPENDENCIES ----
@pytest.fixture
def transport() -> Mock:
    """Coroutine methods of TransportClient become AsyncMocks"""
    return Mock(spec=TransportClient)


@pytest.fixture
def service(transport: Mock, session_with_tile: GameSession) -> MatchService:
    service = MatchService(transport, IDENTITY)
    service.session = session_with_tile
    return service


def frame(type: str, data: object) -> Envelope:
    return Envelope.from_frame({"type": type, "data": data})


# --- SETUP ----
def test_service_listens_to_the_transport(transport: Mock) -> None:
    service = MatchService(transport, IDENTITY)
    transport.on_message.assert_called_once_with(service.handle_message)


@pytest.mark.asyncio
async def test_start_and_stop(transport: Mock) -> None:
    unsubscribe = Mock()
    transport.on_message.return_value = unsubscribe
    service = MatchService(transport, IDENTITY)

    await service.start()
    await service.stop()

    transport.connect.assert_awaited_once_with(IDENTITY)
    transport.disconnect.assert_awaited_once()
    unsubscribe.assert_called_once()


# --- LOCAL ACTIONS ----
@pytest.mark.asyncio
async def test_legal_placement_is_sent(service: MatchService, transport: Mock) -> None:
    assert await service.place_tile(36, 35, 2) is True

    assert service.session is not None
    assert service.session.phase == Phase.MEEPLE_DECISION
    transport.place_tile.assert_awaited_once_with({"position": {"x": 0, "y": -1}, "rotation": 2})


@pytest.mark.asyncio
async def test_illegal_placement_is_not_sent(service: MatchService, transport: Mock) -> None:
    before = service.session

    assert await service.place_tile(36, 35, 0) is False

    assert service.session is before
    transport.place_tile.assert_not_awaited()


@pytest.mark.asyncio
async def test_meeple_is_sent_with_its_slot(service: MatchService, transport: Mock) -> None:
    await service.place_tile(36, 35, 2)

    assert await service.place_meeple(FeatureClass.FIELD) is True

    # D: city, field, field, road
    transport.place_meeple.assert_awaited_once_with({"featureId": 1})
    assert service.session is not None
    assert service.session.phase == Phase.OPPONENT_TURN


@pytest.mark.asyncio
async def test_refused_meeple_is_not_sent(service: MatchService, transport: Mock) -> None:
    await service.place_tile(36, 35, 2)
    assert await service.place_meeple(FeatureClass.MONASTERY) is False
    transport.place_meeple.assert_not_awaited()


@pytest.mark.asyncio
async def test_skip_meeple_is_sent_as_no_feature(service: MatchService, transport: Mock) -> None:
    await service.place_tile(36, 35, 2)

    assert await service.skip_meeple() is True

    transport.place_meeple.assert_awaited_once_with({"featureId": -1})
    assert service.session is not None
    assert service.session.phase == Phase.OPPONENT_TURN


@pytest.mark.asyncio
async def test_skip_meeple_out_of_turn_is_not_sent(service: MatchService, transport: Mock) -> None:
    assert await service.skip_meeple() is False
    transport.place_meeple.assert_not_awaited()


@pytest.mark.asyncio
async def test_actions_need_a_game(transport: Mock) -> None:
    service = MatchService(transport, IDENTITY)
    with pytest.raises(GameStateError):
        await service.place_tile(36, 35, 2)


# --- SERVER MESSAGES ----
def test_game_state_replaces_the_session(service: MatchService, session_with_tile: GameSession) -> None:
    remote = replace(session_with_tile.confirm_placement(36, 35, 2).skip_meeple(), current_tile="X")
    snapshot = to_wire_game_state(remote).to_wire()

    service.handle_message(frame("GAME_STATE", {"gameState": snapshot}))

    assert service.session is not None
    assert service.session.board.placed_count == 2
    assert service.session.phase == Phase.OPPONENT_TURN
    assert service.session.current_tile == "X"


def test_turn_start(service: MatchService) -> None:
    service.handle_message(frame("TURN_START", {"currentPlayer": "1", "currentTile": {"id": 23}}))
    assert service.session is not None
    assert service.session.active_player_id == "1"
    assert service.session.current_tile == "X"
    assert service.session.phase == Phase.OPPONENT_TURN

    service.handle_message(frame("TURN_START", {"currentPlayer": "0", "currentTile": {"id": 0}}))
    assert service.session.phase == Phase.PLAYER_TURN
    assert service.session.current_tile == "A"


def test_turn_start_with_an_unknown_tile_is_ignored(service: MatchService) -> None:
    before = service.session
    service.handle_message(frame("TURN_START", {"currentPlayer": "1", "currentTile": {"id": 77}}))
    assert service.session is before


def test_turn_start_keeps_the_server_placements(service: MatchService) -> None:
    service.handle_message(
        frame(
            "TURN_START",
            {
                "currentPlayer": "0",
                "currentTile": {"id": 3},
                "validPlacements": [{"x": 0, "y": -1}, {"x": 1, "y": 0}],
            },
        )
    )
    assert service.valid_placements == [Position(36, 35), Position(37, 36)]

    service.handle_message(frame("TURN_END", {"nextPlayer": "1"}))
    assert service.valid_placements == []


def test_turn_end_hands_over_to_the_next_player(service: MatchService) -> None:
    service.handle_message(frame("TURN_END", {"nextPlayer": 1}))

    assert service.session is not None
    assert service.session.active_player_id == "1"
    assert service.session.phase == Phase.OPPONENT_TURN
    assert service.session.current_tile is None


def test_rooms_list(service: MatchService) -> None:
    service.handle_message(frame("LIST_ROOMS", [{"id": "r1", "name": "Friday game"}]))
    assert [room.name for room in service.rooms] == ["Friday game"]


def test_room_lifecycle(service: MatchService) -> None:
    alice = {"id": "0", "name": "Alice"}
    bob = {"id": "1", "name": "Bob"}

    service.handle_message(frame("ROOM_JOINED", {"roomId": 7, "players": [alice]}))
    assert service.room_id == "7"
    assert service.room_players == [alice]
    assert not service.game_started

    service.handle_message(frame("ROOM_STATE", {"players": [alice, bob]}))
    assert service.room_players == [alice, bob]
    assert service.room_id == "7"

    service.handle_message(frame("GAME_STARTED", {"players": [alice, bob]}))
    assert service.game_started
    assert service.room_players == [alice, bob]


def test_game_end(service: MatchService) -> None:
    service.handle_message(frame("GAME_END", {"winner": "1", "scores": {"0": 10, "1": 25}}))

    assert service.session is not None
    assert service.session.is_over
    assert service.session.winner is not None
    assert service.session.winner.id == "1"


def test_server_errors_are_kept(service: MatchService) -> None:
    service.handle_message(frame("ERROR", {"message": "Not your turn", "code": "TURN"}))
    assert service.last_error == "Not your turn"

    service.handle_message(frame("TILE_PLACED", {"valid": False}))
    assert service.last_error == "Server rejected the tile placement"


def test_malformed_message_is_reported_not_raised(service: MatchService) -> None:
    before = service.session
    service.handle_message(frame("TURN_END", {"unexpected": True}))
    assert service.session is before
    assert service.last_error is not None


def test_unrecognized_message_is_ignored(service: MatchService) -> None:
    before = service.session
    service.handle_message(frame("CHAT", {"text": "gg"}))
    service.handle_message(frame("PONG", {}))
    assert service.session is before
    assert service.last_error is None
