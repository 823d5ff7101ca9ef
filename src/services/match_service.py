"""Orchestration between the local player, the game session and the server (and the reverse direction)."""

import logging
from typing import Any, Callable, Optional

from src.core.config import GameConfig
from src.core.exceptions import GameStateError, ProtocolParseError
from src.core.models import Envelope
from src.core.shared_types import FeatureClass
from src.network.transport import Identity, TransportClient
from src.protocol.adapter import (
    code_to_tile,
    decode_inbound,
    from_wire_game_state,
    place_meeple_payload,
    place_tile_payload,
    position_from_wire,
)
from src.protocol.wire import (
    ErrorMessage,
    GameEndMessage,
    GameStartMessage,
    GameStateMessage,
    MeeplePlacedMessage,
    RoomJoinedMessage,
    RoomsListMessage,
    RoomUpdateMessage,
    TilePlacedMessage,
    TurnEndMessage,
    TurnStartMessage,
    Unrecognized,
    WireRoom,
)
from src.tiles.position import Position
from src.tiles.session import GameSession

logger = logging.getLogger(__name__)

# featureId telling the server the player keeps their meeple
NO_MEEPLE = -1


class MatchService:
    """
    Orchestration of layers for one networked match.

    Local actions are validated against the session first: only moves the rules allow are sent to the server.
    The server stays authoritative, its snapshots (GAME_STATE) replace the local session.
    """

    def __init__(
        self,
        transport: TransportClient,
        identity: Identity,
        config: Optional[GameConfig] = None,
    ) -> None:
        self.transport = transport
        self.identity = identity
        self.config = config or GameConfig()
        self.session: Optional[GameSession] = None
        self.rooms: list[WireRoom] = []
        self.room_id: Optional[str] = None
        self.room_players: list[Any] = []
        self.game_started = False
        # cells the server allows for the current tile, as sent with TURN_START
        self.valid_placements: list[Position] = []
        self.last_error: Optional[str] = None

        # Strategy for every inbound message we act upon. Anything else is only logged.
        self._handlers: dict[type, Callable[[Any], None]] = {
            RoomsListMessage: self._on_rooms_list,
            RoomJoinedMessage: self._on_room_joined,
            RoomUpdateMessage: self._on_room_update,
            GameStartMessage: self._on_game_start,
            GameStateMessage: self._on_game_state,
            TurnStartMessage: self._on_turn_start,
            TurnEndMessage: self._on_turn_end,
            TilePlacedMessage: self._on_tile_placed,
            MeeplePlacedMessage: self._on_meeple_placed,
            GameEndMessage: self._on_game_end,
            ErrorMessage: self._on_error,
            Unrecognized: self._on_unrecognized,
        }
        self._unsubscribe = transport.on_message(self.handle_message)

    # --- CONNECTION ---
    async def start(self) -> None:
        await self.transport.connect(self.identity)

    async def stop(self) -> None:
        self._unsubscribe()
        await self.transport.disconnect()

    # --- LOCAL PLAYER ACTIONS ---
    async def place_tile(self, x: int, y: int, rotation: int) -> bool:
        """Try the placement locally. Sent to the server only if the rules allow it."""
        session = self._require_session()
        after = session.confirm_placement(x, y, rotation)
        if after is session:
            return False

        self.session = after
        payload = place_tile_payload(Position(x, y), rotation, center=session.board.center)
        await self.transport.place_tile(payload)
        return True

    async def place_meeple(self, feature: FeatureClass) -> bool:
        session = self._require_session()
        position = session.last_placed
        after = session.attach_meeple(feature)
        if after is session or position is None:
            return False

        placed = after.board.tile_at(position)
        assert placed is not None and placed.meeple is not None
        self.session = after
        await self.transport.place_meeple(place_meeple_payload(placed.meeple.slot))
        return True

    async def skip_meeple(self) -> bool:
        """The server waits for the meeple decision either way: a skip is sent as featureId -1."""
        session = self._require_session()
        after = session.skip_meeple()
        if after is session:
            return False

        self.session = after
        await self.transport.place_meeple(place_meeple_payload(NO_MEEPLE))
        return True

    # --- SERVER MESSAGES ---
    def handle_message(self, envelope: Envelope) -> None:
        try:
            message = decode_inbound(envelope)
        except ProtocolParseError as error:
            logger.warning("%s", error)
            self.last_error = str(error)
            return

        handler = self._handlers.get(type(message))
        if handler is None:
            logger.debug("No action for %s", envelope.type)
            return
        handler(message)

    def _on_rooms_list(self, message: RoomsListMessage) -> None:
        self.rooms = message.data

    def _on_room_joined(self, message: RoomJoinedMessage) -> None:
        self.room_id = message.data.room_id
        self.room_players = message.data.players
        self.game_started = False
        logger.info("Joined room %s", self.room_id)

    def _on_room_update(self, message: RoomUpdateMessage) -> None:
        self.room_players = message.data.players

    def _on_game_start(self, message: GameStartMessage) -> None:
        self.game_started = True
        self.room_players = message.data.players
        logger.info("Game started with %d players", len(self.room_players))

    def _on_game_state(self, message: GameStateMessage) -> None:
        self.session = from_wire_game_state(
            message.data.game_state, self.identity.player_id, self.config
        )
        if message.data.game_state.game_started:
            self.game_started = True

    def _on_turn_start(self, message: TurnStartMessage) -> None:
        if self.session is None:
            logger.warning("Turn started before any game state was received")
            return
        current_tile = None
        if message.data.current_tile is not None:
            try:
                current_tile = code_to_tile(message.data.current_tile.id)
            except ProtocolParseError as error:
                logger.warning("%s", error)
                return
        self.session = self.session.begin_turn(message.data.current_player, current_tile)
        center = self.session.board.center
        self.valid_placements = [
            position_from_wire(position, center) for position in message.data.valid_placements
        ]

    def _on_turn_end(self, message: TurnEndMessage) -> None:
        """The next tile only comes with the next TURN_START"""
        self.valid_placements = []
        if self.session is None:
            return
        self.session = self.session.begin_turn(message.data.next_player, None)

    def _on_tile_placed(self, message: TilePlacedMessage) -> None:
        if not message.data.valid:
            self.last_error = "Server rejected the tile placement"
            logger.warning(self.last_error)

    def _on_meeple_placed(self, message: MeeplePlacedMessage) -> None:
        if not message.data.valid:
            self.last_error = "Server rejected the meeple placement"
            logger.warning(self.last_error)

    def _on_game_end(self, message: GameEndMessage) -> None:
        self.valid_placements = []
        if self.session is None:
            return
        self.session = self.session.with_scores(message.data.scores).end_game()
        logger.info("Game over, winner: %s", message.data.winner)

    def _on_error(self, message: ErrorMessage) -> None:
        self.last_error = message.data.message
        logger.warning("Server error %s: %s", message.data.code, message.data.message)

    def _on_unrecognized(self, message: Unrecognized) -> None:
        logger.warning("Unrecognized message type %r", message.type)

    # -- Internal helpers --
    def _require_session(self) -> GameSession:
        if self.session is None:
            raise GameStateError("No game in progress")
        return self.session
