"""
Type definitions used across layers
"""

from enum import StrEnum


class Phase(StrEnum):
    PLAYER_TURN = "player turn"
    MEEPLE_DECISION = "meeple decision"
    OPPONENT_TURN = "opponent turn"
    GAME_OVER = "game over"


class Border(StrEnum):
    """Terrain on one edge of a tile. Values are the letters used in the tile table."""

    CITY = "C"
    ROAD = "R"
    FIELD = "F"


class FeatureClass(StrEnum):
    """What a meeple is attached to."""

    ROAD = "road"
    CITY = "city"
    FIELD = "field"
    MONASTERY = "monastery"


# --- Only Road / City / Field can be checked against a border. Monastery is a property of the tile itself.
BORDER_FEATURES: dict[FeatureClass, Border] = {
    FeatureClass.ROAD: Border.ROAD,
    FeatureClass.CITY: Border.CITY,
    FeatureClass.FIELD: Border.FIELD,
}


class ConnectionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    FAILED = "failed"


class MessageType(StrEnum):
    """Values of the `type` field of the message envelope."""

    # client -> server
    CONNECT = "CONNECT"
    LIST_ROOMS = "LIST_ROOMS"
    CREATE_ROOM = "CREATE_ROOM"
    JOIN_ROOM = "JOIN_ROOM"
    LEAVE_ROOM = "LEAVE_ROOM"
    ADD_BOT = "ADD_BOT"
    PLACE_TILE = "PLACE_TILE"
    PLACE_MEEPLE = "PLACE_MEEPLE"
    PING = "PING"

    # server -> client
    CONNECTED = "CONNECTED"
    ROOMS_LIST = "ROOMS_LIST"
    ROOM_JOINED = "ROOM_JOINED"
    ROOM_UPDATE = "ROOM_UPDATE"
    GAME_START = "GAME_START"  # also the request to start, client -> server
    TURN_START = "TURN_START"
    TILE_PLACED = "TILE_PLACED"
    MEEPLE_PLACED = "MEEPLE_PLACED"
    TURN_END = "TURN_END"
    GAME_END = "GAME_END"
    GAME_STATE = "GAME_STATE"
    ERROR = "ERROR"
    PONG = "PONG"

    # --- NOTE the server sends these names for some of the messages above
    ROOM_STATE = "ROOM_STATE"
    GAME_STARTED = "GAME_STARTED"
