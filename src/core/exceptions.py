"""
Custom exceptions.

Gameplay rule violations are NOT exceptions: the engines answer with booleans / empty results and the session
returns itself unchanged, so the caller can give immediate feedback.
Exceptions are used for:
* invalid input when constructing domain objects (programming / data errors)
* the network layer. Those are handed to listeners on the transport's error channel instead of being raised into the caller.
"""


class CarcassonneError(Exception):
    """Base class for all errors in this project."""


class GameStateError(CarcassonneError):
    """Cannot build a game / board from the data supplied."""


# --- NETWORK ---
class TransportError(CarcassonneError):
    """Something went wrong below the game logic: framing, socket, reconnects."""


class ProtocolParseError(TransportError):
    """A frame (or a message inside it) could not be interpreted. Only that frame is skipped."""


class BufferOverflowError(TransportError):
    """The frame buffer grew past its limit without producing a complete object. Buffer is reset."""


class TransportConnectionError(TransportError):
    """The socket could not be opened or was closed abnormally. Triggers the reconnect sequence."""


class ReconnectExhaustedError(TransportError):
    """Gave up reconnecting. No further automatic recovery."""

    code = "MAX_RECONNECT_ATTEMPTS"
