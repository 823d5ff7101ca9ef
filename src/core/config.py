"""
Settings supplied from outside the core.

Values can be overridden through environment variables (CARCASSONNE_*). Times are in seconds.
"""

import os
from dataclasses import dataclass
from typing import Self

DEFAULT_WS_URL = "ws://localhost:8080/ws"


@dataclass(frozen=True)
class TransportConfig:
    url: str = DEFAULT_WS_URL
    reconnect_interval: float = 1.0
    max_reconnect_attempts: int = 3
    heartbeat_interval: float = 30.0
    # outbound messages kept while offline; the oldest get dropped beyond this
    max_queue_size: int = 100
    # characters of unparsed input before the frame buffer is discarded
    max_buffer_size: int = 10_000

    @classmethod
    def from_env(cls) -> Self:
        defaults = cls()
        return cls(
            url=os.getenv("CARCASSONNE_WS_URL", defaults.url),
            reconnect_interval=float(
                os.getenv("CARCASSONNE_RECONNECT_INTERVAL", defaults.reconnect_interval)
            ),
            max_reconnect_attempts=int(
                os.getenv(
                    "CARCASSONNE_MAX_RECONNECT_ATTEMPTS", defaults.max_reconnect_attempts
                )
            ),
            heartbeat_interval=float(
                os.getenv("CARCASSONNE_HEARTBEAT_INTERVAL", defaults.heartbeat_interval)
            ),
        )

    def reconnect_delay(self, attempt: int) -> float:
        """Exponential backoff: base, 2*base, 4*base, ..."""
        return self.reconnect_interval * 2**attempt


@dataclass(frozen=True)
class GameConfig:
    board_size: int = 72
    meeples_per_player: int = 7
    min_players: int = 2
    max_players: int = 5
