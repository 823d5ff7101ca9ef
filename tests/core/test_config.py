"""Unit tests for src/core/config.py"""

from unittest.mock import patch

from src.core.config import DEFAULT_WS_URL, TransportConfig


def test_defaults() -> None:
    config = TransportConfig()
    assert config.url == DEFAULT_WS_URL
    assert config.reconnect_interval == 1.0
    assert config.max_reconnect_attempts == 3
    assert config.heartbeat_interval == 30.0


def test_from_env() -> None:
    environment = {
        "CARCASSONNE_WS_URL": "ws://game.example:9000/ws",
        "CARCASSONNE_RECONNECT_INTERVAL": "0.5",
        "CARCASSONNE_MAX_RECONNECT_ATTEMPTS": "5",
        "CARCASSONNE_HEARTBEAT_INTERVAL": "10",
    }
    with patch.dict("os.environ", environment, clear=True):
        config = TransportConfig.from_env()

    assert config.url == "ws://game.example:9000/ws"
    assert config.reconnect_interval == 0.5
    assert config.max_reconnect_attempts == 5
    assert config.heartbeat_interval == 10.0


def test_from_env_falls_back_to_defaults() -> None:
    with patch.dict("os.environ", {}, clear=True):
        assert TransportConfig.from_env() == TransportConfig()


def test_reconnect_delays_double() -> None:
    config = TransportConfig(reconnect_interval=1.0)
    assert [config.reconnect_delay(attempt) for attempt in range(3)] == [1.0, 2.0, 4.0]
