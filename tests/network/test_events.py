"""Unit tests for src/network/events.py"""

from unittest.mock import Mock

from src.network.events import EventBus, TransportEvent


def test_publish_reaches_subscribers_in_order() -> None:
    bus = EventBus()
    calls: list[str] = []
    bus.subscribe(TransportEvent.MESSAGE, lambda payload: calls.append(f"first {payload}"))
    bus.subscribe(TransportEvent.MESSAGE, lambda payload: calls.append(f"second {payload}"))

    bus.publish(TransportEvent.MESSAGE, "hello")

    assert calls == ["first hello", "second hello"]


def test_events_are_kept_apart() -> None:
    bus = EventBus()
    listener = Mock()
    bus.subscribe(TransportEvent.ERROR, listener)

    bus.publish(TransportEvent.MESSAGE, "hello")

    listener.assert_not_called()


def test_unsubscribe() -> None:
    bus = EventBus()
    listener = Mock()
    unsubscribe = bus.subscribe(TransportEvent.STATE_CHANGED, listener)

    unsubscribe()
    unsubscribe()
    bus.publish(TransportEvent.STATE_CHANGED, "connected")

    listener.assert_not_called()
    assert bus.listener_count(TransportEvent.STATE_CHANGED) == 0


def test_failing_listener_does_not_stop_the_others() -> None:
    bus = EventBus()
    broken = Mock(side_effect=ValueError("boom"))
    healthy = Mock()
    bus.subscribe(TransportEvent.MESSAGE, broken)
    bus.subscribe(TransportEvent.MESSAGE, healthy)

    bus.publish(TransportEvent.MESSAGE, 42)

    healthy.assert_called_once_with(42)


def test_clear() -> None:
    bus = EventBus()
    bus.subscribe(TransportEvent.MESSAGE, Mock())
    bus.clear()
    assert bus.listener_count(TransportEvent.MESSAGE) == 0
