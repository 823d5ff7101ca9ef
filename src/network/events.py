"""Typed publish / subscribe registry used by the transport to reach its listeners."""

import logging
from enum import Enum, auto
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]
Unsubscribe = Callable[[], None]


class TransportEvent(Enum):
    # payload: ConnectionState
    STATE_CHANGED = auto()
    # payload: Envelope
    MESSAGE = auto()
    # payload: TransportError
    ERROR = auto()


class EventBus:
    """
    Listeners are called synchronously, in subscription order.

    A listener that raises is logged and skipped. The others still get the event.
    """

    def __init__(self) -> None:
        self._listeners: dict[TransportEvent, list[Listener]] = {event: [] for event in TransportEvent}

    def subscribe(self, event: TransportEvent, listener: Listener) -> Unsubscribe:
        """Returns a callable that removes this subscription (calling it twice is harmless)."""
        self._listeners[event].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[event]:
                self._listeners[event].remove(listener)

        return unsubscribe

    def publish(self, event: TransportEvent, payload: Any) -> None:
        # copy: a listener may unsubscribe while we iterate
        for listener in list(self._listeners[event]):
            try:
                listener(payload)
            except Exception:
                logger.exception("Listener %r failed on %s", listener, event.name)

    def listener_count(self, event: TransportEvent) -> int:
        return len(self._listeners[event])

    def clear(self) -> None:
        for listeners in self._listeners.values():
            listeners.clear()
