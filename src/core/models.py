"""
Boundary layer data model(s).

The message envelope is shared by the transport (which only looks at `type`) and the protocol adapter
(which interprets `data`). Keeping it here decouples the two layers from each other.
"""

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Self

_ID_ALPHABET = string.ascii_lowercase + string.digits


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_message_id() -> str:
    """msg-<epoch milliseconds>-<9 random base36 characters>"""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"msg-{int(time.time() * 1000)}-{suffix}"


@dataclass(frozen=True)
class Envelope:
    """Transport-safe representation of one message: `{type, data, timestamp, messageId}`.

    NOTE `data` is normally an object, but the server has been seen sending a bare list (rooms list), so it is left untyped here.
    The protocol adapter decides what it means.
    """

    type: str
    data: Any = field(default_factory=dict)
    timestamp: str = field(default_factory=utc_timestamp)
    message_id: str = field(default_factory=new_message_id)

    @classmethod
    def create(cls, type: str, data: Optional[dict[str, Any]] = None) -> Self:
        """Outbound messages get their timestamp and id exactly once, here."""
        return cls(type=str(type), data=dict(data or {}))

    @classmethod
    def from_frame(cls, frame: dict[str, Any]) -> Self:
        """Inbound frames: only `type` is needed for routing, the other fields may be missing."""
        data = frame.get("data")
        return cls(
            type=str(frame.get("type", "")),
            data={} if data is None else data,
            timestamp=str(frame.get("timestamp") or utc_timestamp()),
            message_id=str(frame.get("messageId") or ""),
        )

    def to_frame(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "data": self.data,
            "timestamp": self.timestamp,
            "messageId": self.message_id,
        }
