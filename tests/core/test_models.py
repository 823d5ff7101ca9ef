"""Unit tests for src/core/models.py"""

import re
from datetime import datetime

from src.core.models import Envelope, new_message_id


def test_message_id_format() -> None:
    assert re.fullmatch(r"msg-\d+-[a-z0-9]{9}", new_message_id())
    assert new_message_id() != new_message_id()


def test_create_stamps_the_envelope_once() -> None:
    envelope = Envelope.create("PING")
    assert envelope.data == {}
    assert datetime.fromisoformat(envelope.timestamp).tzinfo is not None
    assert envelope.to_frame() == {
        "type": "PING",
        "data": {},
        "timestamp": envelope.timestamp,
        "messageId": envelope.message_id,
    }


def test_from_frame_tolerates_missing_fields() -> None:
    envelope = Envelope.from_frame({"type": "PONG", "data": None})
    assert envelope.type == "PONG"
    assert envelope.data == {}
    assert envelope.message_id == ""


def test_from_frame_keeps_list_data() -> None:
    envelope = Envelope.from_frame({"type": "ROOMS_LIST", "data": [{"id": "r1"}], "messageId": "m-1"})
    assert envelope.data == [{"id": "r1"}]
    assert envelope.message_id == "m-1"
