"""
Splitting a character stream into JSON objects
----

The socket can deliver half an object, or several objects glued together, in one chunk.
The parser keeps whatever has not been consumed yet and scans it for balanced braces, ignoring the ones inside strings.

Key idea: the scan never has to re-parse from the start. The scan state (string / escape / depth) of the consumed prefix is always
"outside of everything", so scanning restarts at the beginning of the kept tail.
"""

import json
import logging
from typing import Any, Callable, Optional

from src.core.exceptions import BufferOverflowError, ProtocolParseError, TransportError

logger = logging.getLogger(__name__)

MAX_BUFFER_SIZE = 10_000

Frame = dict[str, Any]
ErrorCallback = Callable[[TransportError], None]


class FrameParser:
    def __init__(
        self,
        max_buffer_size: int = MAX_BUFFER_SIZE,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self.max_buffer_size = max_buffer_size
        self._on_error = on_error
        self._buffer = ""

    @property
    def buffered(self) -> str:
        """The incomplete tail waiting for more input"""
        return self._buffer

    def reset(self) -> None:
        self._buffer = ""

    def feed(self, chunk: str) -> list[Frame]:
        """
        Add a chunk and return every complete object found, in stream order.
        ----

        * a balanced span that is not valid JSON (or not an object) is skipped: ProtocolParseError is reported, scanning goes on
        * if what is left is longer than `max_buffer_size`, it is thrown away: BufferOverflowError is reported
        """
        self._buffer += chunk
        frames: list[Frame] = []

        in_string = False
        escape_next = False
        depth = 0
        start = 0
        consumed = 0

        for index, char in enumerate(self._buffer):
            if escape_next:
                escape_next = False
                continue
            if in_string:
                if char == "\\":
                    escape_next = True
                elif char == '"':
                    in_string = False
                continue

            if char == '"':
                in_string = True
            elif char == "{":
                if depth == 0:
                    start = index
                depth += 1
            elif char == "}":
                if depth == 0:
                    # stray closing brace: nothing to match it with
                    consumed = index + 1
                    continue
                depth -= 1
                if depth == 0:
                    frame = self._decode(self._buffer[start : index + 1])
                    if frame is not None:
                        frames.append(frame)
                    consumed = index + 1
            elif depth == 0 and not char.isspace():
                # garbage between objects
                consumed = index + 1

        self._buffer = self._buffer[consumed:]
        if len(self._buffer) > self.max_buffer_size:
            size = len(self._buffer)
            self._buffer = ""
            self._report(
                BufferOverflowError(f"Discarded {size} buffered characters without a complete frame")
            )
        return frames

    def _decode(self, span: str) -> Optional[Frame]:
        try:
            value = json.loads(span)
        except json.JSONDecodeError as error:
            self._report(ProtocolParseError(f"Malformed frame skipped: {error}"))
            return None
        if not isinstance(value, dict):
            self._report(ProtocolParseError(f"Frame is not an object: {span[:80]!r}"))
            return None
        return value

    def _report(self, error: TransportError) -> None:
        logger.warning("%s", error)
        if self._on_error is not None:
            self._on_error(error)
