"""
Connection to the game server
----

One TransportClient per match. It owns the socket, the frame parser, the outbound queue and the background tasks
(reader, heartbeat, reconnect). Everything the outside world needs to know is published on `client.events`:

* STATE_CHANGED -> ConnectionState
* MESSAGE       -> Envelope (in arrival order)
* ERROR         -> TransportError (never raised into the caller)

disconnected --connect--> connecting --open--> connected --close 1000--> disconnected
connected --close != 1000--> reconnecting --open--> connected
reconnecting --attempts exhausted--> failed
"""

import asyncio
import json
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from src.core.config import TransportConfig
from src.core.exceptions import (
    ReconnectExhaustedError,
    TransportConnectionError,
    TransportError,
)
from src.core.models import Envelope
from src.core.shared_types import ConnectionState, MessageType
from src.network.events import EventBus, TransportEvent, Unsubscribe
from src.network.framing import FrameParser

logger = logging.getLogger(__name__)

CLOSE_NORMAL = 1000
# no close frame received at all
CLOSE_ABNORMAL = 1006

Connector = Callable[[str], Awaitable[ClientConnection]]
Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class Identity:
    """Who we are towards the server. Sent with the CONNECT message after every (re)connect."""

    player_id: str
    name: str
    color: str = "blue"

    def to_wire(self) -> dict[str, str]:
        return {"playerId": self.player_id, "name": self.name, "color": self.color}


class TransportClient:
    def __init__(
        self,
        config: Optional[TransportConfig] = None,
        connector: Optional[Connector] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """
        `connector` opens the socket (defaults to websockets' `connect`).
        `sleep` is only used to wait between reconnect attempts.
        """
        self.config = config or TransportConfig()
        self.events = EventBus()
        self.state = ConnectionState.DISCONNECTED
        self.attempts = 0
        self.last_pong_at: Optional[float] = None
        self.queue: deque[Envelope] = deque()

        self._open_socket: Connector = connector or connect
        self._sleep = sleep
        self._parser = FrameParser(self.config.max_buffer_size, on_error=self._emit_error)
        self._socket: Optional[ClientConnection] = None
        self._identity: Optional[Identity] = None
        # set by disconnect(): a close from then on is never an accident
        self._closing = False

        self._reader_task: Optional[asyncio.Task] = None
        self._heartbeat_task: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None

    # --- LISTENERS ---
    def on_state_change(self, listener: Callable[[ConnectionState], None]) -> Unsubscribe:
        return self.events.subscribe(TransportEvent.STATE_CHANGED, listener)

    def on_message(self, listener: Callable[[Envelope], None]) -> Unsubscribe:
        return self.events.subscribe(TransportEvent.MESSAGE, listener)

    def on_error(self, listener: Callable[[TransportError], None]) -> Unsubscribe:
        return self.events.subscribe(TransportEvent.ERROR, listener)

    @property
    def is_connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED

    # --- LIFECYCLE ---
    async def connect(self, identity: Identity) -> None:
        """Returns once the first attempt is over (connected, or a reconnect has been scheduled)."""
        if self.state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            return
        self._identity = identity
        self._closing = False
        self.attempts = 0
        self._set_state(ConnectionState.CONNECTING)
        await self._open()

    async def disconnect(self) -> None:
        """Clean shutdown: cancels every background task, closes with 1000, forgets the queue. Never reconnects."""
        self._closing = True
        current = asyncio.current_task()
        tasks = [
            task
            for task in (self._reader_task, self._heartbeat_task, self._reconnect_task)
            if task is not None and task is not current and not task.done()
        ]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._reader_task = self._heartbeat_task = self._reconnect_task = None

        socket, self._socket = self._socket, None
        if socket is not None:
            try:
                await socket.close(code=CLOSE_NORMAL, reason="client disconnect")
            except WebSocketException as error:
                logger.debug("Error while closing the socket: %s", error)

        self.queue.clear()
        self._parser.reset()
        self.attempts = 0
        self._set_state(ConnectionState.DISCONNECTED)

    # --- SENDING ---
    async def send(self, type: str, data: Optional[dict[str, Any]] = None) -> bool:
        """
        Transmit now if connected, else keep it for later.
        ----

        Returns True if the message went out, False if it was queued.
        Queued messages go out in the order they were sent, right after the next successful (re)connect.
        """
        envelope = Envelope.create(type, data)
        if self.is_connected and await self._transmit(envelope):
            return True
        self._enqueue(envelope)
        return False

    async def list_rooms(self) -> bool:
        return await self.send(MessageType.LIST_ROOMS)

    async def create_room(self, room_name: str, max_players: int = 4) -> bool:
        return await self.send(MessageType.CREATE_ROOM, {"roomName": room_name, "maxPlayers": max_players})

    async def join_room(self, room_id: str) -> bool:
        return await self.send(MessageType.JOIN_ROOM, {"roomId": room_id})

    async def leave_room(self, room_id: str) -> bool:
        return await self.send(MessageType.LEAVE_ROOM, {"roomId": room_id})

    async def add_bot(self, bot_name: str, difficulty: str = "medium") -> bool:
        return await self.send(MessageType.ADD_BOT, {"botName": bot_name, "difficulty": difficulty})

    async def start_game(self) -> bool:
        """The server takes the same type for the request as for its announcement"""
        return await self.send(MessageType.GAME_START)

    async def place_tile(self, payload: dict[str, Any]) -> bool:
        """`payload` comes from the protocol adapter (position in wire coordinates + rotation)"""
        return await self.send(MessageType.PLACE_TILE, payload)

    async def place_meeple(self, payload: dict[str, Any]) -> bool:
        return await self.send(MessageType.PLACE_MEEPLE, payload)

    # -- PRIVATE HELPERS ---
    def _set_state(self, state: ConnectionState) -> None:
        if state == self.state:
            return
        logger.debug("Connection state %s -> %s", self.state, state)
        self.state = state
        self.events.publish(TransportEvent.STATE_CHANGED, state)

    def _emit_error(self, error: TransportError) -> None:
        self.events.publish(TransportEvent.ERROR, error)

    def _enqueue(self, envelope: Envelope) -> None:
        if len(self.queue) >= self.config.max_queue_size:
            dropped = self.queue.popleft()
            logger.warning("Outbound queue full, dropped oldest %s message", dropped.type)
        self.queue.append(envelope)

    async def _transmit(self, envelope: Envelope) -> bool:
        if self._socket is None:
            return False
        try:
            await self._socket.send(json.dumps(envelope.to_frame()))
        except ConnectionClosed:
            # the reader sees the same close and takes care of reconnecting
            return False
        logger.debug("-> %s", envelope.type)
        return True

    async def _flush_queue(self) -> None:
        while self.queue and self.is_connected:
            envelope = self.queue.popleft()
            if not await self._transmit(envelope):
                self.queue.appendleft(envelope)
                return

    async def _open(self) -> None:
        try:
            self._socket = await self._open_socket(self.config.url)
        except (OSError, WebSocketException, asyncio.TimeoutError) as error:
            self._connection_lost(TransportConnectionError(f"Cannot reach {self.config.url}: {error}"))
            return

        logger.info("Connected to %s", self.config.url)
        self.attempts = 0
        self._parser.reset()
        self._set_state(ConnectionState.CONNECTED)
        if self._identity is not None:
            await self._transmit(Envelope.create(MessageType.CONNECT, self._identity.to_wire()))
        self._heartbeat_task = asyncio.create_task(self._heartbeat())
        await self._flush_queue()
        self._reader_task = asyncio.create_task(self._read(self._socket))

    async def _read(self, socket: ClientConnection) -> None:
        while True:
            try:
                message = await socket.recv()
            except ConnectionClosed as closed:
                code = closed.rcvd.code if closed.rcvd is not None else CLOSE_ABNORMAL
                self._socket_closed(code)
                return

            text = message.decode("utf-8", errors="replace") if isinstance(message, bytes) else message
            for frame in self._parser.feed(text):
                self._dispatch(Envelope.from_frame(frame))

    def _dispatch(self, envelope: Envelope) -> None:
        logger.debug("<- %s", envelope.type)
        if envelope.type == MessageType.PONG:
            self.last_pong_at = time.monotonic()
        self.events.publish(TransportEvent.MESSAGE, envelope)

    async def _heartbeat(self) -> None:
        while self.is_connected:
            await asyncio.sleep(self.config.heartbeat_interval)
            if self.is_connected:
                await self.send(MessageType.PING)

    def _cancel_heartbeat(self) -> None:
        if self._heartbeat_task is not None and self._heartbeat_task is not asyncio.current_task():
            self._heartbeat_task.cancel()
        self._heartbeat_task = None

    def _socket_closed(self, code: int) -> None:
        self._socket = None
        if self._closing:
            return
        if code == CLOSE_NORMAL:
            logger.info("Server closed the connection")
            self._cancel_heartbeat()
            self._set_state(ConnectionState.DISCONNECTED)
            return
        self._connection_lost(TransportConnectionError(f"Connection closed with code {code}"))

    def _connection_lost(self, error: TransportConnectionError) -> None:
        """Schedule the next attempt: interval * 2**attempts, until max attempts is reached"""
        self._cancel_heartbeat()
        self._socket = None
        if self._closing:
            return

        logger.warning("%s", error)
        self._emit_error(error)

        if self.attempts >= self.config.max_reconnect_attempts:
            logger.error("Giving up after %d reconnect attempts", self.attempts)
            self._set_state(ConnectionState.FAILED)
            self._emit_error(
                ReconnectExhaustedError(f"Could not reconnect after {self.attempts} attempts")
            )
            return

        delay = self.config.reconnect_delay(self.attempts)
        self.attempts += 1
        self._set_state(ConnectionState.RECONNECTING)
        logger.info("Reconnecting in %.1fs (attempt %d)", delay, self.attempts)
        self._reconnect_task = asyncio.create_task(self._reconnect(delay))

    async def _reconnect(self, delay: float) -> None:
        await self._sleep(delay)
        if self.state == ConnectionState.RECONNECTING and not self._closing:
            await self._open()
