"""Live connection handle with its lifecycle and ordered outbound queue."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from enum import Enum
from typing import Any

from fastapi.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from ..errors import ConnectionStateError

logger = logging.getLogger(__name__)


async def safe_send_json(websocket: WebSocket, data: dict[str, Any]) -> bool:
    """Safely send JSON data through websocket, handling disconnections gracefully.

    Returns True if message was sent successfully, False otherwise.
    """
    if websocket.application_state != WebSocketState.CONNECTED:
        return False
    try:
        await websocket.send_json(data)
        return True
    except (WebSocketDisconnect, RuntimeError) as e:
        logger.debug("Failed to send websocket message: %s", e)
        return False


class ConnectionState(str, Enum):
    """Lifecycle of a live connection."""

    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    OPEN = "open"
    CLOSED = "closed"


_TRANSITIONS: dict[ConnectionState, frozenset[ConnectionState]] = {
    ConnectionState.CONNECTING: frozenset({ConnectionState.AUTHENTICATED, ConnectionState.CLOSED}),
    ConnectionState.AUTHENTICATED: frozenset({ConnectionState.OPEN, ConnectionState.CLOSED}),
    ConnectionState.OPEN: frozenset({ConnectionState.CLOSED}),
    ConnectionState.CLOSED: frozenset(),
}


class LiveConnection:
    """One authenticated websocket session.

    Outbound events are queued and written by a single writer task, so a
    connection observes events in the order they were enqueued. When the
    queue is full the event is dropped: live delivery is best effort.
    """

    def __init__(self, websocket: WebSocket, *, queue_size: int = 256) -> None:
        self.websocket = websocket
        self.id = uuid.uuid4().hex
        self.account_id: int | None = None
        self.rooms: set[str] = set()
        self._state = ConnectionState.CONNECTING
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=max(queue_size, 1))
        self._writer: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        return f"<LiveConnection {self.id} account={self.account_id} state={self._state.value}>"

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN

    def _transition(self, target: ConnectionState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise ConnectionStateError(self._state.value, target.value)
        self._state = target

    def mark_authenticated(self, account_id: int) -> None:
        self._transition(ConnectionState.AUTHENTICATED)
        self.account_id = account_id

    def reject(self) -> None:
        """Close a connection that never reached the open state."""

        self._transition(ConnectionState.CLOSED)

    def mark_open(self) -> None:
        self._transition(ConnectionState.OPEN)
        self._writer = asyncio.create_task(self._drain(), name=f"live-writer-{self.id}")

    def send(self, event: str, data: dict[str, Any] | None = None) -> bool:
        """Queue an event frame; return False when it was not accepted."""

        if self._state is not ConnectionState.OPEN:
            return False
        if self._writer is not None and self._writer.done():
            return False
        frame: dict[str, Any] = {"type": event}
        if data is not None:
            frame["data"] = data
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            logger.warning(
                "Dropping %s event for account %s: send queue is full", event, self.account_id
            )
            return False
        return True

    async def drained(self) -> None:
        """Wait until every queued frame has been handed to the socket."""

        await self._queue.join()

    async def close(self) -> None:
        if self._state is ConnectionState.CLOSED:
            return
        self._transition(ConnectionState.CLOSED)
        writer, self._writer = self._writer, None
        if writer is not None and writer is not asyncio.current_task():
            writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await writer

    async def _drain(self) -> None:
        while True:
            frame = await self._queue.get()
            try:
                delivered = await safe_send_json(self.websocket, frame)
            finally:
                self._queue.task_done()
            if not delivered:
                logger.debug("Live connection %s stopped accepting frames", self.id)
                self._discard_pending()
                return

    def _discard_pending(self) -> None:
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            self._queue.task_done()
