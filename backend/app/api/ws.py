"""WebSocket endpoint for live delivery of social events."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, TypeVar

from fastapi import APIRouter, WebSocket, status
from fastapi.websockets import WebSocketDisconnect, WebSocketState

from newsflash.errors import AuthenticationError
from newsflash.realtime import LiveConnection, LiveDeliveryChannel

from app.config import get_settings
from app.services import NewsflashServices

router = APIRouter(tags=["ws"])

settings = get_settings()

logger = logging.getLogger(__name__)

T = TypeVar("T")

POST_ACTIONS = frozenset({"newsflash:join", "newsflash:leave", "typing:start", "typing:stop"})


async def iter_keepalive_messages(
    websocket: WebSocket,
    receiver: Callable[[], Awaitable[T]],
    *,
    send_ping: Callable[[], bool],
    timeout_seconds: float | int | None,
    ping_interval_seconds: float | int | None,
) -> AsyncIterator[T]:
    """Yield messages from *receiver* while sending keepalive pings when idle."""

    timeout = float(timeout_seconds) if timeout_seconds else 0.0
    interval = float(ping_interval_seconds) if ping_interval_seconds else 0.0
    last_activity = time.monotonic()
    last_ping_sent: float | None = None

    while True:
        try:
            if timeout > 0:
                message = await asyncio.wait_for(receiver(), timeout=timeout)
            else:
                message = await receiver()
        except asyncio.TimeoutError:
            if websocket.application_state != WebSocketState.CONNECTED:
                break

            now = time.monotonic()
            should_ping = False
            if interval <= 0:
                should_ping = True
            else:
                if now - last_activity >= interval and (
                    last_ping_sent is None or now - last_ping_sent >= interval
                ):
                    should_ping = True

            if should_ping:
                if not send_ping():
                    break
                last_ping_sent = now
            continue
        except asyncio.CancelledError:  # pragma: no cover - cooperative cancellation
            raise
        except (RuntimeError, WebSocketDisconnect):
            break
        else:
            last_activity = time.monotonic()
            last_ping_sent = None
            yield message


def _extract_token(websocket: WebSocket) -> str | None:
    token = websocket.query_params.get("token")
    if not token:
        auth_header = websocket.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token = auth_header.removeprefix("Bearer ").strip()
    return token or None


def _parse_post_id(payload: dict[str, Any]) -> int | None:
    value = payload.get("newsflash_id")
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _handle_client_frame(
    channel: LiveDeliveryChannel, connection: LiveConnection, payload: dict[str, Any]
) -> None:
    message_type = payload.get("type")
    if message_type == "ping":
        connection.send("pong")
        return
    if message_type == "pong":
        return
    if message_type not in POST_ACTIONS:
        connection.send("error", {"detail": f"Unsupported message type: {message_type!r}"})
        return

    post_id = _parse_post_id(payload)
    if post_id is None:
        connection.send("error", {"detail": "newsflash_id must be an integer"})
        return

    if message_type == "newsflash:join":
        channel.join_post(connection, post_id)
    elif message_type == "newsflash:leave":
        channel.leave_post(connection, post_id)
    else:
        channel.relay_typing(connection, post_id, is_typing=message_type == "typing:start")


@router.websocket("/ws")
async def websocket_live(websocket: WebSocket) -> None:
    """Authenticate the caller and stream their live events until disconnect."""

    services: NewsflashServices = websocket.app.state.services
    channel = services.channel

    try:
        connection = channel.authenticate(websocket, _extract_token(websocket))
    except AuthenticationError as exc:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(exc))
        return

    await websocket.accept()
    try:
        await channel.open(connection)
        async for raw_message in iter_keepalive_messages(
            websocket,
            websocket.receive_text,
            send_ping=lambda: connection.send("ping"),
            timeout_seconds=settings.websocket_keepalive_timeout_seconds,
            ping_interval_seconds=settings.websocket_keepalive_ping_interval_seconds,
        ):
            if not raw_message:
                continue
            if raw_message.strip().lower() == "ping":
                connection.send("pong")
                continue
            try:
                payload = json.loads(raw_message)
            except json.JSONDecodeError:
                connection.send("error", {"detail": "Invalid payload"})
                continue
            if not isinstance(payload, dict):
                connection.send("error", {"detail": "Invalid payload"})
                continue
            _handle_client_frame(channel, connection, payload)
    finally:
        await channel.close(connection)
