"""Live delivery over authenticated websocket connections."""

from __future__ import annotations

import logging
from collections import defaultdict
from threading import Lock
from typing import Any, Dict, Iterable, Set

from fastapi.websockets import WebSocket

from ..errors import AuthenticationError
from ..interfaces import AccessTokenVerifier, SocialDirectory
from .connection import LiveConnection
from .presence import PresenceRegistry

logger = logging.getLogger(__name__)


def post_room(post_id: int) -> str:
    return f"newsflash:{post_id}"


class RoomRegistry:
    """Track which connections are watching which post."""

    def __init__(self) -> None:
        self._members: Dict[str, Set[LiveConnection]] = defaultdict(set)
        self._lock = Lock()

    def join(self, room: str, connection: LiveConnection) -> None:
        with self._lock:
            self._members[room].add(connection)
            connection.rooms.add(room)

    def leave(self, room: str, connection: LiveConnection) -> None:
        with self._lock:
            members = self._members.get(room)
            connection.rooms.discard(room)
            if not members:
                return
            members.discard(connection)
            if not members:
                self._members.pop(room, None)

    def leave_all(self, connection: LiveConnection) -> None:
        for room in list(connection.rooms):
            self.leave(room, connection)

    def members(self, room: str) -> list[LiveConnection]:
        with self._lock:
            return list(self._members.get(room, ()))


class LiveDeliveryChannel:
    """Deliver events to accounts that currently hold an open connection.

    Delivery is at-most-once and best effort: an account without an open
    connection at emission time simply does not receive the event.
    """

    def __init__(
        self,
        presence: PresenceRegistry[LiveConnection],
        verify_token: AccessTokenVerifier,
        directory: SocialDirectory,
        *,
        send_queue_size: int = 256,
    ) -> None:
        self._presence = presence
        self._verify_token = verify_token
        self._directory = directory
        self._rooms = RoomRegistry()
        self._send_queue_size = send_queue_size

    @property
    def presence(self) -> PresenceRegistry[LiveConnection]:
        return self._presence

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def authenticate(self, websocket: WebSocket, token: str | None) -> LiveConnection:
        """Create a connection for *websocket* and bind it to the token's account.

        Raises :class:`AuthenticationError` when the token is missing or does
        not resolve; the connection is then closed without touching presence.
        """

        connection = LiveConnection(websocket, queue_size=self._send_queue_size)
        account_id = self._verify_token(token) if token else None
        if account_id is None:
            connection.reject()
            raise AuthenticationError("Missing token" if not token else "Invalid token")
        connection.mark_authenticated(account_id)
        return connection

    async def open(self, connection: LiveConnection) -> None:
        account_id = self._require_account(connection)
        connection.mark_open()
        self._presence.connect(account_id, connection)
        logger.info("Account %s opened live connection %s", account_id, connection.id)

        friend_ids = self._directory.get_friend_ids(account_id)
        online_friends = sorted(self._presence.online_among(friend_ids))
        connection.send("session", {"accountId": account_id, "onlineFriends": online_friends})
        self.emit_to_accounts(online_friends, "friend:online", {"userId": account_id})

    async def close(self, connection: LiveConnection) -> None:
        """Release *connection*; idempotent.

        Presence is updated before the first suspension point so a close
        triggered by cancellation still leaves the registry consistent.
        """

        account_id = connection.account_id
        was_open = connection.is_open
        self._rooms.leave_all(connection)
        try:
            if was_open and account_id is not None:
                removed = self._presence.disconnect(account_id, connection)
                logger.info("Account %s closed live connection %s", account_id, connection.id)
                if removed:
                    friend_ids = self._directory.get_friend_ids(account_id)
                    self.emit_to_accounts(friend_ids, "friend:offline", {"userId": account_id})
        finally:
            await connection.close()

    # ------------------------------------------------------------------
    # Client initiated actions
    # ------------------------------------------------------------------

    def join_post(self, connection: LiveConnection, post_id: int) -> None:
        self._rooms.join(post_room(post_id), connection)

    def leave_post(self, connection: LiveConnection, post_id: int) -> None:
        self._rooms.leave(post_room(post_id), connection)

    def relay_typing(self, connection: LiveConnection, post_id: int, *, is_typing: bool) -> int:
        account_id = self._require_account(connection)
        data: dict[str, Any] = {"userId": account_id, "newsflashId": post_id}
        if is_typing:
            data["displayName"] = self._directory.get_display_name(account_id)
            event = "typing:user"
        else:
            event = "typing:user:stop"
        return self.emit_to_room(post_room(post_id), event, data, exclude={connection})

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def emit_to_account(self, account_id: int, event: str, data: dict[str, Any]) -> bool:
        connection = self._presence.lookup(account_id)
        if connection is None:
            return False
        return connection.send(event, data)

    def emit_to_accounts(
        self, account_ids: Iterable[int], event: str, data: dict[str, Any]
    ) -> int:
        delivered = 0
        for account_id in set(account_ids):
            if self.emit_to_account(account_id, event, data):
                delivered += 1
        return delivered

    def emit_to_room(
        self,
        room: str,
        event: str,
        data: dict[str, Any],
        *,
        exclude: Iterable[LiveConnection] | None = None,
    ) -> int:
        exclude_set = set(exclude or ())
        delivered = 0
        for connection in self._rooms.members(room):
            if connection in exclude_set:
                continue
            if connection.send(event, data):
                delivered += 1
        return delivered

    def emit_to_post_room(self, post_id: int, event: str, data: dict[str, Any]) -> int:
        return self.emit_to_room(post_room(post_id), event, data)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_online(self, account_id: int) -> bool:
        return self._presence.is_online(account_id)

    def online_friend_ids(self, account_id: int) -> list[int]:
        friend_ids = self._directory.get_friend_ids(account_id)
        return sorted(self._presence.online_among(friend_ids))

    @staticmethod
    def _require_account(connection: LiveConnection) -> int:
        if connection.account_id is None:
            raise AuthenticationError("Connection is not authenticated")
        return connection.account_id
