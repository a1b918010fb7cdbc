"""In-memory collaborators shared by the engine tests."""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from fastapi.websockets import WebSocketState

from app.core.security import create_access_token
from newsflash.errors import PushGatewayError
from newsflash.push import NotificationPayload, PushTicket, TicketStatus


def expo_token(number: int) -> str:
    return f"ExponentPushToken[{number:06d}]"


class FakeDirectory:
    def __init__(
        self,
        friends: dict[int, Iterable[int]] | None = None,
        groups: dict[int, Iterable[int]] | None = None,
        names: dict[int, str] | None = None,
    ) -> None:
        self.friends = {key: set(value) for key, value in (friends or {}).items()}
        self.groups = {key: set(value) for key, value in (groups or {}).items()}
        self.names = names or {}

    def befriend(self, left: int, right: int) -> None:
        self.friends.setdefault(left, set()).add(right)
        self.friends.setdefault(right, set()).add(left)

    def get_friend_ids(self, account_id: int) -> set[int]:
        return set(self.friends.get(account_id, ()))

    def get_group_member_ids(self, group_id: int) -> set[int]:
        return set(self.groups.get(group_id, ()))

    def group_exists(self, group_id: int) -> bool:
        return group_id in self.groups

    def get_display_name(self, account_id: int) -> str:
        return self.names.get(account_id, f"user{account_id}")


class DummyWebSocket:
    def __init__(self) -> None:
        self.application_state = WebSocketState.CONNECTED
        self.sent: list[dict[str, Any]] = []

    async def send_json(self, payload: dict[str, Any]) -> None:
        self.sent.append(payload)

    def events(self, event_type: str | None = None) -> list[dict[str, Any]]:
        if event_type is None:
            return list(self.sent)
        return [frame for frame in self.sent if frame["type"] == event_type]


class RecordingGateway:
    """Gateway double that records batches and answers with scripted tickets."""

    def __init__(
        self,
        *,
        fail_batches: Iterable[int] = (),
        rejections: dict[str, str] | None = None,
    ) -> None:
        self.calls: list[tuple[list[str], NotificationPayload]] = []
        self.fail_batches = set(fail_batches)
        self.rejections = rejections or {}

    @property
    def tokens_sent(self) -> list[str]:
        return [token for tokens, _ in self.calls for token in tokens]

    async def send_batch(
        self, tokens: Sequence[str], payload: NotificationPayload
    ) -> list[PushTicket]:
        index = len(self.calls)
        self.calls.append((list(tokens), payload))
        if index in self.fail_batches:
            raise PushGatewayError(f"batch {index} unavailable", status_code=503)
        tickets = []
        for token in tokens:
            error = self.rejections.get(token)
            if error is None:
                tickets.append(PushTicket(token=token, status=TicketStatus.OK, id=f"ticket-{token}"))
            else:
                tickets.append(
                    PushTicket(
                        token=token,
                        status=TicketStatus.ERROR,
                        message=f"{token} rejected",
                        error=error,
                    )
                )
        return tickets


class MemoryTokenStore:
    def __init__(self, tokens: dict[int, Iterable[str]] | None = None) -> None:
        self.tokens = {key: list(value) for key, value in (tokens or {}).items()}
        self.inactive: set[str] = set()
        self.lookups = 0

    def register(
        self,
        account_id: int,
        token: str,
        device_id: str | None = None,
        platform: str | None = None,
    ) -> None:
        self.tokens.setdefault(account_id, []).append(token)
        self.inactive.discard(token)

    def deactivate(self, account_id: int, token: str) -> bool:
        if token in self.tokens.get(account_id, []) and token not in self.inactive:
            self.inactive.add(token)
            return True
        return False

    def active_tokens_for(self, account_ids: Iterable[int]) -> list[str]:
        self.lookups += 1
        return [
            token
            for account_id in sorted(set(account_ids))
            for token in self.tokens.get(account_id, [])
            if token not in self.inactive
        ]

    def retire(self, token: str) -> int:
        retired = 0
        for tokens in self.tokens.values():
            if token in tokens and token not in self.inactive:
                retired += 1
        if retired:
            self.inactive.add(token)
        return retired


def auth_headers(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user_id)})}"}
