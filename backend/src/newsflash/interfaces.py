"""Protocols describing the collaborators the engine depends on."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Protocol, Sequence

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from .push.payloads import NotificationPayload, PushTicket


class SocialDirectory(Protocol):
    """Read access to the friendship graph, group membership and user names."""

    def get_friend_ids(self, account_id: int) -> set[int]:
        """Return ids of every account befriended by *account_id*."""

    def get_group_member_ids(self, group_id: int) -> set[int]:
        """Return current member ids of a group, or an empty set if it does not exist."""

    def group_exists(self, group_id: int) -> bool:
        """Return whether the group is known to the store."""

    def get_display_name(self, account_id: int) -> str:
        """Return the name shown in notification text."""


class AccessTokenVerifier(Protocol):
    """Resolve an access token to an account id, or ``None`` when invalid."""

    def __call__(self, token: str) -> int | None:
        ...


class PushGateway(Protocol):
    """Store-and-forward push provider."""

    async def send_batch(
        self, tokens: Sequence[str], payload: "NotificationPayload"
    ) -> list["PushTicket"]:
        """Deliver one batch and return one ticket per token, in order."""


class PushTokenRepository(Protocol):
    """Durable per-device push address records."""

    def register(
        self,
        account_id: int,
        token: str,
        device_id: str | None = None,
        platform: str | None = None,
    ) -> None:
        """Upsert an active token, superseding older tokens of the same device."""

    def deactivate(self, account_id: int, token: str) -> bool:
        """Mark a token inactive; return whether a row changed."""

    def active_tokens_for(self, account_ids: Iterable[int]) -> list[str]:
        """Return every active token belonging to any of *account_ids*."""

    def retire(self, token: str) -> int:
        """Deactivate every active row carrying *token*; return the number changed."""
