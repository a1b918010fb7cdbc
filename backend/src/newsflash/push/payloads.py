"""Notification payloads and per-kind builders."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_BODY_LIMIT = 100
ELLIPSIS = "..."


class NotificationKind(str, Enum):
    """Event kinds that produce a notification."""

    POST = "post"
    FRIEND_REQUEST = "friend_request"
    FRIEND_ACCEPTED = "friend_accepted"
    GROUP_INVITATION = "group_invitation"
    COMMENT = "comment"


class TicketStatus(str, Enum):
    OK = "ok"
    ERROR = "error"


def truncate(text: str | None, limit: int = DEFAULT_BODY_LIMIT) -> str:
    """Cut *text* to *limit* characters, appending an ellipsis when shortened."""

    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


@dataclass(slots=True)
class NotificationPayload:
    """What a device shows for one notification. Never persisted."""

    title: str | None
    body: str | None
    metadata: dict[str, Any] = field(default_factory=dict)
    priority: str = "default"
    badge: int = 0

    @property
    def kind(self) -> NotificationKind | None:
        try:
            return NotificationKind(self.metadata.get("type"))
        except ValueError:
            return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "body": self.body,
            "metadata": dict(self.metadata),
            "priority": self.priority,
            "badge": self.badge,
        }

    def to_message(self, token: str) -> dict[str, Any]:
        """Render the gateway message addressed to one device token."""

        return {
            "to": token,
            "sound": "default",
            "title": self.title,
            "body": self.body,
            "data": dict(self.metadata),
            "priority": self.priority,
            "badge": self.badge,
        }


@dataclass(slots=True)
class PushTicket:
    """Gateway verdict for a single token of a batch."""

    token: str
    status: TicketStatus
    id: str | None = None
    message: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is TicketStatus.OK


def post_payload(
    *,
    post_id: int,
    author_id: int,
    author_name: str,
    content: str,
    body_limit: int = DEFAULT_BODY_LIMIT,
) -> NotificationPayload:
    return NotificationPayload(
        title=f"{author_name} posted a newsflash",
        body=truncate(content, body_limit),
        metadata={
            "type": NotificationKind.POST.value,
            "newsflashId": post_id,
            "authorId": author_id,
        },
        badge=1,
    )


def comment_payload(
    *,
    comment_id: int,
    post_id: int,
    author_id: int,
    author_name: str,
    content: str,
    body_limit: int = DEFAULT_BODY_LIMIT,
) -> NotificationPayload:
    return NotificationPayload(
        title=f"{author_name} commented",
        body=truncate(content, body_limit),
        metadata={
            "type": NotificationKind.COMMENT.value,
            "commentId": comment_id,
            "newsflashId": post_id,
            "authorId": author_id,
        },
        badge=1,
    )


def friend_request_payload(
    *, request_id: int, sender_id: int, sender_name: str
) -> NotificationPayload:
    return NotificationPayload(
        title="New Friend Request",
        body=f"{sender_name} wants to be your friend",
        metadata={
            "type": NotificationKind.FRIEND_REQUEST.value,
            "requestId": request_id,
            "senderId": sender_id,
        },
        badge=1,
    )


def friend_accepted_payload(*, acceptor_id: int, acceptor_name: str) -> NotificationPayload:
    return NotificationPayload(
        title="Friend Request Accepted",
        body=f"{acceptor_name} accepted your friend request",
        metadata={"type": NotificationKind.FRIEND_ACCEPTED.value, "userId": acceptor_id},
    )


def group_invitation_payload(
    *, group_id: int, group_name: str, inviter_id: int, inviter_name: str
) -> NotificationPayload:
    return NotificationPayload(
        title="Group Invitation",
        body=f'{inviter_name} invited you to join "{group_name}"',
        metadata={
            "type": NotificationKind.GROUP_INVITATION.value,
            "groupId": group_id,
            "inviterId": inviter_id,
        },
        badge=1,
    )


_TEST_PAYLOADS: dict[NotificationKind, tuple[str, str, str]] = {
    NotificationKind.POST: ("Test Newsflash", "This is a test newsflash notification", "newsflashId"),
    NotificationKind.FRIEND_REQUEST: (
        "Test Friend Request",
        "Someone wants to be your friend (test)",
        "requestId",
    ),
    NotificationKind.GROUP_INVITATION: (
        "Test Group Invitation",
        "You have been invited to join a group (test)",
        "groupId",
    ),
}

TEST_KINDS = frozenset(_TEST_PAYLOADS)


def build_test_notification(kind: NotificationKind) -> NotificationPayload:
    """Placeholder notification used to verify a device registration."""

    try:
        title, body, id_key = _TEST_PAYLOADS[kind]
    except KeyError:
        raise ValueError(f"No test notification for kind {kind.value!r}") from None
    return NotificationPayload(title=title, body=body, metadata={"type": kind.value, id_key: 0})
