"""Push notification payloads, gateway client and dispatcher."""

from .dispatcher import DispatchReport, NotificationDispatcher  # noqa: F401
from .gateway import ExpoPushGateway, chunked, is_valid_push_token  # noqa: F401
from .payloads import (  # noqa: F401
    NotificationKind,
    NotificationPayload,
    PushTicket,
    TicketStatus,
    truncate,
)

__all__ = [
    "DispatchReport",
    "ExpoPushGateway",
    "NotificationDispatcher",
    "NotificationKind",
    "NotificationPayload",
    "PushTicket",
    "TicketStatus",
    "chunked",
    "is_valid_push_token",
    "truncate",
]
