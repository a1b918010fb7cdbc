"""Fan-out and delivery engine for newsflash social events."""

from .audience import AudienceResolver, resolve_audience  # noqa: F401
from .fanout import (  # noqa: F401
    CommentEvent,
    FanoutOrchestrator,
    FanoutResult,
    FriendRequestEvent,
    GroupRef,
    PostEvent,
)

__all__ = [
    "AudienceResolver",
    "CommentEvent",
    "FanoutOrchestrator",
    "FanoutResult",
    "FriendRequestEvent",
    "GroupRef",
    "PostEvent",
    "resolve_audience",
]
