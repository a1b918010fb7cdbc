"""Pydantic schemas for API payloads."""

from .newsflashes import CommentCreate, CommentRead, NewsflashCreate, NewsflashRead
from .notifications import (
    NotificationResult,
    PushTokenRegister,
    PushTokenUnregister,
    NotificationTestRequest,
)
from .social import (
    FriendRequestRead,
    GroupInvitationCreate,
    GroupInvitationRead,
    OnlineFriendsRead,
)

__all__ = [
    "NewsflashCreate",
    "NewsflashRead",
    "CommentCreate",
    "CommentRead",
    "FriendRequestRead",
    "GroupInvitationCreate",
    "GroupInvitationRead",
    "OnlineFriendsRead",
    "PushTokenRegister",
    "PushTokenUnregister",
    "NotificationTestRequest",
    "NotificationResult",
]
