"""Database models package."""

from .base import Base
from .enums import DevicePlatform, FriendRequestStatus, GroupRole, InvitationStatus
from .social import (
    Comment,
    FriendRequest,
    Friendship,
    Group,
    GroupInvitation,
    GroupMember,
    Newsflash,
    NewsflashGroup,
    NewsflashRecipient,
    PushToken,
    Section,
    User,
    newsflash_sections,
)

__all__ = [
    "Base",
    "User",
    "Friendship",
    "FriendRequest",
    "Group",
    "GroupMember",
    "GroupInvitation",
    "Section",
    "Newsflash",
    "NewsflashRecipient",
    "NewsflashGroup",
    "newsflash_sections",
    "Comment",
    "PushToken",
    "DevicePlatform",
    "FriendRequestStatus",
    "GroupRole",
    "InvitationStatus",
]
