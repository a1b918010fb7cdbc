from __future__ import annotations

from enum import Enum


class FriendRequestStatus(str, Enum):
    """Lifecycle states for friend requests."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class InvitationStatus(str, Enum):
    """Lifecycle states for group invitations."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class GroupRole(str, Enum):
    """Roles a member can hold inside a group."""

    ADMIN = "admin"
    MEMBER = "member"


class DevicePlatform(str, Enum):
    """Platforms a push token can be registered from."""

    IOS = "ios"
    ANDROID = "android"
    WEB = "web"
