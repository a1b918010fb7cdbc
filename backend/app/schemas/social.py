"""Schemas for friendships and group invitations."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import FriendRequestStatus, InvitationStatus


class FriendRequestRead(BaseModel):
    """Serialized friend request."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    sender_id: int
    receiver_id: int
    status: FriendRequestStatus
    created_at: datetime


class GroupInvitationCreate(BaseModel):
    invitee_id: int = Field(..., description="Account to invite")


class GroupInvitationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    group_id: int
    inviter_id: int
    invitee_id: int
    status: InvitationStatus
    created_at: datetime


class OnlineFriendsRead(BaseModel):
    """Friends of the caller that currently hold a live connection."""

    friend_ids: list[int] = Field(default_factory=list)
