"""Schemas for push token registration and test notifications."""

from pydantic import BaseModel, Field, constr

from app.models.enums import DevicePlatform
from newsflash.push import NotificationKind


class PushTokenRegister(BaseModel):
    """Payload for registering a device push token."""

    push_token: constr(strip_whitespace=True, min_length=1, max_length=255) = Field(
        ..., description="Expo push token of the device"
    )
    device_id: constr(strip_whitespace=True, min_length=1, max_length=255) | None = Field(
        default=None,
        description="Stable device identifier; a new token replaces the device's previous one",
    )
    platform: DevicePlatform | None = Field(default=None, description="Device platform")


class PushTokenUnregister(BaseModel):
    push_token: constr(strip_whitespace=True, min_length=1, max_length=255)


class NotificationTestRequest(BaseModel):
    """Payload for sending a test push to the caller's own devices."""

    type: NotificationKind = Field(
        default=NotificationKind.POST,
        description="One of post, friend_request or group_invitation",
    )


class NotificationResult(BaseModel):
    success: bool = True
    message: str
    accepted: int | None = None
    rejected: int | None = None
