"""Live delivery over persistent websocket connections."""

from .channel import LiveDeliveryChannel, RoomRegistry, post_room  # noqa: F401
from .connection import ConnectionState, LiveConnection, safe_send_json  # noqa: F401
from .presence import PresenceRegistry  # noqa: F401

__all__ = [
    "ConnectionState",
    "LiveConnection",
    "LiveDeliveryChannel",
    "PresenceRegistry",
    "RoomRegistry",
    "post_room",
    "safe_send_json",
]
