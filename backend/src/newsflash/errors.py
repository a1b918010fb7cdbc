"""Exceptions raised by the fan-out and delivery engine."""

from __future__ import annotations


class NewsflashError(Exception):
    """Base class for engine errors."""


class AuthenticationError(NewsflashError):
    """Raised when a live connection presents a missing or invalid access token."""


class ConnectionStateError(NewsflashError):
    """Raised on an illegal live connection state transition."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot move connection from {current} to {target}")
        self.current = current
        self.target = target


class PushGatewayError(NewsflashError):
    """Raised when a push gateway batch cannot be delivered."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
