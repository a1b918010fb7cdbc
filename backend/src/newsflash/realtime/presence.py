"""Process-local registry of accounts reachable over the live channel."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Dict, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

HandleT = TypeVar("HandleT", bound=Hashable)


class PresenceRegistry(Generic[HandleT]):
    """Map each account to at most one live connection handle.

    A newer connection for the same account replaces the stored handle. A
    disconnect only removes the entry while it still points at the handle
    being disconnected, so a late disconnect from a superseded connection
    cannot evict its replacement.

    All operations are synchronous and never wait on I/O.
    """

    def __init__(self) -> None:
        self._handles: Dict[int, HandleT] = {}
        self._lock = Lock()

    def connect(self, account_id: int, handle: HandleT) -> HandleT | None:
        """Register *handle* for the account and return the handle it replaced."""

        with self._lock:
            previous = self._handles.get(account_id)
            self._handles[account_id] = handle
        if previous is not None and previous is not handle:
            logger.debug("Account %s superseded an existing live connection", account_id)
        return previous

    def disconnect(self, account_id: int, handle: HandleT) -> bool:
        """Remove the entry if it still belongs to *handle*; return whether it did."""

        with self._lock:
            current = self._handles.get(account_id)
            if current is None or current is not handle:
                return False
            del self._handles[account_id]
            return True

    def lookup(self, account_id: int) -> HandleT | None:
        with self._lock:
            return self._handles.get(account_id)

    def is_online(self, account_id: int) -> bool:
        with self._lock:
            return account_id in self._handles

    def online_among(self, account_ids: set[int]) -> set[int]:
        """Return the subset of *account_ids* that currently has a live connection."""

        with self._lock:
            return {account_id for account_id in account_ids if account_id in self._handles}

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)
