"""Store-and-forward notification dispatch to registered devices."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable

from ..interfaces import PushGateway, PushTokenRepository
from .gateway import EXPO_MAX_BATCH_SIZE, chunked, is_valid_push_token
from .payloads import NotificationKind, NotificationPayload, PushTicket, build_test_notification

logger = logging.getLogger(__name__)

UNREGISTERED_DEVICE_ERROR = "DeviceNotRegistered"


@dataclass(slots=True)
class DispatchReport:
    """Outcome counters of one dispatch call."""

    recipients: int = 0
    tokens: int = 0
    skipped: int = 0
    batches: int = 0
    failed_batches: int = 0
    accepted: int = 0
    rejected: int = 0
    retired: int = 0


class NotificationDispatcher:
    """Push a payload to every active device of a set of accounts.

    ``dispatch`` never raises: each batch is attempted independently and any
    failure is logged and counted instead.
    """

    def __init__(
        self,
        tokens: PushTokenRepository,
        gateway: PushGateway,
        *,
        batch_size: int = EXPO_MAX_BATCH_SIZE,
        enabled: bool = True,
        retire_unregistered: bool = False,
    ) -> None:
        self._tokens = tokens
        self._gateway = gateway
        self._batch_size = max(1, min(int(batch_size), EXPO_MAX_BATCH_SIZE))
        self._enabled = enabled
        self._retire_unregistered = retire_unregistered

    async def dispatch(
        self, recipient_ids: Iterable[int], payload: NotificationPayload
    ) -> DispatchReport:
        report = DispatchReport()
        try:
            await self._dispatch(set(recipient_ids), payload, report)
        except Exception:
            logger.exception(
                "Notification dispatch of %s failed", payload.metadata.get("type", "unknown")
            )
        return report

    async def send_test(self, account_id: int, kind: NotificationKind) -> DispatchReport:
        return await self.dispatch({account_id}, build_test_notification(kind))

    async def _dispatch(
        self, recipients: set[int], payload: NotificationPayload, report: DispatchReport
    ) -> None:
        report.recipients = len(recipients)
        if not recipients:
            return
        if not self._enabled:
            logger.debug("Push notifications disabled; skipping %s recipients", len(recipients))
            return

        tokens: list[str] = []
        for token in dict.fromkeys(self._tokens.active_tokens_for(recipients)):
            if is_valid_push_token(token):
                tokens.append(token)
            else:
                report.skipped += 1
                logger.warning("Skipping malformed push token %r", token)
        report.tokens = len(tokens)
        if not tokens:
            return

        batches = list(chunked(tokens, self._batch_size))
        report.batches = len(batches)
        results = await asyncio.gather(
            *(self._send_batch(index, batch, payload) for index, batch in enumerate(batches))
        )

        for tickets in results:
            if tickets is None:
                report.failed_batches += 1
                continue
            for ticket in tickets:
                if ticket.ok:
                    report.accepted += 1
                    continue
                report.rejected += 1
                self._handle_rejection(ticket, report)

        logger.info(
            "Dispatched %s notification to %s recipients: %s accepted, %s rejected, %s/%s batches failed",
            payload.metadata.get("type", "unknown"),
            report.recipients,
            report.accepted,
            report.rejected,
            report.failed_batches,
            report.batches,
        )

    async def _send_batch(
        self, index: int, batch: list[str], payload: NotificationPayload
    ) -> list[PushTicket] | None:
        try:
            return await self._gateway.send_batch(batch, payload)
        except Exception:
            logger.warning(
                "Push batch %s with %s tokens failed", index, len(batch), exc_info=True
            )
            return None

    def _handle_rejection(self, ticket: PushTicket, report: DispatchReport) -> None:
        logger.warning(
            "Push gateway rejected token %s...: %s (%s)",
            ticket.token[:24],
            ticket.message,
            ticket.error,
        )
        if not self._retire_unregistered or ticket.error != UNREGISTERED_DEVICE_ERROR:
            return
        try:
            report.retired += self._tokens.retire(ticket.token)
        except Exception:
            logger.exception("Failed to retire unregistered push token")
