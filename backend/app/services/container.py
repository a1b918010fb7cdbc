"""Wiring of the fan-out engine against the application's collaborators."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker

from newsflash import AudienceResolver, FanoutOrchestrator
from newsflash.interfaces import AccessTokenVerifier, PushGateway
from newsflash.push import ExpoPushGateway, NotificationDispatcher
from newsflash.realtime import LiveConnection, LiveDeliveryChannel, PresenceRegistry

from app.config import Settings
from app.services.directory import SqlSocialDirectory
from app.services.push_tokens import SqlPushTokenStore

logger = logging.getLogger(__name__)


@dataclass
class NewsflashServices:
    """Process-wide services shared by HTTP handlers and the live endpoint."""

    directory: SqlSocialDirectory
    push_tokens: SqlPushTokenStore
    presence: PresenceRegistry[LiveConnection]
    channel: LiveDeliveryChannel
    gateway: PushGateway
    dispatcher: NotificationDispatcher
    orchestrator: FanoutOrchestrator

    async def aclose(self, drain_timeout: float | None = None) -> None:
        await self.orchestrator.drain(drain_timeout)
        aclose = getattr(self.gateway, "aclose", None)
        if aclose is not None:
            await aclose()


def build_services(
    settings: Settings,
    session_factory: sessionmaker[Session],
    verify_token: AccessTokenVerifier,
    *,
    gateway: PushGateway | None = None,
) -> NewsflashServices:
    directory = SqlSocialDirectory(session_factory)
    push_tokens = SqlPushTokenStore(session_factory)
    presence: PresenceRegistry[LiveConnection] = PresenceRegistry()
    channel = LiveDeliveryChannel(
        presence,
        verify_token,
        directory,
        send_queue_size=settings.live_send_queue_size,
    )
    if gateway is None:
        gateway = ExpoPushGateway(
            url=settings.push_gateway_url,
            access_token=settings.push_access_token,
            timeout=settings.push_request_timeout_seconds,
        )
    dispatcher = NotificationDispatcher(
        push_tokens,
        gateway,
        batch_size=settings.push_batch_size,
        enabled=settings.push_notifications_enabled,
        retire_unregistered=settings.push_deactivate_unregistered_tokens,
    )
    orchestrator = FanoutOrchestrator(
        AudienceResolver(directory),
        directory,
        channel,
        dispatcher,
        body_limit=settings.notification_body_max_length,
    )
    logger.info(
        "Fan-out services ready (push %s)",
        "enabled" if settings.push_notifications_enabled else "disabled",
    )
    return NewsflashServices(
        directory=directory,
        push_tokens=push_tokens,
        presence=presence,
        channel=channel,
        gateway=gateway,
        dispatcher=dispatcher,
        orchestrator=orchestrator,
    )
