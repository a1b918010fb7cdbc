"""Post-commit fan-out of social events to live connections and devices."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Iterable

from .audience import AudienceResolver
from .interfaces import SocialDirectory
from .push import payloads
from .push.dispatcher import DispatchReport, NotificationDispatcher
from .push.payloads import NotificationKind, NotificationPayload
from .realtime.channel import LiveDeliveryChannel

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PostEvent:
    """A committed newsflash and its declared audience."""

    id: int
    author_id: int
    content: str
    image: str | None = None
    recipient_ids: tuple[int, ...] = ()
    group_ids: tuple[int, ...] = ()
    sections: tuple[str, ...] = ()
    created_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class CommentEvent:
    id: int
    post_id: int
    author_id: int
    content: str
    created_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class FriendRequestEvent:
    id: int
    sender_id: int
    receiver_id: int


@dataclass(slots=True, frozen=True)
class GroupRef:
    id: int
    name: str


@dataclass(slots=True)
class FanoutResult:
    """What one fan-out reached."""

    kind: NotificationKind
    recipients: frozenset[int] = frozenset()
    live_delivered: int = 0
    live_failed: bool = False
    push: DispatchReport | None = None
    push_failed: bool = False


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class FanoutOrchestrator:
    """Drive live delivery and push dispatch for audience-changing events.

    Every ``on_*`` method must be called after the triggering record has been
    committed. It schedules a detached task and returns immediately; the task
    is never cancelled by the caller going away and never raises. Live
    emission and push dispatch are isolated from each other: a failure in one
    is logged and the other still runs.
    """

    def __init__(
        self,
        resolver: AudienceResolver,
        directory: SocialDirectory,
        channel: LiveDeliveryChannel,
        dispatcher: NotificationDispatcher,
        *,
        body_limit: int = payloads.DEFAULT_BODY_LIMIT,
    ) -> None:
        self._resolver = resolver
        self._directory = directory
        self._channel = channel
        self._dispatcher = dispatcher
        self._body_limit = body_limit
        self._pending: set[asyncio.Task[FanoutResult | None]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def on_post_created(self, post: PostEvent) -> asyncio.Task[FanoutResult | None]:
        return self._spawn(f"post:{post.id}", self.fan_out_post(post))

    def on_comment_created(
        self, comment: CommentEvent, post_author_id: int
    ) -> asyncio.Task[FanoutResult | None]:
        return self._spawn(
            f"comment:{comment.id}", self.fan_out_comment(comment, post_author_id)
        )

    def on_friend_request_sent(
        self, request: FriendRequestEvent
    ) -> asyncio.Task[FanoutResult | None]:
        return self._spawn(f"friend_request:{request.id}", self.fan_out_friend_request(request))

    def on_friend_request_accepted(
        self, acceptor_id: int, original_sender_id: int
    ) -> asyncio.Task[FanoutResult | None]:
        return self._spawn(
            f"friend_accepted:{acceptor_id}:{original_sender_id}",
            self.fan_out_friend_accepted(acceptor_id, original_sender_id),
        )

    def on_group_invitation_sent(
        self, group: GroupRef, inviter_id: int, invitee_id: int
    ) -> asyncio.Task[FanoutResult | None]:
        return self._spawn(
            f"group_invitation:{group.id}:{invitee_id}",
            self.fan_out_group_invitation(group, inviter_id, invitee_id),
        )

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for scheduled fan-outs so none is abandoned at shutdown."""

        pending = list(self._pending)
        if not pending:
            return
        _, not_done = await asyncio.wait(pending, timeout=timeout)
        if not_done:
            logger.warning("%s fan-out task(s) still running after drain timeout", len(not_done))

    # ------------------------------------------------------------------
    # Per-kind fan-out
    # ------------------------------------------------------------------

    async def fan_out_post(self, post: PostEvent) -> FanoutResult:
        recipients = self._resolver.resolve(post.author_id, post.recipient_ids, post.group_ids)
        author_name = self._directory.get_display_name(post.author_id)
        live_data = {
            "id": post.id,
            "authorId": post.author_id,
            "authorDisplayName": author_name,
            "content": post.content,
            "image": post.image,
            "sections": list(post.sections),
            "createdAt": _isoformat(post.created_at),
        }
        payload = payloads.post_payload(
            post_id=post.id,
            author_id=post.author_id,
            author_name=author_name,
            content=post.content,
            body_limit=self._body_limit,
        )
        return await self._deliver(
            NotificationKind.POST,
            recipients,
            payload,
            lambda: self._channel.emit_to_accounts(recipients, "newsflash:new", live_data),
        )

    async def fan_out_comment(self, comment: CommentEvent, post_author_id: int) -> FanoutResult:
        recipients = self._single(post_author_id, actor_id=comment.author_id)
        author_name = self._directory.get_display_name(comment.author_id)
        live_data = {
            "id": comment.id,
            "newsflashId": comment.post_id,
            "authorId": comment.author_id,
            "authorDisplayName": author_name,
            "content": comment.content,
            "createdAt": _isoformat(comment.created_at),
        }
        payload = payloads.comment_payload(
            comment_id=comment.id,
            post_id=comment.post_id,
            author_id=comment.author_id,
            author_name=author_name,
            content=comment.content,
            body_limit=self._body_limit,
        )

        def emit() -> int:
            delivered = self._channel.emit_to_accounts(recipients, "comment:new", live_data)
            delivered += self._channel.emit_to_post_room(comment.post_id, "comment:live", live_data)
            return delivered

        return await self._deliver(NotificationKind.COMMENT, recipients, payload, emit)

    async def fan_out_friend_request(self, request: FriendRequestEvent) -> FanoutResult:
        recipients = self._single(request.receiver_id, actor_id=request.sender_id)
        sender_name = self._directory.get_display_name(request.sender_id)
        live_data = {
            "id": request.id,
            "senderId": request.sender_id,
            "senderDisplayName": sender_name,
        }
        payload = payloads.friend_request_payload(
            request_id=request.id, sender_id=request.sender_id, sender_name=sender_name
        )
        return await self._deliver(
            NotificationKind.FRIEND_REQUEST,
            recipients,
            payload,
            lambda: self._channel.emit_to_accounts(recipients, "friend:request", live_data),
        )

    async def fan_out_friend_accepted(
        self, acceptor_id: int, original_sender_id: int
    ) -> FanoutResult:
        recipients = self._single(original_sender_id, actor_id=acceptor_id)
        acceptor_name = self._directory.get_display_name(acceptor_id)
        live_data = {"userId": acceptor_id, "displayName": acceptor_name}
        payload = payloads.friend_accepted_payload(
            acceptor_id=acceptor_id, acceptor_name=acceptor_name
        )
        return await self._deliver(
            NotificationKind.FRIEND_ACCEPTED,
            recipients,
            payload,
            lambda: self._channel.emit_to_accounts(recipients, "friend:accepted", live_data),
        )

    async def fan_out_group_invitation(
        self, group: GroupRef, inviter_id: int, invitee_id: int
    ) -> FanoutResult:
        recipients = self._single(invitee_id, actor_id=inviter_id)
        inviter_name = self._directory.get_display_name(inviter_id)
        live_data = {
            "groupId": group.id,
            "groupName": group.name,
            "inviterId": inviter_id,
            "inviterDisplayName": inviter_name,
        }
        payload = payloads.group_invitation_payload(
            group_id=group.id,
            group_name=group.name,
            inviter_id=inviter_id,
            inviter_name=inviter_name,
        )
        return await self._deliver(
            NotificationKind.GROUP_INVITATION,
            recipients,
            payload,
            lambda: self._channel.emit_to_accounts(recipients, "group:invitation", live_data),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _single(recipient_id: int, *, actor_id: int) -> set[int]:
        return set() if recipient_id == actor_id else {recipient_id}

    async def _deliver(
        self,
        kind: NotificationKind,
        recipients: Iterable[int],
        payload: NotificationPayload,
        emit_live: Callable[[], int],
    ) -> FanoutResult:
        result = FanoutResult(kind=kind, recipients=frozenset(recipients))
        if not result.recipients and kind is not NotificationKind.COMMENT:
            return result

        async def live() -> None:
            try:
                result.live_delivered = emit_live()
            except Exception:
                result.live_failed = True
                logger.exception("Live delivery of %s failed", kind.value)

        async def push() -> None:
            try:
                result.push = await self._dispatcher.dispatch(result.recipients, payload)
            except Exception:
                result.push_failed = True
                logger.exception("Push dispatch of %s failed", kind.value)

        await asyncio.gather(live(), push())
        return result

    def _spawn(
        self, name: str, coro: Awaitable[FanoutResult]
    ) -> asyncio.Task[FanoutResult | None]:
        task = asyncio.create_task(self._guard(name, coro), name=f"fanout-{name}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @staticmethod
    async def _guard(name: str, coro: Awaitable[FanoutResult]) -> FanoutResult | None:
        try:
            return await coro
        except Exception:
            logger.exception("Fan-out %s failed", name)
            return None
