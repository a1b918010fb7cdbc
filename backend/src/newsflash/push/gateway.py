"""Expo push service client."""

from __future__ import annotations

import logging
import re
from typing import Any, Iterator, Sequence

import httpx

from ..errors import PushGatewayError
from .payloads import NotificationPayload, PushTicket, TicketStatus

logger = logging.getLogger(__name__)

EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"
EXPO_MAX_BATCH_SIZE = 100

_EXPO_TOKEN_RE = re.compile(r"^Expo(nent)?PushToken\[.+\]$")
_BARE_TOKEN_RE = re.compile(
    r"^[a-z\d]{8}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{12}$", re.IGNORECASE
)


def is_valid_push_token(token: Any) -> bool:
    """Return whether *token* looks like an address the push service accepts."""

    if not isinstance(token, str):
        return False
    return bool(_EXPO_TOKEN_RE.match(token) or _BARE_TOKEN_RE.match(token))


def chunked(tokens: Sequence[str], size: int) -> Iterator[list[str]]:
    """Split *tokens* into consecutive batches of at most *size* entries."""

    size = max(int(size), 1)
    for start in range(0, len(tokens), size):
        yield list(tokens[start : start + size])


def _parse_ticket(token: str, raw: Any) -> PushTicket:
    if not isinstance(raw, dict):
        return PushTicket(token=token, status=TicketStatus.ERROR, message="Malformed ticket")
    details = raw.get("details") or {}
    try:
        status = TicketStatus(raw.get("status"))
    except ValueError:
        status = TicketStatus.ERROR
    return PushTicket(
        token=token,
        status=status,
        id=raw.get("id"),
        message=raw.get("message"),
        error=details.get("error") if isinstance(details, dict) else None,
    )


class ExpoPushGateway:
    """Send notification batches to the Expo push service over HTTP."""

    def __init__(
        self,
        *,
        url: str = EXPO_PUSH_URL,
        access_token: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if access_token:
            self._headers["Authorization"] = f"Bearer {access_token}"
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def send_batch(
        self, tokens: Sequence[str], payload: NotificationPayload
    ) -> list[PushTicket]:
        if not tokens:
            return []
        if len(tokens) > EXPO_MAX_BATCH_SIZE:
            raise PushGatewayError(
                f"Batch of {len(tokens)} exceeds the provider limit of {EXPO_MAX_BATCH_SIZE}"
            )

        messages = [payload.to_message(token) for token in tokens]
        try:
            response = await self._get_client().post(
                self._url, json=messages, headers=self._headers
            )
        except httpx.HTTPError as exc:
            raise PushGatewayError(f"Push gateway request failed: {exc}") from exc

        if response.status_code >= 400:
            raise PushGatewayError(
                f"Push gateway returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise PushGatewayError("Push gateway returned a non-JSON body") from exc

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list) or len(data) != len(tokens):
            errors = body.get("errors") if isinstance(body, dict) else None
            raise PushGatewayError(f"Unexpected push gateway response: {errors or body!r}"[:300])

        return [_parse_ticket(token, raw) for token, raw in zip(tokens, data)]
