from __future__ import annotations

import json

import httpx
import pytest

from newsflash.errors import PushGatewayError
from newsflash.push import ExpoPushGateway, TicketStatus, chunked, is_valid_push_token
from newsflash.push.gateway import EXPO_PUSH_URL
from newsflash.push.payloads import post_payload

from support import expo_token


def _payload():
    return post_payload(post_id=1, author_id=2, author_name="Ada", content="hello")


def _gateway(handler, **kwargs) -> ExpoPushGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ExpoPushGateway(client=client, **kwargs)


def test_token_validation() -> None:
    assert is_valid_push_token("ExponentPushToken[xxxxxxxxxxxxxxxxxxxxxx]")
    assert is_valid_push_token("ExpoPushToken[abc]")
    assert is_valid_push_token("9f1c2a3b-4d5e-6f70-8192-a3b4c5d6e7f8")
    assert not is_valid_push_token("not-a-token")
    assert not is_valid_push_token("ExponentPushToken[]")
    assert not is_valid_push_token(None)


def test_chunked_splits_in_order() -> None:
    tokens = [str(index) for index in range(250)]
    batches = list(chunked(tokens, 100))

    assert [len(batch) for batch in batches] == [100, 100, 50]
    assert [token for batch in batches for token in batch] == tokens


@pytest.mark.anyio("asyncio")
async def test_send_batch_posts_one_message_per_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "data": [
                    {"status": "ok", "id": "ticket-1"},
                    {
                        "status": "error",
                        "message": "not registered",
                        "details": {"error": "DeviceNotRegistered"},
                    },
                ]
            },
        )

    gateway = _gateway(handler, access_token="secret")
    tokens = [expo_token(1), expo_token(2)]
    tickets = await gateway.send_batch(tokens, _payload())

    request = seen[0]
    body = json.loads(request.content)
    assert str(request.url) == EXPO_PUSH_URL
    assert request.headers["Authorization"] == "Bearer secret"
    assert [message["to"] for message in body] == tokens
    assert body[0]["data"] == {"type": "post", "newsflashId": 1, "authorId": 2}

    assert tickets[0].status is TicketStatus.OK and tickets[0].id == "ticket-1"
    assert tickets[1].token == expo_token(2)
    assert tickets[1].error == "DeviceNotRegistered"
    assert not tickets[1].ok


@pytest.mark.anyio("asyncio")
async def test_send_batch_raises_on_server_error() -> None:
    gateway = _gateway(lambda request: httpx.Response(503, text="unavailable"))

    with pytest.raises(PushGatewayError) as exc:
        await gateway.send_batch([expo_token(1)], _payload())

    assert exc.value.status_code == 503


@pytest.mark.anyio("asyncio")
async def test_send_batch_raises_on_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(PushGatewayError):
        await _gateway(handler).send_batch([expo_token(1)], _payload())


@pytest.mark.anyio("asyncio")
async def test_send_batch_rejects_mismatched_response() -> None:
    gateway = _gateway(lambda request: httpx.Response(200, json={"data": []}))

    with pytest.raises(PushGatewayError):
        await gateway.send_batch([expo_token(1)], _payload())


@pytest.mark.anyio("asyncio")
async def test_send_batch_enforces_provider_limit() -> None:
    gateway = _gateway(lambda request: httpx.Response(200, json={"data": []}))

    with pytest.raises(PushGatewayError):
        await gateway.send_batch([expo_token(index) for index in range(101)], _payload())
    assert await gateway.send_batch([], _payload()) == []
