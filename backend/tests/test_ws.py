from __future__ import annotations

import time

import pytest
from fastapi.websockets import WebSocketDisconnect
from starlette.testclient import WebSocketTestSession

from app.api import ws as ws_module

from support import auth_headers


def _token(user_id: int) -> str:
    return auth_headers(user_id)["Authorization"].removeprefix("Bearer ")


def _receive_until(connection: WebSocketTestSession, event_type: str) -> dict:
    while True:
        frame = connection.receive_json()
        if frame["type"] == event_type:
            return frame


def test_connection_without_valid_token_is_refused(client) -> None:
    with pytest.raises(WebSocketDisconnect) as missing:
        with client.websocket_connect("/ws"):
            pass
    assert missing.value.code == 1008

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws?token=not-a-jwt"):
            pass


def test_session_frame_and_friend_presence(client, make_user, befriend, services) -> None:
    ada = make_user("ada")
    bo = make_user("bo")
    befriend(ada, bo)

    with client.websocket_connect(f"/ws?token={_token(ada)}") as ada_socket:
        assert ada_socket.receive_json() == {
            "type": "session",
            "data": {"accountId": ada, "onlineFriends": []},
        }
        with client.websocket_connect(
            "/ws", headers={"Authorization": f"Bearer {_token(bo)}"}
        ) as bo_socket:
            assert bo_socket.receive_json()["data"]["onlineFriends"] == [ada]
            assert ada_socket.receive_json() == {"type": "friend:online", "data": {"userId": bo}}
            assert services.channel.online_friend_ids(ada) == [bo]
            response = client.get("/api/users/me/online-friends", headers=auth_headers(ada))
            assert response.json() == {"friend_ids": [bo]}

        assert ada_socket.receive_json() == {"type": "friend:offline", "data": {"userId": bo}}
        assert not services.channel.is_online(bo)


def test_new_post_is_streamed_to_online_friend(client, make_user, befriend, drain) -> None:
    ada = make_user("ada", "Ada")
    bo = make_user("bo")
    befriend(ada, bo)

    with client.websocket_connect(f"/ws?token={_token(bo)}") as bo_socket:
        _receive_until(bo_socket, "session")
        response = client.post(
            "/api/newsflashes", json={"content": "Live now"}, headers=auth_headers(ada)
        )
        drain()

        frame = _receive_until(bo_socket, "newsflash:new")
        assert frame["data"]["id"] == response.json()["id"]
        assert frame["data"]["authorDisplayName"] == "Ada"
        assert frame["data"]["content"] == "Live now"


def test_room_comments_and_typing(client, make_user, drain) -> None:
    ada = make_user("ada", "Ada")
    bo = make_user("bo", "Bo")
    post = client.post(
        "/api/newsflashes", json={"content": "Room", "recipients": [bo]}, headers=auth_headers(ada)
    ).json()
    drain()

    with client.websocket_connect(f"/ws?token={_token(ada)}") as ada_socket:
        _receive_until(ada_socket, "session")
        with client.websocket_connect(f"/ws?token={_token(bo)}") as bo_socket:
            _receive_until(bo_socket, "session")
            ada_socket.send_json({"type": "newsflash:join", "newsflash_id": post["id"]})
            bo_socket.send_json({"type": "newsflash:join", "newsflash_id": post["id"]})
            # round trips guarantee both joins were processed
            ada_socket.send_json({"type": "ping"})
            assert _receive_until(ada_socket, "pong") == {"type": "pong"}
            bo_socket.send_json({"type": "ping"})
            _receive_until(bo_socket, "pong")

            bo_socket.send_json({"type": "typing:start", "newsflash_id": post["id"]})
            typing = _receive_until(ada_socket, "typing:user")
            assert typing["data"] == {"userId": bo, "newsflashId": post["id"], "displayName": "Bo"}

            client.post(
                f"/api/newsflashes/{post['id']}/comments",
                json={"content": "Nice"},
                headers=auth_headers(bo),
            )
            drain()

            comment_new = _receive_until(ada_socket, "comment:new")
            comment_live = _receive_until(ada_socket, "comment:live")
            assert comment_new["data"]["content"] == "Nice"
            assert comment_live["data"]["id"] == comment_new["data"]["id"]
            assert _receive_until(bo_socket, "comment:live")["data"]["content"] == "Nice"


def test_invalid_client_frames_get_error_replies(client, make_user) -> None:
    ada = make_user("ada")

    with client.websocket_connect(f"/ws?token={_token(ada)}") as connection:
        _receive_until(connection, "session")
        connection.send_text("{broken")
        assert connection.receive_json() == {"type": "error", "data": {"detail": "Invalid payload"}}
        connection.send_json({"type": "newsflash:join", "newsflash_id": "abc"})
        assert connection.receive_json()["type"] == "error"
        connection.send_json({"type": "teleport"})
        assert "Unsupported" in connection.receive_json()["data"]["detail"]


def test_connection_survives_keepalive_timeout(client, make_user) -> None:
    """Server side keepalive pings keep an idle socket open."""

    ada = make_user("ada")
    settings = ws_module.settings
    original_timeout = settings.websocket_keepalive_timeout_seconds
    original_interval = settings.websocket_keepalive_ping_interval_seconds
    settings.websocket_keepalive_timeout_seconds = 0.1
    settings.websocket_keepalive_ping_interval_seconds = 0.05

    try:
        with client.websocket_connect(f"/ws?token={_token(ada)}") as connection:
            _receive_until(connection, "session")
            time.sleep(0.15)
            assert connection.receive_json() == {"type": "ping"}
            connection.send_json({"type": "pong"})

            time.sleep(0.12)
            assert connection.receive_json() == {"type": "ping"}
            connection.send_json({"type": "ping"})
            assert _receive_until(connection, "pong") == {"type": "pong"}
    finally:
        settings.websocket_keepalive_timeout_seconds = original_timeout
        settings.websocket_keepalive_ping_interval_seconds = original_interval


def test_failed_open_does_not_leave_account_online(client, make_user, services, monkeypatch) -> None:
    ada = make_user("ada")

    def unavailable(account_id: int) -> set[int]:
        raise RuntimeError("directory unavailable")

    monkeypatch.setattr(services.directory, "get_friend_ids", unavailable)

    with pytest.raises(RuntimeError):
        with client.websocket_connect(f"/ws?token={_token(ada)}") as connection:
            connection.receive_json()

    assert not services.channel.is_online(ada)
    assert len(services.presence) == 0
