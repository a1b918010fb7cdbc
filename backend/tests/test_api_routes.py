"""Integration tests exercising the HTTP endpoints via FastAPI's TestClient."""

from __future__ import annotations

from sqlalchemy import select

from app.models import Friendship, Group, GroupMember, GroupRole, NewsflashRecipient, PushToken

from support import auth_headers, expo_token


def test_health_and_root(client) -> None:
    assert client.get("/health").json()["status"] == "ok"
    assert client.get("/api/").status_code == 200


def test_requests_without_token_are_rejected(client) -> None:
    response = client.post("/api/newsflashes", json={"content": "hi"})
    assert response.status_code == 401


def test_create_newsflash_pushes_to_friends(client, make_user, befriend, drain, gateway) -> None:
    ada = make_user("ada", "Ada")
    bo = make_user("bo")
    befriend(ada, bo)
    client.post(
        "/api/notifications/register-token",
        json={"push_token": expo_token(2), "platform": "ios"},
        headers=auth_headers(bo),
    )

    response = client.post(
        "/api/newsflashes",
        json={"content": "First light", "sections": ["outdoors", "outdoors"]},
        headers=auth_headers(ada),
    )
    drain()

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["author_id"] == ada
    assert body["sections"] == ["outdoors"]
    assert gateway.tokens_sent == [expo_token(2)]
    assert gateway.calls[0][1].metadata == {
        "type": "post",
        "newsflashId": body["id"],
        "authorId": ada,
    }


def test_create_newsflash_with_explicit_audience(
    client, make_user, session_factory, drain, gateway
) -> None:
    ada = make_user("ada")
    bo = make_user("bo")
    cy = make_user("cy")
    with session_factory() as session:
        group = Group(name="Climbers", creator_id=ada)
        session.add(group)
        session.flush()
        session.add(GroupMember(group_id=group.id, user_id=cy))
        session.commit()
        group_id = group.id
    for user_id, number in ((bo, 2), (cy, 3)):
        client.post(
            "/api/notifications/register-token",
            json={"push_token": expo_token(number)},
            headers=auth_headers(user_id),
        )

    response = client.post(
        "/api/newsflashes",
        json={"content": "Team news", "recipients": [bo, ada, 9999], "groups": [group_id, 4242]},
        headers=auth_headers(ada),
    )
    drain()

    assert response.status_code == 201, response.text
    assert response.json()["recipients"] == [bo]
    assert response.json()["groups"] == [group_id]
    assert sorted(gateway.tokens_sent) == [expo_token(2), expo_token(3)]
    with session_factory() as session:
        stored = session.execute(select(NewsflashRecipient.user_id)).scalars().all()
    assert stored == [bo]


def test_comment_notifies_post_author(client, make_user, drain, gateway) -> None:
    ada = make_user("ada")
    bo = make_user("bo", "Bo")
    client.post(
        "/api/notifications/register-token",
        json={"push_token": expo_token(1)},
        headers=auth_headers(ada),
    )
    post = client.post(
        "/api/newsflashes", json={"content": "Hello", "recipients": [bo]}, headers=auth_headers(ada)
    ).json()
    drain()

    response = client.post(
        f"/api/newsflashes/{post['id']}/comments",
        json={"content": "Welcome back"},
        headers=auth_headers(bo),
    )
    drain()

    assert response.status_code == 201
    titles = [payload.title for _, payload in gateway.calls]
    assert titles == ["Bo commented"]
    assert client.post(
        "/api/newsflashes/999/comments", json={"content": "?"}, headers=auth_headers(bo)
    ).status_code == 404


def test_friend_request_lifecycle(client, make_user, session_factory, drain, gateway) -> None:
    ada = make_user("ada", "Ada")
    bo = make_user("bo", "Bo")
    for user_id, number in ((ada, 1), (bo, 2)):
        client.post(
            "/api/notifications/register-token",
            json={"push_token": expo_token(number)},
            headers=auth_headers(user_id),
        )

    assert client.post(f"/api/users/{ada}/friend-request", headers=auth_headers(ada)).status_code == 400
    assert client.post("/api/users/999/friend-request", headers=auth_headers(ada)).status_code == 404

    response = client.post(f"/api/users/{bo}/friend-request", headers=auth_headers(ada))
    assert response.status_code == 201, response.text
    request_id = response.json()["id"]
    assert client.post(f"/api/users/{ada}/friend-request", headers=auth_headers(bo)).status_code == 409

    assert client.post(
        f"/api/friend-requests/{request_id}/accept", headers=auth_headers(ada)
    ).status_code == 404
    accepted = client.post(f"/api/friend-requests/{request_id}/accept", headers=auth_headers(bo))
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "accepted"
    assert client.post(f"/api/users/{bo}/friend-request", headers=auth_headers(ada)).status_code == 409
    drain()

    with session_factory() as session:
        pairs = {
            (row.user_id, row.friend_id) for row in session.execute(select(Friendship)).scalars()
        }
    assert pairs == {(ada, bo), (bo, ada)}
    assert [(tokens, payload.metadata["type"]) for tokens, payload in gateway.calls] == [
        ([expo_token(2)], "friend_request"),
        ([expo_token(1)], "friend_accepted"),
    ]


def test_group_invitation_requires_membership(client, make_user, session_factory, drain, gateway) -> None:
    ada = make_user("ada", "Ada")
    bo = make_user("bo")
    cy = make_user("cy")
    with session_factory() as session:
        group = Group(name="Climbers", creator_id=ada)
        session.add(group)
        session.flush()
        session.add(GroupMember(group_id=group.id, user_id=ada, role=GroupRole.ADMIN))
        session.commit()
        group_id = group.id
    client.post(
        "/api/notifications/register-token",
        json={"push_token": expo_token(2)},
        headers=auth_headers(bo),
    )

    outsider = client.post(
        f"/api/groups/{group_id}/invitations", json={"invitee_id": bo}, headers=auth_headers(cy)
    )
    assert outsider.status_code == 403

    response = client.post(
        f"/api/groups/{group_id}/invitations", json={"invitee_id": bo}, headers=auth_headers(ada)
    )
    assert response.status_code == 201, response.text
    assert client.post(
        f"/api/groups/{group_id}/invitations", json={"invitee_id": bo}, headers=auth_headers(ada)
    ).status_code == 409
    drain()

    assert len(gateway.calls) == 1
    assert gateway.calls[0][1].body == 'Ada invited you to join "Climbers"'


def test_register_and_unregister_push_token(client, make_user, session_factory) -> None:
    ada = make_user("ada")
    headers = auth_headers(ada)

    assert client.post(
        "/api/notifications/register-token",
        json={"push_token": expo_token(1), "device_id": "phone", "platform": "android"},
        headers=headers,
    ).status_code == 200
    assert client.post(
        "/api/notifications/register-token",
        json={"push_token": expo_token(1), "platform": "desktop"},
        headers=headers,
    ).status_code == 422

    for _ in range(2):
        response = client.request(
            "DELETE",
            "/api/notifications/unregister-token",
            json={"push_token": expo_token(1)},
            headers=headers,
        )
        assert response.status_code == 200

    with session_factory() as session:
        row = session.execute(select(PushToken)).scalar_one()
    assert row.is_active is False
    assert row.device_id == "phone"


def test_test_notification_requires_a_registered_device(client, make_user, gateway) -> None:
    ada = make_user("ada")
    headers = auth_headers(ada)

    missing = client.post("/api/notifications/test", json={"type": "post"}, headers=headers)
    assert missing.status_code == 400

    client.post(
        "/api/notifications/register-token", json={"push_token": expo_token(1)}, headers=headers
    )
    unsupported = client.post("/api/notifications/test", json={"type": "comment"}, headers=headers)
    assert unsupported.status_code == 400

    response = client.post("/api/notifications/test", json={"type": "group_invitation"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["accepted"] == 1
    assert gateway.calls[0][1].title == "Test Group Invitation"


def test_online_friends_is_empty_without_connections(client, make_user, befriend) -> None:
    ada = make_user("ada")
    bo = make_user("bo")
    befriend(ada, bo)

    response = client.get("/api/users/me/online-friends", headers=auth_headers(ada))
    assert response.status_code == 200
    assert response.json() == {"friend_ids": []}
