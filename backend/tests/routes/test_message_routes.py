from datetime import timedelta

import pytest

from roomchat.auth import create_access_token


def _post(client, user, content: str):
    return client.post("/api/messages", json={"content": content}, headers=user.headers)


class TestListAndCreate:
    def test_requires_auth(self, client):
        assert client.get("/api/messages").status_code == 401

    def test_expired_token_is_401(self, client, alice):
        token = create_access_token(alice.id, expires_delta=timedelta(seconds=-1))
        response = client.get("/api/messages", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_create_returns_hydrated_message(self, client, alice):
        response = _post(client, alice, "hello room")

        assert response.status_code == 201
        body = response.json()
        assert body["content"] == "hello room"
        assert body["sender"] == {"_id": alice.id, "username": "alice"}
        assert set(body) == {"_id", "sender", "content", "createdAt", "updatedAt"}

    def test_create_then_get_round_trips_trimmed_content(self, client, alice):
        _post(client, alice, "  spaced out  ")

        messages = client.get("/api/messages", headers=alice.headers).json()

        assert [m["content"] for m in messages] == ["spaced out"]

    def test_list_is_ordered_by_creation(self, client, alice, bob):
        first = _post(client, alice, "one").json()["_id"]
        second = _post(client, bob, "two").json()["_id"]
        third = _post(client, alice, "three").json()["_id"]

        messages = client.get("/api/messages", headers=bob.headers).json()

        assert [m["_id"] for m in messages] == [first, second, third]
        assert messages[1]["sender"]["username"] == "bob"

    @pytest.mark.parametrize("content", ["", "   ", "x" * 501])
    def test_invalid_content_is_400(self, client, alice, content):
        response = _post(client, alice, content)

        assert response.status_code == 400
        assert client.get("/api/messages", headers=alice.headers).json() == []

    def test_content_at_limit_is_accepted(self, client, alice):
        assert _post(client, alice, "x" * 500).status_code == 201

    def test_missing_content_field_is_400(self, client, alice):
        response = client.post("/api/messages", json={}, headers=alice.headers)

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"


class TestEdit:
    def test_owner_can_edit(self, client, alice):
        message = _post(client, alice, "draft").json()

        response = client.patch(
            f"/api/messages/{message['_id']}", json={"content": " final "}, headers=alice.headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["content"] == "final"
        assert body["_id"] == message["_id"]
        assert body["sender"]["_id"] == alice.id
        assert body["createdAt"] == message["createdAt"]

    def test_non_owner_gets_403_and_content_is_unchanged(self, client, alice, bob):
        message = _post(client, alice, "mine").json()

        response = client.patch(
            f"/api/messages/{message['_id']}", json={"content": "hacked"}, headers=bob.headers
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Not authorized"
        stored = client.get("/api/messages", headers=alice.headers).json()
        assert stored[0]["content"] == "mine"

    def test_missing_message_is_404(self, client, alice):
        response = client.patch(
            "/api/messages/01HZZZZZZZZZZZZZZZZZZZZZZZ", json={"content": "x"}, headers=alice.headers
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Message not found"

    def test_empty_edit_is_400(self, client, alice):
        message = _post(client, alice, "keep").json()

        response = client.patch(
            f"/api/messages/{message['_id']}", json={"content": "  "}, headers=alice.headers
        )

        assert response.status_code == 400


class TestDelete:
    def test_owner_can_delete(self, client, alice):
        message = _post(client, alice, "bye").json()

        response = client.delete(f"/api/messages/{message['_id']}", headers=alice.headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Message deleted"}
        assert client.get("/api/messages", headers=alice.headers).json() == []

    def test_non_owner_gets_403(self, client, alice, bob):
        message = _post(client, alice, "stay").json()

        response = client.delete(f"/api/messages/{message['_id']}", headers=bob.headers)

        assert response.status_code == 403
        assert len(client.get("/api/messages", headers=alice.headers).json()) == 1

    def test_missing_message_is_404(self, client, alice):
        response = client.delete("/api/messages/does-not-exist", headers=alice.headers)

        assert response.status_code == 404
