"""HTTP API tests: public room list, admin console, health."""
import asyncio

import pytest
from fastapi.testclient import TestClient

from conftest import ADMIN_PASSWORD
from roomcall import main
from roomcall.core.config import settings


def admin_headers(client):
    response = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return {"x-admin-token": response.json()["token"]}


class TestPublicRooms:
    def test_list_rooms(self, client):
        response = client.get("/api/rooms")
        assert response.status_code == 200
        assert response.json() == {"ok": True, "rooms": ["general"]}

    def test_create_room(self, client):
        response = client.post("/api/rooms", json={"name": " lobby ", "password": "secret"})

        assert response.status_code == 201
        assert response.json() == {"ok": True, "room": "lobby", "rooms": ["general", "lobby"]}
        # Passwords never leak into the public list
        assert "secret" not in client.get("/api/rooms").text

    @pytest.mark.parametrize(
        "body, error",
        [
            ({"name": "general", "password": "x"}, "Room name exists"),
            ({"name": "   ", "password": "x"}, "Invalid room name"),
            ({"name": "lobby", "password": ""}, "Room password is required"),
            ({"name": "x" * 65, "password": "x"}, "Invalid room name"),
        ],
    )
    def test_create_room_rejected(self, client, body, error):
        response = client.post("/api/rooms", json=body)
        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": error}
        assert client.get("/api/rooms").json()["rooms"] == ["general"]

    def test_malformed_body_is_400(self, client):
        response = client.post("/api/rooms", content=b"not json", headers={"content-type": "application/json"})
        assert response.status_code == 400
        assert response.json()["ok"] is False


class TestAdmin:
    def test_login_and_list(self, client):
        response = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})
        body = response.json()

        assert body["ok"] is True
        assert body["token"]
        (room,) = body["rooms"]
        assert room["name"] == "general"
        assert room["password"] == "pw"
        assert room["blocked"] == []
        assert room["members"] == []

    def test_wrong_password(self, client):
        response = client.post("/api/admin/login", json={"password": "nope"})
        assert response.status_code == 401
        assert response.json() == {"ok": False, "error": "Wrong admin password"}

    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/api/admin/rooms"),
            ("post", "/api/admin/logout"),
            ("delete", "/api/admin/rooms/general"),
            ("delete", "/api/admin/rooms/general/blocks/10.0.0.1"),
            ("delete", "/api/admin/rooms/general/members/abc"),
        ],
    )
    def test_routes_need_token(self, client, method, path):
        response = getattr(client, method)(path, headers={"x-admin-token": "forged"})
        assert response.status_code == 401
        assert response.json() == {"ok": False, "error": "Not authenticated"}

    def test_missing_token_header(self, client):
        response = client.post("/api/admin/rooms", json={"name": "lobby", "password": "x"})
        assert response.status_code == 401
        assert client.get("/api/rooms").json()["rooms"] == ["general"]

    def test_logout(self, client):
        headers = admin_headers(client)
        assert client.post("/api/admin/logout", headers=headers).json() == {"ok": True}
        assert client.get("/api/admin/rooms", headers=headers).status_code == 401

    def test_create_and_delete_room(self, client):
        headers = admin_headers(client)

        response = client.post("/api/admin/rooms", json={"name": "lobby", "password": "s"}, headers=headers)
        assert response.status_code == 201
        assert [room["name"] for room in response.json()["rooms"]] == ["general", "lobby"]

        response = client.delete("/api/admin/rooms/lobby", headers=headers)
        assert response.status_code == 200
        assert [room["name"] for room in response.json()["rooms"]] == ["general"]

        response = client.delete("/api/admin/rooms/lobby", headers=headers)
        assert response.status_code == 404
        assert response.json() == {"ok": False, "error": "Room not found"}

    def test_block_and_unblock(self, client):
        headers = admin_headers(client)

        response = client.post(
            "/api/admin/rooms/general/blocks", json={"address": "::ffff:10.0.0.9"}, headers=headers
        )
        assert response.status_code == 200
        assert response.json() == {"ok": True, "room": "general", "address": "10.0.0.9", "evicted": 0}
        assert client.get("/api/admin/rooms", headers=headers).json()["rooms"][0]["blocked"] == ["10.0.0.9"]

        response = client.delete("/api/admin/rooms/general/blocks/10.0.0.9", headers=headers)
        assert response.json() == {"ok": True, "room": "general", "address": "10.0.0.9"}

        response = client.delete("/api/admin/rooms/general/blocks/10.0.0.9", headers=headers)
        assert response.status_code == 404
        assert response.json()["error"] == "Address is not blocked"

    def test_block_invalid_address(self, client):
        headers = admin_headers(client)
        response = client.post("/api/admin/rooms/general/blocks", json={"address": "nope"}, headers=headers)
        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Invalid IP address"}

    def test_block_missing_room(self, client):
        headers = admin_headers(client)
        response = client.post("/api/admin/rooms/nope/blocks", json={"address": "10.0.0.1"}, headers=headers)
        assert response.status_code == 404

    def test_kick_unknown_member(self, client):
        headers = admin_headers(client)
        response = client.delete("/api/admin/rooms/general/members/ghost", headers=headers)
        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Session is not in this room"}


class TestServiceEndpoints:
    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["connections"] == 0
        assert body["rooms"] == 1
        assert body["messages"] == 0
        assert body["uptime_seconds"] >= 0

    def test_root(self, client):
        body = client.get("/").json()
        assert body["endpoints"]["websocket"] == "/ws"


def test_lifespan_runs_history_clear_task(fresh_state, monkeypatch):
    """The clear loop starts with the app and is cancelled and awaited on shutdown."""
    events = []

    async def fake_clear(coordinator_getter, interval):
        events.append(("started", coordinator_getter(), interval))
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            events.append(("cancelled",))
            raise

    monkeypatch.setattr(main, "periodic_history_clear", fake_clear)

    with TestClient(main.app) as client:
        assert client.get("/health").status_code == 200
        assert events == [("started", fresh_state, settings.HISTORY_CLEAR_INTERVAL_SECONDS)]

    assert events[-1] == ("cancelled",)
