"""
End-to-end tests for the presence WebSocket endpoint.
"""

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from starlette.websockets import WebSocketDisconnect

from presence_backend.main import app


def town_player(wallet: str, x: int = 0, y: int = 0, **extra) -> dict:
    player = {
        "wallet": wallet,
        "name": None,
        "level": None,
        "x": x,
        "y": y,
        "location": "Town",
        "equipment": {},
    }
    player.update(extra)
    return player


def test_update_then_disconnect_scenario(client: TestClient):
    """An update reaches every client; leaving empties the list for those remaining."""
    with client.websocket_connect("/B") as ws_b:
        with client.websocket_connect("/A") as ws_a:
            ws_a.send_json({
                "type": "update",
                "wallet": "A",
                "x": 0,
                "y": 0,
                "location": "Town",
                "equipment": {},
            })

            expected = {"type": "players", "players": [town_player("A")]}
            assert ws_a.receive_json() == expected
            assert ws_b.receive_json() == expected

        assert ws_b.receive_json() == {"type": "players", "players": []}


def test_two_players_see_each_other(client: TestClient):
    with client.websocket_connect("/A") as ws_a, client.websocket_connect("/B") as ws_b:
        ws_a.send_json({"type": "update", "x": 1, "y": 1, "location": "Town", "name": "Ann", "level": 3})
        ws_a.receive_json()
        ws_b.receive_json()

        ws_b.send_json({"type": "update", "x": 5, "y": 2, "location": "Town"})
        seen_by_a = ws_a.receive_json()["players"]
        seen_by_b = ws_b.receive_json()["players"]

        assert seen_by_a == seen_by_b
        assert sorted(p["wallet"] for p in seen_by_a) == ["A", "B"]
        by_wallet = {p["wallet"]: p for p in seen_by_a}
        assert by_wallet["A"] == town_player("A", 1, 1, name="Ann", level=3)
        assert by_wallet["B"] == town_player("B", 5, 2)


def test_last_update_wins_over_the_wire(client: TestClient):
    with client.websocket_connect("/A") as ws:
        ws.send_json({"type": "update", "x": 1, "y": 1, "location": "Town", "equipment": {"ring": "Gold"}})
        ws.receive_json()
        ws.send_json({"type": "update", "x": 2, "y": 2, "location": "Cave"})

        players = ws.receive_json()["players"]
        assert players == [{**town_player("A", 2, 2), "location": "Cave"}]


def test_malformed_messages_are_ignored(client: TestClient):
    """Bad frames are dropped without closing the connection or touching the registry."""
    with client.websocket_connect("/A") as ws:
        ws.send_text("not json")
        ws.send_bytes(b"\x00\x01")
        ws.send_json({"type": "chat", "text": "hi"})
        ws.send_json({"type": "update", "x": 1})
        ws.send_json({"type": "update", "wallet": "B", "x": 1, "y": 1, "location": "Town"})
        ws.send_json({"type": "update", "x": 2, "y": 3, "location": "Town"})

        assert ws.receive_json() == {"type": "players", "players": [town_player("A", 2, 3)]}

        response = client.get("/api/players")
        assert response.status_code == 200
        assert response.json() == {"players": [town_player("A", 2, 3)]}


def test_health_reports_counts(client: TestClient):
    with client.websocket_connect("/A") as ws_a, client.websocket_connect("/B"):
        ws_a.send_json({"type": "update", "x": 0, "y": 0, "location": "Town"})
        ws_a.receive_json()

        data = client.get("/health").json()
        assert data == {"status": "healthy", "connections": 2, "players": 1}


def test_overlong_identity_is_rejected(client: TestClient):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/" + "x" * 500):
            pass
    assert exc_info.value.code == 1008


@pytest.mark.asyncio
async def test_health_endpoint_over_http():
    """Health responds even before any connection exists."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        response = await http.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
