"""
End-to-end tests for the /collaboration WebSocket through the real app,
lifespan included (the RoomDirectory lives on ``app.state.rooms``).
"""
import pytest
from starlette.testclient import TestClient

from hitit.main import app
from hitit.services.relay import RoomDirectory


@pytest.fixture
def ws_client():
    with TestClient(app) as client:
        yield client


def _join(ws, jam_id, user_id, name):
    ws.send_json({"type": "join_jam", "jamId": jam_id, "userId": user_id, "userName": name})


def test_lifespan_creates_room_directory(ws_client):
    assert isinstance(app.state.rooms, RoomDirectory)


def test_two_clients_share_a_room(ws_client):
    with ws_client.websocket_connect("/collaboration") as ann:
        _join(ann, 1, 10, "Ann")
        state = ann.receive_json()
        assert state["type"] == "room_state"
        assert state["users"] == []

        with ws_client.websocket_connect("/collaboration") as ben:
            _join(ben, 1, 20, "Ben")
            assert ben.receive_json()["users"] == [{"userId": 10, "userName": "Ann"}]

            joined = ann.receive_json()
            assert joined["type"] == "user_joined"
            assert joined["userName"] == "Ben"

            ann.send_json({"type": "cursor_move", "jamId": 1, "userId": 10, "userName": "Ann", "x": 3, "y": 4, "timestamp": 1})
            moved = ben.receive_json()
            assert moved["type"] == "cursor_move"
            assert (moved["x"], moved["y"]) == (3, 4)

            ben.send_json({"type": "leave_jam"})
            left = ann.receive_json()
            assert left["type"] == "user_left"
            assert left["userId"] == 20
            assert app.state.rooms.active_users(1) == [{"userId": 10, "userName": "Ann"}]


def test_garbage_does_not_close_socket(ws_client):
    with ws_client.websocket_connect("/collaboration") as ws:
        ws.send_text("not json at all")
        ws.send_json({"type": "mystery"})
        _join(ws, "abc", 1, "Solo")
        assert ws.receive_json()["type"] == "room_state"
