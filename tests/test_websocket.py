"""Tests for the room snapshot WebSocket stream."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime

import pytest
from litestar import Litestar
from litestar.exceptions import WebSocketDisconnect
from litestar.testing import TestClient

from impostor_py.app import create_app
from impostor_py.core.settings import ImpostorSettings
from impostor_py.game.models import Player, Room
from impostor_py.realtime.messages import (
    ErrorMessage,
    HeartbeatAckMessage,
    MessageType,
    RoomClosedMessage,
    RoomSnapshotMessage,
)
from impostor_py.storage.memory import InMemoryRoomStore

T0 = datetime(2024, 5, 1, 18, 0, tzinfo=UTC)


@pytest.fixture
def client() -> Iterator[TestClient[Litestar]]:
    """Create a test client over a fresh in-memory store."""
    app = create_app(store=InMemoryRoomStore(), settings=ImpostorSettings())
    with TestClient(app=app) as client:
        yield client


@pytest.fixture
def seat(client: TestClient[Litestar]) -> tuple[str, str]:
    """Create a room and return its code and the host's id."""
    data = client.post("/api/rooms", json={"name": "Ana"}).json()
    return data["room_code"], data["player_id"]


class TestMessageTypes:
    """Tests for WebSocket message types."""

    def test_message_type_values(self) -> None:
        """Test that message types have expected string values."""
        assert MessageType.HEARTBEAT.value == "heartbeat"
        assert MessageType.PING.value == "ping"
        assert MessageType.ROOM_SNAPSHOT.value == "room_snapshot"
        assert MessageType.ROOM_CLOSED.value == "room_closed"
        assert MessageType.HEARTBEAT_ACK.value == "heartbeat_ack"
        assert MessageType.PONG.value == "pong"
        assert MessageType.ERROR.value == "error"

    def test_room_snapshot_to_dict(self) -> None:
        """Test RoomSnapshotMessage serialization."""
        host = Player(id="p1", name="Ana", avatar=1, is_host=True, joined_at=T0, last_seen_at=T0)
        room = Room(code="ABC234", host="p1", players=[host], created_at=T0, expires_at=T0)
        data = RoomSnapshotMessage(room, timestamp=T0).to_dict()

        assert data["type"] == "room_snapshot"
        assert data["timestamp"] == T0.isoformat()
        assert data["room"]["code"] == "ABC234"
        assert data["phase"] == "waiting"
        assert data["result"] is None

    def test_room_closed_to_dict(self) -> None:
        """Test RoomClosedMessage serialization."""
        data = RoomClosedMessage("ABC234", timestamp=T0).to_dict()
        assert data == {"type": "room_closed", "timestamp": T0.isoformat(), "room_code": "ABC234"}

    def test_heartbeat_ack_and_error_to_dict(self) -> None:
        """Test HeartbeatAckMessage and ErrorMessage serialization."""
        assert HeartbeatAckMessage(accepted=False).to_dict()["accepted"] is False
        error = ErrorMessage("unknown_type", "Unknown message type: x").to_dict()
        assert (error["type"], error["code"]) == ("error", "unknown_type")


class TestRoomStream:
    """Tests for the /ws/rooms endpoint."""

    def test_initial_snapshot(self, client: TestClient[Litestar], seat: tuple[str, str]) -> None:
        """Test that a connection starts with the current room."""
        code, host_id = seat
        with client.websocket_connect(f"/ws/rooms/{code}?player_id={host_id}") as ws:
            data = ws.receive_json()
            assert data["type"] == "room_snapshot"
            assert data["phase"] == "waiting"
            assert data["room"]["host"] == host_id

    def test_snapshot_after_join(self, client: TestClient[Litestar], seat: tuple[str, str]) -> None:
        """Test that changes made over HTTP reach open streams."""
        code, _ = seat
        with client.websocket_connect(f"/ws/rooms/{code}") as ws:
            ws.receive_json()
            client.post(f"/api/rooms/{code}/players", json={"name": "Luis"})
            data = ws.receive_json()
            assert [p["name"] for p in data["room"]["players"]] == ["Ana", "Luis"]

    def test_ping_pong(self, client: TestClient[Litestar], seat: tuple[str, str]) -> None:
        """Test that pings are answered."""
        code, _ = seat
        with client.websocket_connect(f"/ws/rooms/{code}") as ws:
            ws.receive_json()
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_heartbeat(self, client: TestClient[Litestar], seat: tuple[str, str]) -> None:
        """Test that a heartbeat is acknowledged and republishes the room."""
        code, host_id = seat
        with client.websocket_connect(f"/ws/rooms/{code}?player_id={host_id}") as ws:
            ws.receive_json()
            ws.send_json({"type": "heartbeat"})
            first, second = ws.receive_json(), ws.receive_json()
            assert {first["type"], second["type"]} == {"room_snapshot", "heartbeat_ack"}
            ack = first if first["type"] == "heartbeat_ack" else second
            assert ack["accepted"] is True

    def test_heartbeat_from_stranger(self, client: TestClient[Litestar], seat: tuple[str, str]) -> None:
        """Test that a heartbeat for an absent player is refused."""
        code, _ = seat
        with client.websocket_connect(f"/ws/rooms/{code}?player_id=stranger") as ws:
            ws.receive_json()
            ws.send_json({"type": "heartbeat"})
            data = ws.receive_json()
            assert data["type"] == "heartbeat_ack"
            assert data["accepted"] is False

    def test_heartbeat_without_player(self, client: TestClient[Litestar], seat: tuple[str, str]) -> None:
        """Test that heartbeats need a player id."""
        code, _ = seat
        with client.websocket_connect(f"/ws/rooms/{code}") as ws:
            ws.receive_json()
            ws.send_json({"type": "heartbeat"})
            data = ws.receive_json()
            assert (data["type"], data["code"]) == ("error", "missing_player")

    def test_unknown_message(self, client: TestClient[Litestar], seat: tuple[str, str]) -> None:
        """Test that unknown message types are reported."""
        code, _ = seat
        with client.websocket_connect(f"/ws/rooms/{code}") as ws:
            ws.receive_json()
            ws.send_json({"type": "draw"})
            assert ws.receive_json()["code"] == "unknown_type"

    def test_room_closed(self, client: TestClient[Litestar], seat: tuple[str, str]) -> None:
        """Test that deleting the room notifies the stream."""
        code, _ = seat
        with client.websocket_connect(f"/ws/rooms/{code}") as ws:
            ws.receive_json()
            client.delete(f"/api/rooms/{code}")
            data = ws.receive_json()
            assert data == {"type": "room_closed", "timestamp": data["timestamp"], "room_code": code}

    def test_missing_room(self, client: TestClient[Litestar]) -> None:
        """Test that connecting to a missing room is refused."""
        with pytest.raises(WebSocketDisconnect), client.websocket_connect("/ws/rooms/ZZZZZZ") as ws:
            ws.receive_json()
