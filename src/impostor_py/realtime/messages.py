"""WebSocket message types for the room snapshot stream."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from impostor_py.game.voting import describe_phase

if TYPE_CHECKING:
    from impostor_py.game.models import Room


class MessageType(str, Enum):
    """Types of WebSocket messages."""

    # Client -> Server
    HEARTBEAT = "heartbeat"
    PING = "ping"

    # Server -> Client
    ROOM_SNAPSHOT = "room_snapshot"
    ROOM_CLOSED = "room_closed"
    HEARTBEAT_ACK = "heartbeat_ack"
    PONG = "pong"
    ERROR = "error"


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class RoomSnapshotMessage:
    """Full room document plus its derived phase."""

    room: Room
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        view = describe_phase(self.room)
        return {
            "type": MessageType.ROOM_SNAPSHOT.value,
            "timestamp": self.timestamp.isoformat(),
            "room": self.room.to_document(),
            "phase": view.phase.value,
            "result": view.result.value if view.result else None,
        }


@dataclass
class RoomClosedMessage:
    """Sent once when the room is deleted or has expired."""

    room_code: str
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": MessageType.ROOM_CLOSED.value,
            "timestamp": self.timestamp.isoformat(),
            "room_code": self.room_code,
        }


@dataclass
class HeartbeatAckMessage:
    """Reply to a client heartbeat."""

    accepted: bool
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": MessageType.HEARTBEAT_ACK.value,
            "timestamp": self.timestamp.isoformat(),
            "accepted": self.accepted,
        }


@dataclass
class ErrorMessage:
    """Error reported back to the client."""

    code: str
    message: str
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": MessageType.ERROR.value,
            "timestamp": self.timestamp.isoformat(),
            "code": self.code,
            "message": self.message,
        }
