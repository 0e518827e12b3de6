"""Real-time room synchronisation: the reactive client loop and the snapshot stream."""

from __future__ import annotations

from impostor_py.realtime.client import RoomClient
from impostor_py.realtime.messages import MessageType
from impostor_py.realtime.stream import RoomStreamHandler, create_room_stream_router

__all__ = [
    "MessageType",
    "RoomClient",
    "RoomStreamHandler",
    "create_room_stream_router",
]
