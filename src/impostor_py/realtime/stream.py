"""WebSocket relay of room snapshots.

Each connection subscribes to one room and receives the full room document on
every change, followed by a ``room_closed`` message when the room disappears.
Clients may also send heartbeats over the socket instead of the HTTP endpoint.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any

import structlog
from litestar import Router, WebSocket, websocket

from impostor_py.exceptions import ImpostorError, RoomNotFoundError
from impostor_py.realtime.messages import (
    ErrorMessage,
    HeartbeatAckMessage,
    MessageType,
    RoomClosedMessage,
    RoomSnapshotMessage,
)

if TYPE_CHECKING:
    from impostor_py.game.models import Room
    from impostor_py.services.game import GameService

logger = structlog.get_logger(__name__)


class RoomStreamHandler:
    """Handler for room snapshot WebSocket connections."""

    def __init__(self, game: GameService) -> None:
        """Initialize the stream handler.

        Args:
            game: Services bound to the room store.
        """
        self._game = game

    async def handle_connection(self, socket: WebSocket, room_code: str, player_id: str | None = None) -> None:
        """Stream snapshots of a room until either side goes away.

        Args:
            socket: The WebSocket connection.
            room_code: Room code from the URL.
            player_id: Optional participant id, required for heartbeats.
        """
        try:
            room = await self._game.rooms.get_room(room_code)
        except RoomNotFoundError:
            await socket.close(code=4004, reason="Room not found")
            return

        await socket.accept()
        logger.debug("Room stream connected", room_code=room.code, player_id=player_id)

        queue: asyncio.Queue[Room | None] = asyncio.Queue()
        subscription = await self._game.rooms.subscribe_to_room(room.code, queue.put_nowait)
        sender = asyncio.create_task(self._send_loop(socket, room.code, queue))
        receiver = asyncio.create_task(self._receive_loop(socket, room.code, player_id))
        try:
            done, pending = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            for task in done:
                if task.exception() is not None:
                    logger.error("Room stream error", room_code=room.code, error=str(task.exception()))
        finally:
            subscription.cancel()
            logger.debug("Room stream disconnected", room_code=room.code, player_id=player_id)

    async def _send_loop(self, socket: WebSocket, room_code: str, queue: asyncio.Queue[Room | None]) -> None:
        while True:
            room = await queue.get()
            if room is None:
                await socket.send_json(RoomClosedMessage(room_code).to_dict())
                await socket.close(code=1000, reason="Room closed")
                return
            await socket.send_json(RoomSnapshotMessage(room).to_dict())

    async def _receive_loop(self, socket: WebSocket, room_code: str, player_id: str | None) -> None:
        async for message in socket.iter_data():
            try:
                data = json.loads(message) if isinstance(message, (str, bytes)) else message
            except json.JSONDecodeError:
                await self._send_error(socket, "invalid_json", "Invalid JSON message")
                continue
            if not isinstance(data, dict) or not data.get("type"):
                await self._send_error(socket, "missing_type", "Message type is required")
                continue
            await self._handle_message(socket, room_code, player_id, data)

    async def _handle_message(
        self,
        socket: WebSocket,
        room_code: str,
        player_id: str | None,
        message: dict[str, Any],
    ) -> None:
        msg_type = message["type"]
        if msg_type == MessageType.PING.value:
            await socket.send_json({"type": MessageType.PONG.value})
        elif msg_type == MessageType.HEARTBEAT.value:
            if player_id is None:
                await self._send_error(socket, "missing_player", "Connect with a player_id to send heartbeats")
                return
            try:
                accepted = await self._game.presence.heartbeat(room_code, player_id)
            except ImpostorError as e:
                logger.warning("Heartbeat failed", room_code=room_code, player_id=player_id, error=str(e))
                accepted = False
            await socket.send_json(HeartbeatAckMessage(accepted).to_dict())
        else:
            await self._send_error(socket, "unknown_type", f"Unknown message type: {msg_type}")

    async def _send_error(self, socket: WebSocket, code: str, message: str) -> None:
        await socket.send_json(ErrorMessage(code, message).to_dict())


def create_room_stream_router(path: str, game: GameService) -> Router:
    """Create a WebSocket router streaming room snapshots.

    Args:
        path: Base path for WebSocket routes.
        game: Services bound to the room store.

    Returns:
        Router with the WebSocket handler.
    """
    handler = RoomStreamHandler(game)

    @websocket(path="/rooms/{room_code:str}")
    async def room_stream(socket: WebSocket, room_code: str, player_id: str | None = None) -> None:
        """WebSocket endpoint streaming room snapshots.

        Args:
            socket: The WebSocket connection.
            room_code: Room code from the URL.
            player_id: Optional participant id for heartbeats.
        """
        await handler.handle_connection(socket, room_code, player_id)

    return Router(path=path, route_handlers=[room_stream], tags=["WebSocket"])
