"""impostor-py: room and game state machine for the 'find the impostor' party game.

Players join a short-lived room with a six character code. The host starts a
round, everyone but the impostors gets the secret word, players take turns
describing it, then vote someone out until one side wins. There is no
authoritative game server: every client writes to a shared room document through
atomic transactions and reacts to snapshots of it.

Key Components:
    - Game: Room document model, role assignment, voting and win detection
    - Storage: InMemoryRoomStore, DatabaseRoomStore, RoomStoreProtocol
    - Services: GameService facade over the room, membership, presence,
      session and voting services
    - Realtime: RoomClient, the per-client reactive loop, and the snapshot stream
    - Web: REST controllers and the ImpostorPlugin for Litestar

Quick Start:
    >>> from impostor_py import GameService, InMemoryRoomStore
    >>> game = GameService(InMemoryRoomStore())
    >>> seat = await game.rooms.create_room("Ana")
    >>> await game.rooms.join_room(seat.room_code, "Luis")

    >>> from litestar import Litestar
    >>> from impostor_py import ImpostorConfig, ImpostorPlugin
    >>> app = Litestar(plugins=[ImpostorPlugin(ImpostorConfig())])
"""

from __future__ import annotations

__version__ = "0.1.0"

from impostor_py.core.settings import ImpostorSettings
from impostor_py.exceptions import (
    ImpostorError,
    InvalidPhaseError,
    NotHostError,
    RoomExpiredError,
    RoomNotFoundError,
    StoreError,
)
from impostor_py.game import (
    GameOutcome,
    Phase,
    Player,
    Room,
    RoomStatus,
    RoundResult,
    describe_phase,
)
from impostor_py.plugin import ImpostorConfig, ImpostorPlugin
from impostor_py.realtime import RoomClient, create_room_stream_router
from impostor_py.services import GameService, RemovalResult, SeatAssignment
from impostor_py.storage import InMemoryRoomStore, RoomStoreProtocol
from impostor_py.web import create_router

__all__ = [
    "GameOutcome",
    "GameService",
    "ImpostorConfig",
    "ImpostorError",
    "ImpostorPlugin",
    "ImpostorSettings",
    "InMemoryRoomStore",
    "InvalidPhaseError",
    "NotHostError",
    "Phase",
    "Player",
    "RemovalResult",
    "Room",
    "RoomClient",
    "RoomExpiredError",
    "RoomNotFoundError",
    "RoomStatus",
    "RoomStoreProtocol",
    "RoundResult",
    "SeatAssignment",
    "StoreError",
    "__version__",
    "create_room_stream_router",
    "create_router",
    "describe_phase",
]
