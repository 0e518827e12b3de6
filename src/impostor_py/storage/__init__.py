"""Room stores for impostor-py."""

from __future__ import annotations

from typing import TYPE_CHECKING

from impostor_py.storage.base import RoomStoreProtocol, RoomTransaction, Subscription
from impostor_py.storage.memory import InMemoryRoomStore

if TYPE_CHECKING:
    from impostor_py.storage.db import DatabaseRoomStore

__all__ = ["DatabaseRoomStore", "InMemoryRoomStore", "RoomStoreProtocol", "RoomTransaction", "Subscription"]


def __getattr__(name: str) -> object:
    """Lazy import DatabaseRoomStore to avoid import errors without db extra."""
    if name == "DatabaseRoomStore":
        from impostor_py.storage.db import DatabaseRoomStore

        return DatabaseRoomStore
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
