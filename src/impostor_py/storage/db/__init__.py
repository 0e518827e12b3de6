"""Database room store for impostor-py.

This module provides SQLAlchemy-based persistent storage.
Requires the `db` optional dependency: `pip install impostor-py[db]`
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from impostor_py.storage.db.models import RoomModel
    from impostor_py.storage.db.setup import DatabaseManager
    from impostor_py.storage.db.store import DatabaseRoomStore

__all__ = [
    "DatabaseManager",
    "DatabaseRoomStore",
    "RoomModel",
]


def __getattr__(name: str) -> object:
    """Lazy import database components to avoid import errors without db extra."""
    if name == "DatabaseRoomStore":
        from impostor_py.storage.db.store import DatabaseRoomStore

        return DatabaseRoomStore
    if name == "RoomModel":
        from impostor_py.storage.db.models import RoomModel

        return RoomModel
    if name == "DatabaseManager":
        from impostor_py.storage.db.setup import DatabaseManager

        return DatabaseManager
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
