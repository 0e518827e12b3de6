"""SQLAlchemy models for impostor-py database storage."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from advanced_alchemy.base import UUIDAuditBase
from advanced_alchemy.types import DateTimeUTC
from sqlalchemy import JSON, Integer, String
from sqlalchemy.orm import Mapped, mapped_column


class RoomModel(UUIDAuditBase):
    """SQLAlchemy model for room documents.

    The room is stored as one JSON document. ``version`` increases on every write
    and backs optimistic concurrency control; ``expires_at`` is copied out of the
    document so expired rooms can be swept with an indexed query.

    Attributes:
        id: UUID primary key (from UUIDAuditBase).
        code: Room code, unique.
        document: The room document.
        version: Write counter.
        expires_at: End of the room's lifetime.
        created_at: Creation timestamp (from UUIDAuditBase).
        updated_at: Last update timestamp (from UUIDAuditBase).
    """

    __tablename__ = "rooms"

    code: Mapped[str] = mapped_column(String(12), unique=True, index=True)
    document: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    version: Mapped[int] = mapped_column(Integer, default=1)
    expires_at: Mapped[datetime | None] = mapped_column(DateTimeUTC(), nullable=True, index=True)
