"""Rooms table.

Revision ID: 001_rooms
Revises:
Create Date: 2025-06-01 00:00:00.000000

"""

from __future__ import annotations

from typing import TYPE_CHECKING

import sqlalchemy as sa
from advanced_alchemy.types import GUID, DateTimeUTC
from alembic import op

if TYPE_CHECKING:
    from collections.abc import Sequence

# revision identifiers, used by Alembic.
revision: str = "001_rooms"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the rooms table."""
    op.create_table(
        "rooms",
        sa.Column("id", GUID(), nullable=False),
        sa.Column("code", sa.String(12), nullable=False),
        sa.Column("document", sa.JSON(), nullable=False, server_default="{}"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("expires_at", DateTimeUTC(), nullable=True),
        sa.Column("sa_orm_sentinel", sa.Integer(), nullable=True),
        sa.Column("created_at", DateTimeUTC(), nullable=False),
        sa.Column("updated_at", DateTimeUTC(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_rooms_code", "rooms", ["code"], unique=True)
    op.create_index("ix_rooms_expires_at", "rooms", ["expires_at"])


def downgrade() -> None:
    """Drop the rooms table."""
    op.drop_index("ix_rooms_expires_at", "rooms")
    op.drop_index("ix_rooms_code", "rooms")
    op.drop_table("rooms")
