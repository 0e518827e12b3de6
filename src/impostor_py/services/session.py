"""Game session control: starting rounds."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from impostor_py.game.catalog import CategoryCatalog
from impostor_py.game.roles import start_round
from impostor_py.services.base import RoomServiceBase

if TYPE_CHECKING:
    from datetime import datetime

    from impostor_py.game.models import Room
    from impostor_py.storage.base import RoomStoreProtocol

logger = structlog.get_logger(__name__)


class SessionService(RoomServiceBase):
    """Starts rounds: roles, words, starting player and turn order.

    Attributes:
        catalog: Word categories to draw from.
    """

    def __init__(self, store: RoomStoreProtocol, *, catalog: CategoryCatalog | None = None, **kwargs: Any) -> None:
        super().__init__(store, **kwargs)
        self.catalog = catalog or CategoryCatalog()

    async def start_game(self, room_code: str, requester_id: str) -> Room:
        """Assign roles and words and move the room to ``playing``.

        Roles are computed from the room as read inside the transaction, so a
        player who joined or left a moment earlier is accounted for. All role
        data and the status change are written together.

        Raises:
            RoomNotFoundError: If the room does not exist.
            NotHostError: If the requester is not the host.
            GameAlreadyStartedError: If a round is already running.
            InsufficientPlayersError: If too few players are present.
            NoCategoriesSelectedError: If no category is selected.
            EmptyWordPoolError: If the selected categories have no words.
        """

        def start(room: Room, now: datetime) -> list[str]:
            return start_round(
                room,
                requester_id=requester_id,
                catalog=self.catalog,
                rng=self.rng,
                now=now,
                min_players=self.settings.min_players,
            )

        result = await self._mutate(room_code, start)
        room = result.room
        logger.info(
            "Game started",
            room_code=room.code,
            players=len(room.present_players),
            impostors=len(result.value),
            category=room.game_state.category,
            direction=room.game_state.direction.value if room.game_state.direction else None,
        )
        return room
