"""Facade bundling the room services around one store."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

from impostor_py.core.settings import ImpostorSettings
from impostor_py.game.avatars import AvatarCatalog
from impostor_py.game.catalog import CategoryCatalog
from impostor_py.game.models import utc_now
from impostor_py.services.membership import MembershipService
from impostor_py.services.presence import PresenceService
from impostor_py.services.rooms import RoomService
from impostor_py.services.session import SessionService
from impostor_py.services.voting import VotingService

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from impostor_py.storage.base import RoomStoreProtocol


class GameService:
    """All room operations for one store, sharing settings, clock and randomness.

    Attributes:
        store: Room store backend.
        settings: Timing and capacity settings.
        catalog: Word categories.
        avatars: Avatar catalog.
        rooms: Create, join, read, subscribe, configure and delete rooms.
        membership: Leave and kick.
        presence: Heartbeat, prune and host transfer.
        session: Start rounds.
        voting: Votes, results and the return to the lobby.

    Example:
        >>> from impostor_py.storage.memory import InMemoryRoomStore
        >>> game = GameService(InMemoryRoomStore())
        >>> seat = await game.rooms.create_room("Ana", avatar=3)
        >>> await game.rooms.join_room(seat.room_code, "Luis")
    """

    def __init__(
        self,
        store: RoomStoreProtocol,
        *,
        settings: ImpostorSettings | None = None,
        catalog: CategoryCatalog | None = None,
        avatars: AvatarCatalog | None = None,
        clock: Callable[[], datetime] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or ImpostorSettings()
        self.catalog = catalog or CategoryCatalog()
        self.avatars = avatars or AvatarCatalog()
        self.clock = clock or utc_now
        self.rng = rng or random.SystemRandom()

        shared = {"settings": self.settings, "clock": self.clock, "rng": self.rng}
        self.rooms = RoomService(store, catalog=self.catalog, avatars=self.avatars, **shared)
        self.membership = MembershipService(store, **shared)
        self.presence = PresenceService(store, **shared)
        self.session = SessionService(store, catalog=self.catalog, **shared)
        self.voting = VotingService(store, **shared)
