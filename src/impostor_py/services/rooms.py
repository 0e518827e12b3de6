"""Room lifecycle: create, join, read, subscribe, configure and delete rooms."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from impostor_py.exceptions import (
    InvalidPhaseError,
    InvalidPlayerNameError,
    InvalidSettingsError,
    NoCategoriesSelectedError,
    NotHostError,
    StoreError,
)
from impostor_py.game.avatars import AvatarCatalog
from impostor_py.game.catalog import CategoryCatalog
from impostor_py.game.models import Player, Room, generate_player_id, generate_room_code, normalize_room_code
from impostor_py.game.types import RoomStatus
from impostor_py.services.base import RoomServiceBase

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import datetime

    from impostor_py.storage.base import Document, RoomStoreProtocol, Subscription

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SeatAssignment:
    """Where a created or joined player ended up."""

    room_code: str
    player_id: str


class RoomService(RoomServiceBase):
    """Creates, joins and tears down rooms.

    Attributes:
        catalog: Word categories; new rooms select all of them.
        avatars: Avatar catalog used to validate player avatars.
    """

    def __init__(
        self,
        store: RoomStoreProtocol,
        *,
        catalog: CategoryCatalog | None = None,
        avatars: AvatarCatalog | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(store, **kwargs)
        self.catalog = catalog or CategoryCatalog()
        self.avatars = avatars or AvatarCatalog()
        self._cleanup_tasks: set[asyncio.Task[None]] = set()

    async def create_room(self, host_name: str, avatar: int = 1, *, player_id: str | None = None) -> SeatAssignment:
        """Create a room with the caller as host.

        Args:
            host_name: Display name of the host.
            avatar: Avatar id.
            player_id: Client-generated id; generated if omitted.

        Returns:
            The new room code and the host's player id.

        Raises:
            InvalidPlayerNameError: If the name is blank.
            UnknownAvatarError: If the avatar id is unknown.
            StoreError: If no free room code could be found or the write fails.
        """
        name = host_name.strip()
        if not name:
            raise InvalidPlayerNameError(host_name)
        self.avatars.validate(avatar)
        player_id = player_id or generate_player_id()

        for attempt in range(1, self.settings.room_code_attempts + 1):
            now = self.clock()
            code = generate_room_code(self.settings.room_code_length, self.rng)
            host = Player(id=player_id, name=name, avatar=avatar, is_host=True, joined_at=now, last_seen_at=now)
            room = Room(
                code=code,
                host=player_id,
                players=[host],
                selected_categories=self.catalog.ids(),
                created_at=now,
                expires_at=now + self.settings.room_ttl,
            )
            if await self.store.create(code, room.to_document()):
                logger.info("Room created", room_code=code, host_id=player_id, attempt=attempt)
                return SeatAssignment(code, player_id)
            logger.debug("Room code collision", room_code=code, attempt=attempt)

        msg = f"Could not allocate a free room code after {self.settings.room_code_attempts} attempts"
        raise StoreError(msg)

    async def join_room(
        self,
        room_code: str,
        name: str,
        avatar: int = 1,
        *,
        player_id: str | None = None,
    ) -> SeatAssignment:
        """Add a player to a room in the lobby.

        The name check and the append happen in the same transaction, so two
        players racing for one name cannot both get it.

        Raises:
            RoomNotFoundError: If the room does not exist.
            RoomExpiredError: If the room has expired (it is deleted).
            GameAlreadyStartedError: If the room is not in the lobby.
            NameTakenError: If the name is in use.
            RoomFullError: If the room is at capacity.
            PlayerKickedError: If this identity was kicked.
            UnknownAvatarError: If the avatar id is unknown.
        """
        self.avatars.validate(avatar)
        player_id = player_id or generate_player_id()

        def admit(room: Room, now: datetime) -> str:
            player = Player(id=player_id, name=name, avatar=avatar, joined_at=now, last_seen_at=now)
            return room.admit(player, max_players=self.settings.max_players).id

        result = await self._mutate(room_code, admit)
        code = normalize_room_code(room_code)
        logger.info("Player joined room", room_code=code, player_id=result.value)
        return SeatAssignment(code, result.value)

    async def get_room(self, room_code: str) -> Room:
        """Read a room.

        Raises:
            RoomNotFoundError: If the room does not exist or has expired.
        """
        return await self._load(room_code)

    async def delete_room(self, room_code: str) -> bool:
        """Delete a room unconditionally. Idempotent."""
        code = normalize_room_code(room_code)
        deleted = await self.store.delete(code)
        if deleted:
            logger.info("Room deleted", room_code=code)
        return deleted

    async def subscribe_to_room(self, room_code: str, on_change: Callable[[Room | None], Any]) -> Subscription:
        """Receive a decoded snapshot of the room on every change.

        ``on_change`` gets None once when the room is deleted or found expired;
        an expired room is deleted in the background.

        Args:
            room_code: Room code.
            on_change: Snapshot callback. May return an awaitable.

        Returns:
            A cancellable subscription.
        """
        code = normalize_room_code(room_code)
        gone = False

        def deliver(document: Document | None) -> Awaitable[None] | None:
            nonlocal gone
            room = Room.from_document(document) if document is not None else None
            if room is not None and room.is_expired(self.clock()):
                self._schedule_cleanup(code)
                room = None
            if room is None:
                if gone:
                    return None
                gone = True
                return on_change(None)
            gone = False
            return on_change(room)

        return await self.store.subscribe(code, deliver)

    async def update_settings(
        self,
        room_code: str,
        requester_id: str,
        *,
        selected_categories: list[str] | None = None,
        impostor_count: int | None = None,
        show_clues: bool | None = None,
        impostor_mode: bool | None = None,
    ) -> Room:
        """Change host-editable settings while in the lobby.

        Enabling clues turns confusion mode off and vice versa.

        Raises:
            NotHostError: If the requester is not the host.
            InvalidPhaseError: If a round is in progress.
            NoCategoriesSelectedError: If the category list is empty.
            InvalidSettingsError: For unknown categories, an impostor count out of
                range, or both modes requested at once.
        """

        def configure(room: Room, now: datetime) -> None:
            if not room.is_host(requester_id):
                raise NotHostError(requester_id)
            if room.status != RoomStatus.WAITING:
                raise InvalidPhaseError("change settings", room.status.value)
            if show_clues and impostor_mode:
                msg = "Clues and confusion mode cannot both be enabled"
                raise InvalidSettingsError(msg)

            if selected_categories is not None:
                if not selected_categories:
                    raise NoCategoriesSelectedError()
                unknown = [cid for cid in selected_categories if cid not in self.catalog]
                if unknown:
                    msg = f"Unknown categories: {', '.join(unknown)}"
                    raise InvalidSettingsError(msg)
                room.selected_categories = list(dict.fromkeys(selected_categories))

            if impostor_count is not None:
                if not 1 <= impostor_count <= room.max_impostors:
                    msg = f"Impostor count must be between 1 and {room.max_impostors}"
                    raise InvalidSettingsError(msg)
                room.impostor_count = impostor_count

            if show_clues is not None:
                room.show_clues = show_clues
                if show_clues:
                    room.impostor_mode = False
            if impostor_mode is not None:
                room.impostor_mode = impostor_mode
                if impostor_mode:
                    room.show_clues = False

        result = await self._mutate(room_code, configure)
        logger.info(
            "Room settings updated",
            room_code=normalize_room_code(room_code),
            categories=result.room.selected_categories,
            impostor_count=result.room.impostor_count,
            show_clues=result.room.show_clues,
            impostor_mode=result.room.impostor_mode,
        )
        return result.room

    def _schedule_cleanup(self, code: str) -> None:
        task = asyncio.ensure_future(self._delete_expired_room(code))
        self._cleanup_tasks.add(task)
        task.add_done_callback(self._cleanup_tasks.discard)

    async def _delete_expired_room(self, code: str) -> None:
        try:
            document = await self.store.get(code)
            if document is not None and Room.from_document(document).is_expired(self.clock()):
                await self.store.delete(code)
                logger.info("Expired room deleted", room_code=code)
        except StoreError as e:
            logger.warning("Expired room cleanup failed", room_code=code, error=str(e))
