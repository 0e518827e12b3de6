"""Shared plumbing for room services."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import structlog

from impostor_py.core.settings import ImpostorSettings
from impostor_py.exceptions import RoomExpiredError, RoomNotFoundError
from impostor_py.game.models import Room, normalize_room_code, utc_now

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from impostor_py.storage.base import RoomStoreProtocol, RoomTransaction

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class MutationResult(Generic[T]):
    """What a committed room mutation produced.

    Attributes:
        value: Return value of the mutator.
        room: The room as written, or None if it was deleted.
        deleted: Whether the commit deleted the room.
    """

    value: T
    room: Room | None
    deleted: bool = False


@dataclass
class _Expired:
    expired_at: datetime | None


class RoomServiceBase:
    """Base class running room mutations as store transactions.

    Subclasses express each operation as a mutator ``(room, now) -> value`` that
    edits a freshly decoded room in place. :meth:`_mutate` wraps it in a store
    transaction that writes only when the document actually changed, deletes the
    room when nobody is left, and deletes expired rooms on sight.

    Attributes:
        store: Room store backend.
        settings: Timing and capacity settings.
        clock: Returns the current UTC time.
        rng: Random source for codes, roles and turn order.
    """

    def __init__(
        self,
        store: RoomStoreProtocol,
        *,
        settings: ImpostorSettings | None = None,
        clock: Callable[[], datetime] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or ImpostorSettings()
        self.clock = clock or utc_now
        self.rng = rng or random.SystemRandom()

    async def _load(self, room_code: str) -> Room:
        """Read a room, deleting it if it has expired.

        Raises:
            RoomNotFoundError: If the room does not exist.
            RoomExpiredError: If the room had expired (it is deleted).
        """
        code = normalize_room_code(room_code)
        document = await self.store.get(code)
        if document is None:
            raise RoomNotFoundError(code)
        room = Room.from_document(document)
        if room.is_expired(self.clock()):
            await self.store.delete(code)
            logger.info("Expired room deleted", room_code=code, expired_at=room.expires_at.isoformat())
            raise RoomExpiredError(code, room.expires_at)
        return room

    async def _mutate(self, room_code: str, mutator: Callable[[Room, datetime], T]) -> MutationResult[T]:
        """Run ``mutator`` against the latest room inside a store transaction.

        Errors raised by the mutator abort the transaction without writing.

        Raises:
            RoomNotFoundError: If the room does not exist.
            RoomExpiredError: If the room had expired (it is deleted).
        """
        code = normalize_room_code(room_code)

        def run(tx: RoomTransaction) -> MutationResult[T] | _Expired:
            if tx.snapshot is None:
                raise RoomNotFoundError(code)
            now = self.clock()
            room = Room.from_document(tx.snapshot)
            if room.is_expired(now):
                tx.delete()
                return _Expired(room.expires_at)

            value = mutator(room, now)
            if not room.present_players:
                tx.delete()
                return MutationResult(value, None, deleted=True)
            document = room.to_document()
            if document != tx.snapshot:
                tx.set(document)
            return MutationResult(value, room)

        outcome: Any = await self.store.run_transaction(code, run)
        if isinstance(outcome, _Expired):
            logger.info("Expired room deleted", room_code=code)
            raise RoomExpiredError(code, outcome.expired_at)
        if outcome.deleted:
            logger.info("Room deleted after last player left", room_code=code)
        return outcome
