"""SQLAlchemy-backed room store for impostor-py."""

from __future__ import annotations

import asyncio
import copy
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from impostor_py.exceptions import StoreError, TransactionConflictError
from impostor_py.storage.base import RoomTransaction, Subscription, document_expires_at
from impostor_py.storage.db.models import RoomModel

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from impostor_py.storage.base import Document, SnapshotCallback, T
    from impostor_py.storage.db.setup import DatabaseManager

logger = structlog.get_logger(__name__)


class DatabaseRoomStore:
    """Room store persisting documents in a SQL database.

    Transactions use optimistic concurrency: the row is read with its version,
    the transaction function runs, and the write only applies if the version is
    unchanged. On conflict the function is run again against the fresh row, up
    to ``max_attempts`` times. Subscriptions poll the row version.

    Attributes:
        _db: Database manager providing sessions.
        _max_attempts: Transaction retries before raising.
        _poll_interval: Seconds between subscription polls.
        _pollers: Poll tasks keyed by subscription.
    """

    def __init__(self, db: DatabaseManager, *, max_attempts: int = 5, poll_interval: float = 1.0) -> None:
        """Initialize the store.

        Args:
            db: Database manager. It may be initialised later, before first use.
            max_attempts: Transaction retries before raising TransactionConflictError.
            poll_interval: Seconds between subscription polls.
        """
        self._db = db
        self._max_attempts = max_attempts
        self._poll_interval = poll_interval
        self._pollers: dict[Subscription, asyncio.Task[None]] = {}

    async def get(self, code: str) -> Document | None:
        _, document = await self._read(code)
        return document

    async def create(self, code: str, document: Document) -> bool:
        try:
            async with self._db.session() as session:
                session.add(self._new_row(code, document))
                await session.flush()
        except IntegrityError:
            return False
        except SQLAlchemyError as e:
            msg = f"Failed to create room {code}: {e}"
            raise StoreError(msg) from e
        return True

    async def set(self, code: str, document: Document) -> None:
        await self.run_transaction(code, lambda tx: tx.set(document))

    async def update(self, code: str, fields: Document) -> bool:
        def merge(tx: RoomTransaction) -> bool:
            if tx.snapshot is None:
                return False
            tx.set({**tx.snapshot, **fields})
            return True

        return await self.run_transaction(code, merge)

    async def delete(self, code: str) -> bool:
        def remove(tx: RoomTransaction) -> bool:
            if tx.snapshot is None:
                return False
            tx.delete()
            return True

        return await self.run_transaction(code, remove)

    async def run_transaction(self, code: str, fn: Callable[[RoomTransaction], T]) -> T:
        for attempt in range(1, self._max_attempts + 1):
            try:
                async with self._db.session() as session:
                    row = await self._load(session, code)
                    transaction = RoomTransaction(code, row.document if row else None)
                    result = fn(transaction)
                    if not transaction.has_writes:
                        return result
                    committed = await self._apply(session, code, row, transaction)
                if committed:
                    return result
            except IntegrityError:
                # Another writer inserted the same code first
                pass
            except SQLAlchemyError as e:
                msg = f"Transaction on room {code} failed: {e}"
                raise StoreError(msg) from e
            logger.debug("Room transaction conflict, retrying", room_code=code, attempt=attempt)

        logger.warning("Room transaction gave up after conflicts", room_code=code, attempts=self._max_attempts)
        raise TransactionConflictError(code, self._max_attempts)

    async def subscribe(self, code: str, callback: SnapshotCallback) -> Subscription:
        subscription = Subscription(code, callback, on_cancel=self._stop_polling)
        version, document = await self._read(code)
        subscription.deliver(document)
        if subscription.active:
            self._pollers[subscription] = asyncio.create_task(self._poll(subscription, version))
        logger.debug("Room subscription opened", room_code=code)
        return subscription

    async def delete_expired(self, now: datetime) -> int:
        try:
            async with self._db.session() as session:
                result = await session.execute(
                    delete(RoomModel)
                    .where(RoomModel.expires_at < now)
                    .execution_options(synchronize_session=False)
                )
                return result.rowcount or 0
        except SQLAlchemyError as e:
            msg = f"Failed to delete expired rooms: {e}"
            raise StoreError(msg) from e

    async def close(self) -> None:
        """Cancel every open subscription."""
        for subscription in list(self._pollers):
            subscription.cancel()

    # Internal helpers

    @staticmethod
    def _new_row(code: str, document: Document) -> RoomModel:
        return RoomModel(
            code=code,
            document=copy.deepcopy(document),
            version=1,
            expires_at=document_expires_at(document),
        )

    @staticmethod
    async def _load(session: AsyncSession, code: str) -> RoomModel | None:
        return await session.scalar(select(RoomModel).where(RoomModel.code == code))

    async def _read(self, code: str) -> tuple[int | None, Document | None]:
        try:
            async with self._db.session() as session:
                row = await self._load(session, code)
                if row is None:
                    return None, None
                return row.version, copy.deepcopy(row.document)
        except SQLAlchemyError as e:
            msg = f"Failed to read room {code}: {e}"
            raise StoreError(msg) from e

    async def _apply(
        self,
        session: AsyncSession,
        code: str,
        row: RoomModel | None,
        transaction: RoomTransaction,
    ) -> bool:
        if transaction.deleted:
            if row is None:
                return True
            result = await session.execute(
                delete(RoomModel)
                .where(RoomModel.code == code, RoomModel.version == row.version)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

        document = transaction.pending
        if row is None:
            session.add(self._new_row(code, document))
            await session.flush()
            return True

        result = await session.execute(
            update(RoomModel)
            .where(RoomModel.code == code, RoomModel.version == row.version)
            .values(
                document=copy.deepcopy(document),
                version=row.version + 1,
                expires_at=document_expires_at(document),
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def _poll(self, subscription: Subscription, version: int | None) -> None:
        while subscription.active:
            await asyncio.sleep(self._poll_interval)
            try:
                current, document = await self._read(subscription.code)
            except StoreError as e:
                logger.warning("Room poll failed", room_code=subscription.code, error=str(e))
                continue
            if current != version:
                version = current
                subscription.deliver(document)

    def _stop_polling(self, subscription: Subscription) -> None:
        task = self._pollers.pop(subscription, None)
        if task is not None:
            task.cancel()
        logger.debug("Room subscription cancelled", room_code=subscription.code)
