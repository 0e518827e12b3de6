"""Room store protocol definition for impostor-py.

A room store is a transactional key-value store of JSON documents keyed by room
code. Transactions are expressed as a synchronous function over a
:class:`RoomTransaction`: the store hands it the latest snapshot, the function
records the write it wants, and the store commits it atomically. Stores with
optimistic concurrency may run the function more than once, so it must derive
everything from the snapshot it is given.
"""

from __future__ import annotations

import asyncio
import copy
import inspect
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, Protocol, TypeVar, runtime_checkable

import structlog

logger = structlog.get_logger(__name__)

Document = dict[str, Any]
SnapshotCallback = Callable[[Document | None], Awaitable[None] | None]
T = TypeVar("T")


def document_expires_at(document: Document) -> datetime | None:
    """Read the ``expiresAt`` timestamp of a room document."""
    value = document.get("expiresAt")
    if not value:
        return None
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


class RoomTransaction:
    """Read-modify-write handle given to a transaction function.

    Attributes:
        code: Room code the transaction runs against.
        snapshot: Private copy of the document as read, or None if absent.
    """

    def __init__(self, code: str, snapshot: Document | None) -> None:
        self.code = code
        self.snapshot = copy.deepcopy(snapshot) if snapshot is not None else None
        self._pending: Document | None = None
        self._deleted = False

    def set(self, document: Document) -> None:
        """Replace the document when the transaction commits."""
        self._pending = copy.deepcopy(document)
        self._deleted = False

    def delete(self) -> None:
        """Delete the document when the transaction commits."""
        self._pending = None
        self._deleted = True

    @property
    def pending(self) -> Document | None:
        return self._pending

    @property
    def deleted(self) -> bool:
        return self._deleted

    @property
    def has_writes(self) -> bool:
        return self._deleted or self._pending is not None


class Subscription:
    """Handle for a room change subscription.

    Once :meth:`cancel` returns no further callbacks are made, and callbacks
    still running asynchronously are cancelled.
    """

    def __init__(
        self,
        code: str,
        callback: SnapshotCallback,
        on_cancel: Callable[[Subscription], None] | None = None,
    ) -> None:
        self.code = code
        self._callback = callback
        self._on_cancel = on_cancel
        self._cancelled = False
        self._tasks: set[asyncio.Future[Any]] = set()

    @property
    def active(self) -> bool:
        return not self._cancelled

    def deliver(self, document: Document | None) -> None:
        """Hand a snapshot (or None for a deleted room) to the subscriber."""
        if self._cancelled:
            return
        try:
            result = self._callback(copy.deepcopy(document) if document is not None else None)
        except Exception:
            # A failing subscriber must not abort the writer that notified it.
            logger.exception("Room subscriber callback failed", room_code=self.code)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def cancel(self) -> None:
        """Stop deliveries. Safe to call more than once."""
        if self._cancelled:
            return
        self._cancelled = True
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        if self._on_cancel is not None:
            self._on_cancel(self)


@runtime_checkable
class RoomStoreProtocol(Protocol):
    """Protocol defining the room store interface.

    Every method is asynchronous. Backend failures raise ``StoreError``; errors
    raised by a transaction function propagate unchanged and nothing is written.
    """

    async def get(self, code: str) -> Document | None:
        """Read a room document.

        Args:
            code: Room code.

        Returns:
            A copy of the document, or None if it does not exist.

        Raises:
            StoreError: If the read fails.
        """
        ...

    async def create(self, code: str, document: Document) -> bool:
        """Insert a document only if the code is free.

        Args:
            code: Room code.
            document: The new document.

        Returns:
            True if inserted, False if the code is already taken.

        Raises:
            StoreError: If the write fails.
        """
        ...

    async def set(self, code: str, document: Document) -> None:
        """Replace (or create) a document unconditionally.

        Raises:
            StoreError: If the write fails.
        """
        ...

    async def update(self, code: str, fields: Document) -> bool:
        """Merge top-level fields into an existing document.

        Args:
            code: Room code.
            fields: Top-level keys to overwrite.

        Returns:
            True if the document existed and was updated.

        Raises:
            StoreError: If the write fails.
        """
        ...

    async def delete(self, code: str) -> bool:
        """Delete a document.

        Returns:
            True if a document was deleted, False if none existed.

        Raises:
            StoreError: If the delete fails.
        """
        ...

    async def run_transaction(self, code: str, fn: Callable[[RoomTransaction], T]) -> T:
        """Run an atomic read-modify-write.

        Args:
            code: Room code.
            fn: Transaction function. It may be called more than once.

        Returns:
            The value returned by the final run of ``fn``.

        Raises:
            StoreError: If the transaction cannot be committed.
        """
        ...

    async def subscribe(self, code: str, callback: SnapshotCallback) -> Subscription:
        """Subscribe to full snapshots of a room.

        The current snapshot is delivered immediately, then one per committed
        change. None is delivered when the room is deleted.

        Args:
            code: Room code.
            callback: Called with each snapshot. May return an awaitable.

        Returns:
            A cancellable subscription.
        """
        ...

    async def delete_expired(self, now: datetime) -> int:
        """Delete every room whose ``expiresAt`` is strictly before ``now``.

        Returns:
            Number of rooms deleted.
        """
        ...
