"""In-memory room store implementation for impostor-py."""

from __future__ import annotations

import asyncio
import copy
from typing import TYPE_CHECKING

import structlog

from impostor_py.storage.base import RoomTransaction, Subscription, document_expires_at

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from impostor_py.storage.base import Document, SnapshotCallback, T

logger = structlog.get_logger(__name__)


class InMemoryRoomStore:
    """Room store that keeps documents in a dictionary.

    All writes are serialised through one asyncio lock, so transactions never
    conflict. Documents are deep-copied on the way in and out so callers cannot
    mutate stored state. Subscribers are notified synchronously after each commit,
    outside the lock.

    Note:
        All data is lost when the process stops. This store is suitable for a
        single relay process, development and tests.

    Attributes:
        _documents: Room documents keyed by code.
        _versions: Commit counter per code.
        _subscriptions: Active subscriptions per code.
        _lock: Asyncio lock serialising writes.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._documents: dict[str, Document] = {}
        self._versions: dict[str, int] = {}
        self._subscriptions: dict[str, list[Subscription]] = {}
        self._lock = asyncio.Lock()

    async def get(self, code: str) -> Document | None:
        async with self._lock:
            document = self._documents.get(code)
            return copy.deepcopy(document) if document is not None else None

    async def create(self, code: str, document: Document) -> bool:
        async with self._lock:
            if code in self._documents:
                return False
            self._write(code, document)
        self._notify(code)
        return True

    async def set(self, code: str, document: Document) -> None:
        async with self._lock:
            self._write(code, document)
        self._notify(code)

    async def update(self, code: str, fields: Document) -> bool:
        async with self._lock:
            current = self._documents.get(code)
            if current is None:
                return False
            merged = {**current, **copy.deepcopy(fields)}
            self._write(code, merged)
        self._notify(code)
        return True

    async def delete(self, code: str) -> bool:
        async with self._lock:
            deleted = self._remove(code)
        if deleted:
            self._notify(code)
        return deleted

    async def run_transaction(self, code: str, fn: Callable[[RoomTransaction], T]) -> T:
        """Run ``fn`` once under the store lock and commit what it recorded."""
        async with self._lock:
            transaction = RoomTransaction(code, self._documents.get(code))
            result = fn(transaction)
            changed = False
            if transaction.deleted:
                changed = self._remove(code)
            elif transaction.pending is not None:
                self._write(code, transaction.pending)
                changed = True
        if changed:
            self._notify(code)
        return result

    async def subscribe(self, code: str, callback: SnapshotCallback) -> Subscription:
        subscription = Subscription(code, callback, on_cancel=self._unsubscribe)
        async with self._lock:
            self._subscriptions.setdefault(code, []).append(subscription)
            document = copy.deepcopy(self._documents.get(code))
        logger.debug("Room subscription opened", room_code=code)
        subscription.deliver(document)
        return subscription

    async def delete_expired(self, now: datetime) -> int:
        expired: list[str] = []
        async with self._lock:
            for code, document in list(self._documents.items()):
                expires_at = document_expires_at(document)
                if expires_at is not None and expires_at < now:
                    self._remove(code)
                    expired.append(code)
        for code in expired:
            self._notify(code)
        return len(expired)

    def version(self, code: str) -> int:
        """Number of commits made to ``code`` (0 if never written)."""
        return self._versions.get(code, 0)

    # Internal helpers (caller holds the lock)

    def _write(self, code: str, document: Document) -> None:
        self._documents[code] = copy.deepcopy(document)
        self._versions[code] = self._versions.get(code, 0) + 1

    def _remove(self, code: str) -> bool:
        if code not in self._documents:
            return False
        del self._documents[code]
        self._versions[code] = self._versions.get(code, 0) + 1
        return True

    def _notify(self, code: str) -> None:
        document = self._documents.get(code)
        for subscription in list(self._subscriptions.get(code, [])):
            subscription.deliver(document)

    def _unsubscribe(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions.get(subscription.code, [])
        if subscription in subscriptions:
            subscriptions.remove(subscription)
        if not subscriptions:
            self._subscriptions.pop(subscription.code, None)
        logger.debug("Room subscription cancelled", room_code=subscription.code)
