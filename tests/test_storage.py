"""Tests for the in-memory room store."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from impostor_py.storage.base import RoomStoreProtocol, RoomTransaction
from impostor_py.storage.memory import InMemoryRoomStore

T0 = datetime(2024, 5, 1, 18, 0, tzinfo=UTC)


def room_document(code: str = "ABC234", expires_at: datetime | None = None, **fields: Any) -> dict[str, Any]:
    """Create a minimal room document for testing."""
    return {
        "code": code,
        "status": "waiting",
        "players": [],
        "expiresAt": (expires_at or T0 + timedelta(hours=4)).isoformat(),
        **fields,
    }


class TestInMemoryRoomStore:
    """Tests for document operations in InMemoryRoomStore."""

    def test_implements_protocol(self, store: InMemoryRoomStore) -> None:
        """Test that the store satisfies RoomStoreProtocol."""
        assert isinstance(store, RoomStoreProtocol)

    @pytest.mark.asyncio
    async def test_create_and_get(self, store: InMemoryRoomStore) -> None:
        """Test creating and retrieving a document."""
        assert await store.create("ABC234", room_document()) is True
        assert (await store.get("ABC234"))["code"] == "ABC234"
        assert await store.get("ZZZZZZ") is None

    @pytest.mark.asyncio
    async def test_create_existing_code(self, store: InMemoryRoomStore) -> None:
        """Test that create refuses a taken code and keeps the original."""
        await store.create("ABC234", room_document(status="waiting"))
        assert await store.create("ABC234", room_document(status="playing")) is False
        assert (await store.get("ABC234"))["status"] == "waiting"

    @pytest.mark.asyncio
    async def test_documents_are_copied(self, store: InMemoryRoomStore) -> None:
        """Test that callers cannot mutate stored state through returned documents."""
        document = room_document()
        await store.create("ABC234", document)
        document["status"] = "playing"
        fetched = await store.get("ABC234")
        fetched["players"].append({"id": "x"})

        stored = await store.get("ABC234")
        assert stored["status"] == "waiting"
        assert stored["players"] == []

    @pytest.mark.asyncio
    async def test_update_merges_top_level(self, store: InMemoryRoomStore) -> None:
        """Test that update overwrites only the given keys."""
        await store.create("ABC234", room_document(host="a"))
        assert await store.update("ABC234", {"status": "playing"}) is True
        stored = await store.get("ABC234")
        assert stored["status"] == "playing"
        assert stored["host"] == "a"
        assert await store.update("ZZZZZZ", {"status": "playing"}) is False

    @pytest.mark.asyncio
    async def test_set_and_delete(self, store: InMemoryRoomStore) -> None:
        """Test unconditional writes and idempotent deletes."""
        await store.set("ABC234", room_document())
        assert await store.delete("ABC234") is True
        assert await store.delete("ABC234") is False
        assert await store.get("ABC234") is None


class TestTransactions:
    """Tests for run_transaction."""

    @pytest.mark.asyncio
    async def test_read_modify_write(self, store: InMemoryRoomStore) -> None:
        """Test that the transaction sees the snapshot and commits its write."""
        await store.create("ABC234", room_document(counter=0))

        def bump(tx: RoomTransaction) -> int:
            value = tx.snapshot["counter"] + 1
            tx.set({**tx.snapshot, "counter": value})
            return value

        assert await store.run_transaction("ABC234", bump) == 1
        assert (await store.get("ABC234"))["counter"] == 1

    @pytest.mark.asyncio
    async def test_concurrent_transactions_serialize(self, store: InMemoryRoomStore) -> None:
        """Test that concurrent increments are not lost."""
        await store.create("ABC234", room_document(counter=0))

        def bump(tx: RoomTransaction) -> None:
            tx.set({**tx.snapshot, "counter": tx.snapshot["counter"] + 1})

        await asyncio.gather(*(store.run_transaction("ABC234", bump) for _ in range(20)))
        assert (await store.get("ABC234"))["counter"] == 20

    @pytest.mark.asyncio
    async def test_error_aborts_without_writing(self, store: InMemoryRoomStore) -> None:
        """Test that an exception in the transaction function propagates and writes nothing."""
        await store.create("ABC234", room_document())
        version = store.version("ABC234")

        def fail(tx: RoomTransaction) -> None:
            tx.set({**tx.snapshot, "status": "playing"})
            msg = "boom"
            raise ValueError(msg)

        with pytest.raises(ValueError, match="boom"):
            await store.run_transaction("ABC234", fail)
        assert (await store.get("ABC234"))["status"] == "waiting"
        assert store.version("ABC234") == version

    @pytest.mark.asyncio
    async def test_read_only_transaction_does_not_bump_version(self, store: InMemoryRoomStore) -> None:
        """Test that a transaction without writes commits nothing."""
        await store.create("ABC234", room_document())
        version = store.version("ABC234")
        await store.run_transaction("ABC234", lambda tx: tx.snapshot["code"])
        assert store.version("ABC234") == version

    @pytest.mark.asyncio
    async def test_transaction_delete(self, store: InMemoryRoomStore) -> None:
        """Test that a transaction can delete the document."""
        await store.create("ABC234", room_document())
        await store.run_transaction("ABC234", lambda tx: tx.delete())
        assert await store.get("ABC234") is None


class TestSubscriptions:
    """Tests for subscribe."""

    @pytest.mark.asyncio
    async def test_initial_snapshot_changes_and_deletion(self, store: InMemoryRoomStore) -> None:
        """Test that subscribers get the current document, each change and None on delete."""
        await store.create("ABC234", room_document())
        seen: list[dict[str, Any] | None] = []
        subscription = await store.subscribe("ABC234", seen.append)

        await store.update("ABC234", {"status": "playing"})
        await store.delete("ABC234")

        assert [doc["status"] if doc else None for doc in seen] == ["waiting", "playing", None]
        subscription.cancel()

    @pytest.mark.asyncio
    async def test_missing_room_delivers_none(self, store: InMemoryRoomStore) -> None:
        """Test that subscribing to a missing room delivers None first."""
        seen: list[dict[str, Any] | None] = []
        await store.subscribe("ZZZZZZ", seen.append)
        assert seen == [None]

    @pytest.mark.asyncio
    async def test_cancel_stops_deliveries(self, store: InMemoryRoomStore) -> None:
        """Test that no callback fires after cancel."""
        await store.create("ABC234", room_document())
        seen: list[dict[str, Any] | None] = []
        subscription = await store.subscribe("ABC234", seen.append)
        subscription.cancel()
        subscription.cancel()

        await store.update("ABC234", {"status": "playing"})
        assert len(seen) == 1
        assert subscription.active is False

    @pytest.mark.asyncio
    async def test_async_callbacks(self, store: InMemoryRoomStore) -> None:
        """Test that coroutine callbacks are scheduled and awaited."""
        await store.create("ABC234", room_document())
        received = asyncio.Queue()

        async def on_change(document: dict[str, Any] | None) -> None:
            await received.put(document)

        subscription = await store.subscribe("ABC234", on_change)
        first = await asyncio.wait_for(received.get(), timeout=1)
        assert first["code"] == "ABC234"
        subscription.cancel()

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_break_writer(self, store: InMemoryRoomStore) -> None:
        """Test that a raising subscriber does not fail the write that notified it."""
        await store.create("ABC234", room_document())

        def explode(document: dict[str, Any] | None) -> None:
            msg = "subscriber failure"
            raise RuntimeError(msg)

        await store.subscribe("ABC234", explode)
        assert await store.update("ABC234", {"status": "playing"}) is True


class TestExpiry:
    """Tests for delete_expired."""

    @pytest.mark.asyncio
    async def test_delete_expired(self, store: InMemoryRoomStore) -> None:
        """Test that only rooms past their expiry are deleted."""
        await store.create("OLD234", room_document("OLD234", expires_at=T0))
        await store.create("NEW234", room_document("NEW234", expires_at=T0 + timedelta(hours=1)))

        assert await store.delete_expired(T0) == 0
        assert await store.delete_expired(T0 + timedelta(seconds=1)) == 1
        assert await store.get("OLD234") is None
        assert await store.get("NEW234") is not None
