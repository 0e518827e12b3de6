"""Tests for room creation, joining, subscription and settings."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from impostor_py.exceptions import (
    GameAlreadyStartedError,
    InvalidPhaseError,
    InvalidPlayerNameError,
    InvalidSettingsError,
    NameTakenError,
    NoCategoriesSelectedError,
    NotHostError,
    RoomExpiredError,
    RoomFullError,
    RoomNotFoundError,
    StoreError,
    UnknownAvatarError,
)
from impostor_py.game.types import RoomStatus

if TYPE_CHECKING:
    from impostor_py.game.models import Room
    from impostor_py.services.game import GameService
    from impostor_py.storage.memory import InMemoryRoomStore

    from .conftest import FakeClock, SeatPlayers, StartRound


class TestCreateRoom:
    """Tests for RoomService.create_room."""

    @pytest.mark.asyncio
    async def test_create_room(self, game: GameService, clock: FakeClock) -> None:
        """Test that the creator is seated as host with every category selected."""
        seat = await game.rooms.create_room("  Ana ", avatar=4)
        room = await game.rooms.get_room(seat.room_code)

        assert len(seat.room_code) == 6
        assert room.status == RoomStatus.WAITING
        assert room.host == seat.player_id
        assert [(p.name, p.avatar, p.is_host) for p in room.players] == [("Ana", 4, True)]
        assert room.selected_categories == ["frutas", "colores", "vacia"]
        assert room.expires_at == clock.now + game.settings.room_ttl

    @pytest.mark.asyncio
    async def test_client_supplied_player_id(self, game: GameService) -> None:
        """Test that a client-generated id is kept."""
        seat = await game.rooms.create_room("Ana", player_id="device-1")
        assert seat.player_id == "device-1"

    @pytest.mark.asyncio
    async def test_blank_name(self, game: GameService) -> None:
        """Test that a blank host name is rejected."""
        with pytest.raises(InvalidPlayerNameError):
            await game.rooms.create_room("   ")

    @pytest.mark.asyncio
    async def test_unknown_avatar(self, game: GameService) -> None:
        """Test that avatars outside the catalog are rejected."""
        with pytest.raises(UnknownAvatarError):
            await game.rooms.create_room("Ana", avatar=99)

    @pytest.mark.asyncio
    async def test_code_collisions_exhausted(self, game: GameService, store: InMemoryRoomStore) -> None:
        """Test that creation gives up when every generated code is taken."""
        game.rooms.settings.room_code_attempts = 3

        async def always_taken(room_code: str, document: dict) -> bool:
            return False

        store.create = always_taken  # type: ignore[method-assign]
        with pytest.raises(StoreError):
            await game.rooms.create_room("Ana")


class TestJoinRoom:
    """Tests for RoomService.join_room."""

    @pytest.mark.asyncio
    async def test_join_in_order(self, game: GameService, seat_players: SeatPlayers) -> None:
        """Test that players are listed in join order and the creator stays host."""
        code, ids = await seat_players("Ana", "Luis", "Marta")
        room = await game.rooms.get_room(code)
        assert [p.id for p in room.players] == ids
        assert room.host == ids[0]

    @pytest.mark.asyncio
    async def test_code_is_normalized(self, game: GameService) -> None:
        """Test that lowercase codes with spaces find the room."""
        seat = await game.rooms.create_room("Ana")
        spaced = " ".join(seat.room_code.lower())
        joined = await game.rooms.join_room(spaced, "Luis")
        assert joined.room_code == seat.room_code

    @pytest.mark.asyncio
    async def test_unknown_room(self, game: GameService) -> None:
        """Test that joining a missing room raises RoomNotFoundError."""
        with pytest.raises(RoomNotFoundError):
            await game.rooms.join_room("ZZZZZZ", "Luis")

    @pytest.mark.asyncio
    async def test_name_taken(self, game: GameService) -> None:
        """Test that a second player cannot use a taken name."""
        seat = await game.rooms.create_room("Ana")
        with pytest.raises(NameTakenError):
            await game.rooms.join_room(seat.room_code, "Ana")

    @pytest.mark.asyncio
    async def test_concurrent_joins_with_same_name(self, game: GameService) -> None:
        """Test that exactly one of two racing joins gets a contested name."""
        seat = await game.rooms.create_room("Ana")
        results = await asyncio.gather(
            game.rooms.join_room(seat.room_code, "Luis"),
            game.rooms.join_room(seat.room_code, "Luis"),
            return_exceptions=True,
        )
        assert sum(isinstance(r, NameTakenError) for r in results) == 1
        room = await game.rooms.get_room(seat.room_code)
        assert [p.name for p in room.players] == ["Ana", "Luis"]

    @pytest.mark.asyncio
    async def test_retried_join_is_idempotent(self, game: GameService) -> None:
        """Test that rejoining with the same id keeps a single seat."""
        seat = await game.rooms.create_room("Ana")
        first = await game.rooms.join_room(seat.room_code, "Luis", player_id="device-2")
        second = await game.rooms.join_room(seat.room_code, "Luis", player_id="device-2")
        room = await game.rooms.get_room(seat.room_code)
        assert first == second
        assert len(room.players) == 2

    @pytest.mark.asyncio
    async def test_join_running_game(self, game: GameService, start_round: StartRound) -> None:
        """Test that late joiners are turned away."""
        code, _, _ = await start_round("Ana", "Luis", "Marta")
        with pytest.raises(GameAlreadyStartedError):
            await game.rooms.join_room(code, "Pablo")

    @pytest.mark.asyncio
    async def test_room_full(self, game: GameService, seat_players: SeatPlayers) -> None:
        """Test that the configured capacity is enforced."""
        game.rooms.settings.max_players = 3
        code, _ = await seat_players("Ana", "Luis", "Marta")
        with pytest.raises(RoomFullError):
            await game.rooms.join_room(code, "Pablo")


class TestExpiry:
    """Tests for room expiry on access."""

    @pytest.mark.asyncio
    async def test_expired_room_is_deleted_on_read(
        self, game: GameService, store: InMemoryRoomStore, clock: FakeClock
    ) -> None:
        """Test that reading an expired room deletes it and raises RoomExpiredError."""
        seat = await game.rooms.create_room("Ana")
        clock.advance(game.settings.room_ttl_seconds + 1)

        with pytest.raises(RoomExpiredError):
            await game.rooms.get_room(seat.room_code)
        assert await store.get(seat.room_code) is None

    @pytest.mark.asyncio
    async def test_expired_room_rejects_join(self, game: GameService, clock: FakeClock) -> None:
        """Test that joining an expired room fails and removes it."""
        seat = await game.rooms.create_room("Ana")
        clock.advance(game.settings.room_ttl_seconds + 1)

        with pytest.raises(RoomExpiredError):
            await game.rooms.join_room(seat.room_code, "Luis")
        with pytest.raises(RoomNotFoundError):
            await game.rooms.get_room(seat.room_code)

    @pytest.mark.asyncio
    async def test_room_alive_until_expiry_passes(self, game: GameService, clock: FakeClock) -> None:
        """Test that a room is still joinable at the exact instant it expires."""
        seat = await game.rooms.create_room("Ana")
        clock.advance(game.settings.room_ttl_seconds)

        await game.rooms.join_room(seat.room_code, "Luis")
        room = await game.rooms.get_room(seat.room_code)
        assert clock.now == room.expires_at
        assert len(room.players) == 2

    @pytest.mark.asyncio
    async def test_delete_room_is_idempotent(self, game: GameService) -> None:
        """Test that deleting twice reports whether anything was removed."""
        seat = await game.rooms.create_room("Ana")
        assert await game.rooms.delete_room(seat.room_code) is True
        assert await game.rooms.delete_room(seat.room_code) is False


class TestSubscription:
    """Tests for RoomService.subscribe_to_room."""

    @pytest.mark.asyncio
    async def test_snapshots_follow_changes(self, game: GameService) -> None:
        """Test that subscribers see the current room, each change and the deletion."""
        seat = await game.rooms.create_room("Ana")
        seen: list[Room | None] = []
        subscription = await game.rooms.subscribe_to_room(seat.room_code, seen.append)

        await game.rooms.join_room(seat.room_code, "Luis")
        await game.rooms.delete_room(seat.room_code)
        subscription.cancel()

        assert [len(room.players) for room in seen[:2]] == [1, 2]
        assert seen[-1] is None

    @pytest.mark.asyncio
    async def test_expired_snapshot_delivered_as_none(self, game: GameService, clock: FakeClock) -> None:
        """Test that an expired room is reported as gone and cleaned up."""
        seat = await game.rooms.create_room("Ana")
        clock.advance(game.settings.room_ttl_seconds + 1)
        seen: list[Room | None] = []

        subscription = await game.rooms.subscribe_to_room(seat.room_code, seen.append)
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        subscription.cancel()

        assert seen[0] is None
        assert await game.store.get(seat.room_code) is None

    @pytest.mark.asyncio
    async def test_unchanged_mutation_does_not_notify(self, game: GameService, seat_players: SeatPlayers) -> None:
        """Test that a no-op transaction does not produce a snapshot."""
        code, ids = await seat_players("Ana", "Luis")
        seen: list[Room | None] = []
        subscription = await game.rooms.subscribe_to_room(code, seen.append)

        await game.presence.transfer_host(code, ids[0])
        subscription.cancel()

        assert len(seen) == 1


class TestSettings:
    """Tests for RoomService.update_settings."""

    @pytest.mark.asyncio
    async def test_update_settings(self, game: GameService, seat_players: SeatPlayers) -> None:
        """Test that the host can change categories, count and clue mode."""
        code, ids = await seat_players("Ana", "Luis", "Marta", "Pablo", "Sara", "Tomas")
        room = await game.rooms.update_settings(
            code, ids[0], selected_categories=["colores", "colores"], impostor_count=2, show_clues=True
        )
        assert room.selected_categories == ["colores"]
        assert room.impostor_count == 2
        assert room.show_clues is True

    @pytest.mark.asyncio
    async def test_modes_are_exclusive(self, game: GameService, seat_players: SeatPlayers) -> None:
        """Test that enabling one impostor aid disables the other."""
        code, ids = await seat_players("Ana", "Luis", "Marta")
        await game.rooms.update_settings(code, ids[0], show_clues=True)
        room = await game.rooms.update_settings(code, ids[0], impostor_mode=True)
        assert room.impostor_mode is True
        assert room.show_clues is False

        with pytest.raises(InvalidSettingsError):
            await game.rooms.update_settings(code, ids[0], show_clues=True, impostor_mode=True)

    @pytest.mark.asyncio
    async def test_impostor_count_bounds(self, game: GameService, seat_players: SeatPlayers) -> None:
        """Test that the count is limited to a third of the table."""
        code, ids = await seat_players("Ana", "Luis", "Marta", "Pablo", "Sara")
        with pytest.raises(InvalidSettingsError):
            await game.rooms.update_settings(code, ids[0], impostor_count=2)
        with pytest.raises(InvalidSettingsError):
            await game.rooms.update_settings(code, ids[0], impostor_count=0)

    @pytest.mark.asyncio
    async def test_category_validation(self, game: GameService, seat_players: SeatPlayers) -> None:
        """Test that empty and unknown category lists are rejected."""
        code, ids = await seat_players("Ana", "Luis", "Marta")
        with pytest.raises(NoCategoriesSelectedError):
            await game.rooms.update_settings(code, ids[0], selected_categories=[])
        with pytest.raises(InvalidSettingsError):
            await game.rooms.update_settings(code, ids[0], selected_categories=["animales"])

    @pytest.mark.asyncio
    async def test_host_only(self, game: GameService, seat_players: SeatPlayers) -> None:
        """Test that other players cannot change settings."""
        code, ids = await seat_players("Ana", "Luis", "Marta")
        with pytest.raises(NotHostError):
            await game.rooms.update_settings(code, ids[1], show_clues=True)

    @pytest.mark.asyncio
    async def test_lobby_only(self, game: GameService, start_round: StartRound) -> None:
        """Test that settings are frozen during a round."""
        code, ids, _ = await start_round("Ana", "Luis", "Marta")
        with pytest.raises(InvalidPhaseError):
            await game.rooms.update_settings(code, ids[0], show_clues=True)
