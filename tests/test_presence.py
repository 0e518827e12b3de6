"""Tests for heartbeats, pruning and host handover."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from impostor_py.exceptions import NotHostError, RoomNotFoundError
from impostor_py.game.models import Room
from impostor_py.game.types import DepartureReason, GameOutcome
from impostor_py.services.membership import apply_departures
from impostor_py.services.presence import host_needs_replacing

if TYPE_CHECKING:
    from impostor_py.services.game import GameService

    from .conftest import FakeClock, SeatPlayers, StaleHostMidVote, StartRound


class TestHeartbeat:
    """Tests for PresenceService.heartbeat."""

    @pytest.mark.asyncio
    async def test_heartbeat_refreshes_last_seen(
        self, game: GameService, seat_players: SeatPlayers, clock: FakeClock
    ) -> None:
        """Test that a heartbeat stamps the current time."""
        code, ids = await seat_players("Ana", "Luis")
        now = clock.advance(5)

        assert await game.presence.heartbeat(code, ids[1]) is True
        room = await game.rooms.get_room(code)
        assert room.get_player(ids[1]).last_seen_at == now

    @pytest.mark.asyncio
    async def test_heartbeat_from_stranger(self, game: GameService, seat_players: SeatPlayers) -> None:
        """Test that unknown players are not re-added by a heartbeat."""
        code, _ = await seat_players("Ana", "Luis")
        assert await game.presence.heartbeat(code, "stranger") is False
        room = await game.rooms.get_room(code)
        assert len(room.players) == 2

    @pytest.mark.asyncio
    async def test_heartbeat_missing_room(self, game: GameService) -> None:
        """Test that heartbeats to a deleted room raise RoomNotFoundError."""
        with pytest.raises(RoomNotFoundError):
            await game.presence.heartbeat("ZZZZZZ", "player_1")


class TestPrune:
    """Tests for PresenceService.prune_inactive_players."""

    @pytest.mark.asyncio
    async def test_prunes_only_stale_players(
        self, game: GameService, seat_players: SeatPlayers, clock: FakeClock
    ) -> None:
        """Test that players past the threshold are removed and the rest stay."""
        code, ids = await seat_players("Ana", "Luis", "Marta")
        clock.advance(game.settings.stale_threshold_seconds + 1)
        await game.presence.heartbeat(code, ids[0])
        await game.presence.heartbeat(code, ids[2])

        result = await game.presence.prune_inactive_players(code)

        assert result.removed == (ids[1],)
        room = await game.rooms.get_room(code)
        assert [p.id for p in room.players] == [ids[0], ids[2]]

    @pytest.mark.asyncio
    async def test_stale_host_replaced_in_one_commit(
        self, game: GameService, seat_players: SeatPlayers, clock: FakeClock
    ) -> None:
        """Test that pruning a vanished host promotes the next player to have joined."""
        code, ids = await seat_players("Ana", "Luis", "Marta")
        clock.advance(60)
        await game.presence.heartbeat(code, ids[1])
        await game.presence.heartbeat(code, ids[2])
        room = await game.rooms.get_room(code)
        assert host_needs_replacing(room, clock.now, game.settings.stale_threshold)
        version = game.store.version(code)

        result = await game.presence.prune_inactive_players(code)

        assert result.removed == (ids[0],)
        assert result.host == ids[1]
        assert game.store.version(code) == version + 1
        room = await game.rooms.get_room(code)
        assert [p.id for p in room.players if p.is_host] == [ids[1]]

    @pytest.mark.asyncio
    async def test_nothing_stale_writes_nothing(self, game: GameService, seat_players: SeatPlayers) -> None:
        """Test that a prune with no stale players leaves the room alone."""
        code, _ = await seat_players("Ana", "Luis")
        version = game.store.version(code)

        result = await game.presence.prune_inactive_players(code)

        assert result.removed == ()
        assert game.store.version(code) == version

    @pytest.mark.asyncio
    async def test_explicit_threshold(self, game: GameService, seat_players: SeatPlayers, clock: FakeClock) -> None:
        """Test that callers can prune with their own cutoff."""
        code, ids = await seat_players("Ana", "Luis")
        clock.advance(5)
        await game.presence.heartbeat(code, ids[0])

        result = await game.presence.prune_inactive_players(code, threshold=timedelta(seconds=2))
        assert result.removed == (ids[1],)

    @pytest.mark.asyncio
    async def test_everyone_stale_deletes_room(
        self, game: GameService, seat_players: SeatPlayers, clock: FakeClock
    ) -> None:
        """Test that pruning the whole table deletes the room."""
        code, _ = await seat_players("Ana", "Luis")
        clock.advance(120)

        result = await game.presence.prune_inactive_players(code)

        assert result.room_deleted is True
        assert await game.store.get(code) is None

    @pytest.mark.asyncio
    async def test_prune_during_round_checks_abandonment(
        self, game: GameService, start_round: StartRound, clock: FakeClock
    ) -> None:
        """Test that a pruned impostor ends the round."""
        code, ids, room = await start_round("Ana", "Luis", "Marta", "Pablo")
        impostor = next(p.id for p in room.players if p.is_impostor)
        clock.advance(60)
        for player_id in ids:
            if player_id != impostor:
                await game.presence.heartbeat(code, player_id)

        result = await game.presence.prune_inactive_players(code)

        assert result.removed == (impostor,)
        assert result.outcome == GameOutcome.CITIZENS_WIN


class TestTransferHost:
    """Tests for PresenceService.transfer_host."""

    @pytest.mark.asyncio
    async def test_host_hands_over(self, game: GameService, seat_players: SeatPlayers) -> None:
        """Test that the host can pass host privileges on."""
        code, ids = await seat_players("Ana", "Luis", "Marta")
        assert await game.presence.transfer_host(code, ids[2], requester_id=ids[0]) is True
        room = await game.rooms.get_room(code)
        assert room.host == ids[2]
        assert [p.id for p in room.players if p.is_host] == [ids[2]]

    @pytest.mark.asyncio
    async def test_requester_must_be_host(self, game: GameService, seat_players: SeatPlayers) -> None:
        """Test that a non-host cannot take over."""
        code, ids = await seat_players("Ana", "Luis")
        with pytest.raises(NotHostError):
            await game.presence.transfer_host(code, ids[1], requester_id=ids[1])

    @pytest.mark.asyncio
    async def test_absent_target_is_noop(self, game: GameService, seat_players: SeatPlayers) -> None:
        """Test that transferring to someone who left changes nothing."""
        code, ids = await seat_players("Ana", "Luis")
        await game.membership.leave_room(code, ids[1])

        assert await game.presence.transfer_host(code, ids[1]) is False
        room = await game.rooms.get_room(code)
        assert room.host == ids[0]


class TestConcurrentDepartures:
    """Tests for prunes and leaves racing on the same stale host."""

    @pytest.mark.asyncio
    async def test_duplicate_prunes_and_leaves_apply_once(
        self, game: GameService, stale_host_mid_vote: StaleHostMidVote
    ) -> None:
        """Test that two prunes and two leaves from different clients converge on one departure."""
        code, host, before = await stale_host_mid_vote(game)
        expected = Room.from_document(before.to_document())
        apply_departures(expected, [host], DepartureReason.LEAVE, now=game.clock())
        version = game.store.version(code)

        results = await asyncio.gather(
            game.presence.prune_inactive_players(code),
            game.presence.prune_inactive_players(code),
            game.membership.leave_room(code, host),
            game.membership.leave_room(code, host),
        )

        assert [r.removed for r in results].count((host,)) == 1
        assert all(r.removed in {(), (host,)} for r in results)
        assert all(r.outcome is None and not r.room_deleted for r in results)
        assert {r.host for r in results} == {expected.host}
        assert game.store.version(code) == version + 1

        room = await game.rooms.get_room(code)
        assert room.to_document() == expected.to_document()
        assert [p.id for p in room.players if p.is_host] == [expected.host]
        assert host not in room.voting_phase.votes
        assert host not in room.voting_phase.votes.values()
        assert len(room.voting_phase.votes) == 1
