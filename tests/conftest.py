"""Pytest configuration and fixtures for impostor-py tests."""

from __future__ import annotations

import random
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta

import pytest

from impostor_py.core.settings import ImpostorSettings
from impostor_py.game.catalog import CategoryCatalog
from impostor_py.game.models import Room
from impostor_py.services.game import GameService
from impostor_py.storage.memory import InMemoryRoomStore

SeatPlayers = Callable[..., Awaitable[tuple[str, list[str]]]]
StartRound = Callable[..., Awaitable[tuple[str, list[str], Room]]]
StaleHostMidVote = Callable[[GameService], Awaitable[tuple[str, str, Room]]]


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


# Core fixtures


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at a fixed instant until advanced."""
    return FakeClock(datetime(2024, 5, 1, 18, 0, tzinfo=UTC))


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source for reproducible codes and roles."""
    return random.Random(1234)


@pytest.fixture
def store() -> InMemoryRoomStore:
    """Create a fresh InMemoryRoomStore instance for each test."""
    return InMemoryRoomStore()


@pytest.fixture
def catalog() -> CategoryCatalog:
    """A one-word catalog so the round's word is predictable."""
    return CategoryCatalog.from_dicts(
        [
            {
                "id": "frutas",
                "name": "Frutas",
                "words": [{"word": "manzana", "similar": "pera", "clues": {"easy": "Roja o verde", "hard": "Newton"}}],
            },
            {"id": "colores", "name": "Colores", "words": ["azul"]},
            {"id": "vacia", "name": "Vacía", "words": []},
        ]
    )


@pytest.fixture
def settings() -> ImpostorSettings:
    """Settings with no delays so reactive behaviour is immediate."""
    return ImpostorSettings(
        heartbeat_interval_seconds=3600,
        heartbeat_jitter_seconds=0,
        prune_min_interval_seconds=0,
        vote_settle_delay_seconds=0,
    )


@pytest.fixture
def game(
    store: InMemoryRoomStore,
    settings: ImpostorSettings,
    catalog: CategoryCatalog,
    clock: FakeClock,
    rng: random.Random,
) -> GameService:
    """GameService over the in-memory store with the fake clock and seeded rng."""
    return GameService(store, settings=settings, catalog=catalog, clock=clock, rng=rng)


# Scenario helpers


@pytest.fixture
def seat_players(game: GameService, clock: FakeClock) -> SeatPlayers:
    """Create a room hosted by the first name and seat the others in order.

    The clock advances one second between joins so seniority follows join order.
    """

    async def _seat(*names: str) -> tuple[str, list[str]]:
        seat = await game.rooms.create_room(names[0])
        ids = [seat.player_id]
        for name in names[1:]:
            clock.advance(1)
            ids.append((await game.rooms.join_room(seat.room_code, name)).player_id)
        return seat.room_code, ids

    return _seat


@pytest.fixture
def start_round(game: GameService, seat_players: SeatPlayers) -> StartRound:
    """Seat players, restrict the room to the one-word category and start a round."""

    async def _start(*names: str, impostor_count: int = 1) -> tuple[str, list[str], Room]:
        code, ids = await seat_players(*names)
        await game.rooms.update_settings(
            code, ids[0], selected_categories=["frutas"], impostor_count=impostor_count if impostor_count > 1 else None
        )
        room = await game.session.start_game(code, ids[0])
        return code, ids, room

    return _start


@pytest.fixture
def stale_host_mid_vote(clock: FakeClock) -> StaleHostMidVote:
    """Open a vote at a five-player table whose citizen host then goes quiet.

    Works against any store, so the same race can be replayed on each backend.
    Returns the room code, the stale host's id and the room as it stands.
    """

    async def _setup(game: GameService) -> tuple[str, str, Room]:
        seat = await game.rooms.create_room("Ana")
        code, ids = seat.room_code, [seat.player_id]
        for name in ("Luis", "Marta", "Pablo", "Sara"):
            clock.advance(1)
            ids.append((await game.rooms.join_room(code, name)).player_id)
        await game.rooms.update_settings(code, ids[0], selected_categories=["frutas"])
        room = await game.session.start_game(code, ids[0])

        host = next(p.id for p in room.players if not p.is_impostor)
        if host != ids[0]:
            await game.presence.transfer_host(code, host, requester_id=ids[0])
        others = [pid for pid in ids if pid != host]
        await game.voting.initiate_voting(code, host)
        await game.voting.cast_vote(code, host, others[0])
        await game.voting.cast_vote(code, others[0], host)
        await game.voting.cast_vote(code, others[1], others[0])

        clock.advance(game.settings.stale_threshold_seconds + 1)
        for player_id in others:
            await game.presence.heartbeat(code, player_id)
        return code, host, await game.rooms.get_room(code)

    return _setup
