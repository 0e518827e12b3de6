"""Role and word assignment for a new round."""

from __future__ import annotations

from typing import TYPE_CHECKING

from impostor_py.exceptions import (
    GameAlreadyStartedError,
    InsufficientPlayersError,
    NoCategoriesSelectedError,
    NotHostError,
)
from impostor_py.game.models import Player, RoundState
from impostor_py.game.types import RoomStatus, TurnDirection

if TYPE_CHECKING:
    import random
    from datetime import datetime

    from impostor_py.game.catalog import CategoryCatalog
    from impostor_py.game.models import Room

IMPOSTOR_SENTINEL = "ERES EL IMPOSTOR"
MIN_PLAYERS = 3


def resolve_impostor_count(configured: int, player_count: int) -> int:
    """Number of impostors to draw for a round.

    The configured count is capped at a third of the table, rounded down, with a
    floor of one. A count saved when more players were seated is clamped the
    same way, so a shrunken table never starts a round the impostors have
    already won.
    """
    ceiling = max(1, player_count // 3)
    if configured >= player_count:
        return ceiling
    return min(max(1, configured), ceiling)


def build_turn_order(players: list[Player], starting_id: str, direction: TurnDirection) -> list[str]:
    """Player ids in speaking order, starting at ``starting_id``.

    LEFT walks forward through join order, RIGHT walks backwards.
    """
    ids = [player.id for player in players]
    start = ids.index(starting_id)
    step = 1 if direction == TurnDirection.LEFT else -1
    return [ids[(start + step * offset) % len(ids)] for offset in range(len(ids))]


def start_round(
    room: Room,
    *,
    requester_id: str,
    catalog: CategoryCatalog,
    rng: random.Random,
    now: datetime,
    min_players: int = MIN_PLAYERS,
) -> list[str]:
    """Validate and start a round on ``room`` in place.

    Every precondition is checked before the room is touched, so a raised error
    leaves it unchanged.

    Args:
        room: Fresh snapshot of the room.
        requester_id: Player asking to start; must be the host.
        catalog: Category catalog for word lookup.
        rng: Random source.
        now: Transaction time.
        min_players: Minimum table size.

    Returns:
        Ids of the players chosen as impostors.

    Raises:
        NotHostError: If the requester is not the host.
        GameAlreadyStartedError: If the room is not in the lobby.
        InsufficientPlayersError: If fewer than ``min_players`` are present.
        NoCategoriesSelectedError: If no category is selected.
        EmptyWordPoolError: If the selected categories hold no words.
    """
    if not room.is_host(requester_id):
        raise NotHostError(requester_id)
    if room.status != RoomStatus.WAITING:
        raise GameAlreadyStartedError(room.code, room.status.value)

    players = room.present_players
    if len(players) < min_players:
        raise InsufficientPlayersError(min_players, len(players))
    if not room.selected_categories:
        raise NoCategoriesSelectedError()

    category, entry = catalog.choose(room.selected_categories, rng)
    count = resolve_impostor_count(room.impostor_count, len(players))
    impostor_ids = {player.id for player in rng.sample(players, count)}

    decoy = entry.similar if room.impostor_mode else None
    clue = entry.clue if room.show_clues and not room.impostor_mode else None

    for player in players:
        player.reset_round_state()
        player.is_impostor = player.id in impostor_ids
        if not player.is_impostor:
            player.word = entry.word
        elif decoy:
            player.word = decoy
        else:
            player.word = IMPOSTOR_SENTINEL
            player.clue = clue

    starting = rng.choice(players)
    direction = rng.choice(list(TurnDirection))
    room.game_state = RoundState(
        category=category.id,
        starting_player=starting.name,
        direction=direction,
        turn_order=build_turn_order(players, starting.id, direction),
        started_at=now,
    )
    room.status = RoomStatus.PLAYING
    return sorted(impostor_ids)
