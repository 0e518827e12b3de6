"""Membership mutations: leave and kick.

Every removal runs as one transaction that drops (or tombstones) the player,
records kicks, scrubs votes, recomputes the host once and re-checks the
abandonment win condition. Removing a player who is already gone is a no-op, so
teardown paths can retry freely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from impostor_py.exceptions import InvalidTargetError, NotHostError, RoomNotFoundError
from impostor_py.game.types import DepartureReason, GameOutcome
from impostor_py.game.voting import force_game_over
from impostor_py.services.base import RoomServiceBase

if TYPE_CHECKING:
    from datetime import datetime

    from impostor_py.game.models import Room

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RemovalResult:
    """Outcome of a membership mutation.

    Attributes:
        removed: Ids actually removed (empty when nothing changed).
        room_deleted: Whether the room was deleted because nobody was left.
        host: Host after the mutation.
        outcome: Winner forced by the departure, if any.
    """

    removed: tuple[str, ...] = ()
    room_deleted: bool = False
    host: str | None = None
    outcome: GameOutcome | None = None


def apply_departures(
    room: Room,
    player_ids: list[str],
    reason: DepartureReason,
    *,
    now: datetime,
    by: str | None = None,
) -> tuple[list[str], GameOutcome | None]:
    """Depart players and re-check the abandonment win condition.

    Returns:
        The removed ids and the winner forced by their departure, if any.
    """
    removed = room.depart(player_ids, reason, now=now, by=by)
    outcome = force_game_over(room) if removed else None
    return removed, outcome


class MembershipService(RoomServiceBase):
    """Leaves and kicks."""

    async def remove_player(
        self,
        room_code: str,
        player_id: str,
        reason: DepartureReason = DepartureReason.LEAVE,
        *,
        by: str | None = None,
    ) -> RemovalResult:
        """Remove one player in a single transaction.

        Args:
            room_code: Room code.
            player_id: Player to remove.
            reason: Leave or kick.
            by: Requester of a kick, recorded in ``kickedPlayers``.

        Returns:
            What changed. An absent player yields an empty result.

        Raises:
            RoomNotFoundError: If the room does not exist.
        """

        def remove(room: Room, now: datetime) -> tuple[list[str], GameOutcome | None]:
            return apply_departures(room, [player_id], reason, now=now, by=by)

        result = await self._mutate(room_code, remove)
        removed, outcome = result.value
        summary = RemovalResult(
            removed=tuple(removed),
            room_deleted=result.deleted,
            host=result.room.host if result.room else None,
            outcome=outcome,
        )
        if removed:
            logger.info(
                "Player removed from room",
                room_code=room_code,
                player_id=player_id,
                reason=reason.value,
                host=summary.host,
                room_deleted=summary.room_deleted,
            )
        if outcome is not None:
            logger.info("Round decided by abandonment", room_code=room_code, outcome=outcome.value)
        return summary

    async def leave_room(self, room_code: str, player_id: str) -> RemovalResult:
        """Leave a room. Leaving a room that no longer exists is a no-op."""
        try:
            return await self.remove_player(room_code, player_id, DepartureReason.LEAVE)
        except RoomNotFoundError:
            logger.debug("Leave ignored, room already gone", room_code=room_code, player_id=player_id)
            return RemovalResult(room_deleted=True)

    async def kick_player(self, room_code: str, requester_id: str, target_id: str) -> RemovalResult:
        """Kick a player. The identity can never rejoin this room.

        Raises:
            RoomNotFoundError: If the room does not exist.
            NotHostError: If the requester is not the host.
            InvalidTargetError: If the host targets themselves or a stranger.
        """

        def kick(room: Room, now: datetime) -> tuple[list[str], GameOutcome | None]:
            if not room.is_host(requester_id):
                raise NotHostError(requester_id)
            if target_id == requester_id:
                raise InvalidTargetError(target_id, "the host cannot kick themselves")
            if target_id in room.kicked_players:
                return [], None
            target = room.get_player(target_id)
            if target is None:
                raise InvalidTargetError(target_id, "player is not in the room")
            return apply_departures(room, [target_id], DepartureReason.KICK, now=now, by=requester_id)

        result = await self._mutate(room_code, kick)
        removed, outcome = result.value
        if removed:
            logger.info("Player kicked", room_code=room_code, player_id=target_id, kicked_by=requester_id)
        if outcome is not None:
            logger.info("Round decided by abandonment", room_code=room_code, outcome=outcome.value)
        return RemovalResult(
            removed=tuple(removed),
            room_deleted=result.deleted,
            host=result.room.host if result.room else None,
            outcome=outcome,
        )
