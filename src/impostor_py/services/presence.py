"""Presence tracking: heartbeats, stale-player pruning and host handover."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from impostor_py.exceptions import NotHostError
from impostor_py.game.types import DepartureReason, GameOutcome
from impostor_py.services.base import RoomServiceBase
from impostor_py.services.membership import RemovalResult, apply_departures

if TYPE_CHECKING:
    from datetime import datetime, timedelta

    from impostor_py.game.models import Room

logger = structlog.get_logger(__name__)


def host_needs_replacing(room: Room, now: datetime, threshold: timedelta) -> bool:
    """Whether the host is missing or has stopped sending heartbeats."""
    host = room.host_player
    return host is None or host.is_stale(now, threshold)


class PresenceService(RoomServiceBase):
    """Keeps room membership in line with who is actually connected."""

    async def heartbeat(self, room_code: str, player_id: str) -> bool:
        """Refresh a player's ``lastSeenAt``.

        Returns:
            False when the player is absent, kicked or departed.

        Raises:
            RoomNotFoundError: If the room does not exist.
        """

        def beat(room: Room, now: datetime) -> bool:
            player = room.get_player(player_id)
            if player is None or not player.is_present:
                return False
            player.mark_seen(now)
            return True

        result = await self._mutate(room_code, beat)
        logger.debug("Heartbeat", room_code=room_code, player_id=player_id, accepted=result.value)
        return result.value

    async def prune_inactive_players(self, room_code: str, threshold: timedelta | None = None) -> RemovalResult:
        """Remove every present player whose heartbeat is older than ``threshold``.

        All stale players go in one batch with a single host recomputation, so
        concurrent prunes from several clients converge on the same result.

        Args:
            room_code: Room code.
            threshold: Staleness cutoff; defaults to the configured threshold.

        Returns:
            What changed.

        Raises:
            RoomNotFoundError: If the room does not exist.
        """
        cutoff = threshold if threshold is not None else self.settings.stale_threshold

        def prune(room: Room, now: datetime) -> tuple[list[str], GameOutcome | None]:
            stale = [player.id for player in room.stale_players(now, cutoff)]
            if not stale:
                return [], None
            return apply_departures(room, stale, DepartureReason.LEAVE, now=now)

        result = await self._mutate(room_code, prune)
        removed, outcome = result.value
        summary = RemovalResult(
            removed=tuple(removed),
            room_deleted=result.deleted,
            host=result.room.host if result.room else None,
            outcome=outcome,
        )
        if removed:
            logger.info(
                "Inactive players pruned",
                room_code=room_code,
                player_ids=removed,
                host=summary.host,
                room_deleted=summary.room_deleted,
            )
        if outcome is not None:
            logger.info("Round decided by abandonment", room_code=room_code, outcome=outcome.value)
        return summary

    async def transfer_host(self, room_code: str, target_id: str, *, requester_id: str | None = None) -> bool:
        """Hand host privileges to ``target_id``.

        A target that is absent, kicked or departed makes this a no-op.

        Args:
            room_code: Room code.
            target_id: New host.
            requester_id: When given, must be the current host.

        Returns:
            True if the host changed.

        Raises:
            NotHostError: If ``requester_id`` is given and is not the host.
        """

        def transfer(room: Room, now: datetime) -> bool:
            if requester_id is not None and not room.is_host(requester_id):
                raise NotHostError(requester_id)
            return room.transfer_host(target_id)

        result = await self._mutate(room_code, transfer)
        if result.value:
            logger.info("Host transferred", room_code=room_code, host=target_id)
        return result.value
