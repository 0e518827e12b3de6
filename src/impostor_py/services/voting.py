"""Voting and resolution: vote collection, results and returning to the lobby."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from impostor_py.game import voting
from impostor_py.services.base import RoomServiceBase

if TYPE_CHECKING:
    from datetime import datetime

    from impostor_py.game.models import Room
    from impostor_py.game.types import GameOutcome
    from impostor_py.game.voting import PlannedTransition

logger = structlog.get_logger(__name__)


class VotingService(RoomServiceBase):
    """Runs the voting transitions inside store transactions."""

    async def initiate_voting(self, room_code: str, requester_id: str) -> Room:
        """Open a vote (host only). Already-open votes are left alone.

        Raises:
            NotHostError: If the requester is not the host.
            InvalidPhaseError: If the room is not playing.
        """
        result = await self._mutate(room_code, lambda room, now: voting.open_voting(room, requester_id))
        if result.value:
            logger.info("Voting started", room_code=result.room.code, voters=len(result.room.active_players))
        return result.room

    async def cast_vote(self, room_code: str, voter_id: str, target_id: str) -> Room:
        """Record a vote, overwriting the voter's previous one.

        Raises:
            InvalidPhaseError: If votes are not being collected.
            IneligibleVoterError: If the voter cannot vote.
            InvalidTargetError: If the target cannot be voted for.
        """
        result = await self._mutate(room_code, lambda room, now: voting.cast_vote(room, voter_id, target_id))
        logger.debug("Vote cast", room_code=result.room.code, voter_id=voter_id, target_id=target_id)
        return result.room

    async def reveal_results(self, room_code: str) -> bool:
        """Show the tally if every eligible voter has voted.

        Returns:
            False when the vote is incomplete or already revealed.
        """
        result = await self._mutate(room_code, lambda room, now: voting.reveal_results(room))
        if result.value:
            tally = voting.tally_votes(result.room)
            logger.info(
                "Vote results revealed",
                room_code=result.room.code,
                result=tally.result.value,
                eliminated_id=tally.eliminated_id,
            )
        return result.value

    async def check_abandonment(self, room_code: str) -> GameOutcome | None:
        """End the round if departures have already decided it.

        Returns:
            The forced winner, or None.
        """
        result = await self._mutate(room_code, lambda room, now: voting.force_game_over(room))
        if result.value is not None:
            logger.info("Round decided by abandonment", room_code=room_code, outcome=result.value.value)
        return result.value

    async def apply_automatic_transition(self, room_code: str) -> PlannedTransition | None:
        """Apply the automatic transition the current room calls for, if any.

        The decision is re-made inside the transaction, so a stale trigger from
        an old snapshot does nothing.
        """

        def apply(room: Room, now: datetime) -> PlannedTransition | None:
            return voting.apply_automatic_transition(room)

        result = await self._mutate(room_code, apply)
        if result.value is not None:
            logger.info(
                "Automatic transition applied",
                room_code=room_code,
                transition=result.value.kind.value,
                outcome=result.value.outcome.value if result.value.outcome else None,
            )
        return result.value

    async def reset_votes(self, room_code: str, requester_id: str) -> Room:
        """Clear a tied vote (host only).

        Raises:
            NotHostError: If the requester is not the host.
            InvalidPhaseError: If the results on display are not a tie.
        """
        result = await self._mutate(room_code, lambda room, now: voting.reset_votes(room, requester_id))
        if result.value:
            logger.info("Votes reset after tie", room_code=result.room.code)
        return result.room

    async def continue_voting(self, room_code: str, requester_id: str) -> Room:
        """Eliminate the voted-out player and vote again (host only).

        Raises:
            NotHostError: If the requester is not the host.
            InvalidPhaseError: If the results on display are not inconclusive.
        """
        result = await self._mutate(room_code, lambda room, now: voting.continue_voting(room, requester_id))
        if result.value is not None:
            logger.info("Player eliminated", room_code=result.room.code, player_id=result.value)
        return result.room

    async def back_to_lobby(self, room_code: str, requester_id: str) -> Room:
        """Return a decided round to the lobby (host only).

        Raises:
            NotHostError: If the requester is not the host.
            InvalidPhaseError: If no winner is on display.
        """
        result = await self._mutate(room_code, lambda room, now: voting.back_to_lobby(room, requester_id))
        if result.value:
            logger.info("Returned to lobby", room_code=result.room.code, players=len(result.room.players))
        return result.room
