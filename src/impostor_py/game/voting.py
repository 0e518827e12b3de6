"""Voting, tally and win detection.

Every function here works on a room snapshot in place and is meant to run inside
a store transaction. Transitions re-check their preconditions against the
snapshot they are given, so running one twice is harmless: the second run finds
the work already done and reports no change.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from impostor_py.exceptions import (
    IneligibleVoterError,
    InvalidPhaseError,
    InvalidTargetError,
    NotHostError,
)
from impostor_py.game.models import VotingPhase
from impostor_py.game.types import AutomaticTransition, GameOutcome, Phase, RoomStatus, RoundResult

if TYPE_CHECKING:
    from impostor_py.game.models import Player, Room


@dataclass(frozen=True)
class VoteTally:
    """Result of counting the current votes.

    Attributes:
        counts: Votes received per target id.
        leaders: Target ids sharing the highest count.
        eliminated_id: The single leader, or None on a tie.
        result: What the results screen should show.
    """

    counts: dict[str, int] = field(default_factory=dict)
    leaders: list[str] = field(default_factory=list)
    eliminated_id: str | None = None
    result: RoundResult = RoundResult.TIE

    @property
    def is_tie(self) -> bool:
        return self.result == RoundResult.TIE

    @property
    def winner(self) -> GameOutcome | None:
        if self.result in (RoundResult.CITIZENS_WIN, RoundResult.IMPOSTORS_WIN):
            return GameOutcome(self.result.value)
        return None


@dataclass(frozen=True)
class PhaseView:
    """Explicit phase of a room, derived from its persisted fields."""

    phase: Phase
    result: RoundResult | None = None
    tally: VoteTally | None = None

    @property
    def winner(self) -> GameOutcome | None:
        if self.result in (RoundResult.CITIZENS_WIN, RoundResult.IMPOSTORS_WIN):
            return GameOutcome(self.result.value)
        return None


@dataclass(frozen=True)
class PlannedTransition:
    """An automatic transition the host client should apply."""

    kind: AutomaticTransition
    outcome: GameOutcome | None = None


# Win conditions


def count_sides(players: list[Player]) -> tuple[int, int]:
    """Count impostors and citizens among ``players``."""
    impostors = sum(1 for player in players if player.is_impostor)
    return impostors, len(players) - impostors


def decide_winner(impostors: int, citizens: int) -> GameOutcome | None:
    """Apply the win rule to living head counts."""
    if impostors == 0:
        return GameOutcome.CITIZENS_WIN
    if impostors >= citizens:
        return GameOutcome.IMPOSTORS_WIN
    return None


def abandonment_outcome(room: Room) -> GameOutcome | None:
    """Winner decided purely by who is still at the table.

    Only applies while playing, or while voting before results are shown.
    """
    if room.status == RoomStatus.PLAYING:
        pass
    elif room.status == RoomStatus.VOTING:
        phase = room.voting_phase
        if phase is not None and (phase.show_results or phase.force_game_over):
            return None
    else:
        return None
    return decide_winner(*count_sides(room.active_players))


def tally_votes(room: Room) -> VoteTally:
    """Count votes and work out the consequence of the elimination."""
    phase = room.voting_phase
    counts = Counter(phase.votes.values()) if phase else Counter()
    if not counts:
        return VoteTally()

    top = max(counts.values())
    leaders = sorted(target for target, count in counts.items() if count == top)
    if len(leaders) > 1:
        return VoteTally(counts=dict(counts), leaders=leaders)

    eliminated = leaders[0]
    survivors = [player for player in room.active_players if player.id != eliminated]
    winner = decide_winner(*count_sides(survivors))
    return VoteTally(
        counts=dict(counts),
        leaders=leaders,
        eliminated_id=eliminated,
        result=RoundResult(winner.value) if winner else RoundResult.INCONCLUSIVE,
    )


def eligible_voter_ids(room: Room) -> set[str]:
    return {player.id for player in room.active_players}


def ready_for_tally(room: Room) -> bool:
    """Whether every eligible voter has voted in an open vote."""
    phase = room.voting_phase
    if room.status != RoomStatus.VOTING or phase is None:
        return False
    if not phase.active or phase.show_results or phase.force_game_over:
        return False
    eligible = eligible_voter_ids(room)
    cast = sum(1 for voter in phase.votes if voter in eligible)
    return bool(eligible) and cast >= len(eligible)


def describe_phase(room: Room) -> PhaseView:
    """Derive the explicit phase of a room."""
    if room.status == RoomStatus.WAITING:
        return PhaseView(Phase.WAITING)
    if room.status == RoomStatus.PLAYING:
        return PhaseView(Phase.PLAYING)

    phase = room.voting_phase
    if phase is None:
        return PhaseView(Phase.VOTING)
    if phase.force_game_over:
        return PhaseView(Phase.RESULTS, result=RoundResult(phase.force_game_over.value))
    if phase.show_results:
        tally = tally_votes(room)
        return PhaseView(Phase.RESULTS, result=tally.result, tally=tally)
    return PhaseView(Phase.VOTING)


def plan_automatic_transition(room: Room) -> PlannedTransition | None:
    """Decide which automatic transition, if any, the snapshot calls for."""
    outcome = abandonment_outcome(room)
    if outcome is not None:
        return PlannedTransition(AutomaticTransition.FORCE_GAME_OVER, outcome)
    if ready_for_tally(room):
        return PlannedTransition(AutomaticTransition.REVEAL_RESULTS)
    return None


# Transitions


def _require_host(room: Room, requester_id: str) -> None:
    if not room.is_host(requester_id):
        raise NotHostError(requester_id)


def open_voting(room: Room, requester_id: str) -> bool:
    """Move a playing room into vote collection.

    Returns:
        False when voting is already open.

    Raises:
        NotHostError: If the requester is not the host.
        InvalidPhaseError: If the room is not playing.
    """
    _require_host(room, requester_id)
    view = describe_phase(room)
    if view.phase == Phase.VOTING:
        return False
    if view.phase != Phase.PLAYING:
        raise InvalidPhaseError("start voting", view.phase.value)
    room.scrub_votes()
    room.status = RoomStatus.VOTING
    room.game_state.voting_phase = VotingPhase()
    return True


def cast_vote(room: Room, voter_id: str, target_id: str) -> None:
    """Record or overwrite a vote.

    Raises:
        InvalidPhaseError: If votes are not being collected.
        IneligibleVoterError: If the voter is dead, departed or unknown.
        InvalidTargetError: If the target is the voter, dead, departed or unknown.
    """
    view = describe_phase(room)
    if view.phase != Phase.VOTING or room.voting_phase is None:
        raise InvalidPhaseError("vote", view.phase.value)

    voter = room.get_player(voter_id)
    if voter is None or not voter.is_active:
        raise IneligibleVoterError(voter_id)
    if target_id == voter_id:
        raise InvalidTargetError(target_id, "players cannot vote for themselves")
    target = room.get_player(target_id)
    if target is None or not target.is_present:
        raise InvalidTargetError(target_id, "player is not in the room")
    if not target.is_alive:
        raise InvalidTargetError(target_id, "player has already been eliminated")

    room.voting_phase.votes[voter_id] = target_id


def force_game_over(room: Room) -> GameOutcome | None:
    """Show the results of an abandonment win.

    Returns:
        The winner, or None when abandonment does not decide the round.
    """
    outcome = abandonment_outcome(room)
    if outcome is None:
        return None
    if room.status != RoomStatus.VOTING or room.voting_phase is None:
        room.status = RoomStatus.VOTING
        room.game_state.voting_phase = VotingPhase()
    room.voting_phase.force_game_over = outcome
    room.voting_phase.show_results = True
    return outcome


def reveal_results(room: Room) -> bool:
    """Show the tally once everyone eligible has voted.

    Returns:
        False when the vote is not complete or results are already shown.
    """
    if not ready_for_tally(room):
        return False
    room.voting_phase.show_results = True
    return True


def apply_automatic_transition(room: Room) -> PlannedTransition | None:
    """Apply whatever automatic transition the snapshot calls for.

    Returns:
        The transition applied, or None.
    """
    plan = plan_automatic_transition(room)
    if plan is None:
        return None
    if plan.kind == AutomaticTransition.FORCE_GAME_OVER:
        force_game_over(room)
    else:
        reveal_results(room)
    return plan


def reset_votes(room: Room, requester_id: str) -> bool:
    """Clear a tied vote so the table can vote again.

    Returns:
        False when votes are already being collected.

    Raises:
        NotHostError: If the requester is not the host.
        InvalidPhaseError: If the results on display are not a tie.
    """
    _require_host(room, requester_id)
    view = describe_phase(room)
    if view.phase == Phase.VOTING:
        return False
    if view.phase != Phase.RESULTS or view.result != RoundResult.TIE:
        raise InvalidPhaseError("reset the vote", view.result.value if view.result else view.phase.value)
    room.voting_phase.reset()
    return True


def continue_voting(room: Room, requester_id: str) -> str | None:
    """Eliminate the voted-out player and start another vote.

    Returns:
        The eliminated player's id, or None when votes are already being collected.

    Raises:
        NotHostError: If the requester is not the host.
        InvalidPhaseError: If the results on display are not inconclusive.
    """
    _require_host(room, requester_id)
    view = describe_phase(room)
    if view.phase == Phase.VOTING:
        return None
    if view.phase != Phase.RESULTS or view.result != RoundResult.INCONCLUSIVE or view.tally is None:
        raise InvalidPhaseError("continue the game", view.result.value if view.result else view.phase.value)

    eliminated = room.get_player(view.tally.eliminated_id)
    if eliminated is not None:
        eliminated.is_alive = False
    room.voting_phase.reset()
    room.scrub_votes()
    return view.tally.eliminated_id


def back_to_lobby(room: Room, requester_id: str) -> bool:
    """Return to the lobby after a decided round.

    Returns:
        False when the room is already in the lobby.

    Raises:
        NotHostError: If the requester is not the host.
        InvalidPhaseError: If no winner is on display.
    """
    _require_host(room, requester_id)
    if room.status == RoomStatus.WAITING:
        return False
    view = describe_phase(room)
    if view.phase != Phase.RESULTS or view.winner is None:
        raise InvalidPhaseError("return to the lobby", view.result.value if view.result else view.phase.value)
    room.return_to_lobby()
    return True
