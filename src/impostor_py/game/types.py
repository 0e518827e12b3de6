"""Type definitions for the impostor game state machine."""

from __future__ import annotations

from enum import StrEnum


class RoomStatus(StrEnum):
    """Persisted status of a room.

    The room cycles WAITING -> PLAYING -> VOTING -> WAITING. VOTING may also be
    entered from PLAYING when an abandonment win is detected, and loops into
    itself for re-votes.
    """

    WAITING = "waiting"  # Lobby, accepting players
    PLAYING = "playing"  # Roles assigned, conversational turns
    VOTING = "voting"  # Vote collection or results display


class GameOutcome(StrEnum):
    """Winner of a round."""

    CITIZENS_WIN = "citizens_win"
    IMPOSTORS_WIN = "impostors_win"


class DepartureReason(StrEnum):
    """Why a player is being removed from a room."""

    LEAVE = "leave"  # Voluntary leave, disconnect or stale-heartbeat prune
    KICK = "kick"  # Removed by the host, permanently barred


class TurnDirection(StrEnum):
    """Direction in which conversational turns travel around the table."""

    LEFT = "left"
    RIGHT = "right"


class Phase(StrEnum):
    """Explicit phase derived from a room snapshot."""

    WAITING = "waiting"
    PLAYING = "playing"
    VOTING = "voting"  # Votes being collected
    RESULTS = "results"  # Tally or forced game over on display


class RoundResult(StrEnum):
    """What the results screen shows."""

    TIE = "tie"  # No votes, or two or more targets share the maximum
    INCONCLUSIVE = "inconclusive"  # Someone eliminated, game continues
    CITIZENS_WIN = "citizens_win"
    IMPOSTORS_WIN = "impostors_win"


class AutomaticTransition(StrEnum):
    """Corrective transitions that fire without a user action."""

    FORCE_GAME_OVER = "force_game_over"  # Abandonment decided the round
    REVEAL_RESULTS = "reveal_results"  # Every eligible voter has voted
