"""Game rules for impostor-py.

This package contains the room document model, the static catalogs and the pure
transitions of the game state machine (role assignment, voting, win detection).
"""

from __future__ import annotations

__all__ = [
    "IMPOSTOR_SENTINEL",
    "AutomaticTransition",
    "Avatar",
    "AvatarCatalog",
    "Category",
    "CategoryCatalog",
    "DepartureReason",
    "GameOutcome",
    "KickRecord",
    "Phase",
    "PhaseView",
    "Player",
    "Room",
    "RoomStatus",
    "RoundResult",
    "RoundState",
    "TurnDirection",
    "VoteTally",
    "VotingPhase",
    "WordEntry",
    "describe_phase",
    "tally_votes",
]

from impostor_py.game.avatars import Avatar, AvatarCatalog
from impostor_py.game.catalog import Category, CategoryCatalog, WordEntry
from impostor_py.game.models import KickRecord, Player, Room, RoundState, VotingPhase
from impostor_py.game.roles import IMPOSTOR_SENTINEL
from impostor_py.game.types import (
    AutomaticTransition,
    DepartureReason,
    GameOutcome,
    Phase,
    RoomStatus,
    RoundResult,
    TurnDirection,
)
from impostor_py.game.voting import PhaseView, VoteTally, describe_phase, tally_votes
