"""Room services for impostor-py."""

from __future__ import annotations

from impostor_py.services.base import MutationResult, RoomServiceBase
from impostor_py.services.game import GameService
from impostor_py.services.membership import MembershipService, RemovalResult
from impostor_py.services.presence import PresenceService, host_needs_replacing
from impostor_py.services.rooms import RoomService, SeatAssignment
from impostor_py.services.session import SessionService
from impostor_py.services.voting import VotingService

__all__ = [
    "GameService",
    "MembershipService",
    "MutationResult",
    "PresenceService",
    "RemovalResult",
    "RoomService",
    "RoomServiceBase",
    "SeatAssignment",
    "SessionService",
    "VotingService",
    "host_needs_replacing",
]
