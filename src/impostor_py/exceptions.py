"""Custom exceptions for impostor-py.

Every error raised by the room state machine derives from :class:`ImpostorError`.
Validation errors are raised before anything is written, so a caller that catches
one can assume the room document is unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


class ImpostorError(Exception):
    """Base exception class for all impostor-py errors."""


# Room Lifecycle


class RoomNotFoundError(ImpostorError):
    """Raised when a room with the specified code does not exist.

    Attributes:
        room_code: The code of the room that was not found.
    """

    def __init__(self, room_code: str, message: str | None = None) -> None:
        """Initialize the exception with the room code.

        Args:
            room_code: The code of the room that was not found.
            message: Optional override for the error message.
        """
        self.room_code = room_code
        super().__init__(message or f"Room {room_code} not found")


class RoomExpiredError(RoomNotFoundError):
    """Raised when a room exists but its lifetime has elapsed.

    The room is deleted as a side effect of detecting the expiry. Subclassing
    :class:`RoomNotFoundError` lets callers treat both cases identically.

    Attributes:
        room_code: The code of the expired room.
        expired_at: When the room expired.
    """

    def __init__(self, room_code: str, expired_at: datetime | None = None) -> None:
        """Initialize the exception.

        Args:
            room_code: The code of the expired room.
            expired_at: When the room expired.
        """
        super().__init__(room_code, f"Room {room_code} has expired")
        self.expired_at = expired_at


class GameAlreadyStartedError(ImpostorError):
    """Raised when joining a room whose game is already underway."""

    def __init__(self, room_code: str, status: str) -> None:
        self.room_code = room_code
        self.status = status
        super().__init__(f"Room {room_code} is not accepting players (status: {status})")


class NameTakenError(ImpostorError):
    """Raised when a player name is already used by someone in the room.

    Attributes:
        name: The requested name.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"The name '{name}' is already taken in this room")


class InvalidPlayerNameError(ImpostorError):
    """Raised when a player name is empty after trimming."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("Player name must not be empty")


class RoomFullError(ImpostorError):
    """Raised when a room has reached its player capacity."""

    def __init__(self, room_code: str, capacity: int) -> None:
        self.room_code = room_code
        self.capacity = capacity
        super().__init__(f"Room {room_code} is full ({capacity} players)")


class PlayerKickedError(ImpostorError):
    """Raised when a kicked player identity tries to join the room again."""

    def __init__(self, player_id: str) -> None:
        self.player_id = player_id
        super().__init__(f"Player {player_id} was kicked from this room")


class UnknownAvatarError(ImpostorError):
    """Raised when an avatar id is not in the avatar catalog."""

    def __init__(self, avatar_id: int) -> None:
        self.avatar_id = avatar_id
        super().__init__(f"Unknown avatar: {avatar_id}")


# Game Session


class InsufficientPlayersError(ImpostorError):
    """Raised when a game is started without enough players.

    Attributes:
        required: Minimum number of players needed.
        available: Number of players currently present.
    """

    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(f"At least {required} players are required to start (have {available})")


class NoCategoriesSelectedError(ImpostorError):
    """Raised when no word categories are selected."""

    def __init__(self) -> None:
        super().__init__("Select at least one category")


class EmptyWordPoolError(ImpostorError):
    """Raised when the selected categories contain no usable words."""

    def __init__(self, category_ids: list[str]) -> None:
        self.category_ids = category_ids
        super().__init__(f"No words available in categories: {', '.join(category_ids) or '(none)'}")


class InvalidSettingsError(ImpostorError):
    """Raised when a host settings update is rejected."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


# Voting


class InvalidTargetError(ImpostorError):
    """Raised when a vote, kick or transfer targets an ineligible player.

    Attributes:
        target_id: The id of the rejected target.
        reason: Why the target was rejected.
    """

    def __init__(self, target_id: str, reason: str) -> None:
        self.target_id = target_id
        self.reason = reason
        super().__init__(f"Invalid target {target_id}: {reason}")


class IneligibleVoterError(ImpostorError):
    """Raised when a dead, departed or unknown player tries to vote."""

    def __init__(self, voter_id: str) -> None:
        self.voter_id = voter_id
        super().__init__(f"Player {voter_id} cannot vote")


# Permissions and phases


class NotHostError(ImpostorError):
    """Raised when a host-only operation is requested by another player."""

    def __init__(self, player_id: str | None) -> None:
        self.player_id = player_id
        super().__init__(f"Player {player_id} is not the host")


class InvalidPhaseError(ImpostorError):
    """Raised when an operation is not legal in the room's current phase.

    Attributes:
        operation: Name of the rejected operation.
        phase: The phase the room was in.
    """

    def __init__(self, operation: str, phase: str) -> None:
        self.operation = operation
        self.phase = phase
        super().__init__(f"Cannot {operation} while the room is in phase '{phase}'")


# Storage


class StoreError(ImpostorError):
    """Raised when the room store fails to complete an operation."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class TransactionConflictError(StoreError):
    """Raised when a transaction keeps losing optimistic concurrency races."""

    def __init__(self, room_code: str, attempts: int) -> None:
        self.room_code = room_code
        self.attempts = attempts
        super().__init__(f"Transaction on room {room_code} conflicted {attempts} times")
