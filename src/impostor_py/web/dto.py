"""Data Transfer Objects (DTOs) for the impostor-py API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from impostor_py.game.voting import describe_phase

if TYPE_CHECKING:
    from impostor_py.game.avatars import Avatar
    from impostor_py.game.catalog import Category
    from impostor_py.game.models import Room
    from impostor_py.services.membership import RemovalResult
    from impostor_py.services.rooms import SeatAssignment


# Room DTOs


@dataclass
class CreateRoomDTO:
    """DTO for creating a room.

    Attributes:
        name: Display name of the host.
        avatar: Avatar id.
        player_id: Client-generated player id; generated when omitted.
    """

    name: str
    avatar: int = 1
    player_id: str | None = None


@dataclass
class JoinRoomDTO:
    """DTO for joining a room.

    Attributes:
        name: Display name, unique among present players.
        avatar: Avatar id.
        player_id: Client-generated player id. Resending the same id retries the join.
    """

    name: str
    avatar: int = 1
    player_id: str | None = None


@dataclass
class SeatDTO:
    """Room code and player id of a created or joined seat."""

    room_code: str
    player_id: str


@dataclass
class PlayerActionDTO:
    """DTO identifying the player performing an action."""

    player_id: str


@dataclass
class KickDTO:
    """DTO for kicking a player.

    Attributes:
        requester_id: The host issuing the kick.
        target_id: Player to kick.
    """

    requester_id: str
    target_id: str


@dataclass
class TransferHostDTO:
    """DTO for handing host privileges to another player."""

    target_id: str
    requester_id: str | None = None


@dataclass
class VoteDTO:
    """DTO for casting a vote."""

    voter_id: str
    target_id: str


@dataclass
class UpdateSettingsDTO:
    """DTO for changing room settings in the lobby.

    All fields except ``requester_id`` are optional. Only provided fields are updated.

    Attributes:
        requester_id: The host making the change.
        selected_categories: Category ids words are drawn from.
        impostor_count: Requested number of impostors.
        show_clues: Give impostors a clue.
        impostor_mode: Give impostors a similar decoy word.
    """

    requester_id: str
    selected_categories: list[str] | None = None
    impostor_count: int | None = None
    show_clues: bool | None = None
    impostor_mode: bool | None = None


@dataclass
class RoomResponseDTO:
    """DTO for room responses.

    Attributes:
        room: The room document as stored.
        phase: Derived phase (waiting, playing, voting or results).
        result: Result on display in the results phase.
        vote_counts: Votes per target once results are shown.
    """

    room: dict[str, Any]
    phase: str
    result: str | None = None
    vote_counts: dict[str, int] | None = None


@dataclass
class RemovalResponseDTO:
    """DTO describing a leave, kick or prune."""

    removed: list[str]
    room_deleted: bool
    host: str | None = None
    outcome: str | None = None


@dataclass
class AcknowledgementDTO:
    """DTO for operations that report only whether something changed."""

    ok: bool


# Catalog DTOs


@dataclass
class CategoryDTO:
    """DTO for a word category. Words are not exposed."""

    id: str
    name: str
    word_count: int


@dataclass
class AvatarDTO:
    """DTO for an avatar."""

    id: int
    name: str
    image: str


# Conversion helpers


def room_to_response(room: Room) -> RoomResponseDTO:
    """Convert a Room to a RoomResponseDTO.

    Args:
        room: The room to convert.

    Returns:
        The room document with its derived phase.
    """
    view = describe_phase(room)
    return RoomResponseDTO(
        room=room.to_document(),
        phase=view.phase.value,
        result=view.result.value if view.result else None,
        vote_counts=dict(view.tally.counts) if view.tally else None,
    )


def seat_to_response(seat: SeatAssignment) -> SeatDTO:
    return SeatDTO(room_code=seat.room_code, player_id=seat.player_id)


def removal_to_response(result: RemovalResult) -> RemovalResponseDTO:
    return RemovalResponseDTO(
        removed=list(result.removed),
        room_deleted=result.room_deleted,
        host=result.host,
        outcome=result.outcome.value if result.outcome else None,
    )


def category_to_response(category: Category) -> CategoryDTO:
    return CategoryDTO(id=category.id, name=category.name, word_count=len(category.words))


def avatar_to_response(avatar: Avatar) -> AvatarDTO:
    return AvatarDTO(id=avatar.id, name=avatar.name, image=avatar.image)
