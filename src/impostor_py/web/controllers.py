"""Litestar controllers for the impostor-py API.

The relay is a thin client of the room services: every endpoint maps to one
service operation and returns the resulting room. Room errors propagate to the
exception handlers in :mod:`impostor_py.core.error_handling`.
"""

from __future__ import annotations

from datetime import timedelta
from typing import ClassVar

from litestar import Controller, delete, get, patch, post
from litestar.status_codes import HTTP_200_OK, HTTP_204_NO_CONTENT

from impostor_py.services.game import GameService
from impostor_py.web.dto import (
    AcknowledgementDTO,
    AvatarDTO,
    CategoryDTO,
    CreateRoomDTO,
    JoinRoomDTO,
    KickDTO,
    PlayerActionDTO,
    RemovalResponseDTO,
    RoomResponseDTO,
    SeatDTO,
    TransferHostDTO,
    UpdateSettingsDTO,
    VoteDTO,
    avatar_to_response,
    category_to_response,
    removal_to_response,
    room_to_response,
    seat_to_response,
)


class RoomController(Controller):
    """Controller for room lifecycle, membership and presence."""

    path = "/rooms"
    tags: ClassVar[list[str]] = ["Rooms"]

    @post("/")
    async def create_room(self, data: CreateRoomDTO, game_service: GameService) -> SeatDTO:
        """Create a room with the caller as host.

        Args:
            data: Host name, avatar and optional player id.
            game_service: The game service (injected).

        Returns:
            The new room code and the host's player id.
        """
        seat = await game_service.rooms.create_room(data.name, data.avatar, player_id=data.player_id)
        return seat_to_response(seat)

    @get("/{room_code:str}")
    async def get_room(self, room_code: str, game_service: GameService) -> RoomResponseDTO:
        """Get a room and its derived phase.

        Raises:
            RoomNotFoundError: If the room does not exist or has expired.
        """
        return room_to_response(await game_service.rooms.get_room(room_code))

    @delete("/{room_code:str}", status_code=HTTP_204_NO_CONTENT)
    async def delete_room(self, room_code: str, game_service: GameService) -> None:
        """Delete a room. Deleting a missing room succeeds."""
        await game_service.rooms.delete_room(room_code)

    @post("/{room_code:str}/players")
    async def join_room(self, room_code: str, data: JoinRoomDTO, game_service: GameService) -> SeatDTO:
        """Join a room in the lobby.

        Raises:
            RoomNotFoundError: If the room does not exist.
            GameAlreadyStartedError: If a round is in progress.
            NameTakenError: If the name is in use.
            RoomFullError: If the room is at capacity.
            PlayerKickedError: If this player id was kicked.
        """
        seat = await game_service.rooms.join_room(room_code, data.name, data.avatar, player_id=data.player_id)
        return seat_to_response(seat)

    @delete("/{room_code:str}/players/{player_id:str}", status_code=HTTP_200_OK)
    async def leave_room(self, room_code: str, player_id: str, game_service: GameService) -> RemovalResponseDTO:
        """Leave a room. Leaving twice, or leaving a deleted room, is a no-op."""
        return removal_to_response(await game_service.membership.leave_room(room_code, player_id))

    @post("/{room_code:str}/kick", status_code=HTTP_200_OK)
    async def kick_player(self, room_code: str, data: KickDTO, game_service: GameService) -> RemovalResponseDTO:
        """Kick a player (host only).

        Raises:
            NotHostError: If the requester is not the host.
            InvalidTargetError: If the target is the host or not in the room.
        """
        result = await game_service.membership.kick_player(room_code, data.requester_id, data.target_id)
        return removal_to_response(result)

    @post("/{room_code:str}/heartbeat", status_code=HTTP_200_OK)
    async def heartbeat(self, room_code: str, data: PlayerActionDTO, game_service: GameService) -> AcknowledgementDTO:
        """Refresh a player's heartbeat. ``ok`` is false for absent players."""
        return AcknowledgementDTO(ok=await game_service.presence.heartbeat(room_code, data.player_id))

    @post("/{room_code:str}/prune", status_code=HTTP_200_OK)
    async def prune(
        self,
        room_code: str,
        game_service: GameService,
        threshold_seconds: float | None = None,
    ) -> RemovalResponseDTO:
        """Remove players whose heartbeat is older than the threshold.

        Args:
            room_code: Room code.
            game_service: The game service (injected).
            threshold_seconds: Staleness cutoff; the configured one when omitted.
        """
        threshold = timedelta(seconds=threshold_seconds) if threshold_seconds is not None else None
        result = await game_service.presence.prune_inactive_players(room_code, threshold)
        return removal_to_response(result)

    @post("/{room_code:str}/host", status_code=HTTP_200_OK)
    async def transfer_host(
        self, room_code: str, data: TransferHostDTO, game_service: GameService
    ) -> AcknowledgementDTO:
        """Hand host privileges to another present player.

        Raises:
            NotHostError: If a requester is given and is not the host.
        """
        changed = await game_service.presence.transfer_host(
            room_code, data.target_id, requester_id=data.requester_id
        )
        return AcknowledgementDTO(ok=changed)

    @patch("/{room_code:str}/settings")
    async def update_settings(
        self, room_code: str, data: UpdateSettingsDTO, game_service: GameService
    ) -> RoomResponseDTO:
        """Change room settings in the lobby (host only).

        Raises:
            NotHostError: If the requester is not the host.
            InvalidPhaseError: If a round is in progress.
            InvalidSettingsError: If a value is out of range.
        """
        room = await game_service.rooms.update_settings(
            room_code,
            data.requester_id,
            selected_categories=data.selected_categories,
            impostor_count=data.impostor_count,
            show_clues=data.show_clues,
            impostor_mode=data.impostor_mode,
        )
        return room_to_response(room)


class GameController(Controller):
    """Controller for the round state machine: start, voting and results."""

    path = "/rooms/{room_code:str}"
    tags: ClassVar[list[str]] = ["Game"]

    @post("/start", status_code=HTTP_200_OK)
    async def start_game(self, room_code: str, data: PlayerActionDTO, game_service: GameService) -> RoomResponseDTO:
        """Start a round (host only).

        Raises:
            NotHostError: If the requester is not the host.
            GameAlreadyStartedError: If a round is already running.
            InsufficientPlayersError: If too few players are present.
            NoCategoriesSelectedError: If no category is selected.
        """
        return room_to_response(await game_service.session.start_game(room_code, data.player_id))

    @post("/voting", status_code=HTTP_200_OK)
    async def start_voting(
        self, room_code: str, data: PlayerActionDTO, game_service: GameService
    ) -> RoomResponseDTO:
        """Open a vote (host only)."""
        return room_to_response(await game_service.voting.initiate_voting(room_code, data.player_id))

    @post("/votes", status_code=HTTP_200_OK)
    async def cast_vote(self, room_code: str, data: VoteDTO, game_service: GameService) -> RoomResponseDTO:
        """Cast or change a vote.

        Raises:
            InvalidPhaseError: If votes are not being collected.
            IneligibleVoterError: If the voter cannot vote.
            InvalidTargetError: If the target cannot be voted for.
        """
        return room_to_response(await game_service.voting.cast_vote(room_code, data.voter_id, data.target_id))

    @post("/voting/reveal", status_code=HTTP_200_OK)
    async def reveal_results(self, room_code: str, game_service: GameService) -> AcknowledgementDTO:
        """Show the tally. ``ok`` is false until every eligible voter has voted."""
        return AcknowledgementDTO(ok=await game_service.voting.reveal_results(room_code))

    @post("/voting/reset", status_code=HTTP_200_OK)
    async def reset_votes(self, room_code: str, data: PlayerActionDTO, game_service: GameService) -> RoomResponseDTO:
        """Clear a tied vote and vote again (host only)."""
        return room_to_response(await game_service.voting.reset_votes(room_code, data.player_id))

    @post("/voting/continue", status_code=HTTP_200_OK)
    async def continue_voting(
        self, room_code: str, data: PlayerActionDTO, game_service: GameService
    ) -> RoomResponseDTO:
        """Eliminate the voted-out player and vote again (host only)."""
        return room_to_response(await game_service.voting.continue_voting(room_code, data.player_id))

    @post("/lobby", status_code=HTTP_200_OK)
    async def back_to_lobby(self, room_code: str, data: PlayerActionDTO, game_service: GameService) -> RoomResponseDTO:
        """Return a decided round to the lobby (host only)."""
        return room_to_response(await game_service.voting.back_to_lobby(room_code, data.player_id))


class CatalogController(Controller):
    """Controller for the static catalogs."""

    path = "/catalog"
    tags: ClassVar[list[str]] = ["Catalog"]

    @get("/categories")
    async def list_categories(self, game_service: GameService) -> list[CategoryDTO]:
        """List word categories with their word counts."""
        return [category_to_response(c) for c in game_service.catalog.categories.values()]

    @get("/avatars")
    async def list_avatars(self, game_service: GameService) -> list[AvatarDTO]:
        """List the selectable avatars."""
        return [avatar_to_response(a) for a in game_service.avatars.list_avatars()]
