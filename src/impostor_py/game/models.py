"""Room and player data models for the impostor game.

This module defines the room document and its parts, plus the membership rules
that every mutation relies on: who counts as present, how the host is chosen and
how departures are applied. Rooms are serialised to a camelCase JSON document,
which is the wire format shared by every client of a room.
"""

from __future__ import annotations

import random
import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from impostor_py.exceptions import (
    GameAlreadyStartedError,
    InvalidPlayerNameError,
    NameTakenError,
    PlayerKickedError,
    RoomFullError,
)
from impostor_py.game.types import DepartureReason, GameOutcome, RoomStatus, TurnDirection

# Ambiguous glyphs (0/O, 1/I) are left out so codes survive being read aloud.
ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 6
ROOM_TTL = timedelta(hours=4)


def utc_now() -> datetime:
    """Return the current UTC time."""
    return datetime.now(UTC)


def generate_room_code(length: int = ROOM_CODE_LENGTH, rng: random.Random | None = None) -> str:
    """Generate a random room code.

    Args:
        length: Number of characters in the code.
        rng: Random source, defaults to the module-level generator.

    Returns:
        An uppercase code drawn from :data:`ROOM_CODE_ALPHABET`.
    """
    chooser = rng or random
    return "".join(chooser.choices(ROOM_CODE_ALPHABET, k=length))


def normalize_room_code(code: str) -> str:
    """Normalize a user-entered room code (trim, uppercase, drop whitespace)."""
    return "".join(code.split()).upper()


def generate_player_id() -> str:
    """Generate an opaque player identifier."""
    return f"player_{secrets.token_hex(8)}"


def _dump_time(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _load_time(value: Any, default: datetime | None = None) -> datetime | None:
    if value is None or value == "":
        return default
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class Player:
    """A participant in a room.

    Attributes:
        id: Client-generated opaque identifier.
        name: Display name, unique among present players.
        avatar: Id of an entry in the avatar catalog.
        is_host: Whether this player holds host privileges.
        is_impostor: Round-scoped role flag.
        word: Round-scoped word (secret, decoy or the impostor sentinel).
        clue: Round-scoped clue shown to impostors when clues are enabled.
        is_alive: False after elimination or departure during a round.
        is_kicked: Set when the host removed the player.
        has_left: Set when the player left or was pruned during a round.
        joined_at: Join time, the primary key for host succession.
        last_seen_at: Last heartbeat.
    """

    id: str
    name: str
    avatar: int = 1
    is_host: bool = False
    is_impostor: bool = False
    word: str | None = None
    clue: str | None = None
    is_alive: bool = True
    is_kicked: bool = False
    has_left: bool = False
    joined_at: datetime = field(default_factory=utc_now)
    last_seen_at: datetime = field(default_factory=utc_now)

    @property
    def is_present(self) -> bool:
        """Whether the player is still part of the room (not kicked, not departed)."""
        return not self.is_kicked and not self.has_left

    @property
    def is_active(self) -> bool:
        """Whether the player is present and alive, and so takes part in votes."""
        return self.is_present and self.is_alive

    @property
    def seniority(self) -> tuple[datetime, str]:
        """Total order used for host succession."""
        return (self.joined_at, self.id)

    def mark_seen(self, now: datetime) -> None:
        """Record a heartbeat."""
        self.last_seen_at = now

    def is_stale(self, now: datetime, threshold: timedelta) -> bool:
        """Check whether the last heartbeat is older than ``threshold``."""
        return now - self.last_seen_at > threshold

    def reset_round_state(self) -> None:
        """Clear role data and revive the player for a new round."""
        self.is_impostor = False
        self.word = None
        self.clue = None
        self.is_alive = True

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "avatar": self.avatar,
            "isHost": self.is_host,
            "isImpostor": self.is_impostor,
            "word": self.word,
            "clue": self.clue,
            "isAlive": self.is_alive,
            "isKicked": self.is_kicked,
            "hasLeft": self.has_left,
            "joinedAt": _dump_time(self.joined_at),
            "lastSeenAt": _dump_time(self.last_seen_at),
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> Player:
        joined_at = _load_time(data.get("joinedAt"), utc_now())
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            avatar=int(data.get("avatar") or 1),
            is_host=bool(data.get("isHost", False)),
            is_impostor=bool(data.get("isImpostor", False)),
            word=data.get("word"),
            clue=data.get("clue"),
            # A missing flag is read as "alive"; only an explicit false kills.
            is_alive=data.get("isAlive") is not False,
            is_kicked=bool(data.get("isKicked", False)),
            has_left=bool(data.get("hasLeft", False)),
            joined_at=joined_at,
            last_seen_at=_load_time(data.get("lastSeenAt"), joined_at),
        )


@dataclass
class KickRecord:
    """Permanent record of a kicked player identity."""

    kicked_at: datetime
    kicked_by: str | None = None
    kicked: bool = True

    def to_document(self) -> dict[str, Any]:
        return {"kicked": self.kicked, "kickedAt": _dump_time(self.kicked_at), "kickedBy": self.kicked_by}

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> KickRecord:
        return cls(
            kicked_at=_load_time(data.get("kickedAt"), utc_now()),
            kicked_by=data.get("kickedBy"),
            kicked=bool(data.get("kicked", True)),
        )


@dataclass
class VotingPhase:
    """Vote collection state for the current round.

    Attributes:
        active: Whether voting is underway.
        votes: Mapping of voter id to target id.
        show_results: Whether the tally is on display.
        force_game_over: Winner decided by abandonment, bypassing the vote.
    """

    active: bool = True
    votes: dict[str, str] = field(default_factory=dict)
    show_results: bool = False
    force_game_over: GameOutcome | None = None

    def reset(self) -> None:
        """Clear votes and return to vote collection."""
        self.votes = {}
        self.show_results = False

    def to_document(self) -> dict[str, Any]:
        return {
            "active": self.active,
            "votes": dict(self.votes),
            "showResults": self.show_results,
            "forceGameOver": self.force_game_over.value if self.force_game_over else None,
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> VotingPhase:
        forced = data.get("forceGameOver")
        return cls(
            active=bool(data.get("active", True)),
            votes={str(voter): str(target) for voter, target in (data.get("votes") or {}).items()},
            show_results=bool(data.get("showResults", False)),
            force_game_over=GameOutcome(forced) if forced and forced != "none" else None,
        )


@dataclass
class RoundState:
    """Round-scoped data stored under ``gameState``."""

    category: str | None = None
    starting_player: str | None = None
    direction: TurnDirection | None = None
    turn_order: list[str] = field(default_factory=list)
    started_at: datetime | None = None
    voting_phase: VotingPhase | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "startingPlayer": self.starting_player,
            "direction": self.direction.value if self.direction else None,
            "turnOrder": list(self.turn_order),
            "startedAt": _dump_time(self.started_at),
            "votingPhase": self.voting_phase.to_document() if self.voting_phase else None,
        }

    @classmethod
    def from_document(cls, data: dict[str, Any] | None) -> RoundState:
        if not data:
            return cls()
        direction = data.get("direction")
        voting = data.get("votingPhase")
        return cls(
            category=data.get("category"),
            starting_player=data.get("startingPlayer"),
            direction=TurnDirection(direction) if direction else None,
            turn_order=[str(player_id) for player_id in data.get("turnOrder") or []],
            started_at=_load_time(data.get("startedAt")),
            voting_phase=VotingPhase.from_document(voting) if voting else None,
        )


@dataclass
class Room:
    """A game room, the unit of storage and synchronisation.

    Attributes:
        code: Six character room code.
        host: Id of the player holding host privileges.
        status: Persisted room status.
        players: Players in join order.
        selected_categories: Category ids words are drawn from.
        impostor_count: Requested number of impostors.
        show_clues: Give impostors a clue about the secret word.
        impostor_mode: Give impostors a similar decoy word instead of the sentinel.
        game_state: Round-scoped data.
        kicked_players: Permanent kick records keyed by player id.
        created_at: Creation time.
        expires_at: End of the room's lifetime.
    """

    code: str
    host: str | None = None
    status: RoomStatus = RoomStatus.WAITING
    players: list[Player] = field(default_factory=list)
    selected_categories: list[str] = field(default_factory=list)
    impostor_count: int = 1
    show_clues: bool = False
    impostor_mode: bool = False
    game_state: RoundState = field(default_factory=RoundState)
    kicked_players: dict[str, KickRecord] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)
    expires_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.expires_at is None:
            self.expires_at = self.created_at + ROOM_TTL
        for player in self.players:
            if player.id in self.kicked_players:
                player.is_kicked = True

    # Queries

    def get_player(self, player_id: str | None) -> Player | None:
        """Find a player by id, including departed tombstones."""
        if player_id is None:
            return None
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    @property
    def present_players(self) -> list[Player]:
        """Players that are neither kicked nor departed, in join order."""
        return [p for p in self.players if p.is_present]

    @property
    def active_players(self) -> list[Player]:
        """Present players that are still alive."""
        return [p for p in self.players if p.is_active]

    @property
    def host_player(self) -> Player | None:
        player = self.get_player(self.host)
        return player if player is not None and player.is_present else None

    @property
    def voting_phase(self) -> VotingPhase | None:
        return self.game_state.voting_phase

    @property
    def max_impostors(self) -> int:
        """Upper bound for ``impostor_count`` given the current player count."""
        return max(1, len(self.present_players) // 3)

    def is_host(self, player_id: str | None) -> bool:
        """Check whether ``player_id`` is the present host."""
        host = self.host_player
        return host is not None and host.id == player_id

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at

    def time_remaining(self, now: datetime) -> timedelta:
        """Remaining lifetime of the room, never negative."""
        if self.expires_at is None:
            return timedelta(0)
        return max(self.expires_at - now, timedelta(0))

    def stale_players(self, now: datetime, threshold: timedelta) -> list[Player]:
        """Present players whose heartbeat is older than ``threshold``."""
        return [p for p in self.present_players if p.is_stale(now, threshold)]

    # Membership

    def admit(self, player: Player, *, max_players: int | None = None) -> Player:
        """Append a player joining the lobby.

        An identity that is already seated is returned as is, so a retried join
        does not create a second seat.

        Args:
            player: The joining player.
            max_players: Optional capacity limit.

        Returns:
            The seated player.

        Raises:
            GameAlreadyStartedError: If the room is not in the lobby.
            PlayerKickedError: If the identity was kicked from this room.
            InvalidPlayerNameError: If the name is blank.
            NameTakenError: If a present player already uses the name.
            RoomFullError: If the room is at capacity.
        """
        if self.status != RoomStatus.WAITING:
            raise GameAlreadyStartedError(self.code, self.status.value)
        if player.id in self.kicked_players:
            raise PlayerKickedError(player.id)

        player.name = player.name.strip()
        if not player.name:
            raise InvalidPlayerNameError(player.name)

        existing = self.get_player(player.id)
        if existing is not None and existing.is_present:
            return existing

        if any(p.name == player.name for p in self.present_players):
            raise NameTakenError(player.name)
        if max_players is not None and len(self.present_players) >= max_players:
            raise RoomFullError(self.code, max_players)

        player.is_host = False
        player.reset_round_state()
        self.players.append(player)
        self.ensure_host()
        return player

    def ensure_host(self) -> str | None:
        """Make sure exactly one present player is host.

        When the recorded host is missing, kicked or departed, the most senior
        present player by ``(joined_at, id)`` takes over. Stray ``is_host`` flags
        on other players are cleared.

        Returns:
            The id of the host after the check, or None if nobody is present.
        """
        present = self.present_players
        if self.host_player is None:
            successor = min(present, key=lambda p: p.seniority, default=None)
            self.host = successor.id if successor else None
        for player in self.players:
            player.is_host = player.is_present and player.id == self.host
        return self.host

    def transfer_host(self, target_id: str) -> bool:
        """Hand host privileges to another present player.

        Returns:
            True if the host changed, False when the target is absent or departed.
        """
        target = self.get_player(target_id)
        if target is None or not target.is_present:
            return False
        changed = self.host != target.id
        self.host = target.id
        self.ensure_host()
        return changed

    def depart(
        self,
        player_ids: list[str] | set[str],
        reason: DepartureReason,
        *,
        now: datetime,
        by: str | None = None,
    ) -> list[str]:
        """Apply a batch of departures.

        Kicked players are dropped from the list and recorded permanently. Players
        leaving the lobby are dropped as well. Players leaving during a round stay
        in the list as dead tombstones (``has_left``) so the round can still show
        them, and are swept out by :meth:`return_to_lobby`. Votes touching any
        departed player are scrubbed and the host is recomputed once.

        Args:
            player_ids: Ids to remove. Unknown or already departed ids are ignored.
            reason: Leave or kick.
            now: Transaction time.
            by: Who requested a kick.

        Returns:
            The ids that were actually removed.
        """
        wanted = set(player_ids)
        removed: list[str] = []
        remaining: list[Player] = []
        in_round = self.status != RoomStatus.WAITING

        for player in self.players:
            if player.id not in wanted:
                remaining.append(player)
                continue
            if reason == DepartureReason.KICK:
                self.kicked_players[player.id] = KickRecord(kicked_at=now, kicked_by=by)
                if player.is_present:
                    removed.append(player.id)
                continue
            if not player.is_present:
                remaining.append(player)
                continue
            removed.append(player.id)
            if in_round:
                player.has_left = True
                player.is_alive = False
                player.is_host = False
                remaining.append(player)

        self.players = remaining
        if removed:
            self.scrub_votes()
            self.ensure_host()
        return removed

    def scrub_votes(self) -> int:
        """Drop votes whose voter or target is no longer alive and present.

        Returns:
            Number of votes removed.
        """
        phase = self.voting_phase
        if phase is None or not phase.votes:
            return 0
        eligible = {p.id for p in self.active_players}
        kept = {voter: target for voter, target in phase.votes.items() if voter in eligible and target in eligible}
        removed = len(phase.votes) - len(kept)
        phase.votes = kept
        return removed

    def return_to_lobby(self) -> None:
        """Drop departed players, revive everyone and clear the round."""
        self.players = [p for p in self.players if p.is_present]
        for player in self.players:
            player.reset_round_state()
        self.status = RoomStatus.WAITING
        self.game_state = RoundState()
        self.ensure_host()

    # Serialisation

    def to_document(self) -> dict[str, Any]:
        """Encode the room as its wire document."""
        return {
            "code": self.code,
            "host": self.host,
            "status": self.status.value,
            "players": [p.to_document() for p in self.players],
            "selectedCategories": list(self.selected_categories),
            "impostorCount": self.impostor_count,
            "showClues": self.show_clues,
            "impostorMode": self.impostor_mode,
            "gameState": self.game_state.to_document(),
            "kickedPlayers": {pid: record.to_document() for pid, record in self.kicked_players.items()},
            "createdAt": _dump_time(self.created_at),
            "expiresAt": _dump_time(self.expires_at),
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> Room:
        """Decode a wire document, tolerating missing optional fields."""
        created_at = _load_time(data.get("createdAt"), utc_now())
        return cls(
            code=str(data["code"]),
            host=data.get("host"),
            status=RoomStatus(data.get("status", RoomStatus.WAITING.value)),
            players=[Player.from_document(p) for p in data.get("players") or []],
            selected_categories=[str(c) for c in data.get("selectedCategories") or []],
            impostor_count=int(data.get("impostorCount") or 1),
            show_clues=bool(data.get("showClues", False)),
            impostor_mode=bool(data.get("impostorMode", False)),
            game_state=RoundState.from_document(data.get("gameState")),
            kicked_players={
                str(pid): KickRecord.from_document(record) for pid, record in (data.get("kickedPlayers") or {}).items()
            },
            created_at=created_at,
            expires_at=_load_time(data.get("expiresAt"), created_at + ROOM_TTL),
        )
