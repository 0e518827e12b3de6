"""Tunable timing and capacity settings for impostor-py."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(name, str(default)))


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


@dataclass
class ImpostorSettings:
    """Game and presence settings.

    The heartbeat interval and stale threshold are linked: a player is pruned
    after missing roughly three heartbeats, which tolerates one slow network
    round trip without dropping anyone.

    Attributes:
        room_ttl_seconds: Lifetime of a room from creation.
        heartbeat_interval_seconds: How often each client refreshes ``lastSeenAt``.
        heartbeat_jitter_seconds: Random extra delay added to each heartbeat.
        stale_threshold_seconds: Age of ``lastSeenAt`` after which a player is pruned.
        prune_min_interval_seconds: Minimum gap between prune passes from one client.
        vote_settle_delay_seconds: Delay between the last vote and showing results.
        min_players: Players required to start a round.
        max_players: Room capacity.
        room_code_length: Characters in a room code.
        room_code_attempts: Retries when a generated code collides.
        transaction_attempts: Retries of an optimistic transaction before giving up.
        subscription_poll_seconds: Poll interval for stores without push updates.
    """

    room_ttl_seconds: float = 4 * 60 * 60
    heartbeat_interval_seconds: float = 10.0
    heartbeat_jitter_seconds: float = 1.0
    stale_threshold_seconds: float = 30.0
    prune_min_interval_seconds: float = 10.0
    vote_settle_delay_seconds: float = 1.5
    min_players: int = 3
    max_players: int = 20
    room_code_length: int = 6
    room_code_attempts: int = 10
    transaction_attempts: int = 5
    subscription_poll_seconds: float = 1.0

    @property
    def room_ttl(self) -> timedelta:
        return timedelta(seconds=self.room_ttl_seconds)

    @property
    def stale_threshold(self) -> timedelta:
        return timedelta(seconds=self.stale_threshold_seconds)

    @classmethod
    def from_env(cls) -> ImpostorSettings:
        """Create settings from environment variables.

        Environment variables:
            IMPOSTOR_ROOM_TTL_SECONDS: Room lifetime.
            IMPOSTOR_HEARTBEAT_SECONDS: Heartbeat interval.
            IMPOSTOR_HEARTBEAT_JITTER_SECONDS: Heartbeat jitter.
            IMPOSTOR_STALE_THRESHOLD_SECONDS: Prune threshold.
            IMPOSTOR_PRUNE_INTERVAL_SECONDS: Minimum gap between prunes.
            IMPOSTOR_VOTE_SETTLE_SECONDS: Delay before the tally is shown.
            IMPOSTOR_MIN_PLAYERS: Players needed to start.
            IMPOSTOR_MAX_PLAYERS: Room capacity.
            IMPOSTOR_TRANSACTION_ATTEMPTS: Optimistic transaction retries.
            IMPOSTOR_POLL_SECONDS: Subscription poll interval.

        Returns:
            ImpostorSettings configured from environment.
        """
        defaults = cls()
        return cls(
            room_ttl_seconds=_env_float("IMPOSTOR_ROOM_TTL_SECONDS", defaults.room_ttl_seconds),
            heartbeat_interval_seconds=_env_float("IMPOSTOR_HEARTBEAT_SECONDS", defaults.heartbeat_interval_seconds),
            heartbeat_jitter_seconds=_env_float(
                "IMPOSTOR_HEARTBEAT_JITTER_SECONDS", defaults.heartbeat_jitter_seconds
            ),
            stale_threshold_seconds=_env_float(
                "IMPOSTOR_STALE_THRESHOLD_SECONDS", defaults.stale_threshold_seconds
            ),
            prune_min_interval_seconds=_env_float(
                "IMPOSTOR_PRUNE_INTERVAL_SECONDS", defaults.prune_min_interval_seconds
            ),
            vote_settle_delay_seconds=_env_float("IMPOSTOR_VOTE_SETTLE_SECONDS", defaults.vote_settle_delay_seconds),
            min_players=_env_int("IMPOSTOR_MIN_PLAYERS", defaults.min_players),
            max_players=_env_int("IMPOSTOR_MAX_PLAYERS", defaults.max_players),
            transaction_attempts=_env_int("IMPOSTOR_TRANSACTION_ATTEMPTS", defaults.transaction_attempts),
            subscription_poll_seconds=_env_float("IMPOSTOR_POLL_SECONDS", defaults.subscription_poll_seconds),
        )
