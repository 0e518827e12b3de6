"""Reactive per-client loop.

Each participant runs one :class:`RoomClient`. It mirrors the room through a
store subscription, keeps its own player alive with heartbeats, and applies the
automatic corrections a snapshot calls for: the host ends a round decided by
abandonment, reveals a complete vote after a settle delay and prunes stale
players; any other client prunes when the host itself has gone quiet. Every
correction is a transaction that re-checks its own preconditions, so several
clients reacting to the same snapshot cannot corrupt the room.
"""

from __future__ import annotations

import asyncio
import contextlib
import random
from typing import TYPE_CHECKING, Any

import structlog

from impostor_py.exceptions import ImpostorError, RoomNotFoundError
from impostor_py.game.models import normalize_room_code
from impostor_py.game.types import AutomaticTransition
from impostor_py.game.voting import plan_automatic_transition
from impostor_py.services.presence import host_needs_replacing

if TYPE_CHECKING:
    from collections.abc import Callable

    from impostor_py.game.models import Room
    from impostor_py.game.voting import PlannedTransition
    from impostor_py.services.game import GameService
    from impostor_py.storage.base import Subscription

logger = structlog.get_logger(__name__)


class RoomClient:
    """One participant's view of a room and its background upkeep.

    Attributes:
        room_code: Normalised room code.
        player_id: The participant this client acts for.
        room: Latest snapshot, or None before the first one and after the room is gone.
    """

    def __init__(
        self,
        game: GameService,
        room_code: str,
        player_id: str,
        *,
        on_change: Callable[[Room | None], Any] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            game: Services bound to the shared store.
            room_code: Room to follow.
            player_id: The participant's id.
            on_change: Called with every snapshot, and None when the room is gone.
            rng: Random source for heartbeat jitter.
        """
        self._game = game
        self._settings = game.settings
        self._on_change = on_change
        self._rng = rng or random.Random()
        self.room_code = normalize_room_code(room_code)
        self.player_id = player_id
        self.room: Room | None = None

        self._subscription: Subscription | None = None
        self._heartbeat_task: asyncio.Task[None] | None = None
        self._reconcile_task: asyncio.Task[None] | None = None
        self._reconcile_pending = False
        self._last_prune: float | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_host(self) -> bool:
        return self.room is not None and self.room.is_host(self.player_id)

    async def start(self) -> None:
        """Subscribe to the room and start heartbeats."""
        self._subscription = await self._game.rooms.subscribe_to_room(self.room_code, self._on_snapshot)
        if not self._closed and self.room is not None:
            self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())
        logger.info("Room client started", room_code=self.room_code, player_id=self.player_id)

    async def close(self, *, leave: bool = True) -> None:
        """Stop all background work and, optionally, leave the room.

        The leave is best effort; if it fails, heartbeat pruning removes the
        player later.
        """
        if self._closed:
            return
        self._closed = True
        if self._subscription is not None:
            self._subscription.cancel()
        for task in (self._heartbeat_task, self._reconcile_task):
            if task is not None and task is not asyncio.current_task():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

        if leave and self.room is not None:
            try:
                await self._game.membership.leave_room(self.room_code, self.player_id)
            except ImpostorError as e:
                logger.warning("Leave on close failed", room_code=self.room_code, player_id=self.player_id, error=str(e))
        logger.info("Room client closed", room_code=self.room_code, player_id=self.player_id)

    async def send_heartbeat(self) -> bool:
        """Send one heartbeat. Failures are logged, never raised.

        Returns:
            True if the heartbeat was recorded.
        """
        try:
            return await self._game.presence.heartbeat(self.room_code, self.player_id)
        except RoomNotFoundError:
            logger.debug("Heartbeat skipped, room gone", room_code=self.room_code, player_id=self.player_id)
        except ImpostorError as e:
            logger.warning("Heartbeat failed", room_code=self.room_code, player_id=self.player_id, error=str(e))
        return False

    async def reconcile(self) -> PlannedTransition | None:
        """Apply at most one automatic correction for the latest snapshot.

        Returns:
            The automatic transition applied, if any.
        """
        room = self.room
        if self._closed or room is None:
            return None
        me = room.get_player(self.player_id)
        if me is None or not me.is_present:
            return None

        try:
            if room.is_host(self.player_id):
                plan = plan_automatic_transition(room)
                if plan is not None:
                    if plan.kind == AutomaticTransition.REVEAL_RESULTS:
                        await asyncio.sleep(self._settings.vote_settle_delay_seconds)
                    return await self._game.voting.apply_automatic_transition(self.room_code)
                now = self._game.clock()
                if room.stale_players(now, self._settings.stale_threshold):
                    await self.prune()
            elif host_needs_replacing(room, self._game.clock(), self._settings.stale_threshold):
                await self.prune()
        except RoomNotFoundError:
            logger.debug("Reconcile skipped, room gone", room_code=self.room_code)
        except ImpostorError as e:
            logger.warning("Reconcile failed", room_code=self.room_code, player_id=self.player_id, error=str(e))
        return None

    async def prune(self) -> tuple[str, ...]:
        """Prune stale players, at most once per configured interval.

        Returns:
            Ids removed by this call.
        """
        loop = asyncio.get_running_loop()
        if self._last_prune is not None and loop.time() - self._last_prune < self._settings.prune_min_interval_seconds:
            return ()
        self._last_prune = loop.time()
        try:
            result = await self._game.presence.prune_inactive_players(self.room_code)
        except ImpostorError as e:
            logger.warning("Prune failed", room_code=self.room_code, player_id=self.player_id, error=str(e))
            return ()
        return result.removed

    # Internal helpers

    def _on_snapshot(self, room: Room | None) -> None:
        self.room = room
        if self._on_change is not None:
            self._on_change(room)
        if room is None:
            logger.info("Room closed", room_code=self.room_code, player_id=self.player_id)
            if self._heartbeat_task is not None:
                self._heartbeat_task.cancel()
            return
        self._schedule_reconcile()

    def _schedule_reconcile(self) -> None:
        if self._closed:
            return
        if self._reconcile_task is not None and not self._reconcile_task.done():
            self._reconcile_pending = True
            return
        self._reconcile_task = asyncio.create_task(self._reconcile_until_settled())

    async def _reconcile_until_settled(self) -> None:
        while True:
            self._reconcile_pending = False
            await self.reconcile()
            if self._closed or not self._reconcile_pending:
                return

    async def _heartbeat_loop(self) -> None:
        while not self._closed:
            await self.send_heartbeat()
            self._schedule_reconcile()
            jitter = self._rng.uniform(0, self._settings.heartbeat_jitter_seconds)
            await asyncio.sleep(self._settings.heartbeat_interval_seconds + jitter)
