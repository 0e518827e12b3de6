"""Task queue configuration and scheduled tasks using Huey.

Rooms normally disappear when their last player leaves or when a client sees
them expired. Rooms abandoned by every client at once are never looked at
again, so a periodic sweep deletes expired rooms from the database store.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from impostor_py.exceptions import StoreError

if TYPE_CHECKING:
    from huey import SqliteHuey
    from huey.api import TaskWrapper

    from impostor_py.storage.base import RoomStoreProtocol

logger = structlog.get_logger(__name__)

# Created on first use; huey is only installed with the tasks extra
_huey_instance: SqliteHuey | None = None


@dataclass
class TaskQueueSettings:
    """Task queue configuration settings.

    Attributes:
        enabled: Whether the task queue is enabled.
        db_path: Path to Huey's SQLite database for task storage.
        immediate: Run tasks immediately (for testing).
        utc: Use UTC for scheduling.
        sweep_minutes: Interval between expired-room sweeps.
    """

    enabled: bool = True
    db_path: str = "./huey_tasks.db"
    immediate: bool = False
    utc: bool = True
    sweep_minutes: int = 15

    @classmethod
    def from_env(cls) -> TaskQueueSettings:
        """Create settings from environment variables.

        Environment variables:
            TASK_QUEUE_ENABLED: Set to "false" to disable the task queue.
            TASK_QUEUE_DB_PATH: Path to the Huey SQLite database.
            TASK_QUEUE_IMMEDIATE: Set to "true" for immediate execution (testing).
            TASK_QUEUE_SWEEP_MINUTES: Minutes between expired-room sweeps.

        Returns:
            TaskQueueSettings configured from environment.
        """
        return cls(
            enabled=os.environ.get("TASK_QUEUE_ENABLED", "true").lower() != "false",
            db_path=os.environ.get("TASK_QUEUE_DB_PATH", "./huey_tasks.db"),
            immediate=os.environ.get("TASK_QUEUE_IMMEDIATE", "false").lower() == "true",
            sweep_minutes=int(os.environ.get("TASK_QUEUE_SWEEP_MINUTES", "15")),
        )


def get_huey(settings: TaskQueueSettings | None = None) -> SqliteHuey:
    """Get or create the Huey task queue instance.

    Args:
        settings: Task queue settings. If None, loads from environment.

    Returns:
        Configured SqliteHuey instance.

    Raises:
        ImportError: If huey is not installed (tasks extra not installed).
    """
    global _huey_instance  # noqa: PLW0603

    if _huey_instance is not None:
        return _huey_instance

    try:
        from huey import SqliteHuey
    except ImportError as e:
        msg = "Huey is not installed. Install with: pip install impostor-py[tasks]"
        raise ImportError(msg) from e

    if settings is None:
        settings = TaskQueueSettings.from_env()

    db_path = Path(settings.db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    _huey_instance = SqliteHuey(
        name="impostor",
        filename=str(db_path),
        immediate=settings.immediate,
        utc=settings.utc,
    )
    return _huey_instance


def register_tasks(settings: TaskQueueSettings | None = None) -> TaskWrapper:
    """Register the periodic tasks with Huey.

    Must be called once per Huey instance, before the consumer starts.

    Returns:
        The expired-room sweep task.
    """
    settings = settings or TaskQueueSettings.from_env()
    huey = get_huey(settings)

    from huey import crontab

    @huey.periodic_task(crontab(minute=f"*/{settings.sweep_minutes}"))
    def sweep_expired_rooms_task() -> dict[str, Any]:
        """Delete rooms whose lifetime has elapsed."""
        return run_sweep_expired_rooms()

    logger.debug("Periodic tasks registered", sweep_minutes=settings.sweep_minutes)
    return sweep_expired_rooms_task


# Task implementations


async def sweep_expired_rooms(store: RoomStoreProtocol, now: datetime | None = None) -> int:
    """Delete every expired room in ``store``.

    Returns:
        Number of rooms deleted.
    """
    now = now or datetime.now(UTC)
    deleted = await store.delete_expired(now)
    if deleted:
        logger.info("Expired rooms swept", deleted=deleted)
    return deleted


def run_sweep_expired_rooms(database_url: str | None = None) -> dict[str, Any]:
    """Sweep expired rooms from the database store.

    Returns:
        Dict with sweep results.
    """

    async def _sweep() -> int:
        try:
            from impostor_py.storage.db.setup import DatabaseManager
            from impostor_py.storage.db.store import DatabaseRoomStore
        except ImportError:
            logger.warning("Database not configured, skipping room sweep")
            return 0

        db = DatabaseManager(database_url)
        await db.init()
        try:
            return await sweep_expired_rooms(DatabaseRoomStore(db))
        except StoreError as e:
            logger.error("Room sweep failed", error=str(e))
            return 0
        finally:
            await db.close()

    deleted = asyncio.run(_sweep())
    logger.info("Room sweep completed", deleted_rooms=deleted)
    return {
        "task": "sweep_expired_rooms",
        "deleted": deleted,
        "timestamp": datetime.now(UTC).isoformat(),
    }

