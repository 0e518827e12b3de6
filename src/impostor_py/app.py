"""Main Litestar application for impostor-py.

This module provides the application factory and a configured app instance for
running the room relay standalone, e.g. ``uvicorn impostor_py.app:app``.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import structlog
from litestar import Litestar
from litestar.openapi import OpenAPIConfig

from impostor_py import __version__
from impostor_py.cli import ImpostorCLIPlugin
from impostor_py.core.error_handling import get_exception_handlers
from impostor_py.core.logging import configure_logging, get_middleware
from impostor_py.core.settings import ImpostorSettings
from impostor_py.plugin import ImpostorConfig, ImpostorPlugin
from impostor_py.web.health import HealthController

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from impostor_py.storage.base import RoomStoreProtocol
    from impostor_py.storage.db.setup import DatabaseManager

logger = structlog.get_logger(__name__)


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("true", "1", "yes")


def _database_lifespan(db_manager: DatabaseManager, store: Any) -> Any:
    """Build a lifespan that opens the database on startup and closes it on shutdown."""

    @asynccontextmanager
    async def lifespan(app: Litestar) -> AsyncGenerator[None, None]:
        await db_manager.init()
        app.state.db_manager = db_manager
        logger.info("Database initialized", url=db_manager.display_url)
        try:
            yield
        finally:
            await store.close()
            await db_manager.close()
            logger.info("Database closed")

    return lifespan


def _sqlalchemy_plugin(database_url: str) -> Any:
    """SQLAlchemy plugin providing the ``litestar database`` migration commands."""
    from advanced_alchemy.extensions.litestar import AlembicAsyncConfig, SQLAlchemyPlugin
    from advanced_alchemy.extensions.litestar.plugins.init.config.asyncio import SQLAlchemyAsyncConfig

    return SQLAlchemyPlugin(
        config=SQLAlchemyAsyncConfig(
            connection_string=database_url,
            alembic_config=AlembicAsyncConfig(
                script_location="src/impostor_py/storage/db/migrations",
                version_table_name="alembic_version",
            ),
        )
    )


def create_app(
    *,
    store: RoomStoreProtocol | None = None,
    settings: ImpostorSettings | None = None,
    use_database: bool = False,
    database_url: str | None = None,
    enable_api: bool = True,
    enable_websocket: bool = True,
    debug: bool = False,
    json_logs: bool = False,
) -> Litestar:
    """Create and configure the Litestar application.

    Args:
        store: Room store to serve. Overrides ``use_database``.
        settings: Timing and capacity settings. If None, read from the environment.
        use_database: Persist rooms with the SQLAlchemy store (requires the db extra).
        database_url: Database URL for the SQLAlchemy store.
        enable_api: Whether to enable the REST API routes.
        enable_websocket: Whether to enable the room snapshot WebSocket.
        debug: Whether to enable debug mode.
        json_logs: Whether to output logs as JSON (for production).

    Returns:
        Configured Litestar application instance.
    """
    configure_logging(debug=debug, json_logs=json_logs)
    settings = settings or ImpostorSettings.from_env()

    plugins: list[Any] = [ImpostorCLIPlugin()]
    lifespan: list[Any] = []
    if store is None and use_database:
        from impostor_py.storage.db.setup import DatabaseManager, get_database_url
        from impostor_py.storage.db.store import DatabaseRoomStore

        url = database_url or get_database_url()
        db_manager = DatabaseManager(url)
        store = DatabaseRoomStore(
            db_manager,
            max_attempts=settings.transaction_attempts,
            poll_interval=settings.subscription_poll_seconds,
        )
        lifespan.append(_database_lifespan(db_manager, store))
        plugins.append(_sqlalchemy_plugin(url))

    plugins.append(
        ImpostorPlugin(
            ImpostorConfig(
                store=store,
                settings=settings,
                enable_api=enable_api,
                enable_websocket=enable_websocket,
            )
        )
    )

    return Litestar(
        route_handlers=[HealthController],
        plugins=plugins,
        debug=debug,
        lifespan=lifespan,
        middleware=get_middleware(),
        exception_handlers=get_exception_handlers(),
        openapi_config=OpenAPIConfig(
            title="impostor-py API",
            version=__version__,
            description="Room relay for the 'find the impostor' party game",
            path="/schema",
            use_handler_docstrings=True,
        ),
    )


# Default application instance for uvicorn
# IMPOSTOR_DEBUG=true for dev mode, IMPOSTOR_USE_DATABASE=true to persist rooms
app = create_app(
    use_database=_env_flag("IMPOSTOR_USE_DATABASE"),
    debug=_env_flag("IMPOSTOR_DEBUG"),
    json_logs=_env_flag("IMPOSTOR_JSON_LOGS"),
)
