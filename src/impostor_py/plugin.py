"""Litestar plugin for impostor-py integration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from litestar.di import Provide
from litestar.plugins import InitPluginProtocol

from impostor_py.core.settings import ImpostorSettings
from impostor_py.game.avatars import AvatarCatalog
from impostor_py.game.catalog import CategoryCatalog
from impostor_py.services.game import GameService
from impostor_py.storage.memory import InMemoryRoomStore
from impostor_py.web.router import create_router

if TYPE_CHECKING:
    from litestar.config.app import AppConfig

    from impostor_py.storage.base import RoomStoreProtocol


@dataclass
class ImpostorConfig:
    """Configuration for the impostor plugin.

    Attributes:
        store: Room store backend. If None, an InMemoryRoomStore is used.
        settings: Timing and capacity settings. If None, read from the environment.
        catalog: Word categories. If None, the built-in categories are used.
        avatars: Avatar catalog. If None, the built-in avatars are used.
        enable_api: Whether to mount the REST API routes.
        enable_websocket: Whether to mount the room snapshot WebSocket.
        api_path: Base path for API routes.
        ws_path: Base path for WebSocket routes.
        dependency_key: Dependency injection key for the GameService.

    Example:
        >>> config = ImpostorConfig(store=InMemoryRoomStore(), api_path="/api/v1")
    """

    store: RoomStoreProtocol | None = None
    settings: ImpostorSettings | None = None
    catalog: CategoryCatalog | None = None
    avatars: AvatarCatalog | None = None
    enable_api: bool = True
    enable_websocket: bool = True
    api_path: str = "/api"
    ws_path: str = "/ws"
    dependency_key: str = "game_service"


class ImpostorPlugin(InitPluginProtocol):
    """Litestar plugin exposing the room services over HTTP and WebSocket.

    The plugin builds one :class:`GameService` around the configured store,
    registers it for dependency injection and on ``app.state``, and mounts the
    API router and the snapshot stream.

    Example:
        >>> from litestar import Litestar
        >>> app = Litestar(plugins=[ImpostorPlugin(ImpostorConfig())])

        Accessing the service in route handlers:

        >>> @get("/rooms/{room_code:str}/size")
        ... async def room_size(room_code: str, game_service: GameService) -> int:
        ...     room = await game_service.rooms.get_room(room_code)
        ...     return len(room.present_players)
    """

    def __init__(self, config: ImpostorConfig | None = None) -> None:
        """Initialize the plugin with optional configuration.

        Args:
            config: Plugin configuration. If None, defaults are used.
        """
        self._config = config or ImpostorConfig()
        self._store: RoomStoreProtocol | None = None
        self._game_service: GameService | None = None

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        """Create the services and register routes and dependencies.

        Args:
            app_config: The Litestar application configuration object.

        Returns:
            The modified application configuration.
        """
        self._store = self._config.store or InMemoryRoomStore()
        self._game_service = GameService(
            self._store,
            settings=self._config.settings or ImpostorSettings.from_env(),
            catalog=self._config.catalog,
            avatars=self._config.avatars,
        )
        app_config.state["game_service"] = self._game_service

        def provide_game_service() -> GameService:
            """Dependency provider for GameService."""
            if self._game_service is None:
                msg = "Game service not initialized"
                raise RuntimeError(msg)
            return self._game_service

        app_config.dependencies[self._config.dependency_key] = Provide(provide_game_service, sync_to_thread=False)

        if self._config.enable_api:
            app_config.route_handlers.append(create_router(path=self._config.api_path))

        if self._config.enable_websocket:
            from impostor_py.realtime.stream import create_room_stream_router

            app_config.route_handlers.append(create_room_stream_router(self._config.ws_path, self._game_service))

        return app_config

    @property
    def store(self) -> RoomStoreProtocol:
        """Get the initialized room store.

        Raises:
            RuntimeError: If the plugin has not been initialized yet.
        """
        if self._store is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._store

    @property
    def game_service(self) -> GameService:
        """Get the initialized game service.

        Raises:
            RuntimeError: If the plugin has not been initialized yet.
        """
        if self._game_service is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._game_service
