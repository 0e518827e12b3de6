"""Router configuration for the impostor-py API."""

from __future__ import annotations

from litestar import Router

from impostor_py.web.controllers import CatalogController, GameController, RoomController


def create_router(path: str = "/api") -> Router:
    """Create the impostor-py API router.

    Args:
        path: The base path for all API routes. Defaults to "/api".

    Returns:
        A configured Litestar Router instance.

    Example:
        >>> router = create_router("/api/v1")
    """
    return Router(
        path=path,
        route_handlers=[RoomController, GameController, CatalogController],
    )
