"""Web relay for the impostor-py room API."""

from impostor_py.web.controllers import CatalogController, GameController, RoomController
from impostor_py.web.health import HealthController
from impostor_py.web.router import create_router

__all__ = ["CatalogController", "GameController", "HealthController", "RoomController", "create_router"]
