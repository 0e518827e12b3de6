"""Application plumbing for impostor-py: settings, logging, errors and tasks."""

from impostor_py.core.error_handling import ErrorResponse, get_exception_handlers
from impostor_py.core.logging import configure_logging, get_middleware
from impostor_py.core.settings import ImpostorSettings

__all__ = [
    "ErrorResponse",
    "ImpostorSettings",
    "configure_logging",
    "get_exception_handlers",
    "get_middleware",
]
