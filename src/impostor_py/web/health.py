"""Health check endpoints for impostor-py.

``/health`` reports per-component status for monitoring; ``/ready`` answers
whether the relay can serve room operations right now.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from litestar import Controller, get

from impostor_py import __version__

if TYPE_CHECKING:
    from litestar import Request

# Never a valid room code, so the health read always misses
_HEALTH_CODE = "__health__"


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of an individual component."""

    name: str
    status: HealthStatus
    message: str | None = None
    latency_ms: float | None = None


@dataclass
class HealthResponse:
    """Health check response."""

    status: HealthStatus
    version: str = __version__
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    components: list[ComponentHealth] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "status": self.status.value,
            "version": self.version,
            "timestamp": self.timestamp,
            "components": [
                {"name": c.name, "status": c.status.value, "message": c.message, "latency_ms": c.latency_ms}
                for c in self.components
            ],
        }


class HealthController(Controller):
    """Liveness and readiness checks."""

    path = ""
    tags: ClassVar[list[str]] = ["Health"]

    @get("/health")
    async def health(self, request: Request) -> dict[str, Any]:
        """Liveness check with component details."""
        components = [ComponentHealth(name="application", status=HealthStatus.HEALTHY, message="Application is running")]
        for check in (self._check_store, self._check_database):
            component = await check(request)
            if component is not None:
                components.append(component)

        statuses = [c.status for c in components]
        if HealthStatus.UNHEALTHY in statuses:
            overall = HealthStatus.UNHEALTHY
        elif HealthStatus.DEGRADED in statuses:
            overall = HealthStatus.DEGRADED
        else:
            overall = HealthStatus.HEALTHY
        return HealthResponse(status=overall, components=components).to_dict()

    @get("/ready")
    async def ready(self, request: Request) -> dict[str, Any]:
        """Readiness check: every dependency must respond."""
        checks: dict[str, bool] = {"application": True}
        for check in (self._check_store, self._check_database):
            component = await check(request)
            if component is not None:
                checks[component.name] = component.status == HealthStatus.HEALTHY
        return {
            "ready": all(checks.values()),
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": checks,
        }

    async def _check_store(self, request: Request) -> ComponentHealth | None:
        """Check the room store with a read."""
        game = getattr(request.app.state, "game_service", None)
        if game is None:
            return None
        start = time.perf_counter()
        try:
            await game.store.get(_HEALTH_CODE)
        except Exception as e:  # noqa: BLE001
            return ComponentHealth(name="room_store", status=HealthStatus.UNHEALTHY, message=f"Store error: {e!s}")
        return ComponentHealth(
            name="room_store",
            status=HealthStatus.HEALTHY,
            message=type(game.store).__name__,
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
        )

    async def _check_database(self, request: Request) -> ComponentHealth | None:
        """Check database connectivity when a database is configured."""
        db_manager = getattr(request.app.state, "db_manager", None)
        if db_manager is None:
            return None
        start = time.perf_counter()
        try:
            await db_manager.ping()
        except Exception as e:  # noqa: BLE001
            return ComponentHealth(name="database", status=HealthStatus.UNHEALTHY, message=f"Database error: {e!s}")
        return ComponentHealth(
            name="database",
            status=HealthStatus.HEALTHY,
            message="Database connection successful",
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
        )
