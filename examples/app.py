"""Minimal example showing impostor-py usage with Litestar.

The application will:
    - Configure a GameService around an InMemoryRoomStore
    - Mount the room API at /api and the snapshot stream at /ws
    - Inject the GameService into route handlers as ``game_service``

Running the Application:
    python examples/app.py

Then visit:
    - http://127.0.0.1:8000/schema - OpenAPI documentation
    - http://127.0.0.1:8000/api/catalog/categories - Word categories

Example API Usage:
    # Create a room
    curl -X POST http://127.0.0.1:8000/api/rooms \\
        -H "Content-Type: application/json" \\
        -d '{"name": "Ana", "avatar": 3}'

    # Join it
    curl -X POST http://127.0.0.1:8000/api/rooms/{room_code}/players \\
        -H "Content-Type: application/json" \\
        -d '{"name": "Luis"}'

    # Watch it
    websocat ws://127.0.0.1:8000/ws/rooms/{room_code}
"""

from __future__ import annotations

from litestar import Litestar

from impostor_py import ImpostorConfig, ImpostorPlugin
from impostor_py.core.settings import ImpostorSettings

app = Litestar(
    plugins=[
        ImpostorPlugin(
            ImpostorConfig(
                # InMemoryRoomStore (default)
                store=None,
                # Short rooms for local testing
                settings=ImpostorSettings(room_ttl_seconds=30 * 60),
                api_path="/api",
                dependency_key="game_service",
            )
        )
    ],
    debug=True,
)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="127.0.0.1",
        port=8000,
        log_level="info",
    )
