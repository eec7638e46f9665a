"""
Main FastAPI application for Presence Backend.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, status

from presence_backend import __version__
from presence_backend.config import get_settings
from presence_backend.identity import load_identity_verifier
from presence_backend.websocket.manager import (
    ConnectionManager,
    get_connection_manager,
    set_connection_manager,
)
from presence_backend.websocket.handler import WebSocketHandler

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Initializes and cleans up resources.
    """
    settings = get_settings()

    logger.info(f"Loading identity verifier: {settings.identity_verifier}")
    verifier = load_identity_verifier(
        settings.identity_verifier,
        max_length=settings.max_identity_length,
    )
    if verifier is None:
        raise RuntimeError(f"Could not load identity verifier {settings.identity_verifier}")
    app.state.identity_verifier = verifier

    logger.info("Initializing connection manager...")
    manager = ConnectionManager(
        send_timeout_seconds=settings.send_timeout_seconds,
        outbox_size=settings.outbox_size,
    )
    set_connection_manager(manager)

    logger.info("Presence Backend started successfully!")

    yield

    logger.info("Shutting down...")
    await manager.shutdown()
    set_connection_manager(None)
    logger.info("Presence Backend stopped.")


# Create FastAPI application
app = FastAPI(
    title="Presence Backend",
    description="Shared world presence registry with full-snapshot broadcasting",
    version=__version__,
    lifespan=lifespan,
)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    manager = get_connection_manager()

    return {
        "status": "healthy",
        "connections": manager.connection_count if manager else 0,
        "players": manager.player_count if manager else 0,
    }


@app.get("/api/players")
async def list_players():
    """Current registry contents."""
    manager = get_connection_manager()
    players = await manager.get_players() if manager else []
    return {"players": [player.model_dump() for player in players]}


# WebSocket endpoint
@app.websocket("/{identity}")
async def websocket_endpoint(websocket: WebSocket, identity: str):
    """
    Main WebSocket endpoint for presence connections.
    The path segment carries the player's identity (wallet address).
    """
    manager = get_connection_manager()
    if manager is None:
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return

    verifier = websocket.app.state.identity_verifier
    verified = await verifier.verify(identity, websocket)
    if verified is None:
        logger.warning(f"Rejected connection for identity {identity!r}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    info = manager.create_connection(verified, websocket)

    # Accepts the socket and registers it atomically
    await manager.connect(info)

    # Handler owns the disconnect path (passes connection_id for safety)
    handler = WebSocketHandler(manager=manager, info=info)
    await handler.handle_connection()


def run() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "presence_backend.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    run()
