"""
Pytest fixtures for presence tests.
"""

import asyncio
import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

# Set test environment before the app reads its settings
os.environ["SEND_TIMEOUT_SECONDS"] = "1.0"
os.environ["OUTBOX_SIZE"] = "4"
os.environ["LOG_LEVEL"] = "DEBUG"

from presence_backend.main import app
from presence_backend.protocol import PlayerSnapshot
from presence_backend.websocket.manager import ConnectionManager


class FakeWebSocket:
    """Records what the server sends; enough of the Starlette WebSocket surface for the manager."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.accepted = False
        self.closed_code: int | None = None
        self.application_state = WebSocketState.CONNECTING
        self.client_state = WebSocketState.CONNECTED

    async def accept(self) -> None:
        self.accepted = True
        self.application_state = WebSocketState.CONNECTED

    async def send_json(self, data: dict) -> None:
        self.sent.append(data)

    async def close(self, code: int = 1000) -> None:
        self.closed_code = code
        self.application_state = WebSocketState.DISCONNECTED

    @property
    def last_players(self) -> list[dict] | None:
        if not self.sent:
            return None
        return self.sent[-1]["players"]


class StalledWebSocket(FakeWebSocket):
    """A client whose sends never complete."""

    async def send_json(self, data: dict) -> None:
        await asyncio.Event().wait()


class BrokenWebSocket(FakeWebSocket):
    """A client whose sends always fail."""

    async def send_json(self, data: dict) -> None:
        raise ConnectionResetError("peer went away")


class HangingCloseWebSocket(FakeWebSocket):
    """A client that never acknowledges a close."""

    async def close(self, code: int = 1000) -> None:
        await asyncio.Event().wait()


class RefusedAcceptWebSocket(FakeWebSocket):
    """A client that is gone before the handshake completes."""

    async def accept(self) -> None:
        raise ConnectionResetError("peer went away during handshake")


class ScriptedWebSocket(FakeWebSocket):
    """Replays inbound frames, then fails the next receive with the given error."""

    def __init__(self, frames: list[str], error: BaseException) -> None:
        super().__init__()
        self._frames = list(frames)
        self._error = error

    async def receive(self) -> dict:
        if self._frames:
            return {"type": "websocket.receive", "text": self._frames.pop(0)}
        raise self._error


def make_snapshot(wallet: str, **overrides) -> PlayerSnapshot:
    data = {
        "wallet": wallet,
        "name": f"Hero {wallet}",
        "level": 1,
        "x": 0,
        "y": 0,
        "location": "Town",
        "equipment": {},
    }
    data.update(overrides)
    return PlayerSnapshot(**data)


@pytest_asyncio.fixture
async def manager() -> AsyncGenerator[ConnectionManager, None]:
    """A fresh connection manager with a short send timeout."""
    mgr = ConnectionManager(send_timeout_seconds=0.05, outbox_size=4)
    yield mgr
    await mgr.shutdown()


@pytest.fixture
def client():
    """Test client with the app lifespan running."""
    with TestClient(app) as test_client:
        yield test_client
