"""
WebSocket handling for Presence Backend.
"""

from presence_backend.websocket.broadcaster import Outbox, SnapshotBroadcaster
from presence_backend.websocket.manager import (
    ConnectionInfo,
    ConnectionManager,
    get_connection_manager,
)

__all__ = [
    "ConnectionInfo",
    "ConnectionManager",
    "Outbox",
    "SnapshotBroadcaster",
    "get_connection_manager",
]
