"""
WebSocket message handler for Presence Backend.
"""

import asyncio
import logging

from fastapi import WebSocketDisconnect

from presence_backend.protocol import ProtocolError, parse_update
from presence_backend.websocket.manager import ConnectionInfo, ConnectionManager

logger = logging.getLogger(__name__)


class WebSocketHandler:
    """
    Handles WebSocket messages for a connected player.
    """

    def __init__(self, manager: ConnectionManager, info: ConnectionInfo) -> None:
        self.manager = manager
        self.info = info

    async def handle_connection(self) -> None:
        """
        Main message loop for a WebSocket connection.

        Expected (non-fatal) errors:
        - WebSocketDisconnect: client disconnected
        - asyncio.TimeoutError: send timeout
        - ConnectionResetError, BrokenPipeError: connection lost
        - ProtocolError: malformed frame -> dropped, connection stays open

        All other errors propagate (fail-fast).
        """
        try:
            while True:
                raw = await self._receive_frame()
                try:
                    snapshot = parse_update(raw, self.info.identity)
                except ProtocolError as e:
                    logger.warning(f"Dropping message from player {self.info.identity}: {e}")
                    continue
                await self.manager.apply_update(
                    self.info.identity,
                    snapshot,
                    connection_id=self.info.connection_id,
                )
        except WebSocketDisconnect:
            # Expected: client disconnected normally
            logger.info(f"Player {self.info.identity} disconnected")
        except asyncio.TimeoutError:
            logger.warning(f"Timeout for player {self.info.identity}")
        except (ConnectionResetError, BrokenPipeError, OSError) as e:
            logger.info(f"Connection lost for player {self.info.identity}: {e}")
        finally:
            # Pass connection_id to prevent stale handler from disconnecting newer connection.
            # Shielded so the disconnect broadcast still happens if this task is cancelled.
            await asyncio.shield(
                self.manager.disconnect(self.info.identity, self.info.connection_id)
            )

    async def _receive_frame(self) -> str | bytes:
        """Receive one text or binary frame."""
        message = await self.info.websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(message.get("code", 1000))
        text = message.get("text")
        if text is not None:
            return text
        return message.get("bytes") or b""
