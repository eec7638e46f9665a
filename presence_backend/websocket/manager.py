"""
WebSocket connection manager for Presence Backend.
Holds the presence registry and broadcasts it on every change.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from uuid import UUID, uuid4

from fastapi import WebSocket

from presence_backend.protocol import PlayerSnapshot
from presence_backend.websocket.broadcaster import Outbox, SnapshotBroadcaster

logger = logging.getLogger(__name__)

# Global connection manager instance
_manager: "ConnectionManager | None" = None


def get_connection_manager() -> "ConnectionManager | None":
    """Get the global connection manager instance."""
    return _manager


def set_connection_manager(manager: "ConnectionManager | None") -> None:
    """Set the global connection manager instance."""
    global _manager
    _manager = manager


@dataclass
class ConnectionInfo:
    """Information about a connected player."""

    identity: str
    websocket: WebSocket
    outbox: Outbox
    connection_id: UUID = field(default_factory=uuid4)


class ConnectionManager:
    """
    Manages WebSocket connections and the presence registry.

    Every mutation of the registry, the copy taken for the broadcast and the
    enqueue to each recipient happen under one lock, so recipients see
    snapshots in mutation order.
    """

    def __init__(
        self,
        send_timeout_seconds: float = 5.0,
        outbox_size: int = 4,
        broadcaster: SnapshotBroadcaster | None = None,
    ) -> None:
        self.send_timeout_seconds = send_timeout_seconds
        self.outbox_size = outbox_size
        self._broadcaster = broadcaster or SnapshotBroadcaster()
        # Map of identity -> ConnectionInfo
        self._connections: dict[str, ConnectionInfo] = {}
        # Map of identity -> latest snapshot
        self._players: dict[str, PlayerSnapshot] = {}
        self._lock = asyncio.Lock()
        # Close tasks for sockets replaced by a takeover
        self._closing: set[asyncio.Task] = set()

    def create_connection(self, identity: str, websocket: WebSocket) -> ConnectionInfo:
        """Build connection info with its own outbox."""
        return ConnectionInfo(
            identity=identity,
            websocket=websocket,
            outbox=Outbox(
                websocket,
                label=identity,
                maxsize=self.outbox_size,
                send_timeout=self.send_timeout_seconds,
            ),
        )

    async def connect(self, info: ConnectionInfo) -> None:
        """
        Accept and register a new connection.
        If the identity already has a connection, the new one takes over
        and the old socket is closed. Nothing is broadcast.
        """
        # Registered before accept so any update the client can trigger after
        # the handshake already sees this connection; snapshots queue until
        # the writer starts.
        async with self._lock:
            old_info = self._connections.get(info.identity)
            if old_info is not None:
                logger.info(
                    f"Player {info.identity} reconnecting, closing old connection "
                    f"{old_info.connection_id}"
                )
                old_info.outbox.close()
            self._connections[info.identity] = info

        # Socket I/O never happens under the lock
        if old_info is not None:
            task = asyncio.create_task(self._close_stale(old_info))
            self._closing.add(task)
            task.add_done_callback(self._closing.discard)

        try:
            await info.websocket.accept()
        except Exception:
            await self.disconnect(info.identity, info.connection_id)
            raise

        info.outbox.start()
        logger.info(
            f"Player {info.identity} connected [conn_id={info.connection_id}]"
        )

    async def _close_stale(self, info: ConnectionInfo) -> None:
        """Close a superseded socket, bounded by the send timeout."""
        try:
            await asyncio.wait_for(
                info.websocket.close(code=1000),
                timeout=self.send_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Timeout closing old connection {info.connection_id}")
        except Exception as e:
            logger.debug(f"Old connection {info.connection_id} already closed: {e}")

    async def apply_update(
        self,
        identity: str,
        snapshot: PlayerSnapshot,
        connection_id: UUID | None = None,
    ) -> bool:
        """
        Store a snapshot for identity (last writer wins) and broadcast.
        Returns False if the update came from a connection that is no longer current.
        """
        if snapshot.wallet != identity:
            raise ValueError(f"Snapshot for {snapshot.wallet} applied to {identity}")

        async with self._lock:
            info = self._connections.get(identity)
            if info is None:
                logger.debug(f"Ignoring update for unconnected player {identity}")
                return False
            if connection_id is not None and info.connection_id != connection_id:
                logger.debug(
                    f"Ignoring stale update for player {identity}: "
                    f"expected {connection_id}, current is {info.connection_id}"
                )
                return False

            self._players[identity] = snapshot
            self._broadcast_locked()
            return True

    async def disconnect(self, identity: str, connection_id: UUID | None = None) -> bool:
        """
        Unregister a connection, drop its registry entry and broadcast.
        If connection_id is provided, only disconnect if it matches the current connection.
        This prevents stale handlers from disconnecting newer connections.
        """
        async with self._lock:
            info = self._connections.get(identity)
            if info is None:
                return False

            if connection_id is not None and info.connection_id != connection_id:
                logger.debug(
                    f"Ignoring stale disconnect for player {identity}: "
                    f"expected {connection_id}, current is {info.connection_id}"
                )
                return False

            del self._connections[identity]
            info.outbox.close()
            self._players.pop(identity, None)
            self._broadcast_locked()

            logger.info(
                f"Player {identity} disconnected [conn_id={info.connection_id}]"
            )
            return True

    def _broadcast_locked(self) -> None:
        """Publish a point-in-time copy of the registry (lock must be held)."""
        players = list(self._players.values())
        outboxes = [info.outbox for info in self._connections.values()]
        self._broadcaster.publish(players, outboxes)

    async def get_players(self) -> list[PlayerSnapshot]:
        """Get a copy of the current registry."""
        async with self._lock:
            return list(self._players.values())

    async def flush(self) -> None:
        """Wait until pending snapshots and takeover closes have been handled."""
        async with self._lock:
            outboxes = [info.outbox for info in self._connections.values()]
        await asyncio.gather(
            *(outbox.drain() for outbox in outboxes),
            *list(self._closing),
        )

    async def shutdown(self) -> None:
        """Stop every writer task."""
        async with self._lock:
            for info in self._connections.values():
                info.outbox.close()
            self._connections.clear()
            self._players.clear()
        for task in list(self._closing):
            task.cancel()

    def get_connection(self, identity: str) -> ConnectionInfo | None:
        """Get connection info for a specific player."""
        return self._connections.get(identity)

    @property
    def connection_count(self) -> int:
        """Number of active connections."""
        return len(self._connections)

    @property
    def player_count(self) -> int:
        """Number of registry entries."""
        return len(self._players)
