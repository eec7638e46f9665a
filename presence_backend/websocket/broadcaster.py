"""
Snapshot delivery for Presence Backend.

Every connection owns an Outbox: a bounded queue drained by one writer
task. Broadcasting only enqueues, so a slow client never blocks the
registry or the other recipients.
"""

import asyncio
import logging
from typing import Any, Iterable

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from presence_backend.protocol import PlayerSnapshot, players_message

logger = logging.getLogger(__name__)


class Outbox:
    """
    Pending messages for one connection.

    When full, the oldest pending message is dropped in favour of the new
    one; every message is a full snapshot so only the newest matters.
    """

    def __init__(
        self,
        websocket: WebSocket,
        label: str,
        maxsize: int = 4,
        send_timeout: float = 5.0,
    ) -> None:
        self.websocket = websocket
        self.label = label
        self.send_timeout = send_timeout
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=maxsize)
        self._task: asyncio.Task | None = None
        self._failed = False

    @property
    def pending(self) -> int:
        """Number of messages waiting to be sent."""
        return self._queue.qsize()

    @property
    def is_open(self) -> bool:
        return not self._failed

    def start(self) -> None:
        """Start the writer task."""
        if self._task is None and not self._failed:
            self._task = asyncio.create_task(self._run())

    def offer(self, message: dict[str, Any]) -> bool:
        """
        Enqueue a message without waiting.
        Returns False if the message was discarded or displaced an older one.
        """
        if self._failed:
            return False

        displaced = False
        while True:
            try:
                self._queue.put_nowait(message)
                return not displaced
            except asyncio.QueueFull:
                self._discard_one()
                displaced = True

    async def drain(self) -> None:
        """Wait until every queued message has been handled."""
        await self._queue.join()

    def close(self) -> None:
        """Stop the writer and discard anything still pending. Does not wait."""
        self._failed = True
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._clear()

    async def _run(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                await self._send(message)
            except Exception as e:
                logger.warning(f"Error sending to {self.label}, stopping writer: {e}")
                self._failed = True
                return
            finally:
                self._queue.task_done()
                if self._failed:
                    self._clear()

    async def _send(self, message: dict[str, Any]) -> None:
        if (
            self.websocket.application_state != WebSocketState.CONNECTED
            or self.websocket.client_state != WebSocketState.CONNECTED
        ):
            logger.debug(f"Skipping send to {self.label}: socket not open")
            return

        try:
            await asyncio.wait_for(
                self.websocket.send_json(message),
                timeout=self.send_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Timeout sending to {self.label}, snapshot dropped")

    def _discard_one(self) -> None:
        try:
            self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return
        self._queue.task_done()

    def _clear(self) -> None:
        while not self._queue.empty():
            self._discard_one()


class SnapshotBroadcaster:
    """
    Pushes the full registry to every recipient.

    Replace this class to send incremental diffs instead; the registry only
    calls publish().
    """

    def publish(
        self,
        players: list[PlayerSnapshot],
        outboxes: Iterable[Outbox],
    ) -> None:
        message = players_message(players)
        for outbox in outboxes:
            if not outbox.offer(message):
                logger.debug(f"Dropped stale snapshot for {outbox.label}")
