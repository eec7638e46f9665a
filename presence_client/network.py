"""WebSocket client running in a background thread."""

import json
import logging
import queue
import threading
import time
from typing import Any, Optional

import websocket

from .config import WS_URL, RECONNECT_DELAY_SECONDS
from .game_state import ClientState

logger = logging.getLogger(__name__)


def build_update_message(identity: str, character: dict[str, Any]) -> dict[str, Any]:
    """Build the update message announcing the local character."""
    return {
        "type": "update",
        "wallet": identity,
        "name": character.get("name"),
        "level": character.get("level"),
        "x": character["x"],
        "y": character["y"],
        "location": character["location"],
        "equipment": character.get("equipment") or {},
    }


class NetworkClient:
    """
    Manages WebSocket connection in a background thread.
    Uses queues to communicate with the main game thread.
    """

    def __init__(self, state: ClientState, base_url: str = WS_URL):
        self.state = state
        self.base_url = base_url.rstrip("/")

        # Thread-safe message queues
        self.outgoing_queue: queue.Queue = queue.Queue()
        self.incoming_queue: queue.Queue = queue.Queue()

        # Resent after every (re)connect so a restarted server relearns us
        self._last_update: Optional[dict[str, Any]] = None

        # Thread management
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

        # WebSocket connection
        self._ws: Optional[websocket.WebSocketApp] = None

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.state.identity}"

    def start(self) -> None:
        """Start the network thread."""
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_network_thread, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the network thread."""
        self._stop_event.set()
        if self._ws:
            try:
                self._ws.close()
            except Exception as e:
                logger.debug(f"Error closing websocket: {e}")
        if self._thread:
            self._thread.join(timeout=2.0)

    def _run_network_thread(self) -> None:
        """Entry point for the network thread - handles reconnection."""
        while not self._stop_event.is_set():
            try:
                self._connect_and_run()
            except Exception as e:
                self.state.set_status(f"Error: {e}")
                self.state.connected = False

            if not self._stop_event.is_set():
                self.state.set_status(f"Reconnecting in {RECONNECT_DELAY_SECONDS}s...")
                self._stop_event.wait(RECONNECT_DELAY_SECONDS)

    def _connect_and_run(self) -> None:
        """Connect to WebSocket and handle messages."""
        if not self.state.identity:
            self.state.set_status("No wallet connected")
            time.sleep(1)
            return

        self.state.set_status("Connecting...")

        self._ws = websocket.WebSocketApp(
            self.url,
            on_open=self._on_open,
            on_message=self._on_message,
            on_error=self._on_error,
            on_close=self._on_close,
        )

        # This blocks until the connection closes
        self._ws.run_forever()

    def _on_open(self, ws) -> None:
        self.state.connected = True
        self.state.set_status("Connected")
        logger.info(f"WebSocket connected as {self.state.identity}")
        if self._last_update is not None and self.outgoing_queue.empty():
            self.outgoing_queue.put(self._last_update)
        # Start sender thread
        sender = threading.Thread(target=self._send_loop, daemon=True)
        sender.start()

    def _on_message(self, ws, message) -> None:
        """Queue server snapshots for the main thread; drop anything else."""
        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            logger.warning("Dropping non-JSON frame from server")
            return

        if not isinstance(data, dict):
            return

        if data.get("type") == "players" and isinstance(data.get("players"), list):
            self.incoming_queue.put(data)
        else:
            logger.debug(f"Ignoring message of type {data.get('type')!r}")

    def _on_error(self, ws, error) -> None:
        self.state.set_status(f"WS Error: {error}")

    def _on_close(self, ws, close_status_code, close_msg) -> None:
        self.state.connected = False
        self.state.set_status("Disconnected")
        logger.info(f"WebSocket disconnected ({close_status_code})")

    def _send_loop(self) -> None:
        """Send queued messages to server."""
        while self.state.connected and not self._stop_event.is_set():
            try:
                message = self.outgoing_queue.get(timeout=0.1)
                if self._ws and self.state.connected:
                    self._ws.send(json.dumps(message))
            except queue.Empty:
                continue
            except Exception as e:
                logger.warning(f"Send failed: {e}")
                break

    # Public API for main thread

    def send_update(self, character: dict[str, Any]) -> None:
        """Queue an update announcing the local character (fire-and-forget)."""
        message = build_update_message(self.state.identity, character)
        self._last_update = message
        self.outgoing_queue.put(message)
