"""Thread-safe client state management."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class PlayerView:
    """Client-side view of another player's snapshot."""
    wallet: str
    x: int
    y: int
    location: str
    name: Optional[str] = None
    level: Optional[int] = None
    equipment: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlayerView":
        """Build from a wire snapshot; raises KeyError/TypeError/ValueError if malformed."""
        return cls(
            wallet=str(data["wallet"]),
            x=int(data["x"]),
            y=int(data["y"]),
            location=str(data["location"]),
            name=data.get("name"),
            level=data.get("level"),
            equipment=dict(data.get("equipment") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet": self.wallet,
            "name": self.name,
            "level": self.level,
            "x": self.x,
            "y": self.y,
            "location": self.location,
            "equipment": dict(self.equipment),
        }


class ClientState:
    """Thread-safe client state container."""

    def __init__(self, identity: Optional[str] = None):
        # Connection state
        self.connected: bool = False

        # Player identity (wallet address)
        self.identity: Optional[str] = identity

        # Last snapshot of everyone, as delivered by the server
        self.other_players: list[PlayerView] = []

        # UI state
        self.showing_skill_tree: bool = False
        self.inspected: Optional[PlayerView] = None
        self.status_message: str = "Disconnected"
        self.combat_log: str = ""

        # Lock for thread safety
        self._lock = threading.Lock()

    def replace_other_players(self, players: list[dict]) -> list[PlayerView]:
        """
        Replace the snapshot of other players wholesale.
        Malformed entries are skipped; the new list is built before it is swapped in.
        """
        parsed = []
        for p in players:
            try:
                parsed.append(PlayerView.from_dict(p))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed player entry {p!r}: {e}")

        with self._lock:
            self.other_players = parsed
        return parsed

    def get_players_snapshot(self) -> list[PlayerView]:
        """Get a thread-safe copy of the other players."""
        with self._lock:
            return list(self.other_players)

    def toggle_skill_tree(self) -> bool:
        with self._lock:
            self.showing_skill_tree = not self.showing_skill_tree
            return self.showing_skill_tree

    def set_inspected(self, player: Optional[PlayerView]) -> None:
        with self._lock:
            self.inspected = player

    def set_status(self, msg: str) -> None:
        """Thread-safe status update."""
        with self._lock:
            self.status_message = msg

    def get_status(self) -> str:
        """Thread-safe status read."""
        with self._lock:
            return self.status_message

    def set_combat_log(self, text: str) -> None:
        with self._lock:
            self.combat_log = text

    def get_combat_log(self) -> str:
        with self._lock:
            return self.combat_log
