"""
Interaction layer between input events, the game-logic provider and the server.

Every action goes through the same boundary: provider failures are caught,
written to the combat log, and never escape into the main loop.
"""

import logging
import queue
from typing import Any, Callable, Optional

from .config import EQUIPMENT_SLOTS
from .game_logic import GameLogic
from .game_state import ClientState, PlayerView
from .network import NetworkClient
from .projection import IsometricProjection, find_player_at

logger = logging.getLogger(__name__)

RenderHook = Callable[[bool], None]


def describe_player(player: PlayerView) -> str:
    """Read-only detail text for the inspection overlay."""
    lines = [
        f"Name: {player.name}",
        f"Level: {player.level}",
    ]
    for slot in EQUIPMENT_SLOTS:
        lines.append(f"{slot.capitalize()}: {player.equipment.get(slot) or 'None'}")
    return "\n".join(lines)


class ViewController:
    """
    Drives the local player's view.

    Server snapshots are applied from process_incoming(), which the main loop
    calls between input events, so the hit test never sees a half-applied
    snapshot.
    """

    def __init__(
        self,
        state: ClientState,
        game: GameLogic,
        network: NetworkClient,
        projection: Optional[IsometricProjection] = None,
        render: Optional[RenderHook] = None,
    ):
        self.state = state
        self.game = game
        self.network = network
        self.projection = projection or IsometricProjection()
        self.render = render

    # Server snapshots

    def process_incoming(self) -> int:
        """Apply every snapshot the network thread has queued. Returns how many were applied."""
        applied = 0
        while True:
            try:
                data = self.network.incoming_queue.get_nowait()
            except queue.Empty:
                break
            self.on_players(data["players"])
            applied += 1
        return applied

    def on_players(self, players: list[dict[str, Any]]) -> None:
        views = self.state.replace_other_players(players)
        self._guard("update players", self.game.update_other_players, [v.to_dict() for v in views])
        if not self.state.showing_skill_tree:
            self._render()

    # Local actions

    def create_character(self, name: str, race: str, profession: str) -> bool:
        if not self._guard(
            "create character", self.game.create_character, name, race, profession, self.state.identity
        ):
            return False
        self._render()
        self._send_update()
        return True

    def explore(self) -> Optional[str]:
        ok, result = self._call("explore", self.game.fight_monster)
        if not ok:
            return None
        self.state.set_combat_log(result)
        self._render()
        self._send_update()
        return result

    def move(self, dx: int, dy: int) -> bool:
        ok, character = self._call("move", self.game.get_character)
        if not ok:
            return False
        return self._reposition(character["x"] + dx, character["y"] + dy, character["location"])

    def change_location(self, location: str) -> bool:
        ok, character = self._call("change location", self.game.get_character)
        if not ok:
            return False
        return self._reposition(character["x"], character["y"], location)

    def equip_item(self, item_id: int) -> bool:
        if not self._guard("equip item", self.game.equip_item, item_id):
            return False
        self._render()
        self._send_update()
        return True

    def unlock_skill_node(self, node_id: int) -> bool:
        if not self._guard("unlock skill node", self.game.unlock_skill_node, node_id):
            return False
        self._render()
        self._send_update()
        return True

    def toggle_skill_tree(self) -> bool:
        showing = self.state.toggle_skill_tree()
        self._render()
        return showing

    # Pointer actions

    def player_at(self, px: float, py: float) -> Optional[PlayerView]:
        """Resolve a canvas pixel to the other player standing on that tile."""
        ok, character = self._call("pick", self.game.get_character)
        if not ok:
            return None
        tile = self.projection.to_tile(px, py)
        return find_player_at(
            tile,
            character["location"],
            self.state.get_players_snapshot(),
            exclude_identity=self.state.identity,
        )

    def inspect_at(self, px: float, py: float) -> Optional[str]:
        """Primary action: open the inspection overlay for the clicked player."""
        player = self.player_at(px, py)
        if player is None:
            return None
        self.state.set_inspected(player)
        return describe_player(player)

    def attack_at(self, px: float, py: float) -> Optional[str]:
        """Secondary action: fight the clicked player."""
        player = self.player_at(px, py)
        if player is None:
            return None
        ok, result = self._call("attack", self.game.fight_player, player.wallet)
        if not ok:
            return None
        self.state.set_combat_log(result)
        self._send_update()
        self._render()
        return result

    # Helpers

    def _reposition(self, x: int, y: int, location: str) -> bool:
        if not self._guard("move", self.game.update_position, x, y, location):
            return False
        self._render()
        self._send_update()
        return True

    def _send_update(self) -> None:
        ok, character = self._call("send update", self.game.get_character)
        if ok:
            self.network.send_update(character)

    def _render(self) -> None:
        if self.render is not None:
            self._guard("render", self.render, self.state.showing_skill_tree)

    def _guard(self, action: str, fn: Callable, *args) -> bool:
        ok, _ = self._call(action, fn, *args)
        return ok

    def _call(self, action: str, fn: Callable, *args) -> tuple[bool, Any]:
        try:
            return True, fn(*args)
        except Exception as e:
            logger.warning(f"{action} failed: {e}")
            self.state.set_combat_log(f"Error: {e}")
            return False, None
