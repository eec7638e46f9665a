"""Isometric projection between canvas pixels and world tiles, and tile hit testing."""

import math
from dataclasses import dataclass
from typing import Iterable, Optional

from .config import CANVAS_HEIGHT, CANVAS_WIDTH, TILE_SIZE
from .game_state import PlayerView


@dataclass(frozen=True)
class IsometricProjection:
    """
    2:1 isometric projection anchored at (width/2, height/4).

    World tile (wx, wy) has its top vertex at
    ((wx - wy) * tile_size/2 + width/2, (wx + wy) * tile_size/4 + height/4).
    """
    width: float = CANVAS_WIDTH
    height: float = CANVAS_HEIGHT
    tile_size: float = TILE_SIZE

    @property
    def origin(self) -> tuple[float, float]:
        return self.width / 2, self.height / 4

    def to_screen(self, world_x: float, world_y: float) -> tuple[float, float]:
        """Forward projection: world coordinates to canvas pixels."""
        ox, oy = self.origin
        screen_x = (world_x - world_y) * self.tile_size / 2 + ox
        screen_y = (world_x + world_y) * self.tile_size / 4 + oy
        return screen_x, screen_y

    def to_tile(self, px: float, py: float) -> tuple[int, int]:
        """Inverse projection: canvas pixels to the world tile containing them."""
        ox, oy = self.origin
        dx = px - ox
        dy = py - oy
        tile_x = math.floor(dx / self.tile_size + dy / (self.tile_size / 2))
        tile_y = math.floor(dy / (self.tile_size / 2) - dx / self.tile_size)
        return tile_x, tile_y


def find_player_at(
    tile: tuple[int, int],
    location: str,
    players: Iterable[PlayerView],
    exclude_identity: Optional[str] = None,
) -> Optional[PlayerView]:
    """
    First player standing on tile in location, in delivery order.

    A player matches when both stored coordinates are within less than one
    tile of the target.
    """
    tile_x, tile_y = tile
    for player in players:
        if exclude_identity is not None and player.wallet == exclude_identity:
            continue
        if player.location != location:
            continue
        if abs(player.x - tile_x) < 1 and abs(player.y - tile_y) < 1:
            return player
    return None
