"""
Protocol for the game-logic provider the client drives.

Character stats, combat, skill trees and equipment effects live behind this
interface. The view layer only reads {x, y, location, name, level, equipment}
from the character and {wallet, x, y, location, equipment} from other players.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from .config import DEFAULT_LOCATION, EQUIPMENT_SLOTS


class GameLogicError(Exception):
    """Raised by a provider when an action cannot be performed."""


@runtime_checkable
class GameLogic(Protocol):
    """Game-logic provider used by the ViewController."""

    other_players: list

    def get_character(self) -> dict[str, Any]:
        ...

    def create_character(self, name: str, race: str, profession: str, identity: str) -> None:
        ...

    def update_position(self, x: int, y: int, location: str) -> None:
        ...

    def update_other_players(self, players: list[dict[str, Any]]) -> None:
        ...

    def fight_monster(self) -> str:
        ...

    def fight_player(self, identity: str) -> str:
        ...

    def equip_item(self, item_id: int) -> None:
        ...

    def unlock_skill_node(self, node_id: int) -> None:
        ...


class PresenceOnlyGame:
    """
    Provider for the headless client: tracks who and where the character is,
    and nothing else.
    """

    def __init__(self) -> None:
        self.other_players: list = []
        self._character: Optional[dict[str, Any]] = None

    def get_character(self) -> dict[str, Any]:
        if self._character is None:
            raise GameLogicError("No character created")
        return dict(self._character)

    def create_character(self, name: str, race: str, profession: str, identity: str) -> None:
        if not name:
            raise GameLogicError("Character name is required")
        self._character = {
            "wallet": identity,
            "name": name,
            "race": race,
            "profession": profession,
            "level": 1,
            "x": 0,
            "y": 0,
            "location": DEFAULT_LOCATION,
            "equipment": {slot: None for slot in EQUIPMENT_SLOTS},
        }

    def update_position(self, x: int, y: int, location: str) -> None:
        if self._character is None:
            raise GameLogicError("No character created")
        self._character["x"] = x
        self._character["y"] = y
        self._character["location"] = location

    def update_other_players(self, players: list[dict[str, Any]]) -> None:
        self.other_players = list(players)

    def fight_monster(self) -> str:
        raise GameLogicError("Combat is not available in the headless client")

    def fight_player(self, identity: str) -> str:
        raise GameLogicError("Combat is not available in the headless client")

    def equip_item(self, item_id: int) -> None:
        raise GameLogicError("Items are not available in the headless client")

    def unlock_skill_node(self, node_id: int) -> None:
        raise GameLogicError("Skill trees are not available in the headless client")
