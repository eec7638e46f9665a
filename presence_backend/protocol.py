"""
Wire protocol for Presence Backend.

Client -> server: {"type": "update", "wallet", "name", "level", "x", "y",
"location", "equipment"}
Server -> client: {"type": "players", "players": [PlayerSnapshot, ...]}
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

UPDATE_TYPE = "update"
PLAYERS_TYPE = "players"


class ProtocolError(ValueError):
    """Raised when an inbound frame cannot be turned into an update."""


class PlayerSnapshot(BaseModel):
    """Complete known state of one player, always replaced wholesale."""

    wallet: str
    name: str | None = None
    level: int | None = None
    x: int
    y: int
    location: str
    equipment: dict[str, str | None] = Field(default_factory=dict)


class UpdateMessage(BaseModel):
    """Update submitted by the owning client. The type tag is checked before validation."""

    # No coercion: "5", true and 2.0 are not coordinates
    model_config = ConfigDict(strict=True)

    wallet: str | None = None
    name: str | None = None
    level: int | None = None
    x: int
    y: int
    location: str
    equipment: dict[str, str | None] = Field(default_factory=dict)

    def to_snapshot(self, identity: str) -> PlayerSnapshot:
        """
        Build the snapshot stored under the connection's identity.

        A message without a wallet belongs to the connection; a message
        naming another wallet is rejected.
        """
        if self.wallet is not None and self.wallet != identity:
            raise ProtocolError(
                f"Wallet {self.wallet!r} does not match connection identity {identity!r}"
            )
        return PlayerSnapshot(
            wallet=identity,
            name=self.name,
            level=self.level,
            x=self.x,
            y=self.y,
            location=self.location,
            equipment=self.equipment,
        )


def parse_update(raw: str | bytes, identity: str) -> PlayerSnapshot:
    """
    Decode one inbound frame into the snapshot it carries.

    Raises ProtocolError for invalid JSON, non-object payloads, wrong or
    missing message type, missing or ill-typed fields and wallet mismatch.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ProtocolError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolError("Payload must be a JSON object")

    msg_type = data.get("type")
    if msg_type is None:
        raise ProtocolError("Missing message type")
    if msg_type != UPDATE_TYPE:
        raise ProtocolError(f"Unknown message type: {msg_type}")

    try:
        message = UpdateMessage.model_validate(data)
    except ValidationError as e:
        raise ProtocolError(f"Invalid update: {e.error_count()} field error(s)") from e

    return message.to_snapshot(identity)


def players_message(players: list[PlayerSnapshot]) -> dict[str, Any]:
    """Build the full-registry message sent to every client."""
    return {
        "type": PLAYERS_TYPE,
        "players": [player.model_dump() for player in players],
    }
