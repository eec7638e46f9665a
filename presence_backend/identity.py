"""
Identity verification for Presence Backend.

The connection path carries the identity (wallet address) in plaintext.
Verification is pluggable: the configured verifier decides whether the
claimed identity may connect.
"""

import importlib
import logging
from typing import Protocol, runtime_checkable

from fastapi import WebSocket

logger = logging.getLogger(__name__)


@runtime_checkable
class IdentityVerifier(Protocol):
    """
    Decides which identity a connection may register under.

    Returns the identity to use, or None to reject the connection.
    """

    async def verify(self, claimed: str, websocket: WebSocket) -> str | None:
        ...


class AcceptAnyIdentity:
    """
    Accepts any non-empty identity from the path.

    Any caller can claim any wallet with this verifier.
    """

    def __init__(self, max_length: int = 128) -> None:
        self.max_length = max_length

    async def verify(self, claimed: str, websocket: WebSocket) -> str | None:
        identity = claimed.strip()
        if not identity or len(identity) > self.max_length:
            return None
        return identity


def load_identity_verifier(path: str, max_length: int) -> IdentityVerifier | None:
    """
    Load and instantiate a verifier class.

    Args:
        path: Dotted path to the class (e.g., "presence_backend.identity.AcceptAnyIdentity")
        max_length: Longest identity the verifier should accept

    Returns:
        Verifier instance or None if loading fails
    """
    module_path, _, class_name = path.rpartition(".")
    if not module_path:
        logger.error(f"Identity verifier path must be dotted: {path}")
        return None

    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        logger.error(f"Failed to import identity verifier module {module_path}: {e}")
        return None

    verifier_class = getattr(module, class_name, None)
    if not isinstance(verifier_class, type):
        logger.error(f"No identity verifier class {class_name} in {module_path}")
        return None

    try:
        verifier = verifier_class(max_length=max_length)
    except TypeError:
        verifier = verifier_class()

    if not isinstance(verifier, IdentityVerifier):
        logger.error(f"{path} does not implement IdentityVerifier")
        return None

    logger.info(f"Loaded identity verifier: {path}")
    return verifier
