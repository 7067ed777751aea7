"""Error taxonomy shared by the relay engine."""
from __future__ import annotations

from typing import Optional


class StoreError(RuntimeError):
    """A read or write against the remote artifact store failed."""

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.key = key


class ArtifactExistsError(StoreError):
    """A write targeted a key that is already present."""


class FetchError(StoreError):
    """Content retrieval failed after the proxy fallback."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class ProvenanceDecodeError(ValueError):
    """A storage key does not match any canonical key shape."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Cannot decode storage key '{key}': {reason}")
        self.key = key
        self.reason = reason


class InvalidTransition(ValueError):
    """An action was sent to a session in a phase that does not accept it."""

    def __init__(self, action: str, phase: str) -> None:
        super().__init__(f"Action '{action}' is not allowed in phase '{phase}'")
        self.action = action
        self.phase = phase


class StaleSessionUpdate(Exception):
    """An async result arrived for a session that is gone or has moved on."""
