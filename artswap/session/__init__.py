"""Per-participant session state machine and its HTTP surface."""

from artswap.session.controller import SessionController
from artswap.session.models import Session, SessionPhase
from artswap.session.registry import SessionRegistry

__all__ = [
    "Session",
    "SessionController",
    "SessionPhase",
    "SessionRegistry",
]
