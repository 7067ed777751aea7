"""In-memory table of live sessions for the HTTP surface."""
from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional

from artswap.session.controller import SessionController

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Sessions not touched for ``idle_seconds`` are closed on the next create or lookup."""

    def __init__(
        self,
        factory: Callable[[], SessionController],
        idle_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._factory = factory
        self._idle_seconds = idle_seconds
        self._clock = clock
        self._controllers: Dict[str, SessionController] = {}
        self._last_seen: Dict[str, float] = {}

    def create(self) -> SessionController:
        self.sweep_idle()
        controller = self._factory()
        self._controllers[controller.session.id] = controller
        self._last_seen[controller.session.id] = self._clock()
        logger.info(f"Created session {controller.session.id}")
        return controller

    def get(self, session_id: str) -> SessionController:
        self.sweep_idle()
        try:
            controller = self._controllers[session_id]
        except KeyError:
            raise KeyError("session_not_found") from None
        self._last_seen[session_id] = self._clock()
        return controller

    def close(self, session_id: str) -> None:
        controller = self._controllers.get(session_id)
        if controller is None:
            raise KeyError("session_not_found")
        controller.close()
        del self._controllers[session_id]
        self._last_seen.pop(session_id, None)
        logger.info(f"Closed session {session_id}")

    def close_all(self) -> None:
        for session_id in list(self._controllers):
            self.close(session_id)

    def sweep_idle(self) -> List[str]:
        if not self._idle_seconds:
            return []
        cutoff = self._clock() - self._idle_seconds
        expired = [sid for sid, seen in self._last_seen.items() if seen < cutoff]
        for session_id in expired:
            logger.info("Expiring idle session %s", session_id)
            self.close(session_id)
        return expired

    def ids(self) -> List[str]:
        return list(self._controllers)

    def __len__(self) -> int:
        return len(self._controllers)
