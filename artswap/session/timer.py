"""Cancellable countdown owned by the Drawing phase."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class DrawingTimer:
    """Counts ``duration`` ticks down to zero, then awaits ``on_expire`` once.

    Only ``start()`` and ``cancel()`` are exposed. Cancelling after expiry
    has begun is a no-op so the expiry handler is never interrupted.
    """

    def __init__(
        self,
        duration: int,
        on_expire: Callable[[], Awaitable[None]],
        on_tick: Optional[Callable[[int], None]] = None,
        tick_seconds: float = 1.0,
    ) -> None:
        self.duration = duration
        self.remaining = duration
        self.tick_seconds = tick_seconds
        self._on_expire = on_expire
        self._on_tick = on_tick
        self._task: Optional[asyncio.Task] = None
        self._fired = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("timer already started")
        self._task = asyncio.get_running_loop().create_task(self._run())
        self._task.add_done_callback(self._log_failure)

    def cancel(self) -> None:
        task = self._task
        if task is None or task.done() or self._fired:
            return
        task.cancel()

    async def _run(self) -> None:
        while self.remaining > 0:
            await asyncio.sleep(self.tick_seconds)
            self.remaining -= 1
            if self._on_tick is not None:
                self._on_tick(self.remaining)
        self._fired = True
        await self._on_expire()

    @staticmethod
    def _log_failure(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Drawing timer expiry handler failed", exc_info=exc)
