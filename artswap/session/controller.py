"""Session state machine: draw → submit → hand-off → continue → gallery.

Phases run strictly one after another; each issues at most one store or
fetch call and waits for it before transitioning. Results that come back
after the session was closed, after a later start or reset began a new round,
or after it moved to another phase, are dropped (advisory cancellation: the request itself is never aborted).
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Set

from artswap.artifact_store.models import ArtifactRef
from artswap.artifact_store.service import ArtifactStore
from artswap.common.errors import InvalidTransition, StaleSessionUpdate, StoreError
from artswap.config import runtime_config
from artswap.provenance.codec import ArtifactCategory
from artswap.relay.selector import RelaySelector
from artswap.session.models import Session, SessionPhase
from artswap.session.scene import SceneBuffer, SceneEditor
from artswap.session.timer import DrawingTimer

logger = logging.getLogger(__name__)

TransitionListener = Callable[[SessionPhase, SessionPhase], None]


class SessionController:
    def __init__(
        self,
        store: ArtifactStore,
        selector: RelaySelector,
        editor: Optional[SceneEditor] = None,
        session: Optional[Session] = None,
        draw_seconds: Optional[int] = None,
        tick_seconds: Optional[float] = None,
        completed_delay: Optional[float] = None,
    ) -> None:
        self._store = store
        self._selector = selector
        self.editor = editor or SceneBuffer()
        self.session = session or Session()
        self.draw_seconds = draw_seconds if draw_seconds is not None else runtime_config.get_draw_seconds()
        self.tick_seconds = tick_seconds if tick_seconds is not None else runtime_config.get_tick_seconds()
        self.completed_delay = (
            completed_delay if completed_delay is not None else runtime_config.get_completed_delay_seconds()
        )
        self._timer: Optional[DrawingTimer] = None
        self._listeners: List[TransitionListener] = []
        self._tasks: Set[asyncio.Task] = set()

    @property
    def phase(self) -> SessionPhase:
        return self.session.phase

    def subscribe(self, listener: TransitionListener) -> None:
        self._listeners.append(listener)

    # ----- internals -----

    def _transition(self, phase: SessionPhase) -> None:
        previous = self.session.phase
        if previous is SessionPhase.DRAWING and phase is not SessionPhase.DRAWING:
            self._cancel_timer()
        self.session.phase = phase
        logger.debug(f"Session {self.session.id}: {previous.value} -> {phase.value}")
        for listener in list(self._listeners):
            listener(previous, phase)

    def _require(self, action: str, *phases: SessionPhase) -> None:
        if self.session.phase not in phases:
            raise InvalidTransition(action, self.session.phase.value)

    def _ensure_current(self, expected: SessionPhase, round_number: int) -> None:
        if not self.session.is_live:
            raise StaleSessionUpdate(f"session {self.session.id} is closed")
        if self.session.round_number != round_number:
            raise StaleSessionUpdate(
                f"session {self.session.id} moved from round {round_number} to {self.session.round_number}"
            )
        if self.session.phase is not expected:
            raise StaleSessionUpdate(
                f"session {self.session.id} moved from {expected.value} to {self.session.phase.value}"
            )

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def run_in_background(self, coro: Awaitable[Any]) -> asyncio.Task:
        """Schedule a flow on the running loop; the controller keeps the task alive."""
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(self._log_failure)
        return task

    def _log_failure(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Session {self.session.id}: background flow failed", exc_info=exc)

    # ----- Idle -> Drawing -----

    async def start(self) -> None:
        self._require("start", SessionPhase.IDLE)
        self.session.round_number += 1
        self.session.upload_attempted = False
        self.session.round_payload = None
        self.session.current_artifact = None
        self.session.finished_artifact = None
        self.session.countdown = self.draw_seconds
        self.editor.clear()
        self._transition(SessionPhase.DRAWING)
        self._timer = DrawingTimer(
            self.draw_seconds,
            on_expire=self.complete_round,
            on_tick=self._on_tick,
            tick_seconds=self.tick_seconds,
        )
        self._timer.start()

    def _on_tick(self, remaining: int) -> None:
        self.session.countdown = remaining

    def update_scene(self, scene: Any) -> None:
        """Push the editor's current scene graph."""
        self._require("update_scene", SessionPhase.DRAWING, SessionPhase.CONTINUING)
        self.editor.load(scene)

    # ----- Drawing -> Submitting -> Completed -> SearchingHandoff -----

    def signal_complete(self) -> asyncio.Task:
        """External completion signal: validate now, run the round in the background."""
        if not self.session.upload_attempted:
            self._require("complete", SessionPhase.DRAWING)
        return self.run_in_background(self.complete_round())

    async def complete_round(self) -> None:
        """Timer expiry or an external completion signal."""
        if self.session.upload_attempted:
            logger.info("Save already attempted, preventing duplicate upload")
            return
        self._require("complete", SessionPhase.DRAWING)
        try:
            await self._submit_round(self.session.round_number)
        except StaleSessionUpdate as exc:
            logger.debug(f"Discarding stale update: {exc}")

    async def _submit_round(self, round_number: int) -> None:
        self.session.upload_attempted = True
        self.session.countdown = 0
        try:
            payload = self.editor.snapshot()
        except Exception as exc:
            logger.error(f"Error capturing drawing: {exc}")
            self.session.round_payload = {}
            self._transition(SessionPhase.COMPLETED)
            await self._advance_after_completed(round_number)
            return

        self._transition(SessionPhase.SUBMITTING)
        ref: Optional[ArtifactRef] = None
        try:
            ref = await self._store.put(ArtifactCategory.UNFINISHED, payload)
        except StoreError as exc:
            logger.error(f"Error saving drawing: {exc}")
        self._ensure_current(SessionPhase.SUBMITTING, round_number)

        if ref is not None:
            logger.info(f"Drawing saved successfully with ID: {ref.id}")
            self.session.last_submitted_id = ref.id
            self.session.round_payload = payload
        else:
            # TODO: queue the lost drawing for a later re-upload instead of dropping it
            self.session.round_payload = {}
        self._transition(SessionPhase.COMPLETED)
        await self._advance_after_completed(round_number)

    async def _advance_after_completed(self, round_number: int) -> None:
        await asyncio.sleep(self.completed_delay)
        self._ensure_current(SessionPhase.COMPLETED, round_number)
        self._transition(SessionPhase.SEARCHING_HANDOFF)
        await self._search_handoff(round_number)

    async def _search_handoff(self, round_number: int) -> None:
        try:
            candidate = await self._selector.pick_candidate(exclude_id=self.session.last_submitted_id)
        except StoreError as exc:
            logger.error(f"Error fetching random drawing: {exc}")
            self._ensure_current(SessionPhase.SEARCHING_HANDOFF, round_number)
            self._transition(SessionPhase.IDLE)
            return
        self._ensure_current(SessionPhase.SEARCHING_HANDOFF, round_number)

        if candidate is None:
            self._transition(SessionPhase.GALLERY)
            return
        try:
            self.editor.load(candidate.payload)
        except Exception as exc:
            logger.error(f"Error loading drawing {candidate.id}: {exc}")
            self._transition(SessionPhase.IDLE)
            return
        self.session.current_artifact = candidate
        self.session.upload_attempted = False
        self._transition(SessionPhase.CONTINUING)

    # ----- Continuing -> Gallery -----

    async def submit_continuation(self, payload: Any = None) -> Optional[ArtifactRef]:
        """Upload the continued drawing as a Finished artifact.

        StoreError propagates; the surrounding application decides how to
        recover (normally ``reset()``).
        """
        if self.session.upload_attempted:
            logger.info("Save already attempted, preventing duplicate upload")
            return None
        self._require("finish", SessionPhase.CONTINUING)
        current = self.session.current_artifact
        if current is None:
            raise InvalidTransition("finish", self.session.phase.value)
        self.session.upload_attempted = True
        round_number = self.session.round_number
        if payload is None:
            payload = self.editor.snapshot()

        try:
            ref = await self._store.put_finished(payload, current.id)
        except StoreError as exc:
            logger.error(f"Error saving finished drawing: {exc}")
            raise
        try:
            self._ensure_current(SessionPhase.CONTINUING, round_number)
        except StaleSessionUpdate as exc:
            logger.debug(f"Discarding stale update: {exc}")
            return ref
        self.session.finished_artifact = ref
        self._transition(SessionPhase.GALLERY)
        return ref

    # ----- explicit user actions -----

    def cancel(self) -> None:
        """Leave the continuation for the gallery, or abandon a hand-off search."""
        self._require("cancel", SessionPhase.CONTINUING, SessionPhase.SEARCHING_HANDOFF)
        if self.session.phase is SessionPhase.CONTINUING:
            self._transition(SessionPhase.GALLERY)
        else:
            self._transition(SessionPhase.IDLE)

    def back_to_start(self) -> None:
        self._require("back_to_start", SessionPhase.GALLERY)
        self._transition(SessionPhase.IDLE)

    def reset(self) -> None:
        """Error recovery: return to Idle from any phase, keeping nothing of the round."""
        self._cancel_timer()
        self.session.round_number += 1
        self.session.current_artifact = None
        self.session.round_payload = None
        self.session.countdown = None
        if self.session.phase is not SessionPhase.IDLE:
            self._transition(SessionPhase.IDLE)

    def close(self) -> None:
        """Tear down: in-flight results for this session are ignored from now on."""
        self.session.is_live = False
        self._cancel_timer()
        for task in list(self._tasks):
            task.cancel()
