from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from artswap.common.error_envelope import (
    error_response,
    invalid_transition_error,
    session_not_found_error,
    store_unavailable_error,
)
from artswap.common.errors import InvalidTransition, StoreError
from artswap.session.controller import SessionController
from artswap.session.models import Session
from artswap.session.registry import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


class ScenePayload(BaseModel):
    scene: Any = None


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def _controller(registry: SessionRegistry, session_id: str) -> SessionController:
    try:
        return registry.get(session_id)
    except KeyError:
        raise session_not_found_error(session_id)


@router.post("", response_model=Session)
async def create_session(registry: SessionRegistry = Depends(get_session_registry)):
    return registry.create().session


@router.get("/{session_id}", response_model=Session)
async def get_session(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    return _controller(registry, session_id).session


@router.delete("/{session_id}")
async def close_session(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    _controller(registry, session_id)
    registry.close(session_id)
    return {"status": "closed", "session_id": session_id}


@router.post("/{session_id}/start", response_model=Session)
async def start_drawing(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    controller = _controller(registry, session_id)
    try:
        await controller.start()
    except InvalidTransition as exc:
        raise invalid_transition_error(exc)
    return controller.session


@router.put("/{session_id}/scene", response_model=Session)
async def update_scene(
    session_id: str,
    payload: ScenePayload,
    registry: SessionRegistry = Depends(get_session_registry),
):
    controller = _controller(registry, session_id)
    try:
        controller.update_scene(payload.scene)
    except InvalidTransition as exc:
        raise invalid_transition_error(exc)
    except ValueError as exc:
        raise error_response(
            code="session.invalid_scene",
            message=str(exc),
            status_code=422,
            resource_kind="session",
        )
    return controller.session


@router.post("/{session_id}/complete", response_model=Session)
async def complete_round(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    controller = _controller(registry, session_id)
    try:
        controller.signal_complete()
    except InvalidTransition as exc:
        raise invalid_transition_error(exc)
    return controller.session


@router.post("/{session_id}/finish", response_model=Session)
async def finish_continuation(
    session_id: str,
    payload: Optional[ScenePayload] = None,
    registry: SessionRegistry = Depends(get_session_registry),
):
    controller = _controller(registry, session_id)
    try:
        await controller.submit_continuation(payload.scene if payload else None)
    except InvalidTransition as exc:
        raise invalid_transition_error(exc)
    except StoreError as exc:
        logger.warning("Finishing session %s failed, returning it to start: %s", session_id, exc)
        controller.reset()
        raise store_unavailable_error(exc)
    return controller.session


@router.post("/{session_id}/cancel", response_model=Session)
async def cancel(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    controller = _controller(registry, session_id)
    try:
        controller.cancel()
    except InvalidTransition as exc:
        raise invalid_transition_error(exc)
    return controller.session


@router.post("/{session_id}/restart", response_model=Session)
async def back_to_start(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    controller = _controller(registry, session_id)
    try:
        controller.back_to_start()
    except InvalidTransition as exc:
        raise invalid_transition_error(exc)
    return controller.session


@router.post("/{session_id}/reset", response_model=Session)
async def reset(session_id: str, registry: SessionRegistry = Depends(get_session_registry)):
    controller = _controller(registry, session_id)
    controller.reset()
    return controller.session
