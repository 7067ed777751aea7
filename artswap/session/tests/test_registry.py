from unittest.mock import MagicMock

import pytest

from artswap.session.controller import SessionController
from artswap.session.registry import SessionRegistry


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _registry(idle_seconds=60):
    clock = _Clock()

    def factory():
        return SessionController(MagicMock(), MagicMock(), draw_seconds=30, tick_seconds=1, completed_delay=0)

    return SessionRegistry(factory, idle_seconds=idle_seconds, clock=clock), clock


def test_abandoned_sessions_expire_on_next_create():
    registry, clock = _registry()
    abandoned = registry.create()

    clock.now += 61
    fresh = registry.create()

    assert registry.ids() == [fresh.session.id]
    assert abandoned.session.is_live is False
    with pytest.raises(KeyError):
        registry.get(abandoned.session.id)


def test_lookup_keeps_a_session_alive():
    registry, clock = _registry()
    controller = registry.create()

    clock.now += 45
    assert registry.get(controller.session.id) is controller
    clock.now += 45
    assert registry.get(controller.session.id) is controller

    clock.now += 61
    assert registry.sweep_idle() == [controller.session.id]
    assert len(registry) == 0


def test_expiry_disabled_without_idle_limit():
    registry, clock = _registry(idle_seconds=None)
    controller = registry.create()
    clock.now += 10 ** 6
    assert registry.sweep_idle() == []
    assert registry.get(controller.session.id) is controller


def test_close_unknown_session():
    registry, _ = _registry()
    with pytest.raises(KeyError):
        registry.close("missing")
