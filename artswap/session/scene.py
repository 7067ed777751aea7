"""Seam to the drawing editor, which owns the actual scene graph."""
from __future__ import annotations

import copy
from typing import Any, Protocol


class SceneEditor(Protocol):
    def snapshot(self) -> Any:
        """Current scene graph, JSON-serializable."""
        ...

    def load(self, payload: Any) -> None:
        ...

    def clear(self) -> None:
        ...


class SceneBuffer:
    """Holds the latest scene pushed by a remote editor client."""

    def __init__(self) -> None:
        self._scene: Any = {}

    def snapshot(self) -> Any:
        return copy.deepcopy(self._scene)

    def load(self, payload: Any) -> None:
        if payload is not None and not isinstance(payload, (dict, list)):
            raise ValueError("scene graph must be a JSON object or array")
        self._scene = copy.deepcopy(payload) if payload is not None else {}

    def clear(self) -> None:
        self._scene = {}
