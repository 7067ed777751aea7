from __future__ import annotations

from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from artswap.artifact_store.models import ArtifactRef, RelayCandidate


class SessionPhase(str, Enum):
    """Where a participant is in the draw → hand-off → continue journey."""
    IDLE = "idle"
    DRAWING = "drawing"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    SEARCHING_HANDOFF = "searching_handoff"
    CONTINUING = "continuing"
    GALLERY = "gallery"


class Session(BaseModel):
    """Ephemeral per-participant state, mutated only by SessionController."""
    id: str = Field(default_factory=lambda: uuid4().hex)
    phase: SessionPhase = SessionPhase.IDLE
    current_artifact: Optional[RelayCandidate] = None
    last_submitted_id: Optional[str] = None
    round_payload: Any = None
    finished_artifact: Optional[ArtifactRef] = None
    countdown: Optional[int] = None
    round_number: int = 0
    upload_attempted: bool = False
    is_live: bool = True
