from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field

from artswap.provenance.codec import ArtifactCategory


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ArtifactRef(BaseModel):
    """Returned by a successful write."""
    id: str
    category: ArtifactCategory
    key: str # Storage key/path
    url: str # Public or signed URL
    size: int
    original_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)


class KeyDescriptor(BaseModel):
    """One listed key plus the URL its content can be fetched from."""
    key: str
    url: str


class RelayCandidate(BaseModel):
    """An unfinished artifact handed to a new participant."""
    id: str
    url: str
    payload: Any = None


class GalleryEntry(BaseModel):
    id: str
    original_id: str
    url: str
    payload: Any = None
