"""Storage-key naming convention linking finished artifacts to their origin.

Key shapes:
    unfinished/{id}.json
    finished/{id}_from_{original_id}.json
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from artswap.common.errors import ProvenanceDecodeError

SEPARATOR = "_from_"
SUFFIX = ".json"


class ArtifactCategory(str, Enum):
    """Lifecycle category of a stored drawing."""
    UNFINISHED = "unfinished"
    FINISHED = "finished"

    @property
    def prefix(self) -> str:
        return f"{self.value}/"


class StorageKey(BaseModel):
    """Decoded form of a storage key."""
    category: ArtifactCategory
    id: str
    original_id: Optional[str] = None

    @property
    def key(self) -> str:
        return encode(self.category, self.id, self.original_id)


def _check_id(value: str, field: str) -> None:
    if not value:
        raise ValueError(f"{field} must be non-empty")
    if "/" in value or SEPARATOR in value or value.endswith(SUFFIX):
        raise ValueError(f"{field} '{value}' contains a reserved sequence")
    # Either edge would overlap the separator once the two ids are joined.
    if value.endswith(SEPARATOR[:-1]) or value.startswith(SEPARATOR[1:]):
        raise ValueError(f"{field} '{value}' would overlap the '{SEPARATOR}' separator")


def _check_decoded(key: str, value: str, field: str) -> None:
    try:
        _check_id(value, field)
    except ValueError as exc:
        raise ProvenanceDecodeError(key, str(exc)) from None


def encode(category: ArtifactCategory, artifact_id: str, original_id: Optional[str] = None) -> str:
    category = ArtifactCategory(category)
    _check_id(artifact_id, "artifact_id")
    if category is ArtifactCategory.UNFINISHED:
        if original_id is not None:
            raise ValueError("unfinished artifacts carry no provenance")
        return f"{category.prefix}{artifact_id}{SUFFIX}"
    if original_id is None:
        raise ValueError("finished artifacts require an original_id")
    _check_id(original_id, "original_id")
    return f"{category.prefix}{artifact_id}{SEPARATOR}{original_id}{SUFFIX}"


def decode(key: str) -> StorageKey:
    """Recover (category, id, original_id) from a storage key.

    Raises ProvenanceDecodeError for anything that is not a canonical key;
    malformed keys are never coerced into a best guess.
    """
    prefix, slash, name = key.partition("/")
    if not slash:
        raise ProvenanceDecodeError(key, "missing category prefix")
    try:
        category = ArtifactCategory(prefix)
    except ValueError:
        raise ProvenanceDecodeError(key, f"unknown category '{prefix}'") from None
    if "/" in name:
        raise ProvenanceDecodeError(key, "nested path")
    if not name.endswith(SUFFIX):
        raise ProvenanceDecodeError(key, f"missing '{SUFFIX}' suffix")
    stem = name[: -len(SUFFIX)]

    separators = stem.count(SEPARATOR)
    if category is ArtifactCategory.UNFINISHED:
        if separators:
            raise ProvenanceDecodeError(key, "unfinished key carries a provenance separator")
        _check_decoded(key, stem, "id")
        return StorageKey(category=category, id=stem)

    if separators != 1 or stem.find(SEPARATOR) != stem.rfind(SEPARATOR):
        raise ProvenanceDecodeError(key, f"expected exactly one '{SEPARATOR}' separator, found {separators}")
    artifact_id, _, original_id = stem.partition(SEPARATOR)
    _check_decoded(key, artifact_id, "id")
    _check_decoded(key, original_id, "original_id")
    return StorageKey(category=category, id=artifact_id, original_id=original_id)
