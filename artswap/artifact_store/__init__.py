"""Artifact store: append-only JSON drawings under canonical keys.

Backends: in-memory (dev/tests) and Google Cloud Storage.
"""

from artswap.artifact_store.models import ArtifactRef, GalleryEntry, KeyDescriptor, RelayCandidate
from artswap.artifact_store.service import ArtifactStore
from artswap.artifact_store.storage import BlobBackend, InMemoryBlobBackend, build_backend

__all__ = [
    "ArtifactRef",
    "ArtifactStore",
    "BlobBackend",
    "GalleryEntry",
    "InMemoryBlobBackend",
    "KeyDescriptor",
    "RelayCandidate",
    "build_backend",
]
