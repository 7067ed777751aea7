"""Public gallery of finished drawings and their provenance."""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from artswap.artifact_store.models import GalleryEntry, KeyDescriptor, RelayCandidate
from artswap.artifact_store.service import ArtifactStore
from artswap.common.errors import ProvenanceDecodeError, StoreError
from artswap.provenance import codec
from artswap.provenance.codec import ArtifactCategory

logger = logging.getLogger(__name__)


class GalleryService:
    def __init__(self, store: ArtifactStore) -> None:
        self._store = store

    async def _load(self, descriptor: KeyDescriptor) -> Optional[GalleryEntry]:
        try:
            decoded = codec.decode(descriptor.key)
        except ProvenanceDecodeError as exc:
            logger.warning("Skipping unrecognised finished key: %s", exc)
            return None
        try:
            payload = await self._store.get(descriptor.url)
        except StoreError as exc:
            logger.warning("Skipping finished drawing %s: %s", decoded.id, exc)
            return None
        return GalleryEntry(
            id=decoded.id,
            original_id=decoded.original_id or "",
            url=descriptor.url,
            payload=payload,
        )

    async def list_finished(self) -> List[GalleryEntry]:
        """Every finished drawing whose key decodes and whose content loads.

        A failure to list propagates as StoreError; individual entries that
        cannot be read are skipped.
        """
        logger.info("Fetching all finished drawings...")
        descriptors = await self._store.list(ArtifactCategory.FINISHED)
        loaded = await asyncio.gather(*(self._load(d) for d in descriptors))
        entries = [entry for entry in loaded if entry is not None]
        logger.info(f"Fetched {len(entries)} finished drawings")
        return entries

    async def _find_original_id(self, finished_id: str) -> str:
        for descriptor in await self._store.list(ArtifactCategory.FINISHED):
            try:
                decoded = codec.decode(descriptor.key)
            except ProvenanceDecodeError:
                continue
            if decoded.id == finished_id:
                return decoded.original_id or ""
        raise KeyError("finished_not_found")

    async def origin_of(self, finished_id: str) -> Optional[RelayCandidate]:
        """The unfinished drawing a finished piece continued, if still listed.

        Raises KeyError when no finished drawing has ``finished_id``.
        """
        original_id = await self._find_original_id(finished_id)
        origin_key = codec.encode(ArtifactCategory.UNFINISHED, original_id)
        for descriptor in await self._store.list(ArtifactCategory.UNFINISHED):
            if descriptor.key == origin_key:
                payload = await self._store.get(descriptor.url)
                return RelayCandidate(id=original_id, url=descriptor.url, payload=payload)
        logger.info(f"Origin {original_id} of finished drawing {finished_id} is not listed")
        return None
