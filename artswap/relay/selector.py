"""Picks the next unfinished drawing to hand to a participant."""
from __future__ import annotations

import logging
import random
from typing import List, Optional, Tuple

from artswap.artifact_store.models import KeyDescriptor, RelayCandidate
from artswap.artifact_store.service import ArtifactStore
from artswap.common.errors import ProvenanceDecodeError
from artswap.provenance import codec
from artswap.provenance.codec import ArtifactCategory

logger = logging.getLogger(__name__)


class RelaySelector:
    """Uniform random choice over the unfinished pool, minus one excluded id.

    Each call is an independent draw over what is listed right now; the
    same drawing may be served to several participants over time.
    """

    def __init__(self, store: ArtifactStore, rng: Optional[random.Random] = None) -> None:
        self._store = store
        self._rng = rng or random.Random()

    async def candidates(self, exclude_id: Optional[str] = None) -> List[Tuple[str, KeyDescriptor]]:
        """Decoded (id, descriptor) pairs eligible for selection."""
        eligible: List[Tuple[str, KeyDescriptor]] = []
        for descriptor in await self._store.list(ArtifactCategory.UNFINISHED):
            try:
                decoded = codec.decode(descriptor.key)
            except ProvenanceDecodeError as exc:
                logger.warning("Skipping unrecognised unfinished key: %s", exc)
                continue
            if exclude_id is not None and decoded.id == exclude_id:
                continue
            eligible.append((decoded.id, descriptor))
        return eligible

    async def pick_candidate(self, exclude_id: Optional[str] = None) -> Optional[RelayCandidate]:
        logger.info("Fetching random unfinished drawing...")
        eligible = await self.candidates(exclude_id)
        if not eligible:
            logger.info("No available unfinished drawings found")
            return None

        artifact_id, descriptor = self._rng.choice(eligible)
        payload = await self._store.get(descriptor.url)
        logger.info(f"Random drawing selected. ID: {artifact_id} (from {len(eligible)} candidates)")
        return RelayCandidate(id=artifact_id, url=descriptor.url, payload=payload)
