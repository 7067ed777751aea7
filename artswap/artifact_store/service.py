"""Artifact store: canonical keys, fresh ids and JSON payloads over a blob backend."""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, List, Optional
from uuid import uuid4

from artswap.artifact_store.models import ArtifactRef, KeyDescriptor
from artswap.artifact_store.storage import BlobBackend
from artswap.common.errors import StoreError
from artswap.content_fetcher.fetcher import ContentFetcher
from artswap.provenance import codec
from artswap.provenance.codec import ArtifactCategory

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/json"


def generate_artifact_id() -> str:
    return uuid4().hex


class ArtifactStore:
    """Append-only store of drawings.

    Ids are always generated here, never supplied by callers, so a write
    can only ever target a fresh key. No retries and no local caching.
    """

    def __init__(
        self,
        backend: BlobBackend,
        fetcher: ContentFetcher,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self._backend = backend
        self._fetcher = fetcher
        self._id_factory = id_factory or generate_artifact_id

    @property
    def backend(self) -> BlobBackend:
        return self._backend

    async def _write(self, category: ArtifactCategory, payload: Any, original_id: Optional[str] = None) -> ArtifactRef:
        artifact_id = self._id_factory()
        key = codec.encode(category, artifact_id, original_id)
        try:
            data = json.dumps(payload).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise StoreError(f"Payload for {key} is not JSON-serializable: {exc}", key=key) from exc

        logger.info(f"Starting upload of {key}, size: {len(data)} bytes")
        url = await self._backend.put(key, data, CONTENT_TYPE)
        logger.info(f"Upload complete. URL: {url}")
        return ArtifactRef(
            id=artifact_id,
            category=category,
            key=key,
            url=url,
            size=len(data),
            original_id=original_id,
        )

    async def put(self, category: ArtifactCategory, payload: Any) -> ArtifactRef:
        category = ArtifactCategory(category)
        if category is ArtifactCategory.FINISHED:
            raise ValueError("finished artifacts are written with put_finished()")
        return await self._write(category, payload)

    async def put_finished(self, payload: Any, original_id: str) -> ArtifactRef:
        logger.info(f"Saving finished drawing continuing {original_id}")
        return await self._write(ArtifactCategory.FINISHED, payload, original_id=original_id)

    async def list(self, category: ArtifactCategory) -> List[KeyDescriptor]:
        category = ArtifactCategory(category)
        keys = await self._backend.list(category.prefix)
        return [KeyDescriptor(key=key, url=self._backend.url_for(key)) for key in keys]

    async def get(self, url: str) -> Any:
        return await self._fetcher.fetch_json(url)

