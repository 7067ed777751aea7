from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx

from artswap.common.errors import ArtifactExistsError, StoreError
from artswap.config import runtime_config

logger = logging.getLogger(__name__)


class BlobBackend(Protocol):
    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """Write a new blob and return a retrievable URL. Never overwrites."""
        ...

    async def get(self, key: str) -> bytes:
        ...

    async def list(self, prefix: str) -> List[str]:
        """Every key under prefix."""
        ...

    def url_for(self, key: str) -> str:
        ...


class InMemoryBlobBackend:
    def __init__(self, base_url: Optional[str] = None) -> None:
        self._store: Dict[str, tuple[bytes, str]] = {} # key -> (data, content_type)
        self._base_url = (base_url or runtime_config.get_memory_base_url()).rstrip("/")

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        if key in self._store:
            raise ArtifactExistsError(f"Key already exists: {key}", key=key)
        self._store[key] = (data, content_type)
        return self.url_for(key)

    async def get(self, key: str) -> bytes:
        try:
            return self._store[key][0]
        except KeyError:
            raise StoreError(f"No blob stored at {key}", key=key) from None

    async def list(self, prefix: str) -> List[str]:
        return sorted(k for k in self._store if k.startswith(prefix))

    def url_for(self, key: str) -> str:
        return f"{self._base_url}/{key}"

    def transport(self) -> httpx.MockTransport:
        """Serve stored blobs over HTTP so URLs resolve through ContentFetcher."""
        prefix = f"{self._base_url}/"

        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            entry = self._store.get(url[len(prefix):]) if url.startswith(prefix) else None
            if entry is None:
                return httpx.Response(404)
            data, content_type = entry
            return httpx.Response(200, content=data, headers={"Content-Type": content_type})

        return httpx.MockTransport(handler)


def build_backend(cfg: Optional[Dict[str, Any]] = None) -> BlobBackend:
    cfg = cfg or runtime_config.config_snapshot()
    backend_type = (cfg.get("storage_backend") or "memory").lower()
    if backend_type == "memory":
        logger.warning("Using in-memory artifact storage; drawings are lost on restart")
        return InMemoryBlobBackend(base_url=cfg.get("memory_base_url"))
    if backend_type == "gcs":
        from artswap.artifact_store.gcs_backend import GcsBlobBackend  # local import keeps memory mode light

        return GcsBlobBackend(
            bucket=cfg.get("bucket") or "",
            project=cfg.get("gcp_project"),
            signed_url_ttl_seconds=cfg.get("signed_url_ttl_seconds"),
        )
    raise RuntimeError(
        f"Unsupported storage backend '{backend_type}'. Use 'memory' or 'gcs'."
    )
