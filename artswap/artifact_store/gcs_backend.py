"""Google Cloud Storage backend for drawing blobs."""
from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Any, Callable, List, Optional

from google.api_core import exceptions as gcs_exceptions
from google.cloud import storage

from artswap.common.errors import ArtifactExistsError, StoreError

logger = logging.getLogger(__name__)


class GcsBlobBackend:
    """Append-only blob writes against a single bucket.

    Uploads carry ``if_generation_match=0`` so the bucket itself refuses to
    replace an existing object. Blocking client calls run in a worker thread.
    """

    def __init__(
        self,
        bucket: str,
        project: Optional[str] = None,
        client: Any = None,
        signed_url_ttl_seconds: Optional[int] = None,
    ) -> None:
        if not bucket:
            raise RuntimeError("ARTSWAP_BUCKET is required for the gcs storage backend")
        self._client = client or storage.Client(project=project)
        self._bucket = self._client.bucket(bucket)
        self.bucket_name = bucket
        self._signed_url_ttl = signed_url_ttl_seconds

    async def _run(self, action: str, key: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except gcs_exceptions.PreconditionFailed as exc:
            raise ArtifactExistsError(f"Key already exists: {key}", key=key) from exc
        except gcs_exceptions.NotFound as exc:
            raise StoreError(f"No blob stored at {key}", key=key) from exc
        except Exception as exc:
            logger.error(f"GCS {action} failed for '{key}': {exc}")
            raise StoreError(f"GCS {action} failed for '{key}': {exc}", key=key) from exc

    def _upload(self, key: str, data: bytes, content_type: str) -> str:
        blob = self._bucket.blob(key)
        blob.upload_from_string(data, content_type=content_type, if_generation_match=0)
        return self.url_for(key)

    def _download(self, key: str) -> bytes:
        return self._bucket.blob(key).download_as_bytes()

    def _list(self, prefix: str) -> List[str]:
        return [
            blob.name
            for blob in self._client.list_blobs(self._bucket, prefix=prefix)
            if not blob.name.endswith("/")
        ]

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        return await self._run("upload", key, self._upload, key, data, content_type)

    async def get(self, key: str) -> bytes:
        return await self._run("download", key, self._download, key)

    async def list(self, prefix: str) -> List[str]:
        return await self._run("list", prefix, self._list, prefix)

    def url_for(self, key: str) -> str:
        blob = self._bucket.blob(key)
        if self._signed_url_ttl:
            return blob.generate_signed_url(
                version="v4",
                expiration=timedelta(seconds=self._signed_url_ttl),
                method="GET",
            )
        return blob.public_url
