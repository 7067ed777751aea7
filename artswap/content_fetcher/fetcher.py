"""JSON content retrieval with a single CORS-proxy fallback."""
from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from artswap.common.errors import FetchError
from artswap.config import runtime_config

logger = logging.getLogger(__name__)


def proxied_url(proxy_base: str, url: str) -> str:
    return f"{proxy_base}?{quote(url, safe='')}"


class ContentFetcher:
    """Fetches a blob's JSON by URL, retrying once through the proxy.

    No backoff and no further retries: a failed direct fetch (transport
    error, non-2xx status or a body that is not JSON) is retried exactly
    once via ``<proxy-base>?<url-encoded url>``.
    """

    def __init__(
        self,
        proxy_base: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.proxy_base = proxy_base or runtime_config.get_proxy_base()
        self.timeout = timeout if timeout is not None else runtime_config.get_fetch_timeout_seconds()
        self._transport = transport

    async def _get_json(self, url: str) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.get(url)
        resp.raise_for_status()
        return resp.json()

    async def fetch_json(self, url: str) -> Any:
        try:
            return await self._get_json(url)
        except Exception as exc:
            logger.warning("Direct fetch of %s failed (%s), trying with proxy", url, exc)

        fallback = proxied_url(self.proxy_base, url)
        try:
            return await self._get_json(fallback)
        except Exception as exc:
            raise FetchError(f"Proxy fetch failed for {url}: {exc}", url=url) from exc
