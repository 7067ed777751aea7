import asyncio
from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import quote

import httpx
import pytest

from artswap.common.errors import FetchError, StoreError
from artswap.content_fetcher.fetcher import ContentFetcher, proxied_url

BLOB_URL = "https://blobs.example.com/unfinished/abc.json?alt=media"


def run_async(coro):
    return asyncio.run(coro)


def test_proxied_url_encodes_whole_target():
    assert proxied_url("https://corsproxy.io/", BLOB_URL) == (
        "https://corsproxy.io/?https%3A%2F%2Fblobs.example.com%2Funfinished%2Fabc.json%3Falt%3Dmedia"
    )


def test_direct_fetch_success_skips_proxy():
    async def _test():
        with patch("httpx.AsyncClient") as MockClient:
            mock_http = AsyncMock()
            MockClient.return_value.__aenter__.return_value = mock_http

            ok = MagicMock()
            ok.json.return_value = {"shape:1": {"type": "draw"}}
            mock_http.get.return_value = ok

            fetcher = ContentFetcher(proxy_base="https://proxy.test/", timeout=5.0)
            result = await fetcher.fetch_json(BLOB_URL)

            assert result == {"shape:1": {"type": "draw"}}
            mock_http.get.assert_called_once_with(BLOB_URL)
            assert MockClient.call_args.kwargs["timeout"] == 5.0

    run_async(_test())


def test_direct_failure_falls_back_to_proxy_once():
    async def _test():
        with patch("httpx.AsyncClient") as MockClient:
            mock_http = AsyncMock()
            MockClient.return_value.__aenter__.return_value = mock_http

            proxied = MagicMock()
            proxied.json.return_value = {"from": "proxy"}
            mock_http.get.side_effect = [httpx.ConnectError("blocked by CORS"), proxied]

            fetcher = ContentFetcher(proxy_base="https://proxy.test/")
            result = await fetcher.fetch_json(BLOB_URL)

            assert result == {"from": "proxy"}
            assert mock_http.get.call_count == 2
            fallback_url = mock_http.get.call_args_list[1][0][0]
            assert fallback_url == f"https://proxy.test/?{quote(BLOB_URL, safe='')}"

    run_async(_test())


def test_non_json_body_counts_as_failure():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.host)
        if request.url.host == "proxy.test":
            return httpx.Response(200, json={"ok": True})
        return httpx.Response(200, text="<html>not json</html>")

    fetcher = ContentFetcher(proxy_base="https://proxy.test/", transport=httpx.MockTransport(handler))
    assert run_async(fetcher.fetch_json(BLOB_URL)) == {"ok": True}
    assert calls == ["blobs.example.com", "proxy.test"]


def test_error_status_triggers_fallback():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "proxy.test":
            return httpx.Response(200, json=[1, 2, 3])
        return httpx.Response(403)

    fetcher = ContentFetcher(proxy_base="https://proxy.test/", transport=httpx.MockTransport(handler))
    assert run_async(fetcher.fetch_json(BLOB_URL)) == [1, 2, 3]


def test_proxy_failure_raises_fetch_error_without_third_attempt():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        return httpx.Response(503)

    fetcher = ContentFetcher(proxy_base="https://proxy.test/", transport=httpx.MockTransport(handler))
    with pytest.raises(FetchError) as excinfo:
        run_async(fetcher.fetch_json(BLOB_URL))

    assert len(calls) == 2
    assert excinfo.value.url == BLOB_URL
    assert isinstance(excinfo.value, StoreError)
    assert isinstance(excinfo.value.__cause__, httpx.HTTPStatusError)


def test_defaults_come_from_runtime_config(monkeypatch):
    monkeypatch.setenv("ARTSWAP_PROXY_BASE", "https://relay.example/")
    monkeypatch.setenv("ARTSWAP_FETCH_TIMEOUT_SECONDS", "7.5")
    fetcher = ContentFetcher()
    assert fetcher.proxy_base == "https://relay.example/"
    assert fetcher.timeout == 7.5
