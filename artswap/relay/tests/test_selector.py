import asyncio
import random
from unittest.mock import AsyncMock, MagicMock

import pytest

from artswap.artifact_store.models import KeyDescriptor
from artswap.artifact_store.service import ArtifactStore
from artswap.artifact_store.storage import InMemoryBlobBackend
from artswap.common.errors import FetchError, StoreError
from artswap.content_fetcher.fetcher import ContentFetcher
from artswap.provenance.codec import ArtifactCategory
from artswap.relay.selector import RelaySelector


def _seeded(*ids, seed=7):
    backend = InMemoryBlobBackend(base_url="http://blobs.test")
    fetcher = ContentFetcher(proxy_base="http://proxy.test/", transport=backend.transport())
    queue = iter(ids)
    store = ArtifactStore(backend, fetcher, id_factory=lambda: next(queue))

    async def _fill():
        for artifact_id in ids:
            await store.put(ArtifactCategory.UNFINISHED, {"drawn_by": artifact_id})

    asyncio.run(_fill())
    return RelaySelector(store, rng=random.Random(seed)), backend


def test_only_own_drawing_yields_none():
    selector, _ = _seeded("abc")
    assert asyncio.run(selector.pick_candidate(exclude_id="abc")) is None


def test_empty_pool_yields_none():
    selector, _ = _seeded()
    assert asyncio.run(selector.pick_candidate()) is None


def test_excluded_id_is_never_served():
    selector, _ = _seeded("abc", "def")
    for _ in range(25):
        candidate = asyncio.run(selector.pick_candidate(exclude_id="abc"))
        assert candidate.id == "def"
        assert candidate.payload == {"drawn_by": "def"}
        assert candidate.url == "http://blobs.test/unfinished/def.json"


def test_exclusion_is_exact_not_substring():
    selector, _ = _seeded("abc", "abc123", "xabc")
    seen = set()
    for _ in range(40):
        seen.add(asyncio.run(selector.pick_candidate(exclude_id="abc")).id)
    assert seen == {"abc123", "xabc"}


def test_draws_cover_the_whole_pool():
    selector, _ = _seeded("a1", "b2", "c3")
    seen = {asyncio.run(selector.pick_candidate()).id for _ in range(60)}
    assert seen == {"a1", "b2", "c3"}


def test_unrecognised_keys_are_skipped():
    selector, backend = _seeded("abc")
    asyncio.run(backend.put("unfinished/readme.txt", b"hello", "text/plain"))
    asyncio.run(backend.put("unfinished/x_from_y.json", b"{}", "application/json"))

    eligible = asyncio.run(selector.candidates())
    assert [artifact_id for artifact_id, _ in eligible] == ["abc"]


def test_fetch_failure_propagates():
    store = MagicMock()
    store.list = AsyncMock(return_value=[KeyDescriptor(key="unfinished/abc.json", url="http://gone.test/abc")])
    store.get = AsyncMock(side_effect=FetchError("proxy down", url="http://gone.test/abc"))
    selector = RelaySelector(store)

    with pytest.raises(StoreError):
        asyncio.run(selector.pick_candidate(exclude_id="zzz"))
    store.list.assert_awaited_once_with(ArtifactCategory.UNFINISHED)


def test_listing_failure_propagates():
    store = MagicMock()
    store.list = AsyncMock(side_effect=StoreError("bucket unavailable"))
    with pytest.raises(StoreError):
        asyncio.run(RelaySelector(store).pick_candidate())
