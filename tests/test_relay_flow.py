"""Several participants relaying drawings through one shared in-memory store."""
import asyncio

from artswap.artifact_store.service import ArtifactStore
from artswap.artifact_store.storage import InMemoryBlobBackend
from artswap.content_fetcher.fetcher import ContentFetcher
from artswap.gallery.service import GalleryService
from artswap.provenance.codec import ArtifactCategory, decode
from artswap.relay.selector import RelaySelector
from artswap.session.controller import SessionController
from artswap.session.models import SessionPhase


def _shared_stack():
    backend = InMemoryBlobBackend(base_url="http://blobs.test")
    fetcher = ContentFetcher(proxy_base="http://proxy.test/", transport=backend.transport())
    store = ArtifactStore(backend, fetcher)
    return store, RelaySelector(store)


def _participant(store, selector):
    return SessionController(store, selector, draw_seconds=30, tick_seconds=10, completed_delay=0)


async def _draw(controller, scene):
    await controller.start()
    controller.update_scene(scene)
    await controller.complete_round()


def test_three_participants_build_a_provenance_chain():
    store, selector = _shared_stack()
    alice, bob, carol = (_participant(store, selector) for _ in range(3))

    async def _play():
        await _draw(alice, {"alice": 1})
        assert alice.phase is SessionPhase.GALLERY

        await _draw(bob, {"bob": 1})
        assert bob.phase is SessionPhase.CONTINUING
        assert bob.session.current_artifact.id == alice.session.last_submitted_id
        bob.update_scene({"alice": 1, "bob": 2})
        finished = await bob.submit_continuation()

        await _draw(carol, {"carol": 1})
        assert carol.phase is SessionPhase.CONTINUING
        assert carol.session.current_artifact.id in {
            alice.session.last_submitted_id,
            bob.session.last_submitted_id,
        }
        return finished

    finished = asyncio.run(_play())

    finished_keys = [d.key for d in asyncio.run(store.list(ArtifactCategory.FINISHED))]
    assert len(finished_keys) == 1
    decoded = decode(finished_keys[0])
    assert decoded.id == finished.id
    assert decoded.original_id == alice.session.last_submitted_id

    gallery = asyncio.run(GalleryService(store).list_finished())
    assert [(g.id, g.original_id, g.payload) for g in gallery] == [
        (finished.id, alice.session.last_submitted_id, {"alice": 1, "bob": 2})
    ]


def test_nobody_receives_their_own_drawing_back():
    store, selector = _shared_stack()
    players = [_participant(store, selector) for _ in range(6)]

    async def _play():
        for index, player in enumerate(players):
            await _draw(player, {"player": index})

    asyncio.run(_play())

    for player in players[1:]:
        assert player.phase is SessionPhase.CONTINUING
        assert player.session.current_artifact.id != player.session.last_submitted_id
    assert players[0].phase is SessionPhase.GALLERY
