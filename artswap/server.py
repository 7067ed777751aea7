"""Aggregate app for the ArtSwap relay.

Run with ``uvicorn --factory artswap.server:create_app``.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from artswap.artifact_store.service import ArtifactStore
from artswap.artifact_store.storage import BlobBackend, InMemoryBlobBackend, build_backend
from artswap.config import runtime_config
from artswap.content_fetcher.fetcher import ContentFetcher
from artswap.gallery.router import router as gallery_router
from artswap.gallery.service import GalleryService
from artswap.relay.selector import RelaySelector
from artswap.session.controller import SessionController
from artswap.session.registry import SessionRegistry
from artswap.session.router import router as sessions_router


def create_app(
    backend: Optional[BlobBackend] = None,
    fetcher: Optional[ContentFetcher] = None,
) -> FastAPI:
    """Build the app and its one process-wide store, fetcher and selector."""
    cfg = runtime_config.config_snapshot()
    logging.basicConfig(level=cfg["log_level"])

    backend = backend or build_backend(cfg)
    if fetcher is None:
        transport = backend.transport() if isinstance(backend, InMemoryBlobBackend) else None
        fetcher = ContentFetcher(
            proxy_base=cfg["proxy_base"],
            timeout=cfg["fetch_timeout_seconds"],
            transport=transport,
        )
    store = ArtifactStore(backend, fetcher)
    selector = RelaySelector(store)

    def new_controller() -> SessionController:
        return SessionController(
            store,
            selector,
            draw_seconds=cfg["draw_seconds"],
            tick_seconds=cfg["tick_seconds"],
            completed_delay=cfg["completed_delay_seconds"],
        )

    registry = SessionRegistry(new_controller, idle_seconds=cfg["session_idle_seconds"])

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        registry.close_all()

    app = FastAPI(title="ArtSwap Relay", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.store = store
    app.state.selector = selector
    app.state.gallery = GalleryService(store)
    app.state.sessions = registry

    app.include_router(sessions_router)
    app.include_router(gallery_router)
    return app
