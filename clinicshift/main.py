"""
application entry point

    uvicorn clinicshift.main:app --reload

on startup we hydrate the store from the local snapshot, then (if a remote
backend is configured) seed it, pull from it and subscribe to it.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from clinicshift.api.router import api_router
from clinicshift.core.config import Settings, settings
from clinicshift.core.logging import get_logger
from clinicshift.core.state import get_store
from clinicshift.services.persistence import LocalSnapshotStorage
from clinicshift.services.sync import InMemoryDocumentStore, RemoteSync, SyncOutbox

logger = get_logger(__name__)


def create_app(config: Optional[Settings] = None) -> FastAPI:
    config = config or settings
    storage = LocalSnapshotStorage(config.snapshot_path) if config.persist_snapshot else None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = get_store()
        if storage is not None:
            store.replace_state(storage.load())
            logger.info("Loaded snapshot from %s", storage.path)

        remote: Optional[RemoteSync] = None
        if config.remote_backend == "memory":
            backend = InMemoryDocumentStore()
            store.outbox = SyncOutbox(backend)
            remote = RemoteSync(store, backend)
            remote.publish_local()
            remote.seed_defaults()
            remote.hydrate()
            remote.subscribe_all()
            logger.info("Remote sync enabled (%s)", config.remote_backend)

        yield

        if remote is not None:
            remote.unsubscribe_all()

    app = FastAPI(title=config.app_name, lifespan=lifespan)
    app.state.storage = storage
    app.include_router(api_router)
    return app


app = create_app()
